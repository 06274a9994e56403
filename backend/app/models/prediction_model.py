from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from backend.app.core.database import Base

class PickPrediction(Base):
    __tablename__ = "pick_predictions"
    __table_args__ = (
        UniqueConstraint("user_id", "tournament_id", "tab", "match_id", name="uq_pick_scope_match"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tournament_id = Column(String, nullable=False)
    tab = Column(String, nullable=False) # swiss | playoffs
    match_id = Column(String, nullable=False)

    winner_side = Column(String, nullable=True) # A | B
    score_a = Column(Integer, nullable=True)
    score_b = Column(Integer, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
