from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from backend.app.core.database import Base

class MatchResult(Base):
    """Authoritative outcome of one match, upserted on (tournament_id, tab, match_id)."""
    __tablename__ = "match_results"
    __table_args__ = (
        UniqueConstraint("tournament_id", "tab", "match_id", name="uq_result_scope_match"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(String, nullable=False, index=True)
    tab = Column(String, nullable=False)
    match_id = Column(String, nullable=False)

    winner_side = Column(String, nullable=True) # None = not decided yet
    score_a = Column(Integer, nullable=True)
    score_b = Column(Integer, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
