from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from backend.app.core import config
from backend.app.core.database import get_db
from backend.app.engine.scoring import recompute_user_points
from backend.app.models.user_model import User
from backend.app.schemas.pickem_schema import LeaderboardEntry, LeaderboardResponse

router = APIRouter()

@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(db: AsyncSession = Depends(get_db)):
    """All users by points (desc), ties broken by username (asc)."""
    if config.LEADERBOARD_RECOMPUTE_ON_READ:
        await recompute_user_points(db)

    result = await db.execute(select(User).order_by(User.points.desc(), User.username.asc()))
    return LeaderboardResponse(leaderboard=[
        LeaderboardEntry(user_id=user.id, username=user.username, points=user.points or 0)
        for user in result.scalars().all()
    ])
