import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from backend.app.core.errors import PersistenceError, PredictionLockedError
from backend.app.core.tournament_registry import TournamentRegistry, registry
from backend.app.engine.scoring import recompute_user_points
from backend.app.models.enums import Tab
from backend.app.models.prediction_model import PickPrediction
from backend.app.schemas.pickem_schema import PickEntry

logger = logging.getLogger(__name__)


class PredictionService:
    def __init__(
        self,
        tournaments: TournamentRegistry = registry,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.tournaments = tournaments
        self.clock = clock

    def lock_date(self, tournament_id: str) -> Optional[datetime]:
        return self.tournaments.lock_instant(tournament_id)

    def is_locked(self, tournament_id: str, now: Optional[datetime] = None) -> bool:
        lock = self.lock_date(tournament_id)
        if lock is None:
            return False
        return (now or self.clock()) >= lock

    async def get_picks(self, db: AsyncSession, user_id: int, tournament_id: str, tab: Tab) -> List[PickEntry]:
        tournament_id = self.tournaments.canonical_id(tournament_id)
        result = await db.execute(
            select(PickPrediction)
            .where(
                PickPrediction.user_id == user_id,
                PickPrediction.tournament_id == tournament_id,
                PickPrediction.tab == str(tab),
            )
            .order_by(PickPrediction.match_id)
        )
        return [
            PickEntry(
                match_id=row.match_id,
                winner_side=row.winner_side,
                score_a=row.score_a,
                score_b=row.score_b,
            )
            for row in result.scalars().all()
        ]

    async def save_picks(
        self,
        db: AsyncSession,
        user_id: int,
        tournament_id: str,
        tab: Tab,
        picks: Sequence[PickEntry],
        now: Optional[datetime] = None,
    ) -> int:
        """
        Replaces the whole (user, tournament, tab) scope with `picks`.

        Entries with neither a winner nor a score are dropped. Either every
        kept entry is stored or the prior scope is left untouched. Points are
        recomputed afterwards. Returns the number of stored picks.
        """
        tournament_id = self.tournaments.canonical_id(tournament_id)
        lock = self.lock_date(tournament_id)
        if lock is not None and (now or self.clock()) >= lock:
            raise PredictionLockedError(tournament_id, lock)

        kept = [pick for pick in picks if not pick.is_empty]
        try:
            await db.execute(
                delete(PickPrediction).where(
                    PickPrediction.user_id == user_id,
                    PickPrediction.tournament_id == tournament_id,
                    PickPrediction.tab == str(tab),
                )
            )
            db.add_all([
                PickPrediction(
                    user_id=user_id,
                    tournament_id=tournament_id,
                    tab=str(tab),
                    match_id=pick.match_id,
                    winner_side=str(pick.winner_side) if pick.winner_side else None,
                    score_a=pick.score_a,
                    score_b=pick.score_b,
                )
                for pick in kept
            ])
            await db.flush()
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Saving picks failed for user %s on %s/%s: %s", user_id, tournament_id, tab, exc)
            raise PersistenceError("Could not save picks") from exc

        logger.info("User %s saved %d picks for %s/%s", user_id, len(kept), tournament_id, tab)
        await recompute_user_points(db)
        return len(kept)


# Singleton
prediction_service = PredictionService()
