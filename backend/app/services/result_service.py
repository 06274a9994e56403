import logging
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from backend.app.core.errors import PersistenceError
from backend.app.core.events import result_events
from backend.app.core.tournament_registry import registry
from backend.app.engine.scoring import recompute_user_points
from backend.app.models.enums import Tab
from backend.app.models.match_result_model import MatchResult
from backend.app.schemas.pickem_schema import MatchResultEntry

logger = logging.getLogger(__name__)


def _side(value):
    return str(value) if value is not None else None


async def upsert_results(db: AsyncSession, tournament_id: str, tab: Tab, results: Sequence) -> int:
    """
    Inserts or updates results of one (tournament, tab) scope in a single
    transaction. Rows that already hold the same winner and scores are left
    alone. Returns how many rows actually changed.
    """
    changed = 0
    try:
        for entry in results:
            existing = (await db.execute(
                select(MatchResult).where(
                    MatchResult.tournament_id == tournament_id,
                    MatchResult.tab == str(tab),
                    MatchResult.match_id == entry.match_id,
                )
            )).scalar_one_or_none()

            winner_side = _side(entry.winner_side)
            if existing is None:
                db.add(MatchResult(
                    tournament_id=tournament_id,
                    tab=str(tab),
                    match_id=entry.match_id,
                    winner_side=winner_side,
                    score_a=entry.score_a,
                    score_b=entry.score_b,
                ))
            elif (existing.winner_side, existing.score_a, existing.score_b) == (winner_side, entry.score_a, entry.score_b):
                continue
            else:
                existing.winner_side = winner_side
                existing.score_a = entry.score_a
                existing.score_b = entry.score_b
            changed += 1
            # Makes a repeated match id in the same batch visible to the next lookup
            await db.flush()

        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Storing results for %s/%s failed: %s", tournament_id, tab, exc)
        raise PersistenceError("Could not store results") from exc
    return changed


class ResultService:
    async def list_results(self, db: AsyncSession, tournament_id: str, tab: Tab) -> List[MatchResultEntry]:
        tournament_id = registry.canonical_id(tournament_id)
        result = await db.execute(
            select(MatchResult)
            .where(MatchResult.tournament_id == tournament_id, MatchResult.tab == str(tab))
            .order_by(MatchResult.match_id)
        )
        return [
            MatchResultEntry(
                match_id=row.match_id,
                winner_side=row.winner_side,
                score_a=row.score_a,
                score_b=row.score_b,
            )
            for row in result.scalars().all()
        ]

    async def save_results(self, db: AsyncSession, tournament_id: str, tab: Tab, results: Sequence[MatchResultEntry]) -> int:
        """Manual entry of authoritative results. Never subject to the prediction lock."""
        tournament_id = registry.canonical_id(tournament_id)
        changed = await upsert_results(db, tournament_id, tab, results)
        logger.info("Manual results for %s/%s: %d changed", tournament_id, tab, changed)
        if changed:
            await result_events.notify_changed(db, tournament_id, changed)
        return changed


async def recompute_on_results(db: AsyncSession, tournament_id: str, changes: int):
    logger.info("Results changed for %s (%d rows), recomputing points", tournament_id, changes)
    await recompute_user_points(db)


result_events.subscribe_changed(recompute_on_results)

# Singleton
result_service = ResultService()
