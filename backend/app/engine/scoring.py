import logging
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy import and_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from backend.app.core.errors import PersistenceError
from backend.app.models.match_result_model import MatchResult
from backend.app.models.prediction_model import PickPrediction
from backend.app.models.user_model import User

logger = logging.getLogger(__name__)

EXACT_SCORE_POINTS = 10
CORRECT_WINNER_POINTS = 5


def match_points(prediction, result) -> Optional[int]:
    """
    Points for one prediction against one result.
    None when the result has no winner yet (the match is excluded from totals).
    """
    if result.winner_side is None:
        return None
    if prediction.winner_side is None or str(prediction.winner_side) != str(result.winner_side):
        return 0

    scores = (prediction.score_a, prediction.score_b, result.score_a, result.score_b)
    if all(score is not None for score in scores) \
            and prediction.score_a == result.score_a and prediction.score_b == result.score_b:
        return EXACT_SCORE_POINTS
    return CORRECT_WINNER_POINTS


def aggregate_points(pairs: Iterable[Tuple[int, object, object]]) -> Dict[int, int]:
    """Sum of match points per user over (user_id, prediction, result) triples."""
    totals: Dict[int, int] = {}
    for user_id, prediction, result in pairs:
        points = match_points(prediction, result)
        if points is None:
            continue
        totals[user_id] = totals.get(user_id, 0) + points
    return totals


def _joined_scope():
    return select(PickPrediction, MatchResult).join(
        MatchResult,
        and_(
            MatchResult.tournament_id == PickPrediction.tournament_id,
            MatchResult.tab == PickPrediction.tab,
            MatchResult.match_id == PickPrediction.match_id,
        ),
    )


async def recompute_user_points(db: AsyncSession) -> Dict[int, int]:
    """
    Rebuilds every user's cached total from the Prediction x MatchResult join.

    Runs as one transaction: users without any scored prediction end at 0,
    so repeated calls over unchanged data converge to the same totals.
    """
    try:
        rows = (await db.execute(_joined_scope())).all()
        totals = aggregate_points(
            (prediction.user_id, prediction, result) for prediction, result in rows
        )

        await db.execute(update(User).values(points=0))
        for user_id, total in totals.items():
            await db.execute(update(User).where(User.id == user_id).values(points=total))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Points recompute failed: %s", exc)
        raise PersistenceError("Points recompute failed") from exc

    logger.debug("Recomputed points for %d scoring users", len(totals))
    return totals


async def get_match_points(db: AsyncSession, user_id: int, tournament_id: str, tab: str) -> Dict[str, int]:
    """Points per decided match of one user's scope, keyed by match id."""
    stmt = _joined_scope().where(
        PickPrediction.user_id == user_id,
        PickPrediction.tournament_id == tournament_id,
        PickPrediction.tab == str(tab),
    )
    rows = (await db.execute(stmt)).all()

    points_by_match = {}
    for prediction, result in rows:
        points = match_points(prediction, result)
        if points is not None:
            points_by_match[prediction.match_id] = points
    return points_by_match
