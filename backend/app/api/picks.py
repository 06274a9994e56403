from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.database import get_db
from backend.app.core.security import get_current_user
from backend.app.engine.scoring import get_match_points
from backend.app.models.enums import Tab
from backend.app.models.user_model import User
from backend.app.schemas.pickem_schema import (
    BoardResponse, MatchPoints, MatchPointsResponse, PicksResponse, PicksSave, PicksSaveResponse,
)
from backend.app.services.prediction_service import prediction_service
from backend.app.services.tournament_catalog import build_board, tournament_catalog

router = APIRouter()

TournamentIdQuery = Query(..., alias="tournamentId", min_length=1)

@router.get("", response_model=PicksResponse)
async def get_picks(
    tournament_id: str = TournamentIdQuery,
    tab: Tab = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    picks = await prediction_service.get_picks(db, user.id, tournament_id, tab)
    return PicksResponse(picks=picks)

@router.put("", response_model=PicksSaveResponse)
async def save_picks(
    payload: PicksSave,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Replaces the user's picks for one tournament tab. 423 once the tournament has started."""
    saved = await prediction_service.save_picks(db, user.id, payload.tournament_id, payload.tab, payload.picks)
    return PicksSaveResponse(saved=saved)

@router.get("/points", response_model=MatchPointsResponse)
async def get_points(
    tournament_id: str = TournamentIdQuery,
    tab: Tab = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    canonical = prediction_service.tournaments.canonical_id(tournament_id)
    points = await get_match_points(db, user.id, canonical, tab)
    return MatchPointsResponse(points_by_match=[
        MatchPoints(match_id=match_id, points=value) for match_id, value in sorted(points.items())
    ])

@router.get("/board", response_model=BoardResponse)
async def get_board(
    tournament_id: str = TournamentIdQuery,
    tab: Tab = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Every match of the tab with side labels resolved from the user's own picks."""
    tournament = await tournament_catalog.get_tournament(tournament_id)
    if tournament is None:
        raise HTTPException(status_code=404, detail="Tournament not found")

    picks = await prediction_service.get_picks(db, user.id, tournament.id, tab)
    points = await get_match_points(db, user.id, tournament.id, tab)
    return build_board(
        tournament,
        tab,
        picks,
        points,
        lock_date=prediction_service.lock_date(tournament.id),
        locked=prediction_service.is_locked(tournament.id),
    )
