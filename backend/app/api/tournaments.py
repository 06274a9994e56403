from typing import List

from fastapi import APIRouter, HTTPException

from backend.app.schemas.bracket_schema import Tournament
from backend.app.services.tournament_catalog import tournament_catalog

router = APIRouter()

@router.get("", response_model=List[Tournament])
async def list_tournaments():
    """Season tournaments parsed from the wiki, or the built-in catalog when it is unreachable."""
    return await tournament_catalog.list_tournaments()

@router.get("/{tournament_id}", response_model=Tournament)
async def get_tournament(tournament_id: str):
    tournament = await tournament_catalog.get_tournament(tournament_id)
    if tournament is None:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament
