import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.database import get_db
from backend.app.core.security import require_results_admin
from backend.app.models.enums import Tab
from backend.app.schemas.pickem_schema import ResultsResponse, ResultsSave, ResultsSaveResponse
from backend.app.services.result_service import result_service
from backend.app.services.results_sync import sync_once

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("", response_model=ResultsResponse)
async def get_results(
    tournament_id: str = Query(..., alias="tournamentId", min_length=1),
    tab: Tab = Query(...),
    db: AsyncSession = Depends(get_db),
):
    results = await result_service.list_results(db, tournament_id, tab)
    return ResultsResponse(results=results)

@router.put("", response_model=ResultsSaveResponse, dependencies=[Depends(require_results_admin)])
async def save_results(payload: ResultsSave, db: AsyncSession = Depends(get_db)):
    """Manual entry of authoritative results. Not subject to the prediction lock."""
    changed = await result_service.save_results(db, payload.tournament_id, payload.tab, payload.results)
    return ResultsSaveResponse(changed=changed)

@router.post("/sync", response_model=ResultsSaveResponse, dependencies=[Depends(require_results_admin)])
async def trigger_sync(db: AsyncSession = Depends(get_db)):
    """Runs one ingestion pass over the tracked tournaments right away."""
    changed = await sync_once(db)
    logger.info("Manual results sync: %d changed", changed)
    return ResultsSaveResponse(changed=changed)
