from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import asyncio
import logging

from backend.app.core import config
from backend.app.core.database import AsyncSessionLocal, init_models
from backend.app.core.errors import PersistenceError, PredictionLockedError
from backend.app.api.auth import router as auth_router
from backend.app.api.picks import router as picks_router
from backend.app.api.results import router as results_router
from backend.app.api.leaderboard import router as leaderboard_router
from backend.app.api.tournaments import router as tournaments_router
from backend.app.services.results_sync import sync_once

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# --- LIFESPAN MANAGER ---
async def results_watcher():
    """Background task pulling authoritative results from the wiki"""
    while True:
        try:
            async with AsyncSessionLocal() as db:
                await sync_once(db)
        except Exception:
            logger.exception("Results sync loop error")

        await asyncio.sleep(config.RESULTS_SYNC_INTERVAL_SECONDS)

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()

    watcher = None
    if config.RESULTS_SYNC_ENABLED:
        logger.info("Starting results sync every %ss", config.RESULTS_SYNC_INTERVAL_SECONDS)
        watcher = asyncio.create_task(results_watcher())

    yield

    if watcher:
        watcher.cancel()
# -------------------------------------------------

app = FastAPI(title="RLCS Pick'em", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CLIENT_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- ERROR MAPPING ---
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid data", "details": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(PredictionLockedError)
async def locked_error_handler(request: Request, exc: PredictionLockedError):
    return JSONResponse(
        status_code=423,
        content={
            "error": "Predictions are locked for this tournament",
            "tournamentId": exc.tournament_id,
            "lockDate": exc.lock_date.isoformat().replace("+00:00", "Z"),
        },
    )

@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc.__cause__ or exc)
    return JSONResponse(status_code=500, content={"error": "Server error"})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
# --------------------------------

# Register routers
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(picks_router, prefix="/api/picks", tags=["Picks"])
app.include_router(results_router, prefix="/api/results", tags=["Results"])
app.include_router(leaderboard_router, prefix="/api/leaderboard", tags=["Leaderboard"])
app.include_router(tournaments_router, prefix="/api/tournaments", tags=["Tournaments"])

@app.get("/api/health")
async def health():
    return {"ok": True}
