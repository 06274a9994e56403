from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

from backend.app.core.config import DATABASE_URL

def build_engine(url: str):
    # SQLite (aiosqlite) manages its own pool; sizing only applies to server databases
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=False,
        pool_size=20,
        max_overflow=20
    )

engine = build_engine(DATABASE_URL)
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

Base = declarative_base()

# Dependency for API routes
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session

async def init_models(bind=None):
    """Create missing tables. Safe to call repeatedly."""
    # Import models so they register on Base.metadata
    from backend.app.models import user_model, prediction_model, match_result_model  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
