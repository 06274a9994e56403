import asyncio
import logging

from backend.app.core.database import init_models

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

async def main():
    # Safe create (only creates missing tables)
    await init_models()
    logger.info("Database tables created.")

if __name__ == "__main__":
    asyncio.run(main())
