#!/usr/bin/env python3
"""
One-shot results sync.

Fetches every tracked tournament page from the wiki, stores decided results
and recomputes points. Same pass as the server's background watcher.

Usage:
    python -m backend.scripts.sync_results
"""

import asyncio
import logging

from backend.app.core.database import AsyncSessionLocal, init_models
from backend.app.services.results_sync import sync_once

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

async def main():
    await init_models()
    async with AsyncSessionLocal() as db:
        changed = await sync_once(db)
    logger.info("Results sync done: %d changed", changed)

if __name__ == "__main__":
    asyncio.run(main())
