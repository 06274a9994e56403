"""
Results Sync - one ingestion pass over the tracked tournaments.

Each tracked tournament is fetched, parsed and stored on its own: a wiki
outage or a bad page for one event is logged and the pass moves on to the
next. Changed results are announced on the result event bus, which
triggers the points recompute.
"""

import logging
from itertools import groupby
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import PickemError
from backend.app.core.events import result_events
from backend.app.core.tournament_registry import TournamentRegistry, registry
from backend.app.engine.wikitext import parse_all_results
from backend.app.services.result_service import upsert_results
from backend.app.services.wiki_client import WikiClient

logger = logging.getLogger(__name__)


async def sync_tournament(db: AsyncSession, client: WikiClient, tournament_id: str, wiki_title: str) -> int:
    content = await client.fetch_wikitext(wiki_title)
    if not content:
        logger.info("No wiki content for %s yet", tournament_id)
        return 0

    extracted = sorted(parse_all_results(content), key=lambda entry: entry.tab)
    changed = 0
    try:
        for tab, entries in groupby(extracted, key=lambda entry: entry.tab):
            changed += await upsert_results(db, tournament_id, tab, list(entries))
    finally:
        # Tabs commit separately; announce whatever was committed
        if changed:
            logger.info("Synced %s: %d results changed", tournament_id, changed)
            await result_events.notify_changed(db, tournament_id, changed)
    return changed


async def sync_once(
    db: AsyncSession,
    client: Optional[WikiClient] = None,
    tournaments: TournamentRegistry = registry,
) -> int:
    """Runs one pass and returns the total number of changed results."""
    owns_client = client is None
    client = client or WikiClient()
    total = 0
    try:
        for tracked in tournaments.list_all():
            try:
                total += await sync_tournament(db, client, tracked.id, tracked.wiki_title)
            except PickemError as e:
                logger.warning("Results sync failed for %s: %s", tracked.id, e)
            except Exception:
                logger.exception("Results sync crashed for %s", tracked.id)
                await db.rollback()
    finally:
        if owns_client:
            await client.aclose()
    return total
