"""
Wiki Client - async access to the Liquipedia MediaWiki API.

Only transport problems raise (WikiTransportError). A page that does not
exist, or a payload of any unexpected shape, reads as empty content.
"""

import logging
from typing import Dict, List, Optional

import httpx

from backend.app.core import config
from backend.app.core.errors import WikiTransportError
from backend.app.engine.tournament_parser import parse_tournament, select_season_titles
from backend.app.schemas.bracket_schema import Tournament

logger = logging.getLogger(__name__)

BASE_PARAMS = {"format": "json", "formatversion": "2"}
REVISION_PARAMS = {"prop": "revisions", "rvprop": "content", "rvslots": "main"}


def _dig(value, *keys):
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        elif isinstance(value, list) and isinstance(key, int) and len(value) > key:
            value = value[key]
        else:
            return None
    return value


def query_pages(data) -> List[dict]:
    """The `query.pages` entries of a response. Unexpected shapes read as no pages."""
    pages = _dig(data, "query", "pages")
    if isinstance(pages, dict):
        # formatversion=1 keys pages by page id
        pages = list(pages.values())
    if not isinstance(pages, list):
        return []
    return [page for page in pages if isinstance(page, dict)]


def page_content(page: dict) -> str:
    content = _dig(page, "revisions", 0, "slots", "main", "content")
    return content if isinstance(content, str) else ""


class WikiClient:
    def __init__(
        self,
        api_base: str = config.WIKI_API_BASE,
        timeout: float = config.WIKI_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_base = api_base
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": config.WIKI_USER_AGENT},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def _query(self, params: Dict[str, str]) -> dict:
        try:
            response = await self._client.get(self.api_base, params={"action": "query", **params, **BASE_PARAMS})
        except httpx.HTTPError as e:
            raise WikiTransportError(f"Wiki API unreachable: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            raise WikiTransportError(f"Wiki API error ({response.status_code})", response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise WikiTransportError("Wiki API returned a non-JSON body") from e

    async def fetch_wikitext(self, title: str) -> str:
        """Current wikitext of one page, "" when the page has no content."""
        data = await self._query({"titles": title, **REVISION_PARAMS})
        pages = query_pages(data)
        return page_content(pages[0]) if pages else ""

    async def fetch_linked_titles(self, title: str) -> List[str]:
        data = await self._query({"titles": title, "prop": "links", "pllimit": "max"})
        links = _dig(query_pages(data), 0, "links")
        if not isinstance(links, list):
            return []
        return [link["title"] for link in links if isinstance(link, dict) and isinstance(link.get("title"), str)]

    async def fetch_pages(self, titles: List[str]) -> Dict[str, str]:
        """Wikitext for several pages in one request, keyed by page title."""
        data = await self._query({"titles": "|".join(titles), **REVISION_PARAMS})
        return {
            page["title"]: page_content(page)
            for page in query_pages(data)
            if isinstance(page.get("title"), str)
        }

    async def fetch_season_tournaments(self, season_title: str, season_year: str) -> List[Tournament]:
        """Every parsable event page linked from the season page, by start date."""
        linked = await self.fetch_linked_titles(season_title)
        titles = select_season_titles(season_title, linked)
        contents = await self.fetch_pages(titles)

        tournaments = []
        for title, content in contents.items():
            tournament = parse_tournament(title, content, season_year)
            if tournament is not None:
                tournaments.append(tournament)
        logger.info("Parsed %d tournaments out of %d season pages", len(tournaments), len(titles))
        return sorted(tournaments, key=lambda t: t.start_date)
