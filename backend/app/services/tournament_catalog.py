"""
Tournament Catalog - the season's tournaments, read from the wiki.

Parsed tournaments are cached for CATALOG_TTL_SECONDS. When the wiki cannot
be reached or yields nothing usable, the built-in catalog of tracked majors
(default pools, default playoff seeding) is served instead.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from backend.app.core import config
from backend.app.core.errors import WikiTransportError
from backend.app.core.tournament_registry import TournamentRegistry, registry
from backend.app.engine.bracket_templates import (
    DEFAULT_SWISS_POOLS, build_default_major_playoffs, build_swiss16_bracket, build_swiss_groups_from_pools,
)
from backend.app.engine.slot_resolver import index_matches, resolve_match_labels
from backend.app.engine.tournament_parser import WIKI_PAGE_BASE
from backend.app.models.enums import Tab
from backend.app.schemas.bracket_schema import Bracket, Tournament
from backend.app.schemas.pickem_schema import BoardMatch, BoardResponse, PickEntry
from backend.app.services.wiki_client import WikiClient

logger = logging.getLogger(__name__)


def build_static_catalog(tournaments: TournamentRegistry = registry) -> List[Tournament]:
    return [
        Tournament(
            id=tracked.id,
            name=tracked.name,
            location=tracked.location,
            start_date=tracked.start_date.isoformat(),
            end_date=(tracked.end_date or tracked.start_date).isoformat(),
            prize_pool=tracked.prize_pool,
            source_url=WIKI_PAGE_BASE + tracked.wiki_title.replace(" ", "_"),
            bracket=build_default_major_playoffs(),
            swiss_bracket=build_swiss16_bracket(),
            swiss_groups=build_swiss_groups_from_pools(DEFAULT_SWISS_POOLS),
        )
        for tracked in tournaments.list_all()
    ]


class TournamentCatalog:
    def __init__(
        self,
        tournaments: TournamentRegistry = registry,
        ttl_seconds: float = config.CATALOG_TTL_SECONDS,
        client_factory: Callable[[], WikiClient] = WikiClient,
    ):
        self.tournaments = tournaments
        self.ttl_seconds = ttl_seconds
        self.client_factory = client_factory
        self._cache: Optional[List[Tournament]] = None
        self._fetched_at = 0.0
        self._lock = asyncio.Lock()

    def _fresh(self) -> bool:
        return self._cache is not None and time.monotonic() - self._fetched_at < self.ttl_seconds

    def invalidate(self):
        self._cache = None

    async def _fetch(self) -> List[Tournament]:
        season = self.tournaments.season
        if season is None:
            return []
        async with self.client_factory() as client:
            fetched = await client.fetch_season_tournaments(season.title, season.year)
        # Wiki ids like `rlcs-2026-boston-major` map onto the tracked ids
        return [
            t.model_copy(update={"id": self.tournaments.canonical_id(t.id)})
            for t in fetched
        ]

    async def list_tournaments(self) -> List[Tournament]:
        if self._fresh():
            return self._cache

        async with self._lock:
            if self._fresh():
                return self._cache
            try:
                tournaments = await self._fetch()
            except WikiTransportError as e:
                logger.warning("Tournament catalog fetch failed, serving built-in catalog: %s", e)
                tournaments = []
            except Exception:
                logger.exception("Tournament catalog could not be built from the wiki, serving built-in catalog")
                tournaments = []

            if not tournaments:
                tournaments = build_static_catalog(self.tournaments)
            self._cache = tournaments
            self._fetched_at = time.monotonic()
            return tournaments

    async def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        canonical = self.tournaments.canonical_id(tournament_id)
        for tournament in await self.list_tournaments():
            if tournament.id == canonical:
                return tournament
        # A tracked major the wiki has not published yet
        return next((t for t in build_static_catalog(self.tournaments) if t.id == canonical), None)


# --- Board ---

def _bracket_matches(bracket: Bracket, predictions: Dict[str, Optional[str]]) -> List[BoardMatch]:
    matches_by_id = index_matches(bracket)
    board = []
    for rnd in bracket.rounds:
        for match in rnd.matches:
            side_a, side_b = resolve_match_labels(match, matches_by_id, predictions)
            board.append(BoardMatch(
                id=match.id,
                round_name=rnd.name,
                source_key=match.source_key,
                scheduled_at=match.scheduled_at,
                side_a=side_a,
                side_b=side_b,
            ))
    return board


def build_board(
    tournament: Tournament,
    tab: Tab,
    picks: Sequence[PickEntry],
    points_by_match: Dict[str, int],
    lock_date: Optional[datetime],
    locked: bool,
) -> BoardResponse:
    """Every match of one tab with resolved side labels and the user's pick and points."""
    picks_by_id = {pick.match_id: pick for pick in picks}
    predictions = {pick.match_id: pick.winner_side for pick in picks}

    if tab == Tab.SWISS and tournament.swiss_groups:
        matches = [
            BoardMatch(
                id=match.id,
                round_name=f"{group.name} - Round {match.round}",
                side_a=match.side_a,
                side_b=match.side_b,
            )
            for group in tournament.swiss_groups
            for match in group.matches
        ]
    else:
        bracket = tournament.swiss_bracket if tab == Tab.SWISS else tournament.bracket
        matches = _bracket_matches(bracket, predictions) if bracket else []

    enriched = []
    for match in matches:
        pick = picks_by_id.get(match.id)
        if pick is not None:
            match = match.model_copy(update={
                "picked": pick.winner_side,
                "score_a": pick.score_a,
                "score_b": pick.score_b,
            })
        if match.id in points_by_match:
            match = match.model_copy(update={"points": points_by_match[match.id]})
        enriched.append(match)

    return BoardResponse(
        tournament_id=tournament.id,
        tab=tab,
        locked=locked,
        lock_date=lock_date,
        matches=enriched,
    )


# Singleton
tournament_catalog = TournamentCatalog()
