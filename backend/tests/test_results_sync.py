from unittest.mock import patch

import httpx
from sqlalchemy.future import select

from backend.app.core.errors import PersistenceError, WikiTransportError
from backend.app.core.events import result_events
from backend.app.engine.wikitext import parse_all_results
from backend.app.models.enums import Side, Tab
from backend.app.models.match_result_model import MatchResult
from backend.app.models.prediction_model import PickPrediction
from backend.app.schemas.pickem_schema import ExtractedResult
from backend.app.services.result_service import upsert_results
from backend.app.services.results_sync import sync_once, sync_tournament
from backend.app.services.wiki_client import WikiClient
from backend.tests.db_helpers import DatabaseTestCase
from backend.tests.wiki_fixtures import (
    BOSTON_PAGE, BOSTON_TITLE, PARIS_TITLE, SEASON_PAGE, SEASON_TITLE, links_payload, revisions_payload,
)

BOSTON = "rlcs-2026-boston-major-1"
PARIS = "rlcs-2026-paris-major-2"


def wiki_client(handler) -> WikiClient:
    return WikiClient(
        api_base="https://wiki.test/api.php",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestWikiClient(DatabaseTestCase):
    async def test_fetch_wikitext(self):
        seen = {}

        def handler(request: httpx.Request):
            seen.update(request.url.params)
            return httpx.Response(200, json=revisions_payload([(BOSTON_TITLE, BOSTON_PAGE)]))

        content = await wiki_client(handler).fetch_wikitext(BOSTON_TITLE)
        self.assertEqual(content, BOSTON_PAGE)
        self.assertEqual(seen["titles"], BOSTON_TITLE)
        self.assertEqual((seen["prop"], seen["rvslots"], seen["formatversion"]), ("revisions", "main", "2"))

    async def test_missing_page_reads_as_empty(self):
        def handler(request):
            return httpx.Response(200, json={"query": {"pages": [{"title": "X", "missing": True}]}})

        self.assertEqual(await wiki_client(handler).fetch_wikitext("X"), "")

    async def test_unexpected_envelopes_read_as_empty(self):
        payloads = [
            {"query": "maintenance"},
            ["not", "an", "object"],
            {"query": {"pages": {"123": {"title": BOSTON_TITLE}}}},
            {"query": {"pages": [{"title": BOSTON_TITLE, "revisions": "none"}]}},
        ]
        for payload in payloads:
            def handler(request, payload=payload):
                return httpx.Response(200, json=payload)

            client = wiki_client(handler)
            self.assertEqual(await client.fetch_wikitext(BOSTON_TITLE), "", payload)
            self.assertEqual(await client.fetch_linked_titles(SEASON_TITLE), [], payload)
            self.assertIn(await client.fetch_pages([BOSTON_TITLE]), ({}, {BOSTON_TITLE: ""}), payload)

    async def test_non_success_status_raises(self):
        def handler(request):
            return httpx.Response(503, text="busy")

        with self.assertRaises(WikiTransportError) as ctx:
            await wiki_client(handler).fetch_wikitext(BOSTON_TITLE)
        self.assertEqual(ctx.exception.status_code, 503)

    async def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(WikiTransportError):
            await wiki_client(handler).fetch_wikitext(BOSTON_TITLE)

    async def test_season_tournaments(self):
        def handler(request):
            if request.url.params["prop"] == "links":
                return httpx.Response(200, json=links_payload(SEASON_TITLE, ["NRG", BOSTON_TITLE]))
            return httpx.Response(200, json=revisions_payload([
                (SEASON_TITLE, SEASON_PAGE),
                (BOSTON_TITLE, BOSTON_PAGE),
            ]))

        tournaments = await wiki_client(handler).fetch_season_tournaments(SEASON_TITLE, "2026")
        self.assertEqual([t.id for t in tournaments], ["rlcs-2026-boston-major"])


class TestUpsert(DatabaseTestCase):
    def entry(self, match_id, side, a, b):
        return ExtractedResult(tab=Tab.SWISS, match_id=match_id, winner_side=side, score_a=a, score_b=b)

    async def test_changed_count(self):
        """Identical rows are skipped, new and modified rows count as changes."""
        first = await upsert_results(self.db, BOSTON, Tab.SWISS, [
            self.entry("group-a-r1-m1", Side.A, 3, 1),
            self.entry("group-a-r1-m2", Side.B, 0, 3),
        ])
        again = await upsert_results(self.db, BOSTON, Tab.SWISS, [
            self.entry("group-a-r1-m1", Side.A, 3, 1),
            self.entry("group-a-r1-m2", Side.B, 1, 3),
        ])
        self.assertEqual((first, again), (2, 1))

        row = (await self.db.execute(
            select(MatchResult).where(MatchResult.match_id == "group-a-r1-m2")
        )).scalar_one()
        self.assertEqual((row.winner_side, row.score_a, row.score_b), ("B", 1, 3))

    async def test_storage_failure_raises_persistence_error(self):
        await upsert_results(self.db, BOSTON, Tab.SWISS, [self.entry("group-a-r1-m1", Side.A, 3, 1)])

        async with self.engine.begin() as conn:
            await conn.run_sync(MatchResult.__table__.drop)
        with self.assertRaises(PersistenceError):
            await upsert_results(self.db, BOSTON, Tab.SWISS, [self.entry("group-a-r1-m2", Side.B, 0, 3)])


class TestSyncOnce(DatabaseTestCase):
    async def test_sync_stores_results_and_recomputes(self):
        """One tracked page failing does not stop the others from syncing."""
        user = await self.create_user("Alice")
        self.db.add(PickPrediction(
            user_id=user.id, tournament_id=BOSTON, tab="playoffs", match_id="lb-r1-m1",
            winner_side="B", score_a=3, score_b=4,
        ))
        await self.db.commit()

        def handler(request):
            if request.url.params["titles"] == PARIS_TITLE:
                return httpx.Response(500)
            return httpx.Response(200, json=revisions_payload([(BOSTON_TITLE, BOSTON_PAGE)]))

        changed = await sync_once(self.db, wiki_client(handler))
        self.assertEqual(changed, 7)

        rows = (await self.db.execute(select(MatchResult.tab, MatchResult.match_id))).all()
        self.assertEqual(len(rows), 7)
        self.assertIn(("playoffs", "ub-qf-m1"), rows)

        await self.db.refresh(user)
        self.assertEqual(user.points, 10)

        # Nothing new on the page: nothing changes
        self.assertEqual(await sync_once(self.db, wiki_client(handler)), 0)

    async def test_empty_pages_are_skipped(self):
        def handler(request):
            return httpx.Response(200, json={"query": {"pages": [{"title": "X", "missing": True}]}})

        self.assertEqual(await sync_once(self.db, wiki_client(handler)), 0)

    async def test_malformed_envelope_does_not_stop_the_pass(self):
        def handler(request):
            if request.url.params["titles"] == BOSTON_TITLE:
                return httpx.Response(200, json={"query": "maintenance"})
            return httpx.Response(200, json=revisions_payload([(PARIS_TITLE, BOSTON_PAGE)]))

        self.assertEqual(await sync_once(self.db, wiki_client(handler)), 7)
        tournaments = (await self.db.execute(select(MatchResult.tournament_id).distinct())).scalars().all()
        self.assertEqual(tournaments, [PARIS])

    async def test_unexpected_error_is_isolated_per_tournament(self):
        """A crash while handling Boston is logged and Paris still syncs."""
        def handler(request):
            content = "garbage" if request.url.params["titles"] == BOSTON_TITLE else BOSTON_PAGE
            return httpx.Response(200, json=revisions_payload([(request.url.params["titles"], content)]))

        def parse(content):
            if content == "garbage":
                raise ValueError("unparsable page")
            return parse_all_results(content)

        with patch("backend.app.services.results_sync.parse_all_results", side_effect=parse):
            changed = await sync_once(self.db, wiki_client(handler))

        self.assertEqual(changed, 7)
        tournaments = (await self.db.execute(select(MatchResult.tournament_id).distinct())).scalars().all()
        self.assertEqual(tournaments, [PARIS])

    async def test_committed_tabs_are_announced_when_a_later_tab_fails(self):
        """Playoffs commit first; a swiss failure still triggers the recompute for them."""
        def handler(request):
            return httpx.Response(200, json=revisions_payload([(BOSTON_TITLE, BOSTON_PAGE)]))

        with patch("backend.app.services.results_sync.upsert_results", side_effect=[2, PersistenceError("disk full")]), \
                patch.object(result_events, "notify_changed") as notify:
            with self.assertRaises(PersistenceError):
                await sync_tournament(self.db, wiki_client(handler), BOSTON, BOSTON_TITLE)

        notify.assert_awaited_once_with(self.db, BOSTON, 2)
