from datetime import timedelta

from sqlalchemy.future import select

from backend.app.core.errors import PersistenceError, PredictionLockedError
from backend.app.core.tournament_registry import registry
from backend.app.models.enums import Side, Tab
from backend.app.models.match_result_model import MatchResult
from backend.app.models.prediction_model import PickPrediction
from backend.app.schemas.pickem_schema import PickEntry
from backend.app.services.prediction_service import prediction_service
from backend.tests.db_helpers import DatabaseTestCase

BOSTON = "rlcs-2026-boston-major-1"
OPEN_TOURNAMENT = "test-open"


class TestSavePicks(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.user = await self.create_user("Alice")
        self.user_id = self.user.id

    async def stored_ids(self, tournament_id=OPEN_TOURNAMENT, tab=Tab.SWISS):
        picks = await prediction_service.get_picks(self.db, self.user_id, tournament_id, tab)
        return [p.match_id for p in picks]

    async def test_replace_all(self):
        """A save replaces the whole scope, other tabs are untouched."""
        await prediction_service.save_picks(self.db, self.user.id, OPEN_TOURNAMENT, Tab.SWISS, [
            PickEntry(match_id="m1", winner_side=Side.A),
            PickEntry(match_id="m2", winner_side=Side.B, score_a=1, score_b=3),
        ])
        await prediction_service.save_picks(self.db, self.user.id, OPEN_TOURNAMENT, Tab.PLAYOFFS, [
            PickEntry(match_id="gf-m1", winner_side=Side.A),
        ])
        await prediction_service.save_picks(self.db, self.user.id, OPEN_TOURNAMENT, Tab.SWISS, [
            PickEntry(match_id="m3", winner_side=Side.A),
        ])

        self.assertEqual(await self.stored_ids(), ["m3"])
        self.assertEqual(await self.stored_ids(tab=Tab.PLAYOFFS), ["gf-m1"])

    async def test_empty_entries_are_dropped(self):
        saved = await prediction_service.save_picks(self.db, self.user.id, OPEN_TOURNAMENT, Tab.SWISS, [
            PickEntry(match_id="m1"),
            PickEntry(match_id="m2", score_a=2),
        ])
        self.assertEqual(saved, 1)
        picks = await prediction_service.get_picks(self.db, self.user.id, OPEN_TOURNAMENT, Tab.SWISS)
        self.assertEqual(picks, [PickEntry(match_id="m2", score_a=2)])

    async def test_failed_save_keeps_prior_picks(self):
        """A duplicate match id aborts the whole replacement, the previous scope survives."""
        await prediction_service.save_picks(self.db, self.user.id, OPEN_TOURNAMENT, Tab.SWISS, [
            PickEntry(match_id="m1", winner_side=Side.A),
            PickEntry(match_id="m2", winner_side=Side.B),
        ])

        with self.assertRaises(PersistenceError):
            await prediction_service.save_picks(self.db, self.user.id, OPEN_TOURNAMENT, Tab.SWISS, [
                PickEntry(match_id="m3", winner_side=Side.A),
                PickEntry(match_id="m3", winner_side=Side.B),
            ])

        self.assertEqual(await self.stored_ids(), ["m1", "m2"])

    async def test_alias_is_normalized(self):
        lock = registry.lock_instant(BOSTON)
        await prediction_service.save_picks(
            self.db, self.user.id, "rlcs-2026-boston-major", Tab.PLAYOFFS,
            [PickEntry(match_id="gf-m1", winner_side=Side.B)],
            now=lock - timedelta(days=1),
        )
        rows = (await self.db.execute(select(PickPrediction.tournament_id))).scalars().all()
        self.assertEqual(rows, [BOSTON])
        self.assertEqual(await self.stored_ids(BOSTON, Tab.PLAYOFFS), ["gf-m1"])

    async def test_save_recomputes_points(self):
        self.db.add(MatchResult(tournament_id=OPEN_TOURNAMENT, tab="swiss", match_id="m1", winner_side="A", score_a=3, score_b=0))
        await self.db.commit()

        await prediction_service.save_picks(self.db, self.user.id, OPEN_TOURNAMENT, Tab.SWISS, [
            PickEntry(match_id="m1", winner_side=Side.A, score_a=3, score_b=0),
        ])
        await self.db.refresh(self.user)
        self.assertEqual(self.user.points, 10)


class TestLock(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.user = await self.create_user("Bob")
        self.lock = registry.lock_instant(BOSTON)
        self.picks = [PickEntry(match_id="gf-m1", winner_side=Side.A)]

    def test_lock_instant_is_midnight_utc_of_start(self):
        self.assertEqual(self.lock.isoformat(), "2026-02-19T00:00:00+00:00")
        self.assertIsNone(registry.lock_instant(OPEN_TOURNAMENT))

    async def test_just_before_lock(self):
        for tab in Tab:
            saved = await prediction_service.save_picks(
                self.db, self.user.id, BOSTON, tab, self.picks,
                now=self.lock - timedelta(milliseconds=1),
            )
            self.assertEqual(saved, 1, tab)
            self.assertEqual(len(await prediction_service.get_picks(self.db, self.user.id, BOSTON, tab)), 1)

    async def test_at_and_after_lock(self):
        for tab in Tab:
            for now in (self.lock, self.lock + timedelta(milliseconds=1)):
                with self.assertRaises(PredictionLockedError) as ctx:
                    await prediction_service.save_picks(self.db, self.user.id, BOSTON, tab, self.picks, now=now)
                self.assertEqual(ctx.exception.lock_date, self.lock)

        rows = (await self.db.execute(select(PickPrediction))).scalars().all()
        self.assertEqual(rows, [])

    async def test_lock_applies_to_aliases(self):
        with self.assertRaises(PredictionLockedError):
            await prediction_service.save_picks(
                self.db, self.user.id, "boston-major", Tab.SWISS, self.picks, now=self.lock,
            )

    def test_untracked_tournament_never_locks(self):
        self.assertFalse(prediction_service.is_locked(OPEN_TOURNAMENT))
        self.assertTrue(prediction_service.is_locked(BOSTON, now=self.lock))
