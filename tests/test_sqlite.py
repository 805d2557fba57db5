import tempfile
import unittest
from pathlib import Path

from pvpstats.domain import LeaderboardEntry, StoreConflictError, StoreUnavailableError
from pvpstats.infrastructure.sqlite import SQLiteDatabase, SQLiteStatsRepository


class SQLiteStatsRepositoryTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = Path(self.tmpdir.name) / "stats.db"
        self.db = SQLiteDatabase(str(self.db_path))
        await self.db.init()
        self.repo = SQLiteStatsRepository(self.db)

    async def asyncTearDown(self):
        self.tmpdir.cleanup()

    async def _insert(self, name: str, kills: int, *, deaths: int = 0, streak: int = 0, stable_id: str | None = None):
        async with self.db.connect() as conn:
            await conn.execute(
                """
                INSERT INTO stats(display_name, stable_id, kills, deaths, killstreak)
                VALUES(?, ?, ?, ?, ?)
                """,
                (name, stable_id or f"id-{name}", kills, deaths, streak),
            )
            await conn.commit()

    async def test_upsert_creates_record_with_zero_counters(self):
        await self.repo.upsert_identity("alice", "id-a", overwrite_id_on_name_collision=True)

        record = await self.repo.find_by_name("alice")

        self.assertIsNotNone(record)
        self.assertEqual(record.stable_id, "id-a")
        self.assertEqual((record.kills, record.deaths, record.killstreak), (0, 0, 0))
        by_id = await self.repo.find_by_stable_id("id-a")
        self.assertEqual(by_id, record)

    async def test_find_returns_none_for_unknown_keys(self):
        self.assertIsNone(await self.repo.find_by_name("nobody"))
        self.assertIsNone(await self.repo.find_by_stable_id("missing"))

    async def test_upsert_overwrites_stable_id_on_name_collision_when_enabled(self):
        await self.repo.upsert_identity("alice", "id-a", overwrite_id_on_name_collision=True)
        await self.repo.upsert_identity("alice", "id-b", overwrite_id_on_name_collision=True)

        record = await self.repo.find_by_name("alice")

        self.assertEqual(record.stable_id, "id-b")
        self.assertIsNone(await self.repo.find_by_stable_id("id-a"))

    async def test_upsert_keeps_first_owner_when_overwrite_disabled(self):
        await self.repo.upsert_identity("alice", "id-a", overwrite_id_on_name_collision=False)
        await self.repo.upsert_identity("alice", "id-b", overwrite_id_on_name_collision=False)

        record = await self.repo.find_by_name("alice")

        self.assertEqual(record.stable_id, "id-a")

    async def test_upsert_is_idempotent_and_keeps_counters(self):
        await self._insert("alice", 7, deaths=2, streak=3, stable_id="id-a")

        await self.repo.upsert_identity("alice", "id-a", overwrite_id_on_name_collision=True)
        await self.repo.upsert_identity("alice", "id-a", overwrite_id_on_name_collision=True)

        record = await self.repo.find_by_name("alice")
        self.assertEqual((record.kills, record.deaths, record.killstreak), (7, 2, 3))

    async def test_upsert_with_stable_id_owned_by_other_name_does_not_duplicate(self):
        await self._insert("nick1", 4, stable_id="id-a")

        await self.repo.upsert_identity("nick2", "id-a", overwrite_id_on_name_collision=True)

        self.assertIsNone(await self.repo.find_by_name("nick2"))
        self.assertEqual((await self.repo.find_by_stable_id("id-a")).display_name, "nick1")

    async def test_upsert_colliding_on_name_and_stable_id_raises_conflict(self):
        await self._insert("nick1", 1, stable_id="id-a")
        await self._insert("nick2", 2, stable_id="id-b")

        with self.assertRaises(StoreConflictError):
            await self.repo.upsert_identity("nick2", "id-a", overwrite_id_on_name_collision=True)

        self.assertEqual((await self.repo.find_by_name("nick1")).stable_id, "id-a")
        self.assertEqual((await self.repo.find_by_name("nick2")).stable_id, "id-b")
        self.assertEqual(len(await self.repo.top_kills(10)), 2)

    async def test_rename_by_stable_id_keeps_counters(self):
        await self._insert("nick1", 4, deaths=1, streak=2, stable_id="id-a")

        await self.repo.rename_by_stable_id("id-a", "nick2")

        self.assertIsNone(await self.repo.find_by_name("nick1"))
        record = await self.repo.find_by_name("nick2")
        self.assertEqual((record.stable_id, record.kills, record.deaths, record.killstreak), ("id-a", 4, 1, 2))

    async def test_rename_unknown_stable_id_is_noop(self):
        await self._insert("nick1", 4, stable_id="id-a")

        await self.repo.rename_by_stable_id("id-x", "nick2")

        self.assertIsNone(await self.repo.find_by_name("nick2"))
        self.assertIsNotNone(await self.repo.find_by_name("nick1"))

    async def test_rename_onto_taken_name_raises_conflict(self):
        await self._insert("nick1", 1, stable_id="id-a")
        await self._insert("nick2", 2, stable_id="id-b")

        with self.assertRaises(StoreConflictError):
            await self.repo.rename_by_stable_id("id-a", "nick2")

    async def test_increment_kill_and_death_update_streak(self):
        await self._insert("alice", 0, stable_id="id-a")

        await self.repo.increment_kill("alice")
        await self.repo.increment_kill("alice")
        record = await self.repo.find_by_name("alice")
        self.assertEqual((record.kills, record.killstreak), (2, 2))

        await self.repo.increment_death_reset_streak("alice")
        record = await self.repo.find_by_name("alice")
        self.assertEqual((record.kills, record.deaths, record.killstreak), (2, 1, 0))

    async def test_kill_then_death_resets_any_streak(self):
        await self._insert("alice", 10, streak=9, stable_id="id-a")

        await self.repo.increment_kill("alice")
        await self.repo.increment_death_reset_streak("alice")

        record = await self.repo.find_by_name("alice")
        self.assertEqual(record.killstreak, 0)

    async def test_increments_never_create_records(self):
        await self.repo.increment_kill("ghost")
        await self.repo.increment_death_reset_streak("ghost")

        self.assertIsNone(await self.repo.find_by_name("ghost"))

    async def test_top_kills_orders_by_kills_then_name(self):
        await self._insert("carol", 5)
        await self._insert("bob", 10)
        await self._insert("alice", 10)

        top = await self.repo.top_kills(2)

        self.assertEqual(top, [LeaderboardEntry("alice", 10), LeaderboardEntry("bob", 10)])
        full = await self.repo.top_kills(10)
        self.assertEqual([e.display_name for e in full], ["alice", "bob", "carol"])
        self.assertEqual(await self.repo.top_kills(0), [])

    async def test_rank_by_kills_breaks_ties_by_name(self):
        await self._insert("carol", 5)
        await self._insert("bob", 10)
        await self._insert("alice", 10)

        self.assertEqual(await self.repo.rank_by_kills("alice"), 1)
        self.assertEqual(await self.repo.rank_by_kills("bob"), 2)
        self.assertEqual(await self.repo.rank_by_kills("carol"), 3)

    async def test_rank_matches_leaderboard_position(self):
        for name, kills in [("zed", 3), ("amy", 3), ("kim", 8), ("bo", 0), ("al", 8)]:
            await self._insert(name, kills)

        top = await self.repo.top_kills(10)

        for position, entry in enumerate(top, start=1):
            self.assertEqual(await self.repo.rank_by_kills(entry.display_name), position)

    async def test_rank_of_unknown_name_is_none(self):
        await self._insert("alice", 1)

        self.assertIsNone(await self.repo.rank_by_kills("nobody"))

    async def test_init_is_repeatable(self):
        await self._insert("alice", 3)

        await self.db.init()

        self.assertEqual((await self.repo.find_by_name("alice")).kills, 3)

    async def test_unreachable_database_raises_store_unavailable(self):
        broken = SQLiteDatabase(str(Path(self.tmpdir.name) / "missing-dir" / "nested" / "x.db"))
        repo = SQLiteStatsRepository(broken)

        with self.assertRaises(StoreUnavailableError):
            await repo.find_by_name("alice")
