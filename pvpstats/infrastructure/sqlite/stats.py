from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import aiosqlite

from ...domain import LeaderboardEntry, StatsRecord, StoreConflictError, StoreUnavailableError
from ...domain.stats.repositories import StatsRepository
from ..mappers import leaderboard_entry_from_row, stats_record_from_row
from ..metrics import metrics
from .database import SQLiteDatabase

RECORD_COLUMNS = "display_name, stable_id, kills, deaths, killstreak"


class SQLiteStatsRepository(StatsRepository):
    """
    One SQL statement per operation, no caching and no retries.
    Driver errors leave this class as ``StatsStoreError`` subclasses.
    """

    def __init__(self, db: SQLiteDatabase):
        self._db = db

    @asynccontextmanager
    async def _connection(self):
        try:
            async with self._db.connect() as conn:
                yield conn
        except aiosqlite.IntegrityError as exc:
            raise StoreConflictError(str(exc)) from exc
        except aiosqlite.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc

    async def _fetch_record(self, sql: str, value: str) -> Optional[StatsRecord]:
        async with self._connection() as conn:
            cur = await conn.execute(sql, (value,))
            row = await cur.fetchone()
        return stats_record_from_row(dict(row)) if row else None

    @metrics.wrap_async("db:stats.find_by_name", source="database")
    async def find_by_name(self, display_name: str) -> Optional[StatsRecord]:
        return await self._fetch_record(
            f"SELECT {RECORD_COLUMNS} FROM stats WHERE display_name=?",
            display_name,
        )

    @metrics.wrap_async("db:stats.find_by_stable_id", source="database")
    async def find_by_stable_id(self, stable_id: str) -> Optional[StatsRecord]:
        return await self._fetch_record(
            f"SELECT {RECORD_COLUMNS} FROM stats WHERE stable_id=?",
            stable_id,
        )

    @metrics.wrap_async("db:stats.upsert_identity", source="database")
    async def upsert_identity(
        self,
        display_name: str,
        stable_id: str,
        *,
        overwrite_id_on_name_collision: bool,
    ) -> None:
        # a stable id already owned by another name is left for the rename step
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO stats(display_name, stable_id)
                VALUES(?, ?)
                ON CONFLICT(display_name) DO UPDATE SET
                  stable_id=excluded.stable_id,
                  updated_at=datetime('now')
                WHERE ? AND stats.stable_id <> excluded.stable_id
                ON CONFLICT(stable_id) DO NOTHING
                """,
                (display_name, stable_id, int(bool(overwrite_id_on_name_collision))),
            )
            await conn.commit()

    @metrics.wrap_async("db:stats.rename_by_stable_id", source="database")
    async def rename_by_stable_id(self, stable_id: str, new_name: str) -> None:
        async with self._connection() as conn:
            await conn.execute(
                "UPDATE stats SET display_name=?, updated_at=datetime('now') WHERE stable_id=?",
                (new_name, stable_id),
            )
            await conn.commit()

    @metrics.wrap_async("db:stats.increment_kill", source="database")
    async def increment_kill(self, display_name: str) -> None:
        async with self._connection() as conn:
            await conn.execute(
                """
                UPDATE stats
                SET kills = kills + 1,
                    killstreak = killstreak + 1,
                    updated_at = datetime('now')
                WHERE display_name=?
                """,
                (display_name,),
            )
            await conn.commit()

    @metrics.wrap_async("db:stats.increment_death", source="database")
    async def increment_death_reset_streak(self, display_name: str) -> None:
        async with self._connection() as conn:
            await conn.execute(
                """
                UPDATE stats
                SET deaths = deaths + 1,
                    killstreak = 0,
                    updated_at = datetime('now')
                WHERE display_name=?
                """,
                (display_name,),
            )
            await conn.commit()

    @metrics.wrap_async("db:stats.top_kills", source="database")
    async def top_kills(self, limit: int) -> list[LeaderboardEntry]:
        if limit <= 0:
            return []
        async with self._connection() as conn:
            cur = await conn.execute(
                """
                SELECT display_name, kills
                FROM stats
                ORDER BY kills DESC, display_name ASC
                LIMIT ?
                """,
                (int(limit),),
            )
            rows = await cur.fetchall()
        return [leaderboard_entry_from_row(dict(row)) for row in rows]

    @metrics.wrap_async("db:stats.rank_by_kills", source="database")
    async def rank_by_kills(self, display_name: str) -> Optional[int]:
        async with self._connection() as conn:
            cur = await conn.execute(
                """
                SELECT 1 + (
                  SELECT COUNT(*)
                  FROM stats AS other
                  WHERE other.kills > me.kills
                     OR (other.kills = me.kills AND other.display_name < me.display_name)
                ) AS rank_position
                FROM stats AS me
                WHERE me.display_name=?
                """,
                (display_name,),
            )
            row = await cur.fetchone()
        return int(row["rank_position"]) if row else None
