from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
from aiosqlite import OperationalError

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS stats (
  display_name TEXT PRIMARY KEY NOT NULL,
  stable_id TEXT NOT NULL UNIQUE,
  kills INTEGER NOT NULL DEFAULT 0,
  deaths INTEGER NOT NULL DEFAULT 0,
  killstreak INTEGER NOT NULL DEFAULT 0,
  updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_stats_kills ON stats(kills DESC, display_name ASC);
"""


class SQLiteDatabase:
    def __init__(self, path: str, *, max_connections: int = 4, connect_timeout: float = 10.0):
        self.path = path
        self.connect_timeout = connect_timeout
        self._slots = asyncio.Semaphore(max(1, int(max_connections)))

    async def init(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.path, timeout=self.connect_timeout) as conn:
            await conn.executescript(SCHEMA_SQL)
            await self._ensure_stats_columns(conn)
            await conn.commit()

    async def _ensure_stats_columns(self, conn: aiosqlite.Connection) -> None:
        # databases created before streaks and timestamps were tracked
        for column, definition in (
            ("killstreak", "INTEGER NOT NULL DEFAULT 0"),
            ("updated_at", "TEXT NOT NULL DEFAULT ''"),
        ):
            try:
                await conn.execute(f"ALTER TABLE stats ADD COLUMN {column} {definition}")
            except OperationalError as exc:
                if "duplicate column name" not in str(exc).lower():
                    raise

    @asynccontextmanager
    async def connect(self):
        async with self._slots:
            conn = await aiosqlite.connect(self.path, timeout=self.connect_timeout)
            conn.row_factory = aiosqlite.Row
            try:
                yield conn
            finally:
                await conn.close()
