from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..domain import LeaderboardEntry, StatsRecord

MIN_TTL_SECONDS = 5.0
DEFAULT_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class CacheEntry:
    stats: StatsRecord
    cached_at: float


@dataclass(frozen=True)
class LeaderboardCache:
    entries: tuple[LeaderboardEntry, ...]
    cached_at: float
    fetched_limit: int


class StatsReadCache:
    """
    TTL memoization of per-name stats records and of the latest leaderboard
    snapshot. Stale entries are not swept; they count as misses and get
    replaced on the next store read. The leaderboard slot is swapped as a
    whole, readers never observe a partially built snapshot.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, *, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = max(MIN_TTL_SECONDS, float(ttl_seconds))
        self._clock = clock
        self._by_name: dict[str, CacheEntry] = {}
        self._leaderboard: Optional[LeaderboardCache] = None

    def _fresh(self, cached_at: float) -> bool:
        return self._clock() - cached_at <= self.ttl_seconds

    def get_stats(self, display_name: str) -> Optional[StatsRecord]:
        entry = self._by_name.get(display_name)
        if entry is None or not self._fresh(entry.cached_at):
            return None
        return entry.stats

    def put_stats(self, display_name: str, stats: StatsRecord) -> None:
        self._by_name[display_name] = CacheEntry(stats=stats, cached_at=self._clock())

    def invalidate_stats(self, display_name: str) -> None:
        self._by_name.pop(display_name, None)

    def get_leaderboard(self, limit: int) -> Optional[tuple[LeaderboardEntry, ...]]:
        snapshot = self._leaderboard
        if snapshot is None or not self._fresh(snapshot.cached_at):
            return None
        # a snapshot fetched for fewer rows cannot answer a larger request
        if snapshot.fetched_limit < limit:
            return None
        return snapshot.entries

    def put_leaderboard(self, entries: Sequence[LeaderboardEntry], fetched_limit: int) -> tuple[LeaderboardEntry, ...]:
        snapshot = LeaderboardCache(entries=tuple(entries), cached_at=self._clock(), fetched_limit=fetched_limit)
        self._leaderboard = snapshot
        return snapshot.entries

    def invalidate_leaderboard(self) -> None:
        self._leaderboard = None

    def clear(self) -> None:
        self._by_name.clear()
        self._leaderboard = None

    def __len__(self) -> int:
        return len(self._by_name)
