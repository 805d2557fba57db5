from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..domain import LeaderboardEntry, StatsRecord
from ..domain.stats import IdentitySyncPolicy, IdentitySyncResult, StatsRepository, reconcile_identity
from ..infrastructure.metrics import metrics
from .cache import StatsReadCache
from .workers import BackgroundWorkerPool, JobOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

LEADERBOARD_MIN_FETCH = 10


def _blank(name: Optional[str]) -> bool:
    return name is None or not name.strip()


class StatsOrchestrator:
    """
    Entry point for event producers and stat readers.

    Writes are queued on the worker pool and return immediately. Reads answer
    from the cache when they can and otherwise wait for a pooled store read.
    Store failures are logged and turned into empty results; they never reach
    the caller.
    """

    def __init__(
        self,
        repo: StatsRepository,
        *,
        cache: StatsReadCache | None = None,
        workers: BackgroundWorkerPool | None = None,
        policy: IdentitySyncPolicy | None = None,
        leaderboard_min_fetch: int = LEADERBOARD_MIN_FETCH,
    ):
        self._repo = repo
        self._cache = cache or StatsReadCache()
        self._workers = workers or BackgroundWorkerPool()
        self._policy = policy or IdentitySyncPolicy()
        self._leaderboard_min_fetch = max(1, int(leaderboard_min_fetch))

    @property
    def cache(self) -> StatsReadCache:
        return self._cache

    @property
    def policy(self) -> IdentitySyncPolicy:
        return self._policy

    async def start(self) -> None:
        await self._workers.start()

    async def drain(self) -> None:
        await self._workers.drain()

    async def close(self, timeout: float = 5.0) -> None:
        await self._workers.close(timeout)
        self._cache.clear()

    def invalidate(self, display_name: str) -> None:
        self._forget(display_name)

    # writes

    def ensure_identity(self, display_name: Optional[str], stable_id: Optional[str]) -> None:
        if _blank(display_name) or _blank(stable_id):
            return
        self._fire("identity.sync", lambda: self._sync_identity(display_name, stable_id))

    async def _sync_identity(self, display_name: str, stable_id: str) -> IdentitySyncResult:
        result: IdentitySyncResult | None = None
        try:
            result = await reconcile_identity(self._repo, display_name, stable_id, self._policy)
            return result
        finally:
            self._cache.invalidate_stats(display_name)
            if result is not None and result.renamed_from is not None:
                self._cache.invalidate_stats(result.renamed_from)
            if result is not None and (result.upserted or result.renamed_from is not None):
                self._cache.invalidate_leaderboard()

    def record_kill_and_death(self, killer_name: Optional[str], victim_name: Optional[str]) -> None:
        killer = None if _blank(killer_name) else killer_name
        victim = None if _blank(victim_name) else victim_name
        if killer is None and victim is None:
            return

        # cleared before the write is queued so no read can keep a pre-event value
        self._forget(killer, victim)
        self._fire("stats.kill_and_death", lambda: self._apply_kill_and_death(killer, victim))

    async def _apply_kill_and_death(self, killer: Optional[str], victim: Optional[str]) -> None:
        try:
            if victim is not None:
                await self._repo.increment_death_reset_streak(victim)
            if killer is not None:
                await self._repo.increment_kill(killer)
        finally:
            self._forget(killer, victim)

    def _forget(self, *names: Optional[str]) -> None:
        for name in names:
            if name is not None:
                self._cache.invalidate_stats(name)
        self._cache.invalidate_leaderboard()

    # reads

    async def get_stats(self, display_name: Optional[str]) -> Optional[StatsRecord]:
        if _blank(display_name):
            return None
        cached = self._cache.get_stats(display_name)
        metrics.event("cache:stats", source="cache", extra={"hit": cached is not None})
        if cached is not None:
            return cached
        return await self._run("stats.find_by_name", lambda: self._load_stats(display_name), None)

    async def _load_stats(self, display_name: str) -> Optional[StatsRecord]:
        record = await self._repo.find_by_name(display_name)
        if record is not None:
            self._cache.put_stats(display_name, record)
        return record

    async def get_rank(self, display_name: Optional[str]) -> Optional[int]:
        """1-based kill rank, or ``None`` when the name has no record."""
        if _blank(display_name):
            return None
        return await self._run("stats.rank_by_kills", lambda: self._repo.rank_by_kills(display_name), None)

    async def get_leaderboard(self, limit: int) -> list[LeaderboardEntry]:
        cached = self._cache.get_leaderboard(limit)
        metrics.event("cache:leaderboard", source="cache", extra={"hit": cached is not None, "limit": limit})
        if cached is not None:
            return list(cached)
        fetch = max(int(limit), self._leaderboard_min_fetch)
        entries = await self._run("stats.top_kills", lambda: self._load_leaderboard(fetch), ())
        return list(entries)

    async def _load_leaderboard(self, fetch: int) -> tuple[LeaderboardEntry, ...]:
        entries = await self._repo.top_kills(fetch)
        return self._cache.put_leaderboard(entries, fetch)

    # plumbing

    async def _run(self, label: str, job: Callable[[], Awaitable[T]], default: T) -> T:
        try:
            future = self._workers.submit(label, job)
        except RuntimeError:
            logger.error("Cannot run %s: worker pool is not running", label)
            return default
        # shielded so a caller timeout leaves the read running and the cache warmed
        try:
            outcome: JobOutcome[T] = await asyncio.shield(future)
        except asyncio.CancelledError:
            if not future.cancelled():
                raise
            logger.warning("%s was dropped by the worker pool", label)
            return default
        if not outcome.ok:
            logger.error("%s failed: %s", label, outcome.error)
            return default
        return outcome.value

    def _fire(self, label: str, job: Callable[[], Awaitable[Any]]) -> None:
        try:
            future = self._workers.submit(label, job)
        except RuntimeError:
            logger.error("Cannot schedule %s: worker pool is not running", label)
            return
        future.add_done_callback(_log_outcome)


def _log_outcome(future: asyncio.Future) -> None:
    if future.cancelled():
        return
    outcome: JobOutcome = future.result()
    if not outcome.ok:
        logger.error("%s failed: %s", outcome.label, outcome.error)
        return
    value = outcome.value
    if isinstance(value, IdentitySyncResult) and not value.ok:
        logger.warning(
            "Identity sync for %s finished partially: %s",
            value.display_name,
            "; ".join(value.errors),
        )
