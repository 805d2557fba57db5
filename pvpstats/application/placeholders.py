from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from ..domain import StatsRecord
from .orchestrator import StatsOrchestrator

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_VALUE = "0"
LEADERBOARD_PAGE = 10

STATS_TIMEOUT = 0.15
RANK_TIMEOUT = 0.2
LEADERBOARD_TIMEOUT = 0.25

_MISSING = object()


def _format_stat(record: StatsRecord, field: str) -> str:
    if field == "kdr":
        return f"{record.kdr:.2f}"
    return str(getattr(record, field))


class PlaceholderResolver:
    """
    Turns placeholder identifiers into display text.

    Every read is bounded by a short timeout; a timeout or a missing record
    renders the default value instead of an error.

    Supported identifiers: ``kills``, ``deaths``, ``killstreak``, ``kdr``,
    ``topkills_personal_rank``, ``topkills_personal_kills``,
    ``topkills_<pos>_name`` and ``topkills_<pos>_kills``.
    """

    IDENTIFIER = "pvpstats"
    STAT_FIELDS = ("kills", "deaths", "killstreak", "kdr")

    def __init__(
        self,
        stats: StatsOrchestrator,
        *,
        stats_timeout: float = STATS_TIMEOUT,
        rank_timeout: float = RANK_TIMEOUT,
        leaderboard_timeout: float = LEADERBOARD_TIMEOUT,
    ):
        self._stats = stats
        self._stats_timeout = stats_timeout
        self._rank_timeout = rank_timeout
        self._leaderboard_timeout = leaderboard_timeout

    async def resolve(self, display_name: Optional[str], identifier: str) -> Optional[str]:
        if display_name is None:
            return DEFAULT_VALUE

        key = identifier.strip().lower()

        if key in self.STAT_FIELDS:
            record = await self._bounded(self._stats.get_stats(display_name), self._stats_timeout)
            if record is _MISSING or record is None:
                return DEFAULT_VALUE
            return _format_stat(record, key)

        if key == "topkills_personal_rank":
            rank = await self._bounded(self._stats.get_rank(display_name), self._rank_timeout)
            if rank is _MISSING or rank is None:
                return DEFAULT_VALUE
            return str(rank)

        if key == "topkills_personal_kills":
            record = await self._bounded(self._stats.get_stats(display_name), self._stats_timeout)
            if record is _MISSING or record is None:
                return DEFAULT_VALUE
            return str(record.kills)

        if key.startswith("topkills_"):
            return await self._resolve_leaderboard(key)

        return None

    async def _resolve_leaderboard(self, key: str) -> Optional[str]:
        parts = key.split("_")
        if len(parts) != 3:
            return None
        _, raw_pos, field = parts

        try:
            pos = int(raw_pos)
        except ValueError:
            return DEFAULT_VALUE
        if pos <= 0:
            return DEFAULT_VALUE
        if field not in ("name", "kills"):
            return None

        entries = await self._bounded(
            self._stats.get_leaderboard(max(pos, LEADERBOARD_PAGE)),
            self._leaderboard_timeout,
        )
        if entries is _MISSING:
            return DEFAULT_VALUE
        if len(entries) < pos:
            return "" if field == "name" else DEFAULT_VALUE

        entry = entries[pos - 1]
        return entry.display_name if field == "name" else str(entry.kills)

    async def _bounded(self, call: Awaitable[T], timeout: float):
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError:
            logger.debug("Placeholder read timed out after %.0f ms", timeout * 1000)
            return _MISSING
