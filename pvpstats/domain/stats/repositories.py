from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..models import LeaderboardEntry, StatsRecord


class StatsRepository(Protocol):
    async def find_by_name(self, display_name: str) -> Optional[StatsRecord]: ...

    async def find_by_stable_id(self, stable_id: str) -> Optional[StatsRecord]: ...

    async def upsert_identity(
        self,
        display_name: str,
        stable_id: str,
        *,
        overwrite_id_on_name_collision: bool,
    ) -> None: ...

    async def rename_by_stable_id(self, stable_id: str, new_name: str) -> None: ...

    async def increment_kill(self, display_name: str) -> None: ...

    async def increment_death_reset_streak(self, display_name: str) -> None: ...

    async def top_kills(self, limit: int) -> Sequence[LeaderboardEntry]: ...

    async def rank_by_kills(self, display_name: str) -> Optional[int]: ...
