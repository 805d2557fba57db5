from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StatsRecord:
    display_name: str
    stable_id: str
    kills: int = 0
    deaths: int = 0
    killstreak: int = 0

    @property
    def kdr(self) -> float:
        # zero deaths divides by one instead of zero
        if self.deaths > 0:
            return self.kills / self.deaths
        return self.kills / (self.deaths + 1)


@dataclass(frozen=True)
class LeaderboardEntry:
    display_name: str
    kills: int
