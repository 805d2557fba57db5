from __future__ import annotations

from typing import Any, Mapping

from ..domain.models import LeaderboardEntry, StatsRecord


def _coerce(mapping: Mapping[str, Any], key: str, default: Any = None) -> Any:
    value = mapping.get(key, default)
    return value if value is not None else default


def stats_record_from_row(row: Mapping[str, Any]) -> StatsRecord:
    return StatsRecord(
        display_name=str(row["display_name"]),
        stable_id=str(row["stable_id"]),
        kills=int(_coerce(row, "kills", 0) or 0),
        deaths=int(_coerce(row, "deaths", 0) or 0),
        killstreak=int(_coerce(row, "killstreak", 0) or 0),
    )


def leaderboard_entry_from_row(row: Mapping[str, Any]) -> LeaderboardEntry:
    return LeaderboardEntry(
        display_name=str(row["display_name"]),
        kills=int(_coerce(row, "kills", 0) or 0),
    )
