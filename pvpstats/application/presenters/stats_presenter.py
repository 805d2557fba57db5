from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ...domain import LeaderboardEntry, StatsRecord


class StatsPresenter:
    def __init__(self, templates_dir: Path | None = None):
        base_dir = templates_dir or (Path(__file__).resolve().parent / "templates")
        self._env = Environment(
            loader=FileSystemLoader(str(base_dir)),
            autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False, default=False),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _render(self, template: str, **context) -> str:
        return self._env.get_template(template).render(**context).strip()

    def profile_text(self, display_name: str, record: Optional[StatsRecord], rank: Optional[int]) -> str:
        return self._render(
            "profile.j2",
            display_name=display_name,
            record=record,
            kdr=f"{record.kdr:.2f}" if record else None,
            rank=rank,
        )

    def leaderboard_text(self, entries: Sequence[LeaderboardEntry], limit: int) -> str:
        return self._render("leaderboard.j2", entries=list(entries)[: max(0, limit)], limit=limit)

    def rank_text(self, display_name: str, rank: Optional[int]) -> str:
        if rank is None:
            return f"{display_name} is not ranked yet."
        return f"{display_name} is #{rank} by kills."
