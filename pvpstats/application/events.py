from __future__ import annotations

import logging
from typing import Optional

from .orchestrator import StatsOrchestrator

logger = logging.getLogger(__name__)


class StatsEventListener:
    """Adapter between the game event source and the orchestrator."""

    def __init__(self, stats: StatsOrchestrator):
        self._stats = stats

    def on_identity_observed(self, display_name: Optional[str], stable_id: Optional[str]) -> None:
        try:
            self._stats.ensure_identity(display_name, stable_id)
        except Exception:
            logger.exception("Failed to handle identity event for %s", display_name)

    def on_death_occurred(
        self,
        victim_name: Optional[str],
        killer_name: Optional[str] = None,
        *,
        victim_id: Optional[str] = None,
        killer_id: Optional[str] = None,
    ) -> None:
        try:
            # both sides must have a row before the counters move
            if victim_id:
                self._stats.ensure_identity(victim_name, victim_id)
            if killer_name and killer_id:
                self._stats.ensure_identity(killer_name, killer_id)
            self._stats.record_kill_and_death(killer_name, victim_name)
        except Exception:
            logger.exception("Failed to handle death of %s (killer=%s)", victim_name, killer_name)
