from .cache import CacheEntry, LeaderboardCache, StatsReadCache
from .events import StatsEventListener
from .orchestrator import StatsOrchestrator
from .placeholders import PlaceholderResolver
from .workers import BackgroundWorkerPool, JobOutcome

__all__ = [
    "BackgroundWorkerPool",
    "CacheEntry",
    "JobOutcome",
    "LeaderboardCache",
    "PlaceholderResolver",
    "StatsEventListener",
    "StatsOrchestrator",
    "StatsReadCache",
]
