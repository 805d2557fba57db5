from __future__ import annotations

import logging
from dataclasses import dataclass

from ..domain.stats import IdentitySyncPolicy
from ..infrastructure.metrics import metrics
from ..infrastructure.sqlite import SQLiteDatabase, SQLiteStatsRepository
from .cache import DEFAULT_TTL_SECONDS, StatsReadCache
from .events import StatsEventListener
from .orchestrator import LEADERBOARD_MIN_FETCH, StatsOrchestrator
from .placeholders import PlaceholderResolver
from .presenters import StatsPresenter
from .workers import BackgroundWorkerPool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    db_path: str
    db_max_connections: int = 4
    db_connect_timeout: float = 10.0
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS
    overwrite_id_on_name_collision: bool = True
    rename_on_id_match: bool = True
    worker_count: int = 2
    leaderboard_min_fetch: int = LEADERBOARD_MIN_FETCH
    metrics_log_path: str | None = None


class AppContainer:
    def __init__(
        self,
        *,
        config: AppConfig,
        stats: StatsOrchestrator,
        listener: StatsEventListener,
        placeholders: PlaceholderResolver,
        presenter: StatsPresenter,
        database: SQLiteDatabase,
    ):
        self.config = config
        self.stats = stats
        self.listener = listener
        self.placeholders = placeholders
        self.presenter = presenter

        self._database = database

    async def init_resources(self) -> None:
        if self.config.metrics_log_path:
            metrics.log_to_file(self.config.metrics_log_path)
        await self._database.init()
        await self.stats.start()

    async def close(self) -> None:
        await self.stats.close()


def create_container(config: AppConfig) -> AppContainer:
    database = SQLiteDatabase(
        config.db_path,
        max_connections=config.db_max_connections,
        connect_timeout=config.db_connect_timeout,
    )
    stats_repo = SQLiteStatsRepository(database)

    cache = StatsReadCache(config.cache_ttl_seconds)
    if cache.ttl_seconds != config.cache_ttl_seconds:
        logger.warning(
            "Cache TTL %ss is below the minimum, using %ss",
            config.cache_ttl_seconds,
            cache.ttl_seconds,
        )
    stats = StatsOrchestrator(
        stats_repo,
        cache=cache,
        workers=BackgroundWorkerPool(config.worker_count),
        policy=IdentitySyncPolicy(
            overwrite_id_on_name_collision=config.overwrite_id_on_name_collision,
            rename_on_id_match=config.rename_on_id_match,
        ),
        leaderboard_min_fetch=config.leaderboard_min_fetch,
    )

    return AppContainer(
        config=config,
        stats=stats,
        listener=StatsEventListener(stats),
        placeholders=PlaceholderResolver(stats),
        presenter=StatsPresenter(),
        database=database,
    )
