from .models import LeaderboardEntry, StatsRecord
from .errors import StatsStoreError, StoreConflictError, StoreUnavailableError
from .stats import IdentitySyncPolicy, IdentitySyncResult, StatsRepository, reconcile_identity

__all__ = [
    "StatsRecord",
    "LeaderboardEntry",
    "StatsStoreError",
    "StoreUnavailableError",
    "StoreConflictError",
    "IdentitySyncPolicy",
    "IdentitySyncResult",
    "StatsRepository",
    "reconcile_identity",
]
