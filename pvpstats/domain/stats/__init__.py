from .identity import IdentitySyncPolicy, IdentitySyncResult, reconcile_identity
from .repositories import StatsRepository

__all__ = [
    "IdentitySyncPolicy",
    "IdentitySyncResult",
    "StatsRepository",
    "reconcile_identity",
]
