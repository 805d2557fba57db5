from __future__ import annotations


class StatsStoreError(Exception):
    """Base class for failures reported by the stats store."""


class StoreUnavailableError(StatsStoreError):
    """The store could not be reached or the query failed."""


class StoreConflictError(StatsStoreError):
    """The statement would violate a unique key (display name or stable id)."""
