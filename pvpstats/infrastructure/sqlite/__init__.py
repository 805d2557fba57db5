from .database import SQLiteDatabase
from .stats import SQLiteStatsRepository

__all__ = [
    "SQLiteDatabase",
    "SQLiteStatsRepository",
]
