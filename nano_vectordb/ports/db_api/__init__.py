"""DB-API adapter and dialect exports."""

from .database import Database
from .dialects import SQLiteDialect

__all__ = [
    "Database",
    "SQLiteDialect",
]
