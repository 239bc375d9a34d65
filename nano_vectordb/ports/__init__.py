"""Public port exports for concrete adapter implementations."""

from .db_api import Database, SQLiteDialect
from .storage import FileStorage, MMapStorage, SQLiteStorage, StorageKind, make_storage

__all__ = [
    "Database",
    "SQLiteDialect",
    "FileStorage",
    "MMapStorage",
    "SQLiteStorage",
    "StorageKind",
    "make_storage",
]
