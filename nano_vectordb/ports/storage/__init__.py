"""Storage backend exports."""

from .factory import StorageKind, make_storage
from .file import FileStorage
from .mmap_file import MMapStorage
from .sqlite import SQLiteStorage

__all__ = [
    "FileStorage",
    "MMapStorage",
    "SQLiteStorage",
    "StorageKind",
    "make_storage",
]
