"""Selection helpers for the built-in storage backends."""

from __future__ import annotations

from enum import Enum
from typing import Union

from ...core.contracts import ByteStoragePort, RecordStoragePort
from .file import FileStorage
from .mmap_file import MMapStorage
from .sqlite import SQLiteStorage


class StorageKind(str, Enum):
    """Built-in storage backend identifiers."""

    FILE = "file"
    MMAP = "mmap"
    SQLITE = "sqlite"


StoragePort = Union[ByteStoragePort, RecordStoragePort]
StorageInput = Union[str, StorageKind, ByteStoragePort, RecordStoragePort, None]


def make_storage(storage: StorageInput = None) -> StoragePort:
    """Return a storage backend for a kind name, an enum value or an instance.

    `None` selects plain file storage.
    """

    if storage is None:
        return FileStorage()
    if isinstance(storage, StorageKind):
        kind = storage
    elif isinstance(storage, str):
        try:
            kind = StorageKind(storage.strip().lower())
        except ValueError as exc:
            allowed = sorted(item.value for item in StorageKind)
            raise ValueError(f"Unsupported storage: {storage}. Supported: {allowed}") from exc
    else:
        return storage

    if kind is StorageKind.MMAP:
        return MMapStorage()
    if kind is StorageKind.SQLITE:
        return SQLiteStorage()
    return FileStorage()
