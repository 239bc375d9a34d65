"""Core port contracts used by storage adapters, the store and the tenant cache."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from .types import QueryParams, RowMapping
from .vector_types import StorageLoad, VectorRecord


class DialectPort(Protocol):
    """Dialect behavior required by the SQL storage backend."""

    name: str

    def q(self, ident: str) -> str: ...

    def placeholder(self, key: str) -> str: ...


class DatabasePort(Protocol):
    """Database adapter behavior required by `SQLiteStorage`."""

    dialect: DialectPort

    def transaction(self) -> AbstractContextManager[None]: ...

    def execute(self, sql: str, params: QueryParams = None) -> Any: ...

    def executemany(self, sql: str, seq_of_params: Sequence[QueryParams]) -> Any: ...

    def fetchall(self, sql: str, params: QueryParams = None) -> List[RowMapping]: ...


@runtime_checkable
class ByteStoragePort(Protocol):
    """Byte-oriented persistence; the store owns the document encoding."""

    extension: str

    def read(self, path: str) -> Optional[bytes]: ...

    def write(self, path: str, data: bytes) -> None: ...

    def exists(self, path: str) -> bool: ...

    def delete(self, path: str) -> None: ...


@runtime_checkable
class RecordStoragePort(Protocol):
    """Record-oriented persistence; the backend owns the encoding entirely."""

    extension: str

    def read_records(self, path: str) -> Optional[StorageLoad]: ...

    def write_records(
        self,
        path: str,
        records: Sequence[VectorRecord],
        embedding_dim: int,
        additional_data: Any,
    ) -> None: ...

    def exists(self, path: str) -> bool: ...

    def delete(self, path: str) -> None: ...


def is_record_storage(storage: object) -> bool:
    """Tell whether `storage` offers the record-oriented capability."""

    return callable(getattr(storage, "read_records", None)) and callable(
        getattr(storage, "write_records", None)
    )
