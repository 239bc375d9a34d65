"""Shared vector entities used by the store, storage ports and the tenant cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence


@dataclass(frozen=True)
class VectorRecord:
    """Represents one vector stored in a `NanoVectorDB`.

    An empty `id` asks the store to derive one from the vector content.
    """

    id: str
    vector: Sequence[float]


@dataclass(frozen=True)
class QueryResult:
    """Represents one scored hit returned by a similarity query."""

    record: VectorRecord
    score: float

    @property
    def id(self) -> str:
        return self.record.id


@dataclass
class StorageLoad:
    """Full store state as returned by a record-oriented storage backend."""

    records: list[VectorRecord] = field(default_factory=list)
    embedding_dim: int = 0
    additional_data: Any = field(default_factory=dict)
