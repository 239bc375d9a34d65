"""Single-tenant in-memory vector store with exact similarity search."""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterable, Optional, Sequence

import numpy as np

from ..ports.storage.factory import StorageInput, StoragePort, make_storage
from .contracts import is_record_storage
from .errors import DimensionMismatchError, StorageCorruptionError
from .types import AdditionalData, RecordFilter, VectorLike
from .vector_codecs import JsonDocumentCodec, hash_vector
from .vector_metrics import (
    DistanceMetric,
    VectorMetric,
    VectorMetricInput,
    make_metric,
    normalize_rows,
)
from .vector_types import QueryResult, VectorRecord

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_FILE = "nano-vectordb.json"


class NanoVectorDB:
    """Brute-force vector store backed by one dense float32 matrix.

    Row `i` of the matrix always holds the vector of the `i`-th record id.
    Under a normalizing metric (cosine) vectors are stored unit-normalized
    and the original vector is not kept: `get` returns the normalized one.
    """

    def __init__(
        self,
        embedding_dim: int,
        metric: VectorMetricInput | DistanceMetric = VectorMetric.COSINE,
        storage_file: str = DEFAULT_STORAGE_FILE,
        *,
        storage: StorageInput = None,
        codec: JsonDocumentCodec | None = None,
    ) -> None:
        """Create a store and load any state persisted at `storage_file`.

        Args:
            embedding_dim: Fixed length of every vector in the store.
            metric: Metric name, `VectorMetric`, or a `DistanceMetric` instance.
            storage_file: Location handed to the storage backend.
            storage: Backend instance, `StorageKind`/name, or None for files.
            codec: Document codec used with byte-oriented backends.
        """

        if isinstance(embedding_dim, bool) or not isinstance(embedding_dim, int):
            raise ValueError("embedding_dim must be an integer")
        if embedding_dim <= 0:
            raise ValueError("embedding_dim must be > 0")
        if not storage_file:
            raise ValueError("storage_file must not be empty")

        self._embedding_dim = embedding_dim
        self._metric = make_metric(metric)
        self._storage_file = str(storage_file)
        self._storage: StoragePort = make_storage(storage)
        self._codec = codec or JsonDocumentCodec()

        self._ids: list[str] = []
        self._index: dict[str, int] = {}
        self._matrix = np.empty((0, embedding_dim), dtype=np.float32)
        self._additional_data: AdditionalData = {}

        logger.debug(
            "Opening store embedding_dim=%d metric=%s storage_file=%s",
            embedding_dim,
            self._metric.name,
            self._storage_file,
        )
        self._load()

    @property
    def embedding_dim(self) -> int:
        return self._embedding_dim

    @property
    def metric(self) -> DistanceMetric:
        return self._metric

    @property
    def storage_file(self) -> str:
        return self._storage_file

    @property
    def storage(self) -> StoragePort:
        return self._storage

    def upsert(self, records: Iterable[VectorRecord]) -> dict[str, list[str]]:
        """Insert new records and overwrite existing ones in place.

        Records with an empty id get a content-derived id. Within one batch a
        later record overrides an earlier one with the same id. Every vector
        is validated before anything is changed.

        Returns:
            `{"update": [...], "insert": [...]}` with the affected ids.
        """

        incoming: dict[str, np.ndarray] = {}
        for record in records:
            vector = self._coerce_vector(record.vector, context="upsert vector")
            record_id = record.id or hash_vector(vector)
            incoming[record_id] = vector

        if self._metric.normalizes:
            incoming = {key: _unit(value) for key, value in incoming.items()}

        updated: list[str] = []
        inserted: list[str] = []
        for record_id, vector in incoming.items():
            row = self._index.get(record_id)
            if row is None:
                inserted.append(record_id)
                continue
            self._matrix[row] = vector
            updated.append(record_id)

        if inserted:
            new_rows = np.vstack([incoming[record_id] for record_id in inserted])
            self._matrix = np.vstack([self._matrix, new_rows])
            for record_id in inserted:
                self._index[record_id] = len(self._ids)
                self._ids.append(record_id)

        logger.debug("upsert: updated=%d inserted=%d", len(updated), len(inserted))
        return {"update": updated, "insert": inserted}

    def get(self, ids: Iterable[str]) -> list[VectorRecord]:
        """Return records whose id is in `ids`, in store order; unknown ids are skipped."""

        wanted = _id_set(ids)
        return [
            self._record_at(row)
            for row, record_id in enumerate(self._ids)
            if record_id in wanted
        ]

    def remove(self, ids: Iterable[str]) -> int:
        """Delete records by id and return how many were removed."""

        doomed = _id_set(ids)
        keep = [row for row, record_id in enumerate(self._ids) if record_id not in doomed]
        removed = len(self._ids) - len(keep)
        if not removed:
            return 0

        self._matrix = self._matrix[keep].copy()
        self._ids = [self._ids[row] for row in keep]
        self._index = {record_id: row for row, record_id in enumerate(self._ids)}
        self._check_alignment()
        logger.debug("remove: removed=%d remaining=%d", removed, len(self._ids))
        return removed

    def query(
        self,
        vector: VectorLike,
        top_k: int = 10,
        threshold: Optional[float] = None,
        filter: Optional[RecordFilter] = None,
    ) -> list[QueryResult]:
        """Rank stored records against `vector`, best score first.

        Scores are "higher is better" for every metric: similarity for
        cosine and negative distance for L2, so an L2 `threshold` must be a
        negative bound. Ranking stops at the first score below `threshold`.
        """

        query_vector = self._coerce_vector(vector, context="query vector")
        if top_k <= 0:
            return []
        if self._metric.normalizes:
            query_vector = _unit(query_vector)

        if filter is None:
            candidates = np.arange(len(self._ids), dtype=np.intp)
        else:
            candidates = np.array(
                [row for row in range(len(self._ids)) if filter(self._record_at(row))],
                dtype=np.intp,
            )
        if candidates.size == 0:
            return []

        scores = np.asarray(
            self._metric.scores(self._matrix[candidates], query_vector),
            dtype=np.float64,
        )
        ranked = np.argsort(-scores, kind="stable")[:top_k]

        results: list[QueryResult] = []
        for position in ranked:
            score = float(scores[position])
            if threshold is not None and score < threshold:
                break
            results.append(
                QueryResult(record=self._record_at(int(candidates[position])), score=score)
            )
        return results

    def size(self) -> int:
        return len(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def clear(self) -> None:
        """Drop every record; the embedding dimension is unchanged."""

        self._ids = []
        self._index = {}
        self._matrix = np.empty((0, self._embedding_dim), dtype=np.float32)

    def get_additional_data(self) -> AdditionalData:
        return copy.deepcopy(self._additional_data)

    def store_additional_data(self, data: AdditionalData) -> None:
        self._additional_data = copy.deepcopy(data)

    def save(self) -> None:
        """Persist the whole store through the configured backend."""

        if is_record_storage(self._storage):
            records = [self._record_at(row) for row in range(len(self._ids))]
            self._storage.write_records(
                self._storage_file,
                records,
                self._embedding_dim,
                self._additional_data,
            )
        else:
            payload = self._codec.encode(
                self._embedding_dim,
                self._ids,
                self._matrix,
                self._additional_data,
            )
            self._storage.write(self._storage_file, payload)
        logger.debug("Saved %d records to %s", len(self._ids), self._storage_file)

    def _load(self) -> None:
        if is_record_storage(self._storage):
            loaded = self._storage.read_records(self._storage_file)
            if loaded is None:
                return
            ids, matrix = self._rows_from_records(loaded.embedding_dim, loaded.records)
            additional_data: Any = loaded.additional_data
        else:
            raw = self._storage.read(self._storage_file)
            if not raw:
                return
            document = self._codec.decode(raw, self._embedding_dim)
            ids, matrix = document.ids, document.matrix
            additional_data = document.additional_data

        if self._metric.normalizes and matrix.shape[0]:
            matrix = normalize_rows(matrix)

        self._ids = list(ids)
        self._index = {record_id: row for row, record_id in enumerate(self._ids)}
        self._matrix = np.ascontiguousarray(matrix, dtype=np.float32)
        self._additional_data = additional_data if additional_data is not None else {}
        self._check_alignment()
        logger.debug("Loaded %d records from %s", len(self._ids), self._storage_file)

    def _rows_from_records(
        self, embedding_dim: int, records: Sequence[VectorRecord]
    ) -> tuple[list[str], np.ndarray]:
        if embedding_dim != self._embedding_dim:
            raise StorageCorruptionError(
                f"Embedding dim mismatch: expected {self._embedding_dim}, got {embedding_dim}"
            )
        ids: list[str] = []
        rows: list[np.ndarray] = []
        seen: set[str] = set()
        for record in records:
            vector = np.asarray(record.vector, dtype=np.float32)
            if vector.shape != (self._embedding_dim,):
                raise StorageCorruptionError(
                    f"Loaded record {record.id!r} has {vector.size} values, "
                    f"expected {self._embedding_dim}"
                )
            if record.id in seen:
                raise StorageCorruptionError(f"Duplicate record id in storage: {record.id!r}")
            seen.add(record.id)
            ids.append(record.id)
            rows.append(vector)

        if not rows:
            return ids, np.empty((0, self._embedding_dim), dtype=np.float32)
        return ids, np.vstack(rows)

    def _coerce_vector(self, vector: VectorLike, *, context: str) -> np.ndarray:
        array = np.asarray(vector, dtype=np.float32)
        if array.ndim != 1 or array.shape[0] != self._embedding_dim:
            raise DimensionMismatchError(
                self._embedding_dim, int(array.size), context=context
            )
        return array

    def _record_at(self, row: int) -> VectorRecord:
        return VectorRecord(
            id=self._ids[row],
            vector=tuple(float(value) for value in self._matrix[row]),
        )

    def _check_alignment(self) -> None:
        if self._matrix.shape != (len(self._ids), self._embedding_dim):
            raise RuntimeError(
                f"Matrix shape {self._matrix.shape} does not match "
                f"{len(self._ids)} records of dim {self._embedding_dim}"
            )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(embedding_dim={self._embedding_dim}, "
            f"metric={self._metric.name!r}, size={len(self._ids)}, "
            f"storage_file={self._storage_file!r})"
        )


def _unit(vector: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        return vector
    return (vector / norm).astype(np.float32, copy=False)


def _id_set(ids: Iterable[str]) -> set[str]:
    if isinstance(ids, str):
        return {ids}
    return set(ids)
