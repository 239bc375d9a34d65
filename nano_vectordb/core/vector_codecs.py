"""Encoding helpers for the default JSON storage document and content ids."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from .errors import StorageCorruptionError
from .types import VectorLike

FLOAT_DTYPE = np.dtype("<f4")


def hash_vector(vector: VectorLike) -> str:
    """Return a deterministic content id for `vector`.

    The id is derived from the float32 byte representation, so two vectors
    that are equal once stored always collapse to the same id.
    """

    data = np.ascontiguousarray(np.asarray(vector, dtype=FLOAT_DTYPE)).tobytes()
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def array_to_buffer_string(matrix: np.ndarray) -> str:
    """Pack a matrix as row-major little-endian float32 bytes in base64."""

    data = np.ascontiguousarray(matrix, dtype=FLOAT_DTYPE).tobytes(order="C")
    return base64.b64encode(data).decode("ascii")


def buffer_string_to_array(encoded: str, embedding_dim: int) -> np.ndarray:
    """Decode a base64 matrix produced by `array_to_buffer_string`."""

    if not isinstance(encoded, str):
        raise StorageCorruptionError(
            f"'matrix' must be a base64 string, got {type(encoded).__name__}"
        )
    try:
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise StorageCorruptionError(f"'matrix' is not valid base64: {exc}") from exc

    row_bytes = embedding_dim * FLOAT_DTYPE.itemsize
    if len(raw) % row_bytes != 0:
        raise StorageCorruptionError(
            f"'matrix' holds {len(raw)} bytes, not a multiple of {row_bytes} "
            f"(embedding_dim={embedding_dim})"
        )
    rows = len(raw) // row_bytes
    return (
        np.frombuffer(raw, dtype=FLOAT_DTYPE)
        .reshape(rows, embedding_dim)
        .astype(np.float32, copy=True)
    )


@dataclass(frozen=True)
class StorageDocument:
    """Decoded content of the default JSON storage document."""

    embedding_dim: int
    ids: list[str]
    matrix: np.ndarray
    additional_data: Any


@dataclass(frozen=True)
class JsonDocumentCodec:
    """Codec for `{embedding_dim, matrix, data, additional_data}` documents."""

    def encode(
        self,
        embedding_dim: int,
        ids: Sequence[str],
        matrix: np.ndarray,
        additional_data: Any,
    ) -> bytes:
        document = {
            "embedding_dim": embedding_dim,
            "matrix": array_to_buffer_string(matrix),
            "data": [{"id": item_id} for item_id in ids],
        }
        if additional_data is not None:
            document["additional_data"] = additional_data
        return json.dumps(document, separators=(",", ":")).encode("utf-8")

    def decode(self, data: bytes, embedding_dim: int) -> StorageDocument:
        try:
            document = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StorageCorruptionError(f"Storage document is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise StorageCorruptionError("Storage document must be a JSON object")

        for key in ("embedding_dim", "matrix", "data"):
            if key not in document:
                raise StorageCorruptionError(f"Storage document missing '{key}' field")

        stored_dim = document["embedding_dim"]
        if isinstance(stored_dim, bool) or not isinstance(stored_dim, int):
            raise StorageCorruptionError(
                f"'embedding_dim' must be an integer, got {stored_dim!r}"
            )
        if stored_dim != embedding_dim:
            raise StorageCorruptionError(
                f"Embedding dim mismatch: expected {embedding_dim}, got {stored_dim}"
            )

        matrix = buffer_string_to_array(document["matrix"], embedding_dim)

        entries = document["data"]
        if not isinstance(entries, list):
            raise StorageCorruptionError("'data' must be a list")
        if len(entries) != matrix.shape[0]:
            raise StorageCorruptionError(
                f"'data' has {len(entries)} entries but 'matrix' has {matrix.shape[0]} rows"
            )
        ids: list[str] = []
        for entry in entries:
            if not isinstance(entry, dict) or "id" not in entry:
                raise StorageCorruptionError("Data entry missing 'id' field")
            if not isinstance(entry["id"], str):
                raise StorageCorruptionError(
                    f"Data entry id must be a string, got {entry['id']!r}"
                )
            ids.append(entry["id"])
        if len(set(ids)) != len(ids):
            raise StorageCorruptionError("'data' contains duplicate ids")

        return StorageDocument(
            embedding_dim=stored_dim,
            ids=ids,
            matrix=matrix,
            additional_data=document.get("additional_data", {}),
        )
