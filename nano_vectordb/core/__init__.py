"""Core vector store, tenant manager, contracts and helpers."""

from .contracts import ByteStoragePort, DatabasePort, DialectPort, RecordStoragePort
from .errors import (
    DimensionMismatchError,
    NanoVectorDBError,
    StorageCorruptionError,
    TenantNotFoundError,
    TenantPersistenceError,
)
from .multi_tenant import MultiTenantNanoVDB
from .vector_codecs import (
    JsonDocumentCodec,
    StorageDocument,
    array_to_buffer_string,
    buffer_string_to_array,
    hash_vector,
)
from .vector_db import NanoVectorDB
from .vector_metrics import (
    CosineDistance,
    DistanceMetric,
    SquaredL2Distance,
    VectorMetric,
    VectorMetricInput,
    make_metric,
    normalize_vector_metric,
)
from .vector_types import QueryResult, StorageLoad, VectorRecord

__all__ = [
    "ByteStoragePort",
    "RecordStoragePort",
    "DatabasePort",
    "DialectPort",
    "NanoVectorDBError",
    "DimensionMismatchError",
    "StorageCorruptionError",
    "TenantNotFoundError",
    "TenantPersistenceError",
    "NanoVectorDB",
    "MultiTenantNanoVDB",
    "VectorRecord",
    "QueryResult",
    "StorageLoad",
    "VectorMetric",
    "VectorMetricInput",
    "DistanceMetric",
    "CosineDistance",
    "SquaredL2Distance",
    "make_metric",
    "normalize_vector_metric",
    "JsonDocumentCodec",
    "StorageDocument",
    "array_to_buffer_string",
    "buffer_string_to_array",
    "hash_vector",
]
