"""Embeddable in-memory vector store with exact search and multi-tenant caching."""

import logging

from .core import (
    ByteStoragePort,
    CosineDistance,
    DimensionMismatchError,
    DistanceMetric,
    JsonDocumentCodec,
    MultiTenantNanoVDB,
    NanoVectorDB,
    NanoVectorDBError,
    QueryResult,
    RecordStoragePort,
    SquaredL2Distance,
    StorageCorruptionError,
    StorageLoad,
    TenantNotFoundError,
    TenantPersistenceError,
    VectorMetric,
    VectorMetricInput,
    VectorRecord,
    hash_vector,
    make_metric,
    normalize_vector_metric,
)
from .ports import (
    Database,
    FileStorage,
    MMapStorage,
    SQLiteDialect,
    SQLiteStorage,
    StorageKind,
    make_storage,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
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
    "hash_vector",
    "JsonDocumentCodec",
    "ByteStoragePort",
    "RecordStoragePort",
    "StorageKind",
    "make_storage",
    "FileStorage",
    "MMapStorage",
    "SQLiteStorage",
    "Database",
    "SQLiteDialect",
    "NanoVectorDBError",
    "DimensionMismatchError",
    "StorageCorruptionError",
    "TenantNotFoundError",
    "TenantPersistenceError",
]
