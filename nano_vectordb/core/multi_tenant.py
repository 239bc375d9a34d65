"""Multi-tenant manager that bounds how many vector stores stay in memory."""

from __future__ import annotations

import logging
import random
from collections import OrderedDict
from pathlib import Path
from typing import Optional

from ..ports.storage.factory import StorageInput, StoragePort, make_storage
from .errors import TenantNotFoundError, TenantPersistenceError
from .vector_codecs import JsonDocumentCodec
from .vector_db import NanoVectorDB
from .vector_metrics import DistanceMetric, VectorMetric, VectorMetricInput, make_metric

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = "./nano_multi_tenant_storage"
TENANT_FILE_PREFIX = "nanovdb_"


class MultiTenantNanoVDB:
    """Cache of per-tenant `NanoVectorDB` instances with FIFO eviction.

    When the cache is full the tenant that was inserted first is saved and
    dropped from memory. Reading a tenant does not refresh its position.
    """

    def __init__(
        self,
        embedding_dim: int,
        metric: VectorMetricInput | DistanceMetric = VectorMetric.COSINE,
        max_capacity: int = 1000,
        storage_dir: str = DEFAULT_STORAGE_DIR,
        *,
        storage: StorageInput = None,
        rng: Optional[random.Random] = None,
        codec: JsonDocumentCodec | None = None,
    ) -> None:
        """Create a tenant manager.

        Args:
            embedding_dim: Vector dimension shared by every tenant.
            metric: Metric used by every tenant store.
            max_capacity: Maximum number of tenants held in memory.
            storage_dir: Directory that holds one persisted file per tenant.
            storage: Storage backend (instance, `StorageKind` or name) shared by tenants.
            rng: Random source for tenant ids; seed it for reproducible ids.
            codec: Document codec handed to every tenant store (byte backends only).
        """

        if isinstance(embedding_dim, bool) or not isinstance(embedding_dim, int) or embedding_dim <= 0:
            raise ValueError("Embedding dimension must be positive")
        if isinstance(max_capacity, bool) or not isinstance(max_capacity, int) or max_capacity <= 0:
            raise ValueError("Max capacity must be positive")
        if not storage_dir:
            raise ValueError("Storage directory must not be empty")

        self.embedding_dim = embedding_dim
        self.metric = make_metric(metric)
        self.max_capacity = max_capacity
        self.storage_dir = str(storage_dir)
        self.storage: StoragePort = make_storage(storage)
        self.codec = codec
        self._rng = rng or random.Random()
        self._tenants: OrderedDict[str, NanoVectorDB] = OrderedDict()

    @staticmethod
    def jsonfile_from_id(tenant_id: str, extension: str = ".json") -> str:
        """Return the file name used to persist `tenant_id`."""

        return f"{TENANT_FILE_PREFIX}{tenant_id}{extension}"

    def tenant_path(self, tenant_id: str) -> str:
        extension = getattr(self.storage, "extension", ".json")
        return str(Path(self.storage_dir) / self.jsonfile_from_id(tenant_id, extension))

    def contain_tenant(self, tenant_id: str) -> bool:
        """Tell whether a tenant is cached or persisted, without loading it."""

        return tenant_id in self._tenants or self.storage.exists(self.tenant_path(tenant_id))

    def __contains__(self, tenant_id: object) -> bool:
        return isinstance(tenant_id, str) and self.contain_tenant(tenant_id)

    def cached_tenant_ids(self) -> list[str]:
        """Return cached tenant ids, oldest insertion first."""

        return list(self._tenants)

    def create_tenant(self) -> str:
        """Create an empty tenant store and return its new id."""

        tenant_id = self._new_tenant_id()
        db = self._open(tenant_id)
        self._cache(tenant_id, db)
        logger.info("Created tenant %s", tenant_id)
        return tenant_id

    def get_tenant(self, tenant_id: str) -> NanoVectorDB:
        """Return a cached tenant, loading it from storage when evicted."""

        db = self._tenants.get(tenant_id)
        if db is not None:
            return db
        if not self.storage.exists(self.tenant_path(tenant_id)):
            raise TenantNotFoundError(tenant_id)

        db = self._open(tenant_id)
        self._cache(tenant_id, db)
        logger.info("Loaded tenant %s from storage", tenant_id)
        return db

    def delete_tenant(self, tenant_id: str) -> None:
        """Drop a tenant from memory and remove its persisted state."""

        if not self.contain_tenant(tenant_id):
            raise TenantNotFoundError(tenant_id)
        self._tenants.pop(tenant_id, None)
        try:
            self.storage.delete(self.tenant_path(tenant_id))
        except OSError as exc:
            raise TenantPersistenceError(tenant_id, "Failed to remove tenant file for") from exc
        logger.info("Deleted tenant %s", tenant_id)

    def save(self) -> None:
        """Persist every cached tenant; evicted tenants are already on disk."""

        for tenant_id, db in self._tenants.items():
            try:
                db.save()
            except Exception as exc:
                raise TenantPersistenceError(tenant_id, "Failed to save tenant") from exc

    def _open(self, tenant_id: str) -> NanoVectorDB:
        return NanoVectorDB(
            self.embedding_dim,
            self.metric,
            self.tenant_path(tenant_id),
            storage=self.storage,
            codec=self.codec,
        )

    def _cache(self, tenant_id: str, db: NanoVectorDB) -> None:
        if len(self._tenants) >= self.max_capacity:
            evict_id, evicted = next(iter(self._tenants.items()))
            try:
                evicted.save()
            except Exception as exc:
                raise TenantPersistenceError(evict_id, "Failed to save evicted tenant") from exc
            del self._tenants[evict_id]
            logger.info("Evicted tenant %s to %s", evict_id, self.tenant_path(evict_id))
        self._tenants[tenant_id] = db

    def _new_tenant_id(self) -> str:
        while True:
            tenant_id = f"{self._rng.getrandbits(64):x}"
            if not self.contain_tenant(tenant_id):
                return tenant_id

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(embedding_dim={self.embedding_dim}, "
            f"metric={self.metric.name!r}, max_capacity={self.max_capacity}, "
            f"storage_dir={self.storage_dir!r}, cached={len(self._tenants)})"
        )
