"""Multi-tenant caching with FIFO eviction to a storage directory."""

from __future__ import annotations

import logging
import random
import sys
import tempfile
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "nano_vectordb").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nano_vectordb import MultiTenantNanoVDB, TenantNotFoundError, VectorRecord


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmp:
        manager = MultiTenantNanoVDB(
            4,
            "l2",
            max_capacity=2,
            storage_dir=tmp,
            storage="sqlite",
            rng=random.Random(7),
        )

        first = manager.create_tenant()
        manager.get_tenant(first).upsert([VectorRecord(id="a", vector=[1, 0, 0, 0])])
        manager.get_tenant(first).store_additional_data({"owner": "alice"})

        # The third tenant pushes the first one out of memory and onto disk.
        manager.create_tenant()
        manager.create_tenant()
        print("Cached:", manager.cached_tenant_ids())
        print("First persisted at:", manager.tenant_path(first))

        # Reading an evicted tenant loads it back from storage.
        tenant = manager.get_tenant(first)
        print("Reloaded:", tenant.get(["a"]), tenant.get_additional_data())

        manager.delete_tenant(first)
        try:
            manager.get_tenant(first)
        except TenantNotFoundError as exc:
            print(f"[OK] {type(exc).__name__}: {exc}")

        manager.save()


if __name__ == "__main__":
    main()
