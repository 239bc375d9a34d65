"""Basic flow with a single NanoVectorDB store persisted to a JSON file."""

from __future__ import annotations

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

import numpy as np

from nano_vectordb import NanoVectorDB, VectorMetric, VectorRecord


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        storage_file = str(Path(tmp) / "nano-vectordb.json")
        db = NanoVectorDB(8, VectorMetric.COSINE, storage_file)

        # Upsert random vectors; records without an id get a content hash id.
        rng = np.random.default_rng(0)
        vectors = rng.random((100, 8), dtype=np.float32)
        summary = db.upsert([VectorRecord(id=f"doc-{i}", vector=v) for i, v in enumerate(vectors)])
        print("Inserted:", len(summary["insert"]), "Updated:", len(summary["update"]))

        anonymous = db.upsert([VectorRecord(id="", vector=[1, 0, 0, 0, 0, 0, 0, 0])])
        print("Content id:", anonymous["insert"][0])

        # Query nearest vectors, with and without a threshold.
        for hit in db.query(vectors[5], top_k=3):
            print(f"  {hit.id}: {hit.score:.4f}")
        print("Above 0.95:", [hit.id for hit in db.query(vectors[5], top_k=10, threshold=0.95)])

        # Restrict candidates with a predicate on the stored record.
        evens = db.query(
            vectors[5],
            top_k=3,
            filter=lambda record: record.id.startswith("doc-") and int(record.id[4:]) % 2 == 0,
        )
        print("Even ids only:", [hit.id for hit in evens])

        # Remove, attach free-form metadata, save and reload.
        print("Removed:", db.remove(["doc-1", "doc-2", "missing"]))
        db.store_additional_data({"model": "random", "version": 1})
        db.save()

        reloaded = NanoVectorDB(8, VectorMetric.COSINE, storage_file)
        print("Reloaded size:", reloaded.size(), reloaded.get_additional_data())


if __name__ == "__main__":
    main()
