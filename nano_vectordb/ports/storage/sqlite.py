"""SQLite storage backend that persists one row per vector.

Schema:
    meta(key TEXT PRIMARY KEY, value TEXT NOT NULL)
    vectors(id TEXT PRIMARY KEY, dim INTEGER NOT NULL, vec BLOB NOT NULL)

Vectors are stored as raw little-endian float32 blobs and `additional_data`
as JSON text under the `additional_data` meta key.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional, Sequence

import numpy as np

from ...core.contracts import DatabasePort, DialectPort
from ...core.errors import DimensionMismatchError, StorageCorruptionError
from ...core.vector_codecs import FLOAT_DTYPE
from ...core.vector_types import StorageLoad, VectorRecord
from ..db_api import Database, SQLiteDialect

logger = logging.getLogger(__name__)

META_TABLE = "meta"
VECTORS_TABLE = "vectors"


class SQLiteStorage:
    """Record-oriented backend; writes replace every row in one transaction."""

    extension = ".db"

    def __init__(self, *, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self.dialect: DialectPort = SQLiteDialect()

    def _connect(self, path: str) -> Database:
        return Database.connect(path, timeout=self.timeout)

    def _ensure_schema(self, db: DatabasePort) -> None:
        q = self.dialect.q
        db.execute(
            f"CREATE TABLE IF NOT EXISTS {q(META_TABLE)} "
            f"({q('key')} TEXT PRIMARY KEY, {q('value')} TEXT NOT NULL)"
        )
        db.execute(
            f"CREATE TABLE IF NOT EXISTS {q(VECTORS_TABLE)} ("
            f"{q('id')} TEXT PRIMARY KEY, "
            f"{q('dim')} INTEGER NOT NULL, "
            f"{q('vec')} BLOB NOT NULL)"
        )

    def write_records(
        self,
        path: str,
        records: Sequence[VectorRecord],
        embedding_dim: int,
        additional_data: Any,
    ) -> None:
        rows: list[dict[str, Any]] = []
        for record in records:
            vector = np.asarray(record.vector, dtype=FLOAT_DTYPE)
            if vector.shape != (embedding_dim,):
                raise DimensionMismatchError(
                    embedding_dim, int(vector.size), context="record"
                )
            rows.append(
                {"id": record.id, "dim": embedding_dim, "vec": vector.tobytes()}
            )
        meta_rows = [
            {"key": "embedding_dim", "value": str(embedding_dim)},
            {"key": "additional_data", "value": json.dumps(additional_data)},
        ]

        q = self.dialect.q
        p = self.dialect.placeholder
        insert_sql = (
            f"INSERT INTO {q(VECTORS_TABLE)} ({q('id')}, {q('dim')}, {q('vec')}) "
            f"VALUES ({p('id')}, {p('dim')}, {p('vec')})"
        )
        meta_sql = (
            f"REPLACE INTO {q(META_TABLE)} ({q('key')}, {q('value')}) "
            f"VALUES ({p('key')}, {p('value')})"
        )

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with self._connect(path) as db:
            self._ensure_schema(db)
            with db.transaction():
                db.execute(f"DELETE FROM {q(VECTORS_TABLE)}")
                if rows:
                    db.executemany(insert_sql, rows)
                db.executemany(meta_sql, meta_rows)
        logger.debug("Wrote %d records to %s", len(rows), path)

    def read_records(self, path: str) -> Optional[StorageLoad]:
        if not Path(path).is_file():
            return None
        try:
            with self._connect(path) as db:
                return self._read(db, path)
        except sqlite3.DatabaseError as exc:
            raise StorageCorruptionError(f"Cannot read SQLite storage {path}: {exc}") from exc

    def _read(self, db: DatabasePort, path: str) -> Optional[StorageLoad]:
        q = self.dialect.q
        tables = {
            row["name"]
            for row in db.fetchall(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            )
        }
        expected = {META_TABLE, VECTORS_TABLE}
        if not tables & expected:
            return None
        if not expected <= tables:
            missing = sorted(expected - tables)
            raise StorageCorruptionError(f"SQLite storage {path} missing tables: {missing}")

        meta = {
            row["key"]: row["value"]
            for row in db.fetchall(
                f"SELECT {q('key')}, {q('value')} FROM {q(META_TABLE)}"
            )
        }
        rows = db.fetchall(
            f"SELECT {q('id')}, {q('dim')}, {q('vec')} FROM {q(VECTORS_TABLE)} "
            "ORDER BY rowid"
        )
        if "embedding_dim" not in meta and not rows:
            return None

        if "embedding_dim" in meta:
            try:
                embedding_dim = int(meta["embedding_dim"])
            except ValueError as exc:
                raise StorageCorruptionError(
                    f"Invalid embedding_dim in {path}: {meta['embedding_dim']!r}"
                ) from exc
        else:
            embedding_dim = int(rows[0]["dim"])

        additional_data: Any = {}
        if "additional_data" in meta:
            try:
                additional_data = json.loads(meta["additional_data"])
            except json.JSONDecodeError as exc:
                raise StorageCorruptionError(
                    f"Invalid additional_data in {path}: {exc}"
                ) from exc

        records: list[VectorRecord] = []
        for row in rows:
            dim = int(row["dim"])
            blob = row["vec"]
            if blob is None or len(blob) != dim * FLOAT_DTYPE.itemsize:
                raise StorageCorruptionError(
                    f"Blob size mismatch for record {row['id']!r} in {path}"
                )
            vector = np.frombuffer(blob, dtype=FLOAT_DTYPE)
            records.append(
                VectorRecord(id=str(row["id"]), vector=tuple(float(v) for v in vector))
            )

        logger.debug("Read %d records from %s", len(records), path)
        return StorageLoad(
            records=records,
            embedding_dim=embedding_dim,
            additional_data=additional_data,
        )

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def delete(self, path: str) -> None:
        Path(path).unlink(missing_ok=True)
