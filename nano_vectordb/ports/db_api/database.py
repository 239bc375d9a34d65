"""SQLite connection adapter for the record-oriented storage backend."""

from __future__ import annotations

import contextlib
import sqlite3
from typing import Any, Sequence

from ...core.types import QueryParams, Rows
from .dialects import SQLiteDialect


class Database:
    """Wrap one sqlite3 connection opened in autocommit mode.

    `transaction()` issues an explicit BEGIN so a group of statements commits
    or rolls back together; every other statement commits on its own.
    """

    def __init__(self, conn: sqlite3.Connection, dialect: SQLiteDialect):
        if conn.isolation_level is not None:
            raise ValueError("Database expects a connection opened with isolation_level=None")
        self.conn: sqlite3.Connection | None = conn
        self.dialect = dialect

    @classmethod
    def connect(cls, path: str, *, timeout: float = 5.0) -> Database:
        conn = sqlite3.connect(path, timeout=timeout, isolation_level=None)
        return cls(conn, SQLiteDialect())

    def _require_open_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise RuntimeError("connection is closed")
        return self.conn

    @contextlib.contextmanager
    def transaction(self):
        """Run the enclosed statements in one BEGIN/COMMIT, rolling back on error."""

        conn = self._require_open_connection()
        conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            conn.rollback()
            raise
        conn.commit()

    def execute(self, sql: str, params: QueryParams = None) -> sqlite3.Cursor:
        conn = self._require_open_connection()
        if params is None:
            return conn.execute(sql)
        return conn.execute(sql, params)

    def executemany(self, sql: str, seq_of_params: Sequence[QueryParams]) -> sqlite3.Cursor:
        return self._require_open_connection().executemany(sql, seq_of_params)

    def fetchall(self, sql: str, params: QueryParams = None) -> Rows:
        """Execute a query and return rows as column-name mappings."""

        cur = self.execute(sql, params)
        columns = [column[0] for column in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]

    def close(self) -> None:
        conn, self.conn = self.conn, None
        if conn is not None:
            conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
