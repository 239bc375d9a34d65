"""SQL dialect used by the record-oriented storage backend."""

from __future__ import annotations


class SQLiteDialect:
    """Identifier quoting and `:name` placeholders for SQLite statements."""

    name = "sqlite"

    def q(self, ident: str) -> str:
        return '"' + ident.replace('"', '""') + '"'

    def placeholder(self, key: str) -> str:
        return f":{key}"
