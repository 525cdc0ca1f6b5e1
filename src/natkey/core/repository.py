"""Base repository for backing-store reads.

Provides :class:`BaseRepository` — a thin wrapper over a
:class:`~natkey.core.protocols.Connection` that domain sources extend to run
their bulk scans.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       BaseRepository                               │
    │                                                                    │
    │   conn: Connection        ← protocol from natkey.core.protocols    │
    │   backend: str            ← "sqlite" | "postgresql"                │
    │                                                                    │
    │   iter_rows(sql, params)   → Iterator[dict]   (forward cursor)     │
    │   query(sql, params)       → list[dict]                            │
    │   table_exists(name)       → bool                                  │
    │   apply_schema(ddl)        → int                                   │
    └────────────────────────────────────────────────────────────────────┘

Usage:
    >>> class GroupRepo(BaseRepository):
    ...     def codes(self):
    ...         return [r["code"] for r in self.iter_rows("SELECT code FROM user_groups")]

Tags:
    repository, database, abstraction, natkey
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from natkey.core.protocols import Connection

_TABLE_EXISTS_SQL = {
    "sqlite": "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
    "postgresql": (
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = current_schema() AND table_name = ?"
    ),
}


class BaseRepository:
    """Base class for data-access repositories.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
        backend: ``"sqlite"`` (default) or ``"postgresql"``; selects
                 introspection SQL. Both adapters bind ``?`` placeholders.
    """

    def __init__(self, conn: Connection, backend: str = "sqlite") -> None:
        if backend not in _TABLE_EXISTS_SQL:
            raise ValueError(f"Unsupported backend: {backend}")
        self.conn = conn
        self.backend = backend

    # -- Query helpers -----------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a statement and return the raw cursor/result."""
        return self.conn.execute(sql, params)

    def iter_rows(self, sql: str, params: tuple = ()) -> Iterator[dict[str, Any]]:
        """Execute a SELECT and yield rows one at a time as dicts.

        Rows come from the cursor this call opened, so other scans on the
        same connection may run in between.
        """
        cursor = self.conn.execute(sql, params)
        while (row := cursor.fetchone()) is not None:
            yield dict(row)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return all rows as dicts."""
        return list(self.iter_rows(sql, params))

    def table_exists(self, table: str) -> bool:
        """Return True if ``table`` exists in the connected database."""
        return bool(self.query(_TABLE_EXISTS_SQL[self.backend], (table,)))

    def apply_schema(self, ddl: str) -> int:
        """Apply ``;``-separated DDL statements; returns the statement count."""
        statements = [s.strip() for s in ddl.split(";") if s.strip()]
        for statement in statements:
            self.conn.execute(statement)
        self.conn.commit()
        return len(statements)

    def commit(self) -> None:
        """Commit the current transaction."""
        self.conn.commit()


__all__ = [
    "BaseRepository",
]
