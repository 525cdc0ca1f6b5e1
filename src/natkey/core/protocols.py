"""
Canonical protocol definitions for natkey.

The Finder engine never imports a database driver or a cache client. It
depends on the shapes defined here, and concrete adapters in
:mod:`natkey.core.connection` and :mod:`natkey.core.cache` satisfy them.

Architecture:
    ::

        protocols.py
        ├── Connection        — sync DB protocol (sqlite3 adapter, SA bridge)
        ├── TaggedCacheStore  — get/set/invalidate-by-tag + per-key lock
        └── BulkLoader        — full scan of one shard → ShardLoad

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts — implementations go in adapters

Tags:
    protocol, connection, cache, loader, natkey, contracts
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# Database Connection Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for database operations.

    Implementations:
        - :class:`natkey.core.connection.SqliteConnection`
        - :class:`natkey.core.orm.SAConnectionBridge` (PostgreSQL)
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters. SYNC.

        Returns a cursor of its own (``fetchone``/``fetchall``), so
        concurrent scans on one connection never share a position.
        """
        ...

    def fetchone(self) -> Any:
        """Fetch one row from the last statement run by this thread. SYNC."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from the last statement run by this thread. SYNC."""
        ...

    def commit(self) -> None:
        """Commit current transaction. SYNC."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction. SYNC."""
        ...


# ---------------------------------------------------------------------------
# Cache Store Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class TaggedCacheStore(Protocol):
    """
    Key/value store addressed by ``(directory, shard)`` with tag invalidation.

    A value is stored together with a set of tags. Invalidating any of those
    tags removes the value, so the next ``get`` misses.

    Implementations:
        - :class:`natkey.core.cache.InMemoryTaggedCache`
        - :class:`natkey.core.cache.RedisTaggedCache`

    ``serializes_values`` tells callers whether values must be JSON-safe
    structures (and come back as such) rather than live objects.
    """

    serializes_values: bool

    def get(self, directory: str, shard: str) -> Any | None:
        """Return the stored value, or ``None`` when absent or invalidated."""
        ...

    def set(
        self,
        directory: str,
        shard: str,
        value: Any,
        *,
        tags: Iterable[str] = (),
        ttl_seconds: int | None = None,
    ) -> None:
        """Store ``value`` and associate it with ``tags``."""
        ...

    def invalidate(self, tags: Iterable[str]) -> int:
        """Drop every value registered under any of ``tags``.

        Returns the number of values removed.
        """
        ...

    def clear_directory(self, directory: str, shard: str | None = None) -> int:
        """Drop one shard, or every shard of ``directory``."""
        ...

    def lock(self, directory: str, shard: str) -> AbstractContextManager[Any]:
        """Mutual exclusion for populating ``(directory, shard)``."""
        ...


# ---------------------------------------------------------------------------
# Bulk loading
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ShardLoad:
    """Result of one bulk load: a fully built index plus its tags."""

    index: Any
    tags: frozenset[str] = field(default_factory=frozenset)


class BulkLoader(Protocol):
    """
    Contract for domain sources that rebuild one shard from the backing store.

    ``load`` performs one full pass over the relevant tables and returns the
    complete index. It must not return a partially built index; on failure
    it raises :class:`~natkey.core.errors.BackendUnavailableError`.
    """

    def load(self, shard: str) -> ShardLoad:
        """Scan the backing store and build the index for ``shard``."""
        ...

    def ensure_available(self) -> None:
        """Raise ``DependencyMissingError`` if the backing tables are absent."""
        ...


__all__ = [
    "Connection",
    "TaggedCacheStore",
    "ShardLoad",
    "BulkLoader",
]
