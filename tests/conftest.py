"""
Shared pytest fixtures for natkey tests.

This module provides:
- An in-memory SQLite catalog store seeded with a small fixture dataset
- A user group store
- ``CountingSource``: a loader wrapper recording how often each shard loads
- A fresh ``CacheCoordinator`` over ``InMemoryTaggedCache`` per test

Usage:
    def test_something(catalog_source, coordinator):
        finder = CatalogFinder({"id": 5}, cache=coordinator, source=catalog_source)
"""

import sys
import threading
from collections import Counter
from pathlib import Path
from typing import Any

import pytest

# Ensure natkey package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from natkey.core.cache import InMemoryTaggedCache
from natkey.core.connection import SqliteConnection
from natkey.core.logging import clear_context
from natkey.core.protocols import ShardLoad
from natkey.domain.catalog import CatalogSource, apply_catalog_schema
from natkey.domain.groups import GroupSource, apply_group_schema
from natkey.finder import CacheCoordinator


CATALOG_ROWS = [
    (5, "catalog", "main"),
    (6, "catalog", None),
    (7, "news", "press"),
]
FIELD_ROWS = [
    (10, 5, "COLOR"),
    (11, 5, "SIZE"),
    (12, 7, "AUTHOR"),
]
ENUM_ROWS = [
    (100, 10, "RED"),
    (101, 10, "GREEN"),
    (110, 11, "XL"),
]
GROUP_ROWS = [
    (1, "admins"),
    (2, "editors"),
    (3, None),
]


class CountingSource:
    """Wrap a loader and count loads per shard."""

    def __init__(self, inner: Any):
        self.inner = inner
        self.loads: Counter[str] = Counter()
        self.availability_checks = 0
        self._lock = threading.Lock()

    def ensure_available(self) -> None:
        self.availability_checks += 1
        self.inner.ensure_available()

    def load(self, shard: str) -> ShardLoad:
        with self._lock:
            self.loads[shard] += 1
        return self.inner.load(shard)


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear bound structlog context between tests."""
    clear_context()
    yield
    clear_context()


# =============================================================================
# Backing stores
# =============================================================================


@pytest.fixture
def catalog_conn():
    """In-memory SQLite with the catalog tables and fixture rows."""
    conn = SqliteConnection(":memory:")
    apply_catalog_schema(conn)
    conn.raw.executemany("INSERT INTO catalogs (id, type, code) VALUES (?, ?, ?)", CATALOG_ROWS)
    conn.raw.executemany(
        "INSERT INTO catalog_fields (id, catalog_id, code) VALUES (?, ?, ?)", FIELD_ROWS
    )
    conn.raw.executemany(
        "INSERT INTO catalog_field_enums (id, field_id, xml_id) VALUES (?, ?, ?)", ENUM_ROWS
    )
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def group_conn():
    """In-memory SQLite with the user_groups table and fixture rows."""
    conn = SqliteConnection(":memory:")
    apply_group_schema(conn)
    conn.raw.executemany("INSERT INTO user_groups (id, code) VALUES (?, ?)", GROUP_ROWS)
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def catalog_source(catalog_conn):
    """Catalog loader wrapped in a load counter."""
    return CountingSource(CatalogSource(catalog_conn))


@pytest.fixture
def group_source(group_conn):
    """Group loader wrapped in a load counter."""
    return CountingSource(GroupSource(group_conn))


# =============================================================================
# Cache
# =============================================================================


@pytest.fixture
def store():
    return InMemoryTaggedCache()


@pytest.fixture
def coordinator(store):
    """Fresh coordinator; no state shared between tests."""
    return CacheCoordinator(store)
