"""Tests for natkey.core.orm — SQLAlchemy bridge (run against SQLite)."""

from __future__ import annotations

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")

from sqlalchemy.orm import Session  # noqa: E402

from natkey.core.errors import BackendUnavailableError  # noqa: E402
from natkey.core.orm import SAConnectionBridge, _rewrite_positional, create_natkey_engine  # noqa: E402
from natkey.core.repository import BaseRepository  # noqa: E402


@pytest.fixture
def bridge():
    engine = create_natkey_engine("sqlite:///:memory:")
    session = Session(bind=engine)
    yield SAConnectionBridge(session)
    session.close()
    engine.dispose()


class TestRewritePositional:
    def test_placeholders_numbered(self):
        assert _rewrite_positional("a = ? AND b = ?") == "a = :p0 AND b = :p1"


class TestSAConnectionBridge:
    def test_fetch_returns_dicts(self, bridge):
        bridge.execute("CREATE TABLE t (id INTEGER, code TEXT)")
        bridge.execute("INSERT INTO t VALUES (?, ?)", (1, "main"))
        bridge.execute("SELECT id, code FROM t WHERE id = ?", (1,))
        assert bridge.fetchone() == {"id": 1, "code": "main"}
        assert bridge.fetchone() is None

    def test_fetch_before_execute(self, bridge):
        assert bridge.fetchone() is None
        assert bridge.fetchall() == []

    def test_error_wrapped(self, bridge):
        with pytest.raises(BackendUnavailableError):
            bridge.execute("SELECT * FROM missing")

    def test_repository_scan(self, bridge):
        repo = BaseRepository(bridge)
        repo.apply_schema("CREATE TABLE t (id INTEGER)")
        bridge.execute("INSERT INTO t VALUES (?)", (7,))
        assert repo.query("SELECT id FROM t") == [{"id": 7}]
        assert repo.table_exists("t") is True

    def test_each_execute_has_its_own_rows(self, bridge):
        bridge.execute("CREATE TABLE t (id INTEGER)")
        for n in (1, 2, 3):
            bridge.execute("INSERT INTO t VALUES (?)", (n,))
        first = bridge.execute("SELECT id FROM t ORDER BY id")
        assert first.fetchone() == {"id": 1}
        second = bridge.execute("SELECT COUNT(*) AS n FROM t")
        assert second.fetchall() == [{"n": 3}]
        assert first.fetchall() == [{"id": 2}, {"id": 3}]
