"""Tests for natkey.core.connection — create_connection factory."""

from __future__ import annotations

import sqlite3
import sys
import threading
from unittest.mock import patch

import pytest

from natkey.core.connection import ConnectionInfo, SqliteConnection, _parse_url, create_connection
from natkey.core.errors import BackendUnavailableError, ConfigError, DependencyMissingError
from natkey.core.protocols import Connection


class TestParseUrl:
    @pytest.mark.parametrize(
        "url, expected",
        [
            (None, ("memory", ":memory:")),
            ("memory", ("memory", ":memory:")),
            (":memory:", ("memory", ":memory:")),
            ("sqlite://", ("memory", ":memory:")),
            ("sqlite:///data/catalog.db", ("sqlite", "data/catalog.db")),
            ("./catalog.db", ("file", "./catalog.db")),
            ("postgresql://u:p@h/db", ("postgresql", "postgresql://u:p@h/db")),
            ("postgres://u:p@h/db", ("postgresql", "postgres://u:p@h/db")),
            ("postgresql+psycopg://h/db", ("postgresql", "postgresql+psycopg://h/db")),
            ("mysql://h/db", ("unknown", "mysql://h/db")),
        ],
    )
    def test_schemes(self, url, expected):
        assert _parse_url(url) == expected


class TestCreateConnection:
    def test_memory(self):
        conn, info = create_connection()
        assert isinstance(conn, SqliteConnection)
        assert isinstance(conn, Connection)
        assert info == ConnectionInfo(backend="sqlite", persistent=False, url=":memory:")
        assert info.is_sqlite and not info.is_postgres

    def test_file_in_data_dir(self, tmp_path):
        conn, info = create_connection("nested/catalog.db", data_dir=tmp_path)
        try:
            assert info.persistent is True
            assert info.resolved_path == str((tmp_path / "nested" / "catalog.db").resolve())
            assert (tmp_path / "nested").is_dir()
        finally:
            conn.close()

    def test_sqlite_url(self, tmp_path):
        target = tmp_path / "x.db"
        conn, info = create_connection(f"sqlite:///{target}")
        conn.close()
        assert info.resolved_path == str(target.resolve())

    def test_unknown_scheme(self):
        with pytest.raises(ConfigError):
            create_connection("mysql://h/db")

    def test_postgres_without_sqlalchemy(self):
        with patch.dict(sys.modules, {"natkey.core.orm": None}):
            with pytest.raises(DependencyMissingError) as exc_info:
                create_connection("postgresql://u:p@localhost/db")
        assert exc_info.value.dependency == "sqlalchemy"


class TestSqliteConnection:
    def test_rows_by_name(self):
        conn = SqliteConnection()
        conn.execute("SELECT 1 AS one")
        row = conn.fetchone()
        assert row["one"] == 1

    def test_driver_error_wrapped(self):
        conn = SqliteConnection()
        with pytest.raises(BackendUnavailableError) as exc_info:
            conn.execute("SELECT * FROM missing_table")
        assert isinstance(exc_info.value.cause, sqlite3.Error)

    def test_executescript(self):
        conn = SqliteConnection()
        conn.executescript("CREATE TABLE t (id INTEGER); INSERT INTO t VALUES (1);")
        conn.execute("SELECT id FROM t")
        assert [tuple(r) for r in conn.fetchall()] == [(1,)]

    def test_each_execute_has_its_own_cursor(self):
        conn = SqliteConnection()
        conn.executescript("CREATE TABLE t (id INTEGER); INSERT INTO t VALUES (1), (2), (3);")
        first = conn.execute("SELECT id FROM t ORDER BY id")
        assert first.fetchone()["id"] == 1
        second = conn.execute("SELECT COUNT(*) AS n FROM t")
        assert second.fetchone()["n"] == 3
        assert [r["id"] for r in first.fetchall()] == [2, 3]

    def test_fetch_reads_the_calling_threads_statement(self):
        conn = SqliteConnection()
        conn.execute("SELECT 'main' AS who")
        seen = []
        worker = threading.Thread(
            target=lambda: (conn.execute("SELECT 'worker' AS who"), seen.append(conn.fetchone()["who"]))
        )
        worker.start()
        worker.join()
        assert seen == ["worker"]
        assert conn.fetchone()["who"] == "main"
