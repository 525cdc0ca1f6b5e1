"""Backing-store connections for natkey sources.

``create_connection(url)`` returns ``(conn, ConnectionInfo)``; ``conn``
satisfies :class:`~natkey.core.protocols.Connection` and ``info.backend``
(``"sqlite"`` or ``"postgresql"``) is what :class:`BaseRepository` needs to
pick its introspection SQL.

URLs::

    None / "memory" / ":memory:" / "sqlite://"   in-memory SQLite
    "sqlite:///data/catalog.db"                   SQLite file
    "./data/catalog.db"                           SQLite file (relative to data_dir)
    "postgresql://user:pw@host/db"                PostgreSQL via SQLAlchemy
    "postgres://…", "postgresql+psycopg://…"      PostgreSQL via SQLAlchemy

Example::

    conn, info = create_connection(settings.database_url, data_dir=settings.data_dir)
    source = CatalogSource(conn, info.backend)

A missing driver raises ``DependencyMissingError``; a refused connection
raises ``BackendUnavailableError``. There is no fallback backend.
"""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from natkey.core.errors import BackendUnavailableError, ConfigError, DependencyMissingError
from natkey.core.logging import get_logger

logger = get_logger(__name__)

_MEMORY_ALIASES = ("", "memory", ":memory:")
_POSTGRES_PREFIXES = ("postgresql://", "postgres://", "postgresql+", "postgres+")


@dataclass(frozen=True)
class ConnectionInfo:
    """What ``create_connection`` opened.

    Attributes:
        backend: ``"sqlite"`` or ``"postgresql"``
        persistent: False only for in-memory SQLite
        url: URL or path as given
        resolved_path: Absolute path of a SQLite file
    """

    backend: str
    persistent: bool
    url: str
    resolved_path: str | None = None

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgres(self) -> bool:
        return self.backend == "postgresql"


class _SqliteCursor:
    """One statement's cursor; driver errors surface as ``BackendUnavailableError``."""

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor

    def fetchone(self) -> Any:
        try:
            return self._cursor.fetchone()
        except sqlite3.Error as exc:
            raise BackendUnavailableError(f"SQLite fetch failed: {exc}", cause=exc) from exc

    def fetchall(self) -> list:
        try:
            return self._cursor.fetchall()
        except sqlite3.Error as exc:
            raise BackendUnavailableError(f"SQLite fetch failed: {exc}", cause=exc) from exc

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount


class SqliteConnection:
    """``sqlite3`` behind the :class:`Connection` protocol.

    Every ``execute`` opens its own cursor, so the ``default`` and ``props``
    scans of one source can run in different threads at the same time.
    ``fetchone``/``fetchall`` on the connection read the calling thread's
    last cursor. Rows are ``sqlite3.Row`` so sources read columns by name.
    """

    def __init__(self, path: str = ":memory:", *, row_factory: Any = sqlite3.Row) -> None:
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise BackendUnavailableError(f"Cannot open SQLite database {path}: {exc}", cause=exc) from exc
        self._conn.row_factory = row_factory
        self._local = threading.local()

    def execute(self, sql: str, params: tuple = ()) -> _SqliteCursor:
        try:
            cursor = _SqliteCursor(self._conn.execute(sql, params))
        except sqlite3.Error as exc:
            raise BackendUnavailableError(f"SQLite query failed: {exc}", cause=exc) from exc
        self._local.last = cursor
        return cursor

    def executescript(self, script: str) -> None:
        try:
            self._conn.executescript(script)
        except sqlite3.Error as exc:
            raise BackendUnavailableError(f"SQLite script failed: {exc}", cause=exc) from exc

    def fetchone(self) -> Any:
        last = getattr(self._local, "last", None)
        return None if last is None else last.fetchone()

    def fetchall(self) -> list:
        last = getattr(self._local, "last", None)
        return [] if last is None else last.fetchall()

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    @property
    def raw(self) -> sqlite3.Connection:
        """The wrapped ``sqlite3.Connection``."""
        return self._conn


def _parse_url(db: str | None) -> tuple[str, str]:
    """Split ``db`` into ``(scheme, target)``.

    ``scheme`` is ``memory``, ``sqlite``, ``file``, ``postgresql`` or
    ``unknown``.
    """
    if db is None or db in _MEMORY_ALIASES:
        return "memory", ":memory:"
    if db.startswith(_POSTGRES_PREFIXES):
        return "postgresql", db
    if db.startswith("sqlite://"):
        path = db.removeprefix("sqlite://").removeprefix("/")
        return ("memory", ":memory:") if path in _MEMORY_ALIASES else ("sqlite", path)
    if "://" in db:
        return "unknown", db
    return "file", db


def _open_sqlite_file(target: str, url: str) -> tuple[SqliteConnection, ConnectionInfo]:
    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    resolved = str(path.resolve())
    info = ConnectionInfo(backend="sqlite", persistent=True, url=url, resolved_path=resolved)
    return SqliteConnection(resolved), info


def _open_postgresql(url: str) -> tuple[Any, ConnectionInfo]:
    try:
        from natkey.core.orm import SAConnectionBridge, create_natkey_engine
    except ImportError as exc:
        raise DependencyMissingError(
            "sqlalchemy",
            "PostgreSQL support requires SQLAlchemy. Install with: pip install natkey[postgres]",
            cause=exc,
        ) from exc

    from sqlalchemy.exc import SQLAlchemyError
    from sqlalchemy.orm import Session

    try:
        session = Session(bind=create_natkey_engine(url), expire_on_commit=False)
        session.connection()
    except SQLAlchemyError as exc:
        raise BackendUnavailableError(f"Cannot connect to PostgreSQL: {exc}", cause=exc) from exc
    return SAConnectionBridge(session), ConnectionInfo(backend="postgresql", persistent=True, url=url)


def create_connection(
    db: str | None = None,
    *,
    data_dir: str | Path | None = None,
) -> tuple[Any, ConnectionInfo]:
    """Open the backing store named by ``db``.

    Args:
        db: URL, path or ``"memory"`` (see module docstring).
        data_dir: Base directory for relative SQLite paths.

    Raises:
        ConfigError: Unrecognized URL scheme.
        DependencyMissingError: PostgreSQL requested without SQLAlchemy.
        BackendUnavailableError: The store could not be opened or reached.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        conn, info = SqliteConnection(":memory:"), ConnectionInfo("sqlite", False, ":memory:")
    elif scheme in ("sqlite", "file"):
        if data_dir is not None and not Path(target).is_absolute():
            target = str(Path(data_dir) / target)
        conn, info = _open_sqlite_file(target, db or target)
    elif scheme == "postgresql":
        conn, info = _open_postgresql(target)
    else:
        raise ConfigError(f"Unsupported database URL: {target!r}")

    logger.debug("connection_opened", backend=info.backend, persistent=info.persistent)
    return conn, info


__all__ = [
    "ConnectionInfo",
    "SqliteConnection",
    "create_connection",
]
