"""SQLAlchemy adapter for non-SQLite backing stores.

PostgreSQL (or anything SQLAlchemy can reach) backs a source through the same
:class:`~natkey.core.protocols.Connection` protocol as :class:`SqliteConnection`:
sources keep writing ``?`` placeholders and reading rows by column name.

Requires the ``postgres`` extra::

    pip install natkey[postgres]
"""

from __future__ import annotations

import re
import threading
from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from natkey.core.errors import BackendUnavailableError

_QMARK = re.compile(r"\?")


def create_natkey_engine(url: str, *, echo: bool = False, **engine_kwargs: Any) -> Engine:
    """Engine for ``url``; server databases get ``pool_pre_ping``."""
    if url.startswith("sqlite"):
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        engine_kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, echo=echo, **engine_kwargs)


def _rewrite_positional(sql: str) -> str:
    """``a = ? AND b = ?`` -> ``a = :p0 AND b = :p1``"""
    counter = iter(range(sql.count("?")))
    return _QMARK.sub(lambda _: f":p{next(counter)}", sql)


class _BufferedRows:
    """Rows of one statement, read after the session has moved on."""

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self._rows = iter(rows)

    def fetchone(self) -> dict[str, Any] | None:
        return next(self._rows, None)

    def fetchall(self) -> list[dict[str, Any]]:
        return list(self._rows)


class SAConnectionBridge:
    """A SQLAlchemy ``Session`` behind the ``Connection`` protocol.

    A ``Session`` is not thread-safe, so statements run one at a time and
    each result is buffered into its own cursor before the lock is released.
    A failed statement rolls the session back before the error is raised so
    the next lookup starts on a clean transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._lock = threading.RLock()
        self._local = threading.local()

    def execute(self, sql: str, parameters: Sequence[Any] | None = None) -> _BufferedRows:
        statement = text(_rewrite_positional(sql)) if parameters else text(sql)
        bound = {f"p{n}": value for n, value in enumerate(parameters or ())}
        with self._lock:
            try:
                result = self._session.execute(statement, bound or None)
                rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
            except SQLAlchemyError as exc:
                self._session.rollback()
                raise BackendUnavailableError(f"Query failed: {exc}", cause=exc) from exc
        cursor = _BufferedRows(rows)
        self._local.last = cursor
        return cursor

    def fetchone(self) -> dict[str, Any] | None:
        last = getattr(self._local, "last", None)
        return None if last is None else last.fetchone()

    def fetchall(self) -> list[dict[str, Any]]:
        last = getattr(self._local, "last", None)
        return [] if last is None else last.fetchall()

    def commit(self) -> None:
        with self._lock:
            self._session.commit()

    def rollback(self) -> None:
        with self._lock:
            self._session.rollback()

    @property
    def session(self) -> Session:
        return self._session


__all__ = [
    "create_natkey_engine",
    "SAConnectionBridge",
]
