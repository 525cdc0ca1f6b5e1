"""natkey core -- domain-agnostic primitives the Finder engine builds on.

Architecture::

    errors.py       Structured error hierarchy (NatkeyError and subclasses)
    logging.py      structlog configuration and get_logger()
    settings.py     pydantic-settings (NATKEY_ env prefix)
    protocols.py    Connection, TaggedCacheStore, BulkLoader
    cache.py        InMemoryTaggedCache, RedisTaggedCache, create_cache()
    connection.py   SqliteConnection, create_connection()
    repository.py   BaseRepository (forward-cursor scans, schema DDL)
    orm.py          SQLAlchemy bridge for PostgreSQL (optional extra)

``orm`` is not imported here; it loads only when a PostgreSQL URL is used.
"""

from natkey.core.cache import InMemoryTaggedCache, RedisTaggedCache, cache_key, create_cache
from natkey.core.connection import ConnectionInfo, SqliteConnection, create_connection
from natkey.core.errors import (
    BackendUnavailableError,
    ConfigError,
    DependencyMissingError,
    ErrorCategory,
    ErrorContext,
    InvalidFilterError,
    MissingCriterionError,
    NatkeyError,
    NotFoundError,
    ValidationError,
    categorize_error,
    is_retryable,
)
from natkey.core.logging import configure_logging, get_logger
from natkey.core.protocols import BulkLoader, Connection, ShardLoad, TaggedCacheStore
from natkey.core.repository import BaseRepository
from natkey.core.settings import FinderSettings, NatkeyBaseSettings

__all__ = [
    # cache
    "InMemoryTaggedCache",
    "RedisTaggedCache",
    "cache_key",
    "create_cache",
    # connection
    "ConnectionInfo",
    "SqliteConnection",
    "create_connection",
    # errors
    "NatkeyError",
    "ValidationError",
    "InvalidFilterError",
    "MissingCriterionError",
    "NotFoundError",
    "BackendUnavailableError",
    "ConfigError",
    "DependencyMissingError",
    "ErrorCategory",
    "ErrorContext",
    "categorize_error",
    "is_retryable",
    # logging
    "configure_logging",
    "get_logger",
    # protocols
    "BulkLoader",
    "Connection",
    "ShardLoad",
    "TaggedCacheStore",
    # repository / settings
    "BaseRepository",
    "FinderSettings",
    "NatkeyBaseSettings",
]
