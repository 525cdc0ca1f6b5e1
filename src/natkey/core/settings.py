"""Settings for natkey Finders.

``NatkeyBaseSettings`` carries the fields every deployment needs (log level,
data directory); ``FinderSettings`` adds the cache and backing-store knobs
read by :func:`natkey.core.cache.create_cache` and
:func:`natkey.core.connection.create_connection`.

Features:
    - **Pydantic validation:** Type-checked when the settings object is built
    - **Environment-driven:** ``NATKEY_`` prefixed env vars and ``.env`` files
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from natkey.core.settings import FinderSettings
    >>> settings = FinderSettings(cache_url="redis://localhost:6379/0")
    >>> settings.cache_ttl_seconds
    8035200

Tags:
    settings, configuration, pydantic, environment, natkey
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Roughly three months: shards are normally expired by tags, not by time.
DEFAULT_CACHE_TTL_SECONDS = 8035200


class NatkeyBaseSettings(BaseSettings):
    """Common settings shared by every natkey deployment.

    Fields
    ──────
    debug        : Enable debug mode (verbose logging, etc.)
    log_level    : Structlog log level
    json_logs    : Force JSON (True) or console (False) rendering; None → auto
    data_dir     : Directory for file-based SQLite databases
    """

    model_config = SettingsConfigDict(
        env_prefix="NATKEY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".natkey",
        description="Directory for file-based SQLite databases",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return value


class FinderSettings(NatkeyBaseSettings):
    """Cache and backing-store configuration for Finders.

    Fields
    ──────
    cache_url            : ``memory`` or ``redis://host:port/db``
    cache_key_prefix     : Prefix for every key written to a shared cache
    cache_ttl_seconds    : Shard lifetime; ``None`` → until invalidated
    lock_timeout_seconds : Upper bound on a single shard population
    database_url         : Backing store (``memory``, SQLite path, PostgreSQL URL)
    """

    # ── Cache ────────────────────────────────────────────────────
    cache_url: str = "memory"
    cache_key_prefix: str = "natkey"
    cache_ttl_seconds: int | None = DEFAULT_CACHE_TTL_SECONDS
    lock_timeout_seconds: float = Field(default=60.0, gt=0)

    # ── Backing store ────────────────────────────────────────────
    database_url: str = "memory"

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _positive_ttl(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            return None
        return value


__all__ = [
    "DEFAULT_CACHE_TTL_SECONDS",
    "NatkeyBaseSettings",
    "FinderSettings",
]
