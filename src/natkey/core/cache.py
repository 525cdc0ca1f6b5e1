"""
Tagged cache stores for Finder shards.

A shard index lives under ``(directory, shard)`` and is registered against a
set of invalidation tags. Writers elsewhere in the system invalidate a tag
(``entity_id_5``) and every shard that saw that entity goes cold.

Architecture:
    ::

        TaggedCacheStore (Protocol, natkey.core.protocols)
        ├── InMemoryTaggedCache — single process, thread-safe
        └── RedisTaggedCache    — shared, JSON values, tag membership sets

        API: get(directory, shard) → value | None
             set(directory, shard, value, tags=..., ttl_seconds=...)
             invalidate(tags) → removed count
             clear_directory(directory, shard=None) → removed count
             lock(directory, shard) → context manager

Features:
    - **Tag invalidation:** tag → keys membership, one call expires many shards
    - **TTL support:** Optional per-value expiry, lazily checked on get
    - **Populate lock:** Per-key lock so a cold shard is loaded at most once

Examples:
    >>> from natkey.core.cache import InMemoryTaggedCache
    >>> cache = InMemoryTaggedCache()
    >>> cache.set("natkey/catalogs", "default", {"x": 1}, tags={"entity_id_5"})
    >>> cache.get("natkey/catalogs", "default")
    {'x': 1}
    >>> cache.invalidate({"entity_id_5"})
    1
    >>> cache.get("natkey/catalogs", "default") is None
    True

Guardrails:
    ❌ DON'T: Use InMemoryTaggedCache across processes (no sharing)
    ✅ DO: Use RedisTaggedCache when several workers resolve the same keys

Tags:
    cache, tags, invalidation, redis, in-memory, natkey
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from natkey.core.errors import BackendUnavailableError, ConfigError, DependencyMissingError
from natkey.core.logging import get_logger
from natkey.core.settings import FinderSettings

logger = get_logger(__name__)


def cache_key(directory: str, shard: str, prefix: str = "") -> str:
    """Build the storage key for one shard."""
    key = f"{directory}:{shard}"
    return f"{prefix}:{key}" if prefix else key


def _text(value: str | bytes) -> str:
    return value.decode() if isinstance(value, bytes) else value


# ------------------------------------------------------------------ #
# In-Memory Tagged Cache
# ------------------------------------------------------------------ #


class InMemoryTaggedCache:
    """Process-local tagged cache.

    Values are stored as-is (no serialization), so a warm shard is the same
    immutable index object for every reader.

    Attributes:
        serializes_values: ``False`` — values round-trip by reference.
    """

    serializes_values = False

    def __init__(self) -> None:
        self._store: dict[str, tuple[Any, float | None]] = {}
        self._tags: dict[str, set[str]] = {}
        self._key_tags: dict[str, set[str]] = {}
        self._lock = threading.RLock()
        self._key_locks: dict[str, threading.Lock] = {}

    def get(self, directory: str, shard: str) -> Any | None:
        """Return the stored value, or ``None`` when absent or expired."""
        key = cache_key(directory, shard)
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and time.time() > expires_at:
                self._drop(key)
                return None
            return value

    def set(
        self,
        directory: str,
        shard: str,
        value: Any,
        *,
        tags: Iterable[str] = (),
        ttl_seconds: int | None = None,
    ) -> None:
        """Store a value and register it under ``tags``."""
        key = cache_key(directory, shard)
        expires_at = (time.time() + ttl_seconds) if ttl_seconds else None
        with self._lock:
            self._drop(key)
            self._store[key] = (value, expires_at)
            key_tags = set(tags)
            self._key_tags[key] = key_tags
            for tag in key_tags:
                self._tags.setdefault(tag, set()).add(key)

    def invalidate(self, tags: Iterable[str]) -> int:
        """Drop every value registered under any of ``tags``."""
        removed = 0
        with self._lock:
            keys: set[str] = set()
            for tag in tags:
                keys |= self._tags.pop(tag, set())
            for key in keys:
                if self._drop(key):
                    removed += 1
        return removed

    def clear_directory(self, directory: str, shard: str | None = None) -> int:
        """Drop one shard, or every shard under ``directory``."""
        with self._lock:
            if shard is not None:
                return int(self._drop(cache_key(directory, shard)))
            prefix = f"{directory}:"
            keys = [k for k in self._store if k.startswith(prefix)]
            for key in keys:
                self._drop(key)
            return len(keys)

    @contextmanager
    def lock(self, directory: str, shard: str) -> Iterator[None]:
        """Hold the populate lock for ``(directory, shard)``."""
        key = cache_key(directory, shard)
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())
        with key_lock:
            yield

    def clear(self) -> None:
        """Remove all values and tags."""
        with self._lock:
            self._store.clear()
            self._tags.clear()
            self._key_tags.clear()

    def size(self) -> int:
        """Return current number of cached shards."""
        return len(self._store)

    def _drop(self, key: str) -> bool:
        existed = self._store.pop(key, None) is not None
        for tag in self._key_tags.pop(key, set()):
            members = self._tags.get(tag)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._tags[tag]
        return existed


# ------------------------------------------------------------------ #
# Redis Tagged Cache
# ------------------------------------------------------------------ #


class RedisTaggedCache:
    """Redis-backed tagged cache.

    Requires the ``redis`` package (``pip install natkey[redis]``).

    Layout (``prefix`` defaults to ``natkey``)::

        {prefix}:{directory}:{shard}   → JSON value (SET / SETEX)
        {prefix}:tag:{tag}             → SET of value keys
        {prefix}:dir:{directory}       → SET of value keys
        {prefix}:{directory}:{shard}:sets → SET of the tag/dir sets holding the key
        {prefix}:{directory}:{shard}:lock → redis-py Lock

    Values must be JSON-serializable; Finders store ``index.to_dict()``.

    Raises:
        DependencyMissingError: If ``redis`` package is not installed.
    """

    serializes_values = True

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        prefix: str = "natkey",
        lock_timeout_seconds: float = 60.0,
    ):
        try:
            import redis
        except ImportError as exc:
            raise DependencyMissingError(
                "redis",
                "Redis cache requires the 'redis' package. Install with: pip install natkey[redis]",
                cause=exc,
            ) from exc

        self._redis_error: type[Exception] = redis.RedisError
        self._lock_error: type[Exception] = redis.exceptions.LockError
        self._client = redis.from_url(url, decode_responses=False)
        self._prefix = prefix
        self._lock_timeout = lock_timeout_seconds

    def _tag_key(self, tag: str) -> str:
        return f"{self._prefix}:tag:{tag}"

    def _dir_key(self, directory: str) -> str:
        return f"{self._prefix}:dir:{directory}"

    @staticmethod
    def _sets_key(key: str) -> str:
        return f"{key}:sets"

    def _forget(self, keys: list[str]) -> int:
        """Delete ``keys`` and take them out of every tag and directory set."""
        if not keys:
            return 0
        pipe = self._client.pipeline()
        for key in keys:
            pipe.smembers(self._sets_key(key))
        memberships = pipe.execute()

        pipe = self._client.pipeline()
        for key, set_keys in zip(keys, memberships):
            for set_key in set_keys:
                pipe.srem(_text(set_key), key)
        pipe.delete(*[self._sets_key(key) for key in keys])
        pipe.delete(*keys)
        return int(pipe.execute()[-1])

    @contextmanager
    def _backend_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except self._redis_error as exc:
            raise BackendUnavailableError(
                f"Redis {operation} failed: {exc}", cause=exc
            ) from exc

    def get(self, directory: str, shard: str) -> Any | None:
        """Retrieve and decode a value."""
        with self._backend_errors("get"):
            raw = self._client.get(cache_key(directory, shard, self._prefix))
        if raw is None:
            return None
        return json.loads(raw)

    def set(
        self,
        directory: str,
        shard: str,
        value: Any,
        *,
        tags: Iterable[str] = (),
        ttl_seconds: int | None = None,
    ) -> None:
        """Store a JSON value and register its key in each tag set.

        Memberships of a previous value under the same key are dropped first,
        so a key sits only in the sets of its current tags.
        """
        key = cache_key(directory, shard, self._prefix)
        serialized = json.dumps(value)
        set_keys = [self._tag_key(tag) for tag in tags]
        set_keys.append(self._dir_key(directory))
        with self._backend_errors("set"):
            self._forget([key])
            pipe = self._client.pipeline()
            if ttl_seconds:
                pipe.setex(key, ttl_seconds, serialized)
            else:
                pipe.set(key, serialized)
            for set_key in set_keys:
                pipe.sadd(set_key, key)
            pipe.sadd(self._sets_key(key), *set_keys)
            pipe.execute()

    def invalidate(self, tags: Iterable[str]) -> int:
        """Delete every value registered under any of ``tags``."""
        tag_keys = [self._tag_key(tag) for tag in tags]
        if not tag_keys:
            return 0
        with self._backend_errors("invalidate"):
            members: set[str] = set()
            for tag_key in tag_keys:
                members |= {_text(m) for m in self._client.smembers(tag_key)}
            removed = self._forget(sorted(members))
            self._client.delete(*tag_keys)
        return removed

    def clear_directory(self, directory: str, shard: str | None = None) -> int:
        """Delete one shard, or every shard recorded for ``directory``."""
        with self._backend_errors("clear"):
            if shard is not None:
                return self._forget([cache_key(directory, shard, self._prefix)])
            dir_key = self._dir_key(directory)
            removed = self._forget(sorted(_text(m) for m in self._client.smembers(dir_key)))
            self._client.delete(dir_key)
            return removed

    @contextmanager
    def lock(self, directory: str, shard: str) -> Iterator[None]:
        """Distributed populate lock shared by every process on this Redis.

        A lock that expired while the shard was loading is only logged on
        release; the value was already stored by then.
        """
        name = f"{cache_key(directory, shard, self._prefix)}:lock"
        redis_lock = self._client.lock(
            name,
            timeout=self._lock_timeout,
            blocking_timeout=self._lock_timeout,
        )
        with self._backend_errors("lock"):
            acquired = redis_lock.acquire()
        if not acquired:
            raise BackendUnavailableError(
                f"Timed out waiting for populate lock {name}"
            )
        try:
            yield
        finally:
            try:
                redis_lock.release()
            except self._lock_error:
                logger.warning("populate_lock_lost", lock=name, timeout=self._lock_timeout)
            except self._redis_error as exc:
                raise BackendUnavailableError(f"Redis unlock failed: {exc}", cause=exc) from exc


# ------------------------------------------------------------------ #
# Factory
# ------------------------------------------------------------------ #


def create_cache(settings: FinderSettings | None = None) -> InMemoryTaggedCache | RedisTaggedCache:
    """Create the cache store named by ``settings.cache_url``.

    ``memory`` → :class:`InMemoryTaggedCache`;
    ``redis://`` / ``rediss://`` → :class:`RedisTaggedCache`.
    """
    settings = settings or FinderSettings()
    url = settings.cache_url

    if url in ("", "memory"):
        logger.debug("cache_created", backend="memory")
        return InMemoryTaggedCache()

    if url.startswith(("redis://", "rediss://", "unix://")):
        logger.debug("cache_created", backend="redis")
        return RedisTaggedCache(
            url,
            prefix=settings.cache_key_prefix,
            lock_timeout_seconds=settings.lock_timeout_seconds,
        )

    raise ConfigError(f"Unsupported cache URL: {url!r}")


__all__ = [
    "cache_key",
    "InMemoryTaggedCache",
    "RedisTaggedCache",
    "create_cache",
]
