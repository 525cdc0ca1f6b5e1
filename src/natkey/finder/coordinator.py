"""
Cache coordinator — the get-or-populate engine behind every Finder.

Manifesto:
    A Finder answers many small questions ("what is the id of catalog/main?")
    from one bulk read. The coordinator makes sure that bulk read happens once
    per shard per invalidation epoch, no matter how many Finders or threads ask.

Architecture:
    ::

        finder.accessor()
            │
            ▼
        CacheCoordinator.resolve(finder, request)
            1. shard = finder.shard_for(request.kind)
            2. store.get(dir, shard) ──hit──────────────────────┐
            3.   miss → with store.lock(dir, shard):            │
                          re-check store ──hit─────────────────┤
                          load = finder.load_shard(shard)       │
                          store.set(dir, shard, index, tags)    │
            4. value = finder.extract(index, request)  ◄────────┘
            5. empty / zero → NotFoundError

    Shard states: Cold → Populating (lock held) → Warm. Invalidation returns a
    shard to Cold; the next reader repopulates it.

Guardrails:
    ❌ DON'T: Store a partially built index or a failed load
    ✅ DO: Let loader errors propagate; nothing is written to the store

Tags:
    cache, single-flight, coordinator, finder, natkey
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from natkey.core.errors import NotFoundError
from natkey.core.logging import get_logger
from natkey.core.protocols import TaggedCacheStore
from natkey.core.settings import FinderSettings
from natkey.finder.lookups import LookupRequest

if TYPE_CHECKING:
    from natkey.finder.base import Finder

logger = get_logger(__name__)


@dataclass
class CoordinatorStats:
    """Counters for cache behaviour."""

    hits: int = 0
    misses: int = 0
    loads: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    def as_dict(self) -> dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "loads": self.loads}


class CacheCoordinator:
    """Serve Finder lookups from a tagged cache, populating shards on demand.

    One coordinator is shared by every Finder in a process (or request scope);
    its store holds the shard indexes.

    Args:
        store: Any :class:`~natkey.core.protocols.TaggedCacheStore`.
        ttl_seconds: Lifetime of stored shards; ``None`` → until invalidated.
    """

    def __init__(self, store: TaggedCacheStore, *, ttl_seconds: int | None = None):
        self._store = store
        self._ttl = ttl_seconds
        self.stats = CoordinatorStats()

    @classmethod
    def from_settings(cls, settings: FinderSettings | None = None) -> CacheCoordinator:
        """Build a coordinator over the cache named by ``settings.cache_url``."""
        from natkey.core.cache import create_cache

        settings = settings or FinderSettings()
        return cls(create_cache(settings), ttl_seconds=settings.cache_ttl_seconds)

    @property
    def store(self) -> TaggedCacheStore:
        return self._store

    def resolve(self, finder: Finder, request: LookupRequest) -> Any:
        """Resolve one scalar for ``finder``.

        Raises:
            NotFoundError: The loaded index holds no value for the request.
            BackendUnavailableError: Loading or cache access failed.
        """
        shard = finder.shard_for(request.kind)
        index = self.get_index(finder, shard)
        value = finder.extract(index, request)
        if value is None or value == 0 or value == "":
            criteria = finder.identity() | request.criteria()
            raise NotFoundError(
                f"{type(finder).__name__} {request.kind.value} not found by {criteria}",
                kind=request.kind.value,
                criteria=criteria,
            ).with_context(finder=type(finder).__name__, directory=finder.cache_dir, shard=shard)
        return value

    def get_index(self, finder: Finder, shard: str) -> Any:
        """Return the warm index for ``shard``, loading it if cold."""
        directory = finder.cache_dir
        index = self._read(finder, directory, shard)
        if index is not None:
            self.stats.record("hits")
            return index

        with self._store.lock(directory, shard):
            index = self._read(finder, directory, shard)
            if index is not None:
                self.stats.record("hits")
                return index

            self.stats.record("misses")
            logger.debug("shard_miss", directory=directory, shard=shard)
            load = finder.load_shard(shard)

            payload = load.index.to_dict() if self._store.serializes_values else load.index
            self._store.set(directory, shard, payload, tags=load.tags, ttl_seconds=self._ttl)
            self.stats.record("loads")
            logger.info("shard_loaded", directory=directory, shard=shard, tags=len(load.tags))
            return load.index

    def invalidate(self, tags: Iterable[str]) -> int:
        """Expire every shard registered under any of ``tags``."""
        tags = list(tags)
        removed = self._store.invalidate(tags)
        logger.info("tags_invalidated", tags=tags, removed=removed)
        return removed

    def clear(self, directory: str, shard: str | None = None) -> int:
        """Drop one shard, or all shards of a Finder family."""
        removed = self._store.clear_directory(directory, shard)
        logger.info("cache_cleared", directory=directory, shard=shard, removed=removed)
        return removed

    def _read(self, finder: Finder, directory: str, shard: str) -> Any | None:
        raw = self._store.get(directory, shard)
        if raw is None:
            return None
        if self._store.serializes_values:
            return finder.decode_index(shard, raw)
        return raw


__all__ = [
    "CoordinatorStats",
    "CacheCoordinator",
]
