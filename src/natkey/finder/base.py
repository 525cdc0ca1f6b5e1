"""
Finder base class.

A Finder stands for one entity of a domain (a catalog, a user group). It is
built from a filter that identifies the entity either directly (``{"id": 5}``)
or by its natural key (``{"type": "catalog", "code": "main"}``), and answers
lookups about that entity from cached shard indexes.

Manifesto:
    - **Identity first:** A constructed Finder always knows its id
    - **Validate before access:** Bad filters fail before any cache read
    - **No partial objects:** Construction either resolves identity or raises
    - **Shared state outside:** Shards live in the injected coordinator

Architecture:
    ::

        Finder(filter, cache=CacheCoordinator, source=BulkLoader)
          1. cache / source present?          → DependencyMissingError
          2. prepare_filter(filter)           → InvalidFilterError
          3. id given, or natural key present → MissingCriterionError
          4. source.ensure_available()        → DependencyMissingError
          5. id unknown → resolve(ID)         → NotFoundError

        Subclass contract:
          cache_dir    : str                      cache namespace
          natural_key  : tuple[str, ...]          criteria replacing "id"
          shard_map    : Mapping[LookupKind, str] kind → shard
          index_types  : Mapping[str, type]       shard → index class
          extract(index, request)                 index traversal

Tags:
    finder, identity, lookup, natkey
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from natkey.core.errors import DependencyMissingError, MissingCriterionError, NotFoundError
from natkey.core.logging import get_logger
from natkey.core.protocols import BulkLoader, ShardLoad
from natkey.finder.coordinator import CacheCoordinator
from natkey.finder.filters import normalize_filter
from natkey.finder.lookups import LookupKind, LookupRequest, resolve_shard

logger = get_logger(__name__)


class Finder(ABC):
    """Abstract Finder bound to one entity of a domain."""

    cache_dir: ClassVar[str]
    natural_key: ClassVar[tuple[str, ...]]
    shard_map: ClassVar[Mapping[LookupKind, str]]
    index_types: ClassVar[Mapping[str, type]]

    def __init__(
        self,
        filter: Mapping[str, Any],
        *,
        cache: CacheCoordinator | None,
        source: BulkLoader | None,
    ) -> None:
        if cache is None:
            raise DependencyMissingError("cache", f"{type(self).__name__} requires a CacheCoordinator")
        if source is None:
            raise DependencyMissingError("source", f"{type(self).__name__} requires a data source")
        self._cache = cache
        self._source = source

        self.filter = self.prepare_filter(filter)
        self._id: int | None = self.filter.get("id")

        if self._id is None:
            for criterion in self.natural_key:
                if criterion not in self.filter:
                    raise MissingCriterionError(criterion)

        self._source.ensure_available()

        if self._id is None:
            self._id = self.get_from_cache(LookupRequest.for_id())
            logger.debug("identity_resolved", finder=type(self).__name__, id=self._id)

    def prepare_filter(self, filter: Mapping[str, Any]) -> dict[str, Any]:
        """Validate and normalize the constructor filter."""
        return normalize_filter(filter)

    # -- Public ------------------------------------------------------------

    def id(self) -> int:
        """Numeric id of the entity."""
        return self._id  # type: ignore[return-value]

    def identity(self) -> dict[str, Any]:
        """What is known about this entity so far (for messages and logs)."""
        known = {name: self.filter[name] for name in self.natural_key if name in self.filter}
        if self._id is not None:
            known["id"] = self._id
        return known

    # -- Engine hooks --------------------------------------------------------

    @classmethod
    def shard_for(cls, kind: LookupKind) -> str:
        return resolve_shard(cls.shard_map, kind)

    @classmethod
    def decode_index(cls, shard: str, raw: Mapping[str, Any]) -> Any:
        """Rebuild an index from the JSON structure a serializing store returns."""
        return cls.index_types[shard].from_dict(raw)

    def load_shard(self, shard: str) -> ShardLoad:
        return self._source.load(shard)

    def get_from_cache(self, request: LookupRequest) -> Any:
        return self._cache.resolve(self, request)

    def not_found(self, request: LookupRequest, detail: str) -> NotFoundError:
        """Build the error for a key path that stops at ``detail``."""
        criteria = self.identity() | request.criteria()
        return NotFoundError(
            f"{type(self).__name__} {request.kind.value} not found by {criteria}: {detail}",
            kind=request.kind.value,
            criteria=criteria,
        ).with_context(
            finder=type(self).__name__,
            directory=self.cache_dir,
            shard=self.shard_for(request.kind),
        )

    @abstractmethod
    def extract(self, index: Any, request: LookupRequest) -> Any:
        """Pull the requested scalar out of a shard index.

        Raise :class:`~natkey.core.errors.NotFoundError` at the first missing
        step; return the value otherwise.
        """

    @classmethod
    def clear_cache(cls, cache: CacheCoordinator, shard: str | None = None) -> int:
        """Drop this Finder family's shards from ``cache``."""
        return cache.clear(cls.cache_dir, shard)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identity()!r})"


__all__ = [
    "Finder",
]
