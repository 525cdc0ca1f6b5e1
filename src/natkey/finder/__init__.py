"""
Finder engine: filters, lookup routing, the cache coordinator and the
abstract :class:`Finder`.
"""

from natkey.finder.base import Finder
from natkey.finder.coordinator import CacheCoordinator, CoordinatorStats
from natkey.finder.filters import normalize_filter
from natkey.finder.invalidation import EntityTags, TagInvalidator
from natkey.finder.lookups import (
    DEFAULT_SHARD,
    ENTITY_SHARDS,
    PROPS_SHARD,
    LookupKind,
    LookupRequest,
)

__all__ = [
    "Finder",
    "CacheCoordinator",
    "CoordinatorStats",
    "normalize_filter",
    "EntityTags",
    "TagInvalidator",
    "DEFAULT_SHARD",
    "PROPS_SHARD",
    "ENTITY_SHARDS",
    "LookupKind",
    "LookupRequest",
]
