"""Tag naming and invalidation helpers for writers.

Code that creates, updates or deletes entities calls these so the shards
that saw those entities go cold. A shard registers one tag per entity it
indexed plus a ``<prefix>_new`` sentinel: a newly created entity could turn
a previous miss into a hit, so creation expires every shard of the family.
"""

from __future__ import annotations

from natkey.finder.coordinator import CacheCoordinator


class EntityTags:
    """Tag names for one entity family, e.g. ``entity_id_5`` / ``entity_id_new``."""

    def __init__(self, prefix: str):
        self.prefix = prefix

    def entity(self, entity_id: int) -> str:
        return f"{self.prefix}_{int(entity_id)}"

    @property
    def new(self) -> str:
        return f"{self.prefix}_new"


class TagInvalidator:
    """Expire Finder shards after writes to an entity family."""

    def __init__(self, cache: CacheCoordinator, tags: EntityTags):
        self.cache = cache
        self.tags = tags

    def created(self) -> int:
        return self.cache.invalidate([self.tags.new])

    def updated(self, entity_id: int) -> int:
        return self.cache.invalidate([self.tags.entity(entity_id)])

    def deleted(self, entity_id: int) -> int:
        return self.cache.invalidate([self.tags.entity(entity_id)])


__all__ = [
    "EntityTags",
    "TagInvalidator",
]
