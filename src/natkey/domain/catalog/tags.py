"""Invalidation tags for the catalog domain.

Writers call :class:`CatalogInvalidator` after touching the ``catalogs``,
``catalog_fields`` or ``catalog_field_enums`` tables:

    >>> invalidator = CatalogInvalidator(cache)
    >>> invalidator.created()          # new catalog: every shard may now hit
    >>> invalidator.updated(5)         # shards that indexed catalog 5
    >>> invalidator.field_created()    # new field or enum value
    >>> invalidator.field_changed(5)   # field of catalog 5 renamed or removed
"""

from __future__ import annotations

from natkey.finder.coordinator import CacheCoordinator
from natkey.finder.invalidation import EntityTags, TagInvalidator

CATALOG_TAGS = EntityTags("entity_id")
FIELD_TAGS = EntityTags("field_id")

ENTITY_NEW_TAG = CATALOG_TAGS.new
FIELD_NEW_TAG = FIELD_TAGS.new


def entity_tag(catalog_id: int) -> str:
    """Tag registered for one catalog, e.g. ``entity_id_5``."""
    return CATALOG_TAGS.entity(catalog_id)


class CatalogInvalidator(TagInvalidator):
    """Tag invalidation for catalog writers."""

    def __init__(self, cache: CacheCoordinator):
        super().__init__(cache, CATALOG_TAGS)

    def field_created(self) -> int:
        return self.cache.invalidate([FIELD_NEW_TAG])

    def field_changed(self, catalog_id: int) -> int:
        # The props shard is tagged by owning catalog, not by field.
        return self.cache.invalidate([entity_tag(catalog_id)])


__all__ = [
    "CATALOG_TAGS",
    "ENTITY_NEW_TAG",
    "FIELD_NEW_TAG",
    "entity_tag",
    "CatalogInvalidator",
]
