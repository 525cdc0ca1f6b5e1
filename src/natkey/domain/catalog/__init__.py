"""
Catalog domain: catalogs, their fields and field enum values.
"""

from natkey.domain.catalog.finder import CatalogFinder
from natkey.domain.catalog.indexes import EntityIndex, PropertyIndex
from natkey.domain.catalog.source import CatalogSource, apply_catalog_schema
from natkey.domain.catalog.tags import (
    ENTITY_NEW_TAG,
    FIELD_NEW_TAG,
    CatalogInvalidator,
    entity_tag,
)

__all__ = [
    "CatalogFinder",
    "CatalogSource",
    "apply_catalog_schema",
    "EntityIndex",
    "PropertyIndex",
    "CatalogInvalidator",
    "entity_tag",
    "ENTITY_NEW_TAG",
    "FIELD_NEW_TAG",
]
