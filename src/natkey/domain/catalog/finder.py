"""
Catalog Finder — resolve catalogs, their fields and enum values to ids.

A catalog is identified by ``{"id": 5}`` or by its natural key
``{"type": "catalog", "code": "main"}``. Fields are addressed by code within
their catalog, enum values by external key (``xml_id``) within their field.

Examples:
    >>> finder = CatalogFinder({"type": "catalog", "code": "main"},
    ...                        cache=coordinator, source=CatalogSource(conn))
    >>> finder.id()
    5
    >>> finder.field_id("COLOR")
    10
    >>> finder.field_enum_id("COLOR", "RED")
    100

Shards:
    ::

        natkey/catalogs:default  EntityIndex    id, type, code
        natkey/catalogs:props    PropertyIndex  field_id, field_enum_id

Tags:
    catalog, finder, natkey
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from natkey.finder.base import Finder
from natkey.finder.filters import normalize_text
from natkey.finder.lookups import (
    DEFAULT_SHARD,
    ENTITY_SHARDS,
    PROPS_SHARD,
    LookupKind,
    LookupRequest,
)
from natkey.domain.catalog.indexes import EntityIndex, PropertyIndex


class CatalogFinder(Finder):
    """Finder for one catalog."""

    cache_dir: ClassVar[str] = "natkey/catalogs"
    natural_key: ClassVar[tuple[str, ...]] = ("type", "code")
    shard_map: ClassVar[Mapping[LookupKind, str]] = ENTITY_SHARDS
    index_types: ClassVar[Mapping[str, type]] = {
        DEFAULT_SHARD: EntityIndex,
        PROPS_SHARD: PropertyIndex,
    }

    # -- Accessors ----------------------------------------------------------

    def type(self) -> str:
        """Catalog type, e.g. ``"catalog"``."""
        return self.get_from_cache(LookupRequest.for_type())

    def code(self) -> str:
        """Catalog code, e.g. ``"main"``."""
        return self.get_from_cache(LookupRequest.for_code())

    def field_id(self, code: Any) -> int:
        """Id of the field ``code`` of this catalog."""
        code = normalize_text("propCode", code)
        return self.get_from_cache(LookupRequest.for_prop_id(code))

    def field_enum_id(self, code: Any, external_key: Any) -> int:
        """Id of the enum value ``external_key`` of field ``code``."""
        code = normalize_text("propCode", code)
        external_key = normalize_text("valueXmlId", external_key)
        return self.get_from_cache(LookupRequest.for_prop_enum_id(code, external_key))

    # -- Extraction ---------------------------------------------------------

    def extract(self, index: Any, request: LookupRequest) -> Any:
        kind = request.kind
        if kind is LookupKind.ID:
            codes = self._step(index.by_type_code, self.filter["type"], request, "catalog type")
            return self._step(codes, self.filter["code"], request, "catalog code")
        if kind is LookupKind.TYPE:
            return self._step(index.type_by_id, self._id, request, "catalog id")
        if kind is LookupKind.CODE:
            return self._step(index.code_by_id, self._id, request, "catalog id")

        fields = self._step(index.prop_id_by_entity, self._id, request, "fields for catalog")
        field_id = self._step(fields, request.prop_code, request, "field code")
        if kind is LookupKind.PROP_ID:
            return field_id
        values = self._step(index.enum_id_by_prop, field_id, request, "enum values for field")
        return self._step(values, request.value_xml_id, request, "enum external key")

    def _step(self, mapping: Mapping[Any, Any], key: Any, request: LookupRequest, what: str) -> Any:
        value = mapping.get(key)
        if not value:
            raise self.not_found(request, f"no {what} {key!r}")
        return value


__all__ = [
    "CatalogFinder",
]
