"""Shard index records for the catalog domain.

Both indexes are immutable snapshots: nested mappings are wrapped in
``MappingProxyType`` at construction and the dataclasses are frozen. A
warm shard is therefore safe to share between threads without locking.

``to_dict`` / ``from_dict`` convert to and from JSON-safe structures (string
keys) for serializing cache stores such as Redis.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from natkey.finder.indexes import check_code, check_id, freeze, thaw


@dataclass(frozen=True)
class EntityIndex:
    """Default shard: catalogs by natural key and by id.

    Attributes:
        by_type_code: type → code → catalog id (only catalogs with a code)
        type_by_id: catalog id → type
        code_by_id: catalog id → code (only catalogs with a code)
    """

    by_type_code: Mapping[str, Mapping[str, int]]
    type_by_id: Mapping[int, str]
    code_by_id: Mapping[int, str]

    def __post_init__(self) -> None:
        for type_, codes in self.by_type_code.items():
            check_code(type_, "catalog type")
            for code, catalog_id in codes.items():
                check_code(code, "catalog code")
                check_id(catalog_id, "catalog id")
        for catalog_id, type_ in self.type_by_id.items():
            check_id(catalog_id, "catalog id")
            check_code(type_, "catalog type")
        for catalog_id, code in self.code_by_id.items():
            check_id(catalog_id, "catalog id")
            check_code(code, "catalog code")
        object.__setattr__(self, "by_type_code", freeze(self.by_type_code))
        object.__setattr__(self, "type_by_id", freeze(self.type_by_id))
        object.__setattr__(self, "code_by_id", freeze(self.code_by_id))

    def to_dict(self) -> dict[str, Any]:
        return {
            "by_type_code": thaw(self.by_type_code),
            "type_by_id": thaw(self.type_by_id),
            "code_by_id": thaw(self.code_by_id),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EntityIndex:
        return cls(
            by_type_code={
                t: {c: int(i) for c, i in codes.items()}
                for t, codes in data.get("by_type_code", {}).items()
            },
            type_by_id={int(i): t for i, t in data.get("type_by_id", {}).items()},
            code_by_id={int(i): c for i, c in data.get("code_by_id", {}).items()},
        )


@dataclass(frozen=True)
class PropertyIndex:
    """Props shard: fields per catalog and enum values per field.

    Attributes:
        prop_id_by_entity: catalog id → field code → field id
        enum_id_by_prop: field id → enum external key → enum value id
    """

    prop_id_by_entity: Mapping[int, Mapping[str, int]]
    enum_id_by_prop: Mapping[int, Mapping[str, int]]

    def __post_init__(self) -> None:
        for catalog_id, fields in self.prop_id_by_entity.items():
            check_id(catalog_id, "catalog id")
            for code, field_id in fields.items():
                check_code(code, "field code")
                check_id(field_id, "field id")
        for field_id, values in self.enum_id_by_prop.items():
            check_id(field_id, "field id")
            for xml_id, enum_id in values.items():
                check_code(xml_id, "enum external key")
                check_id(enum_id, "enum value id")
        object.__setattr__(self, "prop_id_by_entity", freeze(self.prop_id_by_entity))
        object.__setattr__(self, "enum_id_by_prop", freeze(self.enum_id_by_prop))

    def to_dict(self) -> dict[str, Any]:
        return {
            "prop_id_by_entity": thaw(self.prop_id_by_entity),
            "enum_id_by_prop": thaw(self.enum_id_by_prop),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PropertyIndex:
        return cls(
            prop_id_by_entity={
                int(e): {c: int(p) for c, p in fields.items()}
                for e, fields in data.get("prop_id_by_entity", {}).items()
            },
            enum_id_by_prop={
                int(p): {x: int(v) for x, v in values.items()}
                for p, values in data.get("enum_id_by_prop", {}).items()
            },
        )


__all__ = [
    "EntityIndex",
    "PropertyIndex",
]
