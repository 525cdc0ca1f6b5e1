"""Lookup requests and shard routing.

A :class:`LookupRequest` is built explicitly by each public Finder accessor;
nothing is inferred from the shape of a filter. Its ``kind`` routes it to a
shard through the Finder's fixed shard map.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from natkey.core.errors import MissingCriterionError, NatkeyError

DEFAULT_SHARD = "default"
PROPS_SHARD = "props"


class LookupKind(str, Enum):
    """Closed set of supported resolutions."""

    ID = "id"
    TYPE = "type"
    CODE = "code"
    PROP_ID = "propId"
    PROP_ENUM_ID = "propEnumId"


# Which request fields each kind needs, beyond the Finder's own identity.
_REQUIRED: dict[LookupKind, tuple[str, ...]] = {
    LookupKind.ID: (),
    LookupKind.TYPE: (),
    LookupKind.CODE: (),
    LookupKind.PROP_ID: ("prop_code",),
    LookupKind.PROP_ENUM_ID: ("prop_code", "value_xml_id"),
}


@dataclass(frozen=True)
class LookupRequest:
    """One resolution asked of a Finder."""

    kind: LookupKind
    prop_code: str | None = None
    value_xml_id: str | None = None

    def __post_init__(self) -> None:
        for name in _REQUIRED[self.kind]:
            if getattr(self, name) is None:
                raise MissingCriterionError(name)

    @classmethod
    def for_id(cls) -> LookupRequest:
        return cls(LookupKind.ID)

    @classmethod
    def for_type(cls) -> LookupRequest:
        return cls(LookupKind.TYPE)

    @classmethod
    def for_code(cls) -> LookupRequest:
        return cls(LookupKind.CODE)

    @classmethod
    def for_prop_id(cls, prop_code: str) -> LookupRequest:
        return cls(LookupKind.PROP_ID, prop_code=prop_code)

    @classmethod
    def for_prop_enum_id(cls, prop_code: str, value_xml_id: str) -> LookupRequest:
        return cls(LookupKind.PROP_ENUM_ID, prop_code=prop_code, value_xml_id=value_xml_id)

    def criteria(self) -> dict[str, Any]:
        """Request fields that were set, for error messages and logs."""
        result: dict[str, Any] = {}
        if self.prop_code is not None:
            result["propCode"] = self.prop_code
        if self.value_xml_id is not None:
            result["valueXmlId"] = self.value_xml_id
        return result


#: Shard map for Finders with an entity shard and a property shard.
ENTITY_SHARDS: Mapping[LookupKind, str] = {
    LookupKind.ID: DEFAULT_SHARD,
    LookupKind.TYPE: DEFAULT_SHARD,
    LookupKind.CODE: DEFAULT_SHARD,
    LookupKind.PROP_ID: PROPS_SHARD,
    LookupKind.PROP_ENUM_ID: PROPS_SHARD,
}


def resolve_shard(shard_map: Mapping[LookupKind, str], kind: LookupKind) -> str:
    """Map a lookup kind to its shard, rejecting kinds the Finder lacks."""
    try:
        return shard_map[kind]
    except KeyError:
        raise NatkeyError(f"Unsupported lookup kind: {kind.value}") from None


__all__ = [
    "DEFAULT_SHARD",
    "PROPS_SHARD",
    "LookupKind",
    "LookupRequest",
    "ENTITY_SHARDS",
    "resolve_shard",
]
