"""
Group Finder — resolve user groups by code.

Examples:
    >>> GroupFinder({"code": "admins"}, cache=coordinator, source=GroupSource(conn)).id()
    1
    >>> GroupFinder({"id": 1}, cache=coordinator, source=GroupSource(conn)).code()
    'admins'
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from natkey.domain.groups.source import GroupIndex
from natkey.finder.base import Finder
from natkey.finder.lookups import DEFAULT_SHARD, LookupKind, LookupRequest


class GroupFinder(Finder):
    """Finder for one user group."""

    cache_dir: ClassVar[str] = "natkey/groups"
    natural_key: ClassVar[tuple[str, ...]] = ("code",)
    shard_map: ClassVar[Mapping[LookupKind, str]] = {
        LookupKind.ID: DEFAULT_SHARD,
        LookupKind.CODE: DEFAULT_SHARD,
    }
    index_types: ClassVar[Mapping[str, type]] = {DEFAULT_SHARD: GroupIndex}

    def code(self) -> str:
        return self.get_from_cache(LookupRequest.for_code())

    def extract(self, index: GroupIndex, request: LookupRequest) -> Any:
        if request.kind is LookupKind.ID:
            key, value = self.filter["code"], index.id_by_code.get(self.filter["code"])
        else:
            key, value = self._id, index.code_by_id.get(self._id)
        if not value:
            raise self.not_found(request, f"no group {key!r}")
        return value


__all__ = [
    "GroupFinder",
]
