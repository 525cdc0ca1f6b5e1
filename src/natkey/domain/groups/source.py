"""User group index and its bulk loader."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from natkey.core.errors import DependencyMissingError, NatkeyError
from natkey.core.logging import get_logger
from natkey.core.protocols import Connection, ShardLoad
from natkey.core.repository import BaseRepository
from natkey.domain.groups.tags import GROUP_NEW_TAG, group_tag
from natkey.finder.indexes import check_code, check_id, freeze, positive_int, thaw
from natkey.finder.lookups import DEFAULT_SHARD

logger = get_logger(__name__)


GROUP_SCHEMA = """
    CREATE TABLE IF NOT EXISTS user_groups (
        id INTEGER PRIMARY KEY,
        code TEXT
    )
"""


def apply_group_schema(conn: Connection, backend: str = "sqlite") -> int:
    """Create the ``user_groups`` table if it does not exist."""
    return BaseRepository(conn, backend).apply_schema(GROUP_SCHEMA)


@dataclass(frozen=True)
class GroupIndex:
    """Groups by code and by id (only groups with a code)."""

    id_by_code: Mapping[str, int]
    code_by_id: Mapping[int, str]

    def __post_init__(self) -> None:
        for code, group_id in self.id_by_code.items():
            check_code(code, "group code")
            check_id(group_id, "group id")
        for group_id, code in self.code_by_id.items():
            check_id(group_id, "group id")
            check_code(code, "group code")
        object.__setattr__(self, "id_by_code", freeze(self.id_by_code))
        object.__setattr__(self, "code_by_id", freeze(self.code_by_id))

    def to_dict(self) -> dict[str, Any]:
        return {"id_by_code": thaw(self.id_by_code), "code_by_id": thaw(self.code_by_id)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GroupIndex:
        return cls(
            id_by_code={c: int(i) for c, i in data.get("id_by_code", {}).items()},
            code_by_id={int(i): c for i, c in data.get("code_by_id", {}).items()},
        )


class GroupSource(BaseRepository):
    """Bulk loader for the ``natkey/groups`` shard."""

    GROUPS_TABLE = "user_groups"

    def __init__(self, conn: Connection, backend: str = "sqlite") -> None:
        super().__init__(conn, backend)
        self._available = False

    def ensure_available(self) -> None:
        if self._available:
            return
        if not self.table_exists(self.GROUPS_TABLE):
            raise DependencyMissingError(
                self.GROUPS_TABLE, f"Group table {self.GROUPS_TABLE!r} does not exist"
            )
        self._available = True

    def load(self, shard: str) -> ShardLoad:
        if shard != DEFAULT_SHARD:
            raise NatkeyError(f"Unknown group shard: {shard!r}")

        id_by_code: dict[str, int] = {}
        code_by_id: dict[int, str] = {}
        tags = {GROUP_NEW_TAG}
        skipped = 0
        for row in self.iter_rows(f"SELECT id, code FROM {self.GROUPS_TABLE}"):
            group_id = positive_int(row["id"])
            if group_id is None:
                skipped += 1
                continue
            code = row["code"]
            if not code:
                continue
            id_by_code[code] = group_id
            code_by_id[group_id] = code
            tags.add(group_tag(group_id))

        if skipped:
            logger.warning("group_rows_skipped", table=self.GROUPS_TABLE, count=skipped)

        logger.debug("groups_indexed", groups=len(code_by_id))
        return ShardLoad(
            index=GroupIndex(id_by_code=id_by_code, code_by_id=code_by_id),
            tags=frozenset(tags),
        )


__all__ = [
    "GROUP_SCHEMA",
    "GroupIndex",
    "GroupSource",
    "apply_group_schema",
]
