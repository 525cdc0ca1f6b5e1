"""Catalog source: bulk loads for the catalog Finder's shards.

Each load is one forward pass over the backing tables; the full index is
built in memory before it is returned, so a failing scan leaves nothing
behind.

Architecture:
    ::

        CatalogSource.load(shard)
          "default" → load_entities()    catalogs
          "props"   → load_properties()  catalog_fields, catalog_field_enums ⋈ catalog_fields

Tags:
    catalog, repository, bulk-load, natkey
"""

from __future__ import annotations

from natkey.core.errors import DependencyMissingError, NatkeyError
from natkey.core.logging import get_logger
from natkey.core.protocols import Connection, ShardLoad
from natkey.core.repository import BaseRepository
from natkey.domain.catalog.indexes import EntityIndex, PropertyIndex
from natkey.domain.catalog.tags import ENTITY_NEW_TAG, FIELD_NEW_TAG, entity_tag
from natkey.finder.indexes import positive_int
from natkey.finder.lookups import DEFAULT_SHARD, PROPS_SHARD

logger = get_logger(__name__)


CATALOG_DDL = {
    "catalogs": """
        CREATE TABLE IF NOT EXISTS catalogs (
            id INTEGER PRIMARY KEY,
            type TEXT NOT NULL,
            code TEXT
        )
    """,
    "catalog_fields": """
        CREATE TABLE IF NOT EXISTS catalog_fields (
            id INTEGER PRIMARY KEY,
            catalog_id INTEGER NOT NULL REFERENCES catalogs (id),
            code TEXT
        )
    """,
    "catalog_field_enums": """
        CREATE TABLE IF NOT EXISTS catalog_field_enums (
            id INTEGER PRIMARY KEY,
            field_id INTEGER NOT NULL REFERENCES catalog_fields (id),
            xml_id TEXT NOT NULL
        )
    """,
}

CATALOG_SCHEMA = ";\n".join(CATALOG_DDL.values())


def apply_catalog_schema(conn: Connection, backend: str = "sqlite") -> int:
    """Create the catalog tables if they do not exist."""
    return BaseRepository(conn, backend).apply_schema(CATALOG_SCHEMA)


class CatalogSource(BaseRepository):
    """Bulk loader for the ``natkey/catalogs`` shards."""

    CATALOGS_TABLE = "catalogs"
    FIELDS_TABLE = "catalog_fields"
    ENUMS_TABLE = "catalog_field_enums"

    def __init__(self, conn: Connection, backend: str = "sqlite") -> None:
        super().__init__(conn, backend)
        self._available = False

    def ensure_available(self) -> None:
        """Fail unless every table this source reads exists."""
        if self._available:
            return
        for table in (self.CATALOGS_TABLE, self.FIELDS_TABLE, self.ENUMS_TABLE):
            if not self.table_exists(table):
                raise DependencyMissingError(
                    table, f"Catalog table {table!r} does not exist"
                )
        self._available = True

    def load(self, shard: str) -> ShardLoad:
        if shard == DEFAULT_SHARD:
            return self.load_entities()
        if shard == PROPS_SHARD:
            return self.load_properties()
        raise NatkeyError(f"Unknown catalog shard: {shard!r}")

    # -- Shards ------------------------------------------------------------

    def load_entities(self) -> ShardLoad:
        """Index every catalog by (type, code) and by id."""
        by_type_code: dict[str, dict[str, int]] = {}
        type_by_id: dict[int, str] = {}
        code_by_id: dict[int, str] = {}
        tags = {ENTITY_NEW_TAG}
        skipped = 0

        for row in self.iter_rows(f"SELECT id, type, code FROM {self.CATALOGS_TABLE}"):
            catalog_id = positive_int(row["id"])
            type_ = row["type"]
            if catalog_id is None or not type_:
                skipped += 1
                continue
            code = row["code"]
            if code:
                by_type_code.setdefault(type_, {})[code] = catalog_id
                code_by_id[catalog_id] = code
                tags.add(entity_tag(catalog_id))
            type_by_id[catalog_id] = type_

        if skipped:
            logger.warning("catalog_rows_skipped", table=self.CATALOGS_TABLE, count=skipped)

        index = EntityIndex(by_type_code=by_type_code, type_by_id=type_by_id, code_by_id=code_by_id)
        logger.debug("catalogs_indexed", catalogs=len(type_by_id), tags=len(tags))
        return ShardLoad(index=index, tags=frozenset(tags))

    def load_properties(self) -> ShardLoad:
        """Index fields per catalog and enum values per field."""
        prop_id_by_entity: dict[int, dict[str, int]] = {}
        enum_id_by_prop: dict[int, dict[str, int]] = {}
        tags = {ENTITY_NEW_TAG, FIELD_NEW_TAG}
        skipped = 0

        for row in self.iter_rows(
            f"SELECT id, code, catalog_id FROM {self.FIELDS_TABLE}"
        ):
            field_id = positive_int(row["id"])
            catalog_id = positive_int(row["catalog_id"])
            code = row["code"]
            if field_id is None or catalog_id is None or not code:
                skipped += 1
                continue
            prop_id_by_entity.setdefault(catalog_id, {})[code] = field_id
            tags.add(entity_tag(catalog_id))

        for row in self.iter_rows(
            f"SELECT e.id, e.xml_id, e.field_id, f.code AS field_code "
            f"FROM {self.ENUMS_TABLE} e JOIN {self.FIELDS_TABLE} f ON f.id = e.field_id"
        ):
            if not row["field_code"]:
                continue
            enum_id = positive_int(row["id"])
            field_id = positive_int(row["field_id"])
            xml_id = row["xml_id"]
            if enum_id is None or field_id is None or not xml_id:
                skipped += 1
                continue
            enum_id_by_prop.setdefault(field_id, {})[xml_id] = enum_id

        if skipped:
            logger.warning("catalog_field_rows_skipped", count=skipped)

        index = PropertyIndex(prop_id_by_entity=prop_id_by_entity, enum_id_by_prop=enum_id_by_prop)
        logger.debug(
            "catalog_fields_indexed",
            catalogs=len(prop_id_by_entity),
            enum_fields=len(enum_id_by_prop),
            tags=len(tags),
        )
        return ShardLoad(index=index, tags=frozenset(tags))


__all__ = [
    "CATALOG_DDL",
    "CATALOG_SCHEMA",
    "CatalogSource",
    "apply_catalog_schema",
]
