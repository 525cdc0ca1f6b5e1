"""Tests for natkey.domain.groups."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from natkey.core.errors import DependencyMissingError, MissingCriterionError, NotFoundError
from natkey.core.connection import SqliteConnection
from natkey.domain.catalog import CatalogFinder, CatalogInvalidator
from natkey.domain.groups import (
    GROUP_NEW_TAG,
    GroupFinder,
    GroupIndex,
    GroupInvalidator,
    GroupSource,
    group_tag,
)


@pytest.fixture
def make_finder(coordinator, group_source):
    def make(filter):
        return GroupFinder(filter, cache=coordinator, source=group_source)

    return make


class TestGroupSource:
    def test_load(self, group_conn):
        load = GroupSource(group_conn).load("default")
        assert isinstance(load.index, GroupIndex)
        assert dict(load.index.id_by_code) == {"admins": 1, "editors": 2}
        assert load.tags == {group_tag(1), group_tag(2), GROUP_NEW_TAG}

    def test_missing_table(self):
        with pytest.raises(DependencyMissingError):
            GroupSource(SqliteConnection()).ensure_available()

    def test_bad_ids_skipped_and_counted(self):
        conn = SqliteConnection()
        conn.raw.execute("CREATE TABLE user_groups (id TEXT, code TEXT)")
        conn.raw.executemany(
            "INSERT INTO user_groups VALUES (?, ?)",
            [("4", "writers"), ("abc", "broken"), ("0", "zero"), ("-2", "negative"), (None, "null")],
        )
        conn.commit()

        with capture_logs() as logs:
            load = GroupSource(conn).load("default")

        assert dict(load.index.id_by_code) == {"writers": 4}
        assert load.tags == {group_tag(4), GROUP_NEW_TAG}
        skipped = [e for e in logs if e["event"] == "group_rows_skipped"]
        assert skipped and skipped[0]["count"] == 4
        conn.close()


class TestGroupFinder:
    def test_by_code(self, make_finder):
        assert make_finder({"code": "admins"}).id() == 1

    def test_by_id(self, make_finder, group_source):
        assert make_finder({"id": 2}).code() == "editors"
        assert make_finder({"code": "editors"}).id() == 2
        assert group_source.loads["default"] == 1

    def test_code_required(self, make_finder):
        with pytest.raises(MissingCriterionError) as exc_info:
            make_finder({"type": "catalog"})
        assert exc_info.value.criterion == "code"

    def test_unknown(self, make_finder):
        with pytest.raises(NotFoundError):
            make_finder({"code": "guests"})
        with pytest.raises(NotFoundError):
            make_finder({"id": 3}).code()


class TestFamiliesIsolated:
    def test_catalog_tags_do_not_touch_groups(self, coordinator, make_finder, group_source, catalog_source):
        make_finder({"code": "admins"})
        CatalogFinder({"type": "catalog", "code": "main"}, cache=coordinator, source=catalog_source)

        CatalogInvalidator(coordinator).created()
        make_finder({"code": "admins"})
        assert group_source.loads["default"] == 1

        GroupInvalidator(coordinator).created()
        make_finder({"code": "admins"})
        assert group_source.loads["default"] == 2
        assert catalog_source.loads["default"] == 1
