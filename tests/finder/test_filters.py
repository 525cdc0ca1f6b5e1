"""Tests for natkey.finder.filters."""

import pytest

from natkey.core.errors import InvalidFilterError
from natkey.finder.filters import normalize_filter, normalize_id, normalize_text


class TestNormalizeId:
    @pytest.mark.parametrize("value, expected", [(5, 5), ("5", 5), (" 7 ", 7)])
    def test_coerces_positive(self, value, expected):
        assert normalize_id("id", value) == expected

    @pytest.mark.parametrize("value", [0, -5, "0", "-1", "abc", "", None, True, False, 1.5j])
    def test_rejects(self, value):
        with pytest.raises(InvalidFilterError) as exc_info:
            normalize_id("id", value)
        assert exc_info.value.field == "id"


class TestNormalizeText:
    def test_trims(self):
        assert normalize_text("code", "  main ") == "main"

    def test_escapes_html(self):
        assert normalize_text("code", "<b>") == "&lt;b&gt;"

    def test_coerces_non_strings(self):
        assert normalize_text("code", 42) == "42"

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_rejects_empty(self, value):
        with pytest.raises(InvalidFilterError) as exc_info:
            normalize_text("code", value)
        assert exc_info.value.constraint == "non_empty"


class TestNormalizeFilter:
    def test_mixed(self):
        assert normalize_filter({"type": " catalog ", "code": "main", "propId": "3"}) == {
            "type": "catalog",
            "code": "main",
            "propId": 3,
        }

    def test_input_not_mutated(self):
        raw = {"id": "5"}
        normalize_filter(raw)
        assert raw == {"id": "5"}

    def test_first_bad_value_fails(self):
        with pytest.raises(InvalidFilterError):
            normalize_filter({"type": "catalog", "code": ""})
