"""Tests for natkey.core.errors module."""

import pytest

from natkey.core.errors import (
    BackendUnavailableError,
    ConfigError,
    DependencyMissingError,
    ErrorCategory,
    ErrorContext,
    InvalidFilterError,
    MissingCriterionError,
    NatkeyError,
    NotFoundError,
    ValidationError,
    categorize_error,
    is_retryable,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.finder is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_merges_metadata(self):
        ctx = ErrorContext(finder="CatalogFinder", shard="props", metadata={"kind": "propId"})
        assert ctx.to_dict() == {"finder": "CatalogFinder", "shard": "props", "kind": "propId"}


class TestNatkeyError:
    """Test the base error."""

    def test_defaults(self):
        err = NatkeyError("boom")
        assert str(err) == "boom"
        assert err.category == ErrorCategory.INTERNAL
        assert err.retryable is False
        assert err.cause is None

    def test_cause_is_chained(self):
        original = RuntimeError("driver")
        err = NatkeyError("wrapped", cause=original)
        assert err.__cause__ is original
        assert err.to_dict()["cause"] == "driver"

    def test_with_context_sets_fields_and_metadata(self):
        err = NatkeyError("x").with_context(finder="GroupFinder", attempt=2)
        assert err.context.finder == "GroupFinder"
        assert err.context.metadata == {"attempt": 2}

    def test_to_dict(self):
        d = NatkeyError("x").with_context(directory="natkey/catalogs").to_dict()
        assert d["error_type"] == "NatkeyError"
        assert d["category"] == "INTERNAL"
        assert d["context"] == {"directory": "natkey/catalogs"}


class TestValidationErrors:
    def test_invalid_filter_is_validation(self):
        err = InvalidFilterError("bad", field="id", value=0, constraint="positive_int")
        assert isinstance(err, ValidationError)
        assert err.category == ErrorCategory.VALIDATION
        assert err.retryable is False
        d = err.to_dict()
        assert d["field"] == "id"
        assert d["value"] == "0"
        assert d["constraint"] == "positive_int"

    def test_missing_criterion_names_field(self):
        err = MissingCriterionError("code")
        assert err.criterion == "code"
        assert err.field == "code"
        assert "code" in str(err)


class TestNotFoundError:
    def test_kind_and_criteria_in_context(self):
        err = NotFoundError(
            "Catalog ID not found", kind="id", criteria={"type": "catalog", "code": "ghost"}
        )
        assert err.category == ErrorCategory.LOOKUP
        assert err.retryable is False
        assert err.kind == "id"
        assert err.to_dict()["context"]["criteria"] == {"type": "catalog", "code": "ghost"}


class TestBackendAndConfigErrors:
    def test_backend_unavailable_is_retryable(self):
        err = BackendUnavailableError("down")
        assert err.category == ErrorCategory.BACKEND
        assert is_retryable(err) is True

    def test_dependency_missing_is_config(self):
        err = DependencyMissingError("redis")
        assert isinstance(err, ConfigError)
        assert err.dependency == "redis"
        assert err.category == ErrorCategory.CONFIG
        assert "redis" in str(err)


class TestHelpers:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (NotFoundError("x"), ErrorCategory.LOOKUP),
            (ConnectionError("x"), ErrorCategory.BACKEND),
            (ValueError("x"), ErrorCategory.VALIDATION),
            (ImportError("x"), ErrorCategory.CONFIG),
            (KeyError("x"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categorize_error(self, error, expected):
        assert categorize_error(error) == expected

    def test_is_retryable_plain_exceptions(self):
        assert is_retryable(TimeoutError()) is True
        assert is_retryable(KeyError()) is False
