"""
Structured error types for natkey.

Every failure a Finder can surface is a typed :class:`NatkeyError` carrying a
category, a retry flag, structured context and an optional chained cause.
Callers branch on the type; log pipelines serialize with ``to_dict()``.

Manifesto:
    - **Typed Error Hierarchy:** One exception class per failure mode
    - **Explicit Retry Semantics:** Only backend outages are retryable
    - **Rich Context:** Lookup kind and criteria travel with the error
    - **Error Chaining:** Driver exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        NatkeyError                           │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ValidationError          NotFoundError                      │
        │  (VALIDATION)             (LOOKUP)                           │
        │     │                                                        │
        │  InvalidFilterError       BackendUnavailableError            │
        │  MissingCriterionError    (BACKEND, retryable=True)          │
        │                                                              │
        │  ConfigError              DependencyMissingError             │
        │  (CONFIG)                 (CONFIG)                           │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = NotFoundError("Catalog ID not found", kind="id",
    ...                     criteria={"type": "catalog", "code": "ghost"})
    >>> err.retryable
    False
    >>> err.to_dict()["context"]["criteria"]
    {'type': 'catalog', 'code': 'ghost'}

Guardrails:
    ❌ DON'T: Return 0 or "" for a missing key
    ✅ DO: Raise NotFoundError, a missing key is a definitive answer

    ❌ DON'T: Swallow driver exceptions
    ✅ DO: Wrap them in BackendUnavailableError with cause=

Tags:
    error-handling, exception-hierarchy, natkey, lookup
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    VALIDATION = "VALIDATION"   # Bad filter values, missing criteria
    LOOKUP = "LOOKUP"           # Index loaded, key path absent
    BACKEND = "BACKEND"         # Backing store or cache store failed
    CONFIG = "CONFIG"           # Missing module, invalid settings
    INTERNAL = "INTERNAL"       # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"         # Uncategorized errors


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        finder: Finder class name that raised the error
        directory: Cache directory of the Finder family
        shard: Shard name involved, if any
        metadata: Additional key-value pairs
    """

    finder: str | None = None
    directory: str | None = None
    shard: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["finder", "directory", "shard"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class NatkeyError(Exception):
    """
    Base exception for all natkey errors.

    Subclasses set ``default_category`` and ``default_retryable`` so raising
    code only has to supply a message.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> NatkeyError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("...").with_context(finder="CatalogFinder")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if context := self.context.to_dict():
            data["context"] = context
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(NatkeyError):
    """
    Filter validation error.

    Never retryable - the caller must fix the input.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {k: v for k, v in (("field", self.field), ("constraint", self.constraint)) if v}
        )
        if self.value is not None:
            data["value"] = repr(self.value)
        return data


class InvalidFilterError(ValidationError):
    """A filter criterion is empty, zero or negative after normalization."""

    pass


class MissingCriterionError(ValidationError):
    """A criterion required by the requested lookup is absent."""

    def __init__(self, criterion: str, message: str | None = None):
        self.criterion = criterion
        super().__init__(
            message or f"Missing required criterion: {criterion}",
            field=criterion,
            constraint="required",
        )


# =============================================================================
# LOOKUP ERRORS
# =============================================================================


class NotFoundError(NatkeyError):
    """
    The shard index was loaded but holds no value for the key path.

    Terminal: a reload of the same snapshot gives the same answer.
    """

    default_category = ErrorCategory.LOOKUP
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        criteria: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.kind = kind
        self.criteria = dict(criteria or {})
        if kind is not None:
            self.context.metadata.setdefault("kind", kind)
        if self.criteria:
            self.context.metadata.setdefault("criteria", self.criteria)


# =============================================================================
# BACKEND / CONFIGURATION ERRORS
# =============================================================================


class BackendUnavailableError(NatkeyError):
    """Backing store read or cache store access failed."""

    default_category = ErrorCategory.BACKEND
    default_retryable = True


class ConfigError(NatkeyError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class DependencyMissingError(ConfigError):
    """A required module or service is not available."""

    def __init__(self, dependency: str, message: str | None = None, **kwargs: Any):
        self.dependency = dependency
        super().__init__(message or f"Required dependency is not available: {dependency}", **kwargs)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, NatkeyError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, NatkeyError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.BACKEND
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    if isinstance(error, ImportError):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "NatkeyError",
    "ValidationError",
    "InvalidFilterError",
    "MissingCriterionError",
    "NotFoundError",
    "BackendUnavailableError",
    "ConfigError",
    "DependencyMissingError",
    "is_retryable",
    "categorize_error",
]
