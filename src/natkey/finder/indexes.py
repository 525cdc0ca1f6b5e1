"""Helpers for immutable shard index records.

Domain indexes are frozen dataclasses whose nested mappings are wrapped in
``MappingProxyType``; these helpers build and check them.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any


def freeze(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    """Read-only deep copy of a nested mapping."""
    return MappingProxyType(
        {k: freeze(v) if isinstance(v, Mapping) else v for k, v in mapping.items()}
    )


def thaw(mapping: Mapping[Any, Any]) -> dict[str, Any]:
    """JSON-safe deep copy of a nested mapping (keys become strings)."""
    return {
        str(k): thaw(v) if isinstance(v, Mapping) else v
        for k, v in mapping.items()
    }


def positive_int(value: Any) -> int | None:
    """Coerce a raw row id; ``None`` when it is missing, non-numeric or not positive."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def check_id(value: Any, what: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{what} must be a positive int, got {value!r}")


def check_code(value: Any, what: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{what} must be a non-empty string, got {value!r}")


__all__ = [
    "freeze",
    "thaw",
    "positive_int",
    "check_id",
    "check_code",
]
