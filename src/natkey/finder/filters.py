"""Filter normalization.

Every value a caller hands a Finder passes through here before the cache is
touched. Identifier criteria become positive ints; everything else becomes a
trimmed, HTML-escaped, non-empty string.

    >>> normalize_filter({"type": " catalog ", "code": "main"})
    {'type': 'catalog', 'code': 'main'}
    >>> normalize_filter({"id": "5"})
    {'id': 5}
"""

from __future__ import annotations

import html
from collections.abc import Mapping
from typing import Any

from natkey.core.errors import InvalidFilterError

#: Criteria coerced to positive integers.
ID_CRITERIA = frozenset({"id", "propId", "prop_id"})


def normalize_id(name: str, value: Any) -> int:
    """Coerce an identifier criterion to a strictly positive int."""
    if isinstance(value, bool) or value is None:
        raise InvalidFilterError(
            f"Criterion {name!r} must be a positive integer",
            field=name, value=value, constraint="positive_int",
        )
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidFilterError(
            f"Criterion {name!r} must be a positive integer",
            field=name, value=value, constraint="positive_int", cause=exc,
        ) from exc
    if number <= 0:
        raise InvalidFilterError(
            f"Criterion {name!r} must be a positive integer, got {number}",
            field=name, value=value, constraint="positive_int",
        )
    return number


def normalize_text(name: str, value: Any) -> str:
    """Coerce a criterion to a sanitized, non-empty string."""
    text = "" if value is None else html.escape(str(value)).strip()
    if not text:
        raise InvalidFilterError(
            f"Criterion {name!r} must not be empty",
            field=name, value=value, constraint="non_empty",
        )
    return text


def normalize_filter(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Validate and canonicalize a filter mapping.

    Returns a new dict; ``raw`` is left untouched.

    Raises:
        InvalidFilterError: A criterion is empty, zero, negative or not coercible.
    """
    normalized: dict[str, Any] = {}
    for name, value in raw.items():
        if name in ID_CRITERIA:
            normalized[name] = normalize_id(name, value)
        else:
            normalized[name] = normalize_text(name, value)
    return normalized


__all__ = [
    "ID_CRITERIA",
    "normalize_id",
    "normalize_text",
    "normalize_filter",
]
