"""
natkey - Natural key resolution for relational stores.

Resolves human-meaningful identifiers (a catalog type+code pair, a field code,
an enum value's external key) into numeric primary keys, serving every lookup
from shard indexes that are bulk-loaded once and expired by invalidation tags.

Packages:
- natkey.core: errors, logging, settings, protocols, cache and DB adapters
- natkey.finder: the Finder engine (filters, lookups, cache coordinator)
- natkey.domain.*: domain Finders (catalog, groups)
"""

__version__ = "0.1.0"

from natkey.core.errors import (  # noqa: E402
    BackendUnavailableError,
    DependencyMissingError,
    InvalidFilterError,
    MissingCriterionError,
    NatkeyError,
    NotFoundError,
)
from natkey.finder import CacheCoordinator, Finder  # noqa: E402

__all__ = [
    "__version__",
    "NatkeyError",
    "InvalidFilterError",
    "MissingCriterionError",
    "NotFoundError",
    "BackendUnavailableError",
    "DependencyMissingError",
    "CacheCoordinator",
    "Finder",
]
