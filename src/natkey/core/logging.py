"""
Structured logging for natkey.

Finder internals log shard misses, bulk loads and invalidations as key/value
events (``shard_loaded directory=natkey/catalogs shard=props``). Nothing is
printed until the host calls :func:`configure_logging` or
:func:`configure_from_settings`; until then structlog's defaults apply.

Architecture:
    ::

        configure_logging(level, json_format, service)
            processors:
              [TimeStamper(iso)]
              merge_contextvars        ← bind_context / LogContext
              add_log_level
              StackInfoRenderer, set_exc_info
              service.name
              [@timestamp, log.level, log.logger] ← JSON only
              JSONRenderer | ConsoleRenderer

        logger = get_logger(__name__)   → events carry logger_name=<module>

Examples:
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> get_logger(__name__).debug("shard_miss", shard="props")

Tags:
    logging, structlog, observability, natkey
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from natkey.core.settings import NatkeyBaseSettings

_service_name = "natkey"


def _add_service_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service_name)
    return event_dict


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename ``timestamp``, ``level`` and ``logger_name`` to their ECS names for log shippers."""
    for plain, ecs in (
        ("timestamp", "@timestamp"),
        ("level", "log.level"),
        ("logger_name", "log.logger"),
    ):
        if plain in event_dict:
            event_dict[ecs] = event_dict.pop(plain)
    return event_dict


def _processors(json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_name,
    ]
    if json_format:
        chain += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "natkey",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: True for JSON lines, False for console; None picks JSON
            when stdout is not a terminal
        service: Value of the ``service.name`` field
        add_timestamp: Include an ISO timestamp
    """
    global _service_name
    _service_name = service

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    if json_format is None:
        json_format = not sys.stdout.isatty()

    structlog.configure(
        processors=_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: NatkeyBaseSettings, service: str = "natkey") -> None:
    """Apply ``log_level`` / ``json_logs`` (``NATKEY_LOG_LEVEL``, ``NATKEY_JSON_LOGS``)."""
    level = "DEBUG" if settings.debug else settings.log_level
    configure_logging(level=level, json_format=settings.json_logs, service=service)


def get_logger(name: str | None = None) -> Any:
    """Structured logger; ``name`` is carried as the ``logger_name`` field.

    The name is an initial value of the lazy proxy, so loggers created at
    import time still pick up a later :func:`configure_logging`.
    """
    if name:
        return structlog.get_logger(name, logger_name=name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Bind key/values onto every event logged from this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Scoped :func:`bind_context`.

    Example:
        with LogContext(request_id="abc123"):
            CatalogFinder({"id": 5}, cache=coordinator, source=source).code()
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context)


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
