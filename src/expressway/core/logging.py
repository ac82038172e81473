"""
Expressway Logging - structured logging for the bootstrap pipeline.

Every component logs through structlog so that a boot can be followed
phase by phase in both development consoles and log aggregators.

Manifesto:
    A failed boot must be diagnosable from the log alone. The sequencer
    binds the application root and the running phase as context, so every
    event emitted while a phase runs (config namespace, backend, provider,
    route) carries ``phase`` without the emitting module knowing about it.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="expressway")

            ↓
        structlog processor chain:
          1. merge_contextvars       root / phase bound by LogContext
          2. TimeStamper (iso), add_log_level, add_logger_name
          3. _add_service            service.name
          4. _expand_error           error=<exception> → error.type, error.message,
                                     plus unit/phase/path from ExpresswayError context
          5. _ecs_field_names        @timestamp, log.level (JSON only)
          6. JSONRenderer (or ConsoleRenderer for dev)

Examples:
    >>> from expressway.core.logging import LogContext, configure_logging, get_logger
    >>> configure_logging(level="DEBUG", service="shop")
    >>> logger = get_logger(__name__)
    >>> with LogContext(phase="routes"):
    ...     logger.info("route_mounted", prefix="/users")

Tags:
    logging, structlog, observability, expressway

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from expressway.core.errors import ExpresswayError

_SERVICE_NAME = "expressway"


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _expand_error(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace an exception passed as ``error=`` with flat, serializable fields.

    Context already bound to the event (such as the current ``phase``)
    wins over the error's own context.
    """
    error = event_dict.get("error")
    if not isinstance(error, BaseException):
        return event_dict
    del event_dict["error"]
    event_dict["error.type"] = type(error).__name__
    if isinstance(error, ExpresswayError):
        event_dict["error.message"] = error.message
        event_dict["error.category"] = error.category.value
        for key, value in error.context.to_dict().items():
            event_dict.setdefault(key, value)
        if error.cause is not None:
            event_dict["error.cause"] = str(error.cause)
    else:
        event_dict["error.message"] = str(error)
    return event_dict


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "expressway",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name attached to every event
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service,
        _expand_error,
    ]
    if json_format:
        processors += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


class LogContext:
    """Bind context for the events logged inside a ``with`` block.

    Nesting restores the outer values on exit::

        with LogContext(root="/srv/shop"):
            with LogContext(phase="backends"):
                logger.info("backend_loaded", backend="mail")   # root + phase
            logger.info("boot_completed")                      # root only
    """

    def __init__(self, **kwargs: Any) -> None:
        self._context = kwargs
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


__all__ = ["configure_logging", "get_logger", "LogContext"]
