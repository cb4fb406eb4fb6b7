"""Structured logging for vunshdb.

Library modules only ask for loggers via :func:`get_logger`; output format and
level are decided once by :func:`configure_logging`, usually from
:meth:`vunshdb.database.VunshDB.initialize`.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from .config import Settings


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log entry, falling back to ``vunshdb``."""
    name = event_dict.pop("logger_name", None)
    event_dict.setdefault("logger", name or getattr(logger, "name", None) or "vunshdb")
    return event_dict


def configure_logging(settings: "Settings | None" = None) -> None:
    """Configure structlog rendering and level.

    Args:
        settings: Settings instance. Defaults are loaded from the environment
            when omitted.
    """
    if settings is None:
        from .config import Settings

        settings = Settings()

    level = getattr(logging, settings.log_level)
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json":
        renderers: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance, named ``vunshdb`` by default."""
    name = name or "vunshdb"
    return structlog.get_logger(name, logger_name=name)
