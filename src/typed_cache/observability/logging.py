"""Structured logging for cache operations using structlog."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

if TYPE_CHECKING:
    from structlog.types import Processor

    from typed_cache_core.config.settings import Settings

# Backend client libraries that log every command at DEBUG.
_BACKEND_LOGGERS = ("redis", "sqlalchemy.engine", "aiosqlite", "diskcache")


def _pre_chain() -> list[Processor]:
    """Processors applied to structlog and stdlib records alike."""
    return [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging through one root handler.

    Cache events carry whatever was bound with ``bind_cache_context``.
    Backend client loggers are held at WARNING unless the root is stricter.
    """
    level = _resolve_level(settings.log_level)
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.log_format),
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _BACKEND_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_cache_context(**context: object) -> None:
    """Attach fields such as backend or key to every later cache event."""
    bind_contextvars(**context)


def clear_cache_context() -> None:
    """Drop all fields bound with ``bind_cache_context``."""
    clear_contextvars()


def _resolve_level(level_name: str) -> int:
    """Map a level name to its logging constant, defaulting to INFO."""
    level = logging.getLevelNamesMapping().get(level_name.upper())
    return level if level is not None else logging.INFO
