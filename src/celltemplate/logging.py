"""Structured logging for celltemplate.

Library modules only ever call :func:`get_logger`; applications that embed the
template engine decide how output looks by calling :func:`configure_logging`
once at startup.

- Pretty console output (default)
- JSON lines when ``CELLTEMPLATE_LOG_FORMAT=json``
- Level taken from ``CELLTEMPLATE_LOG_LEVEL`` (default ``INFO``)

Usage:
    from celltemplate.logging import configure_logging, get_logger

    configure_logging()

    log = get_logger(__name__).bind(sheet="Invoice")
    log.info("pre_pass_finished", rewritten=12)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "get_logger",
    "configure_logging",
    "bind_context",
    "clear_context",
    "unbind_context",
]

LOG_FORMAT_ENV_VAR = "CELLTEMPLATE_LOG_FORMAT"

LOG_LEVEL_ENV_VAR = "CELLTEMPLATE_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "INFO"


def _level_from_env() -> int:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def _json_requested() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def _shared_processors() -> list[Processor]:
    """Processors applied to both structlog and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(use_json: bool) -> Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def _structlog_processors(use_json: bool) -> list[Processor]:
    exception_processor: Processor = (
        structlog.processors.dict_tracebacks
        if use_json
        else structlog.processors.format_exc_info
    )
    return [*_shared_processors(), exception_processor, _renderer(use_json)]


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root handler.

    Safe to call more than once; each call replaces the previous handlers.

    Args:
        force_json: Emit JSON regardless of ``CELLTEMPLATE_LOG_FORMAT``.
        level: Override the log level. If None, reads ``CELLTEMPLATE_LOG_LEVEL``.

    Example:
        configure_logging(level=logging.DEBUG)
    """
    use_json = force_json or _json_requested()
    log_level = level if level is not None else _level_from_env()

    structlog.configure(
        processors=_structlog_processors(use_json),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(use_json),
            ],
            foreign_pre_chain=_shared_processors(),
        )
    )
    root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name, usually ``__name__``.

    Returns:
        A bound structlog logger.
    """
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Bind context variables included in every subsequent log event.

    Used by ``CellTemplate.generate()`` to tag all events of one run.

    Args:
        **context: Key-value pairs to bind to log context.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    """Remove specific context variables, leaving the rest bound."""
    structlog.contextvars.unbind_contextvars(*keys)
