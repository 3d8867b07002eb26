"""
Structured logging for Celestia.

Every record carries event_type, level, logger and an ISO-8601 UTC timestamp.
Callers pass a snake_case event name first and fields as keyword arguments:

    logger = get_logger(__name__)
    logger.info("universe_regrouped", galaxies=12, solitary=3)

LOG_LEVEL sets the threshold; LOG_FORMAT=console switches from JSON lines to
the structlog dev renderer. This module imports nothing from backend_celestia.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _renderer() -> Any:
    if LOG_FORMAT == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty(), event_key="event_type")
    return structlog.processors.JSONRenderer()


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("event_type"),
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, LOG_LEVEL, logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger for a module; the name is bound as ``logger``."""
    return structlog.get_logger(name).bind(logger=name)


def bind_session(session_id: str) -> structlog.BoundLogger:
    """Logger with session_id bound, for per-session events."""
    return get_logger("backend_celestia.session").bind(session_id=session_id)
