# backend/tours_api/core/log_config.py
from __future__ import annotations

import logging

import structlog

from tours_api.core.config import settings

_LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _get_log_level() -> int:
    return _LOG_LEVEL_MAP.get((settings.LOG_LEVEL or "").strip().lower(), logging.INFO)


def configure_logging() -> None:
    """
    Configure structlog once per process (called from the app factory).
    JSON output for deployed environments, console renderer for local dev.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_JSON or settings.is_production_like
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
