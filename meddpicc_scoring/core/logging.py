"""
Logging Setup - MEDDPICC Scoring Engine
meddpicc_scoring/core/logging.py

Configures structlog once at application start. Modules obtain loggers with
structlog.get_logger(__name__) and log event names with key/value context.
"""

import logging
import sys

import structlog

from meddpicc_scoring.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog processors and the stdlib root level."""
    level = getattr(logging, settings.LOG_LEVEL)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
