"""
Logging configuration module for structured logging.

This module configures the application's logging system using structlog.
It provides structured logging capabilities with JSON formatting for production
and human-readable console output for development.

The logging configuration includes:
- Request context merged from contextvars (request id, path, client address)
- Timestamp formatting
- Log level inclusion
- JSON/Console output based on environment
"""

import logging
import sys

import structlog


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures the application's logging system.

    structlog renders the event dictionary and hands the final line to the
    standard library, whose root logger decides whether the level is emitted.

    Args:
        log_level: Minimum level name for emitted records.
        json_logs: Render JSON lines instead of the coloured console format.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level.upper())

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None):
    return structlog.get_logger(name)


def mask_email(email: str) -> str:
    """Return ``joh***@domain`` so log lines never carry a full address."""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:3]}***@{domain}"


# Create a singleton logger instance for the application
logger = structlog.get_logger()

__all__ = ["configure_logging", "get_logger", "logger", "mask_email"]
