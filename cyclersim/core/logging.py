"""
Structured Logging Configuration
Uses structlog on top of the standard library.

The level applies to the ``cyclersim`` logger tree only. Library loggers stay
at WARNING so a verbose run shows every cycle without HTTP connection chatter.
"""
import logging
import sys

import structlog
from structlog.types import Processor

from cyclersim.core.config import settings

APP_LOGGER = "cyclersim"

QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def resolve_level(level: str | None = None) -> int:
    """Explicit level, else DEBUG in debug mode, else the configured ``log_level``."""
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    return logging.getLevelNamesMapping()[level.upper()]


def configure_logging(level: str | None = None) -> None:
    """
    Configure structured logging for the simulator and the collector.

    Args:
        level: Overrides the configured level, e.g. ``"DEBUG"`` for ``--verbose``
    """
    shared_processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.environment == "development":
        processors: list[Processor] = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=logging.WARNING)
    logging.getLogger(APP_LOGGER).setLevel(resolve_level(level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_device_context(device_id: str, server_url: str) -> None:
    """Tag every log line of the current run with the simulated device."""
    structlog.contextvars.bind_contextvars(device_id=device_id, server_url=server_url)


def clear_device_context() -> None:
    structlog.contextvars.unbind_contextvars("device_id", "server_url")
