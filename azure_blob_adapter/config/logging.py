"""Structured logging configuration.

Uses structlog for key/value event logging. ``setup_logging`` is called once
by the composition root or the CLI; library code only calls ``get_logger``.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.typing import Processor

if TYPE_CHECKING:
    from azure_blob_adapter.config.settings import AppSettings


def setup_logging(settings: AppSettings | None = None) -> None:
    """Configure structlog and stdlib logging for the process."""
    level_name = settings.log_level if settings is not None else "INFO"
    log_json = settings.log_json if settings is not None else False
    log_level = getattr(logging, level_name.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries log through stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)

    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Get a bound logger with optional initial context.

    Args:
        name: Logger name (usually __name__)
        **initial_context: Initial context key-value pairs

    Returns:
        Lazy logger proxy; resolved against the structlog configuration
        active on first use, so module-level loggers honour ``setup_logging``
    """
    return structlog.get_logger(name, **initial_context)
