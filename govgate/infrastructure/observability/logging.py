"""Structured logging configuration with structlog.

Production emits one JSON object per line for log aggregation;
development renders coloured console output. Both share the same
processor chain, so fields are identical across environments.

Log Entry Format (production):
    {
        "timestamp": "2026-01-01T00:00:00.000000Z",
        "level": "warning",
        "event": "governance_gate_denied",
        "correlation_id": "uuid",
        "org_id": "...",
        ...additional context
    }

Usage:
    from govgate.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")
"""

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from govgate.infrastructure.observability.correlation import correlation_id_processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level(level_name: str | None = None) -> int:
    """Resolve a log level name (or LOG_LEVEL) to a logging level integer."""
    name = (level_name or os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
    return getattr(logging, name, logging.INFO)


def configure_structlog(
    environment: str = "production", log_level: str | None = None
) -> None:
    """Configure structlog for the service.

    Should be called once at startup.

    Args:
        environment: 'production' for JSON output, anything else for console.
        log_level: Level name; defaults to the LOG_LEVEL environment variable.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level(log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

