"""Observability: structured logging and request correlation.

Usage:
    from govgate.infrastructure.observability import (
        configure_structlog,
        correlation_scope,
        get_correlation_id,
    )
"""

from govgate.infrastructure.observability.correlation import (
    CORRELATION_ID_HEADER,
    accept_correlation_id,
    correlation_id_processor,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
)
from govgate.infrastructure.observability.logging import configure_structlog

__all__: list[str] = [
    "CORRELATION_ID_HEADER",
    "accept_correlation_id",
    "configure_structlog",
    "correlation_id_processor",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
]
