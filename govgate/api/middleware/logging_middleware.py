"""Request logging with correlation ids.

Every request runs inside a correlation scope (see
``govgate.infrastructure.observability.correlation``); the id in effect
is echoed in ``X-Correlation-ID`` and stamped on every log line emitted
while the request is handled. Completion logs record whether the route
was governed, so gated and ungated traffic can be told apart.
"""

import time
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from structlog import get_logger

from govgate.infrastructure.observability.correlation import (
    CORRELATION_ID_HEADER,
    correlation_scope,
)

logger = get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Binds the request correlation id and logs each request once."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_ID_HEADER)) as correlation_id:
            log = logger.bind(method=request.method, path=request.url.path)
            started = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception as exc:
                log.exception(
                    "request_failed",
                    duration_ms=_elapsed_ms(started),
                    error_type=type(exc).__name__,
                )
                raise

            log.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=_elapsed_ms(started),
                governed=response.headers.get("x-governed") == "1",
            )
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
