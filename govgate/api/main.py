"""FastAPI application entry point for the governance gate.

Run with:
    uvicorn govgate.api.main:app
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from structlog import get_logger

from govgate import __version__
from govgate.api.adapters.problems import problem_response
from govgate.api.middleware.logging_middleware import LoggingMiddleware
from govgate.api.routes.governance import router as governance_router
from govgate.api.routes.health import router as health_router
from govgate.api.startup import run_shutdown, run_startup
from govgate.domain.errors.attestation import AttestationNotConfiguredError
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.errors.event_meta import EventMetaError
from govgate.domain.errors.ledger import LedgerStoreError
from govgate.domain.errors.shift_context import ShiftContextError
from govgate.domain.models.gate_result import GOVERNANCE_UNAVAILABLE

logger = get_logger(__name__)

ATTESTATION_NOT_CONFIGURED = "ATTESTATION_NOT_CONFIGURED"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await run_startup()
    yield
    await run_shutdown()


async def _gate_configuration_error(request: Request, exc: Exception) -> JSONResponse:
    return problem_response(
        status_code=503,
        code=GOVERNANCE_UNAVAILABLE,
        detail=str(exc),
        instance=request.url.path,
    )


async def _ledger_store_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("ledger_store_error", path=request.url.path, error=str(exc))
    return problem_response(
        status_code=503,
        code=GOVERNANCE_UNAVAILABLE,
        detail="Governance ledger unavailable",
        instance=request.url.path,
    )


async def _shift_context_error(request: Request, exc: Exception) -> JSONResponse:
    return problem_response(
        status_code=400,
        code=ShiftContextError.code,
        detail=str(exc),
        instance=request.url.path,
    )


async def _event_meta_error(request: Request, exc: Exception) -> JSONResponse:
    return problem_response(
        status_code=400,
        code=EventMetaError.code,
        detail=str(exc),
        instance=request.url.path,
    )


async def _attestation_not_configured(request: Request, exc: Exception) -> JSONResponse:
    return problem_response(
        status_code=501,
        code=ATTESTATION_NOT_CONFIGURED,
        detail=str(exc),
        instance=request.url.path,
    )


def create_app() -> FastAPI:
    """Build the application with middleware, error mapping and routes."""
    application = FastAPI(
        title="govgate",
        description="Governance gate and hash-chained audit ledger",
        version=__version__,
        lifespan=lifespan,
    )
    application.add_middleware(LoggingMiddleware)
    application.add_exception_handler(GateConfigurationError, _gate_configuration_error)
    application.add_exception_handler(LedgerStoreError, _ledger_store_error)
    application.add_exception_handler(ShiftContextError, _shift_context_error)
    application.add_exception_handler(EventMetaError, _event_meta_error)
    application.add_exception_handler(
        AttestationNotConfiguredError, _attestation_not_configured
    )
    application.include_router(health_router)
    application.include_router(governance_router)
    return application


app = create_app()
