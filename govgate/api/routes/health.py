"""Health check endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from govgate.bootstrap import governance as bootstrap

router = APIRouter(prefix="/v1", tags=["health"])


class HealthResponse(BaseModel):
    """Liveness plus whether the gate can currently authorize anything."""

    status: str
    ledger_configured: bool
    signal_source_configured: bool


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return health status.

    ``degraded`` means governed mutations will be refused with 503.
    """
    ledger_configured = bootstrap.get_ledger_store() is not None
    signal_source_configured = bootstrap.get_signal_source() is not None
    healthy = ledger_configured and signal_source_configured
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        ledger_configured=ledger_configured,
        signal_source_configured=signal_source_configured,
    )
