"""Errors raised by readiness signal sources."""

from govgate.domain.exceptions import GovernanceError


class ReadinessSignalError(GovernanceError):
    """Raised when legal or operational signals cannot be fetched.

    The gate orchestrator converts this into a NO_GO decision carrying
    SIGNAL_SOURCE_UNAVAILABLE. It must never reach a caller as a 500.
    """

    def __init__(self, source: str, message: str = "") -> None:
        self.source = source
        super().__init__(message or f"Readiness signal source failed: {source}")
