"""Wiring errors raised when the gate runs without its collaborators."""

from govgate.domain.exceptions import GovernanceError


class GateConfigurationError(GovernanceError):
    """Raised when a governed operation runs without a working ledger or signal source.

    Fatal to the request. The API surfaces it as 503 GOVERNANCE_UNAVAILABLE.
    """

    def __init__(self, missing: str, message: str | None = None) -> None:
        self.missing = missing
        super().__init__(message or f"Governance gate is not configured: {missing}")
