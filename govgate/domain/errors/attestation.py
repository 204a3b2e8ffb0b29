"""Attestation errors."""

from govgate.domain.exceptions import GovernanceError


class AttestationNotConfiguredError(GovernanceError):
    """Raised when a ledger attestation is requested but no signing key is set."""

    def __init__(self) -> None:
        super().__init__("Ledger attestation signing key is not configured")
