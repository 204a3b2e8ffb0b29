"""Ports (interfaces) for the collaborators of the governance gate."""

from govgate.application.ports.attestation_signer import AttestationSigner
from govgate.application.ports.ledger_store import ChainHead, LedgerStore
from govgate.application.ports.mutation_rate_limiter import (
    MutationRateLimiterProtocol,
    RateLimitDecision,
)
from govgate.application.ports.readiness_signal_source import ReadinessSignalSource

__all__: list[str] = [
    "AttestationSigner",
    "ChainHead",
    "LedgerStore",
    "MutationRateLimiterProtocol",
    "RateLimitDecision",
    "ReadinessSignalSource",
]
