"""Domain errors for the governance gate.

Every error inherits from GovernanceError. Import from this package
rather than from the individual modules.
"""

from govgate.domain.errors.attestation import AttestationNotConfiguredError
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.errors.event_meta import EventMetaError
from govgate.domain.errors.execution_token import ExecutionTokenError
from govgate.domain.errors.ledger import (
    DuplicateIdempotencyKeyError,
    LedgerPayloadError,
    LedgerStoreError,
    UnsupportedHashAlgorithmError,
)
from govgate.domain.errors.readiness import ReadinessSignalError
from govgate.domain.errors.shift_context import ShiftContextError
from govgate.domain.exceptions import GovernanceError

__all__: list[str] = [
    "AttestationNotConfiguredError",
    "DuplicateIdempotencyKeyError",
    "EventMetaError",
    "ExecutionTokenError",
    "GateConfigurationError",
    "GovernanceError",
    "LedgerPayloadError",
    "LedgerStoreError",
    "ReadinessSignalError",
    "ShiftContextError",
    "UnsupportedHashAlgorithmError",
]
