"""Application services for the governance gate and audit ledger."""

from govgate.application.services.governance_gate_service import (
    GovernanceGateService,
)
from govgate.application.services.governance_reporting_service import (
    BlockingReport,
    GovernanceReportingService,
)
from govgate.application.services.governed_mutation_service import (
    GovernedMutationResult,
    GovernedMutationService,
)
from govgate.application.services.ledger_verification_service import (
    AttestationRefused,
    LedgerVerificationService,
)
from govgate.application.services.ledger_writer_service import (
    LedgerAppended,
    LedgerAppendFailed,
    LedgerWriterService,
)

__all__: list[str] = [
    "AttestationRefused",
    "BlockingReport",
    "GovernanceGateService",
    "GovernanceReportingService",
    "GovernedMutationResult",
    "GovernedMutationService",
    "LedgerAppendFailed",
    "LedgerAppended",
    "LedgerVerificationService",
    "LedgerWriterService",
]
