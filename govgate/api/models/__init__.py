"""API request and response models."""

from govgate.api.models.governance import (
    AttestationResponse,
    BlockingReportResponse,
    ClassificationResponse,
    ClassifyRequest,
    ExecutionTokenRequest,
    ExecutionTokenResponse,
    GateContextRequest,
    GateDecisionResponse,
    GovernanceEventResponse,
    GovernedActionRequest,
    GovernedActionResponse,
    LedgerVerificationResponse,
    ProblemResponse,
)

__all__: list[str] = [
    "AttestationResponse",
    "BlockingReportResponse",
    "ClassificationResponse",
    "ClassifyRequest",
    "ExecutionTokenRequest",
    "ExecutionTokenResponse",
    "GateContextRequest",
    "GateDecisionResponse",
    "GovernanceEventResponse",
    "GovernedActionRequest",
    "GovernedActionResponse",
    "LedgerVerificationResponse",
    "ProblemResponse",
]
