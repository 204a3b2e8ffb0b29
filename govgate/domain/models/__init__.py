"""Domain models for the governance gate and audit ledger."""

from govgate.domain.models.actor_context import ActorContext
from govgate.domain.models.attestation import (
    ATTESTATION_SIGNATURE_ALGO,
    LedgerAttestation,
    LedgerAttestationPayload,
)
from govgate.domain.models.event_meta import (
    ChangeMeta,
    DecisionMeta,
    EventMeta,
    LegacyMeta,
    parse_event_meta,
)
from govgate.domain.models.execution_token import ExecutionTokenClaims
from govgate.domain.models.gate_context import GateContext, GateScope, ReadinessScope
from govgate.domain.models.gate_result import (
    GateAllowed,
    GateDecision,
    GateDenied,
    GateError,
    GateResult,
    LegitimacyAllowed,
    LegitimacyDenied,
    LegitimacyResult,
)
from govgate.domain.models.governance_classification import (
    CLASSIFICATION_RULESET_VERSION,
    GovernanceCategory,
    GovernanceClassification,
    GovernanceImpact,
    GovernanceSeverity,
    classify_governance_event,
    describe_governance_event,
    is_blocking_governance_event,
    resolve_governance_impact,
    resolve_governance_severity,
)
from govgate.domain.models.governance_event import (
    GovernanceEvent,
    GovernanceEventDraft,
    GovernanceOutcome,
)
from govgate.domain.models.ledger_verification import (
    LedgerVerificationFailure,
    LedgerVerificationResult,
)
from govgate.domain.models.readiness import (
    ComposedReadiness,
    LegalFlag,
    LegitimacyStatus,
    OpsFlag,
    ReadinessSignal,
    ReadinessStatus,
    compose_readiness,
    readiness_reason_codes,
)
from govgate.domain.models.reason_codes import (
    REASON_CODE_REGISTRY_VERSION,
    UNKNOWN_REASON_CODE,
    NormalizedReasonCodes,
    ReasonCode,
    normalize_reason_codes,
)

__all__: list[str] = [
    "ATTESTATION_SIGNATURE_ALGO",
    "ActorContext",
    "CLASSIFICATION_RULESET_VERSION",
    "REASON_CODE_REGISTRY_VERSION",
    "UNKNOWN_REASON_CODE",
    "ChangeMeta",
    "ComposedReadiness",
    "DecisionMeta",
    "EventMeta",
    "ExecutionTokenClaims",
    "GateAllowed",
    "GateContext",
    "GateDecision",
    "GateDenied",
    "GateError",
    "GateResult",
    "GateScope",
    "GovernanceCategory",
    "GovernanceClassification",
    "GovernanceEvent",
    "GovernanceEventDraft",
    "GovernanceImpact",
    "GovernanceOutcome",
    "GovernanceSeverity",
    "LedgerAttestation",
    "LedgerAttestationPayload",
    "LedgerVerificationFailure",
    "LedgerVerificationResult",
    "LegacyMeta",
    "LegalFlag",
    "LegitimacyAllowed",
    "LegitimacyDenied",
    "LegitimacyResult",
    "LegitimacyStatus",
    "NormalizedReasonCodes",
    "OpsFlag",
    "ReadinessScope",
    "ReadinessSignal",
    "ReadinessStatus",
    "ReasonCode",
    "classify_governance_event",
    "compose_readiness",
    "describe_governance_event",
    "is_blocking_governance_event",
    "normalize_reason_codes",
    "parse_event_meta",
    "readiness_reason_codes",
    "resolve_governance_impact",
    "resolve_governance_severity",
]
