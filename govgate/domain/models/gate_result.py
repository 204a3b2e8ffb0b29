"""Typed results of the legitimacy guard and the governance gate.

Denials are values, not exceptions: callers branch on the result type,
so forgetting to handle a denial cannot silently pass through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from govgate.domain.models.gate_context import GateScope
from govgate.domain.models.readiness import (
    LegalFlag,
    LegitimacyStatus,
    OpsFlag,
    ReadinessStatus,
)

T = TypeVar("T")

RUNTIME_NO_GO: str = "RUNTIME_NO_GO"
GOVERNANCE_UNAVAILABLE: str = "GOVERNANCE_UNAVAILABLE"


@dataclass(frozen=True)
class LegitimacyAllowed:
    """The guard permits execution."""

    readiness_status: ReadinessStatus
    reason_codes: tuple[str, ...] = ()

    allowed: bool = field(default=True, init=False)


@dataclass(frozen=True)
class LegitimacyDenied:
    """The guard refuses execution (HTTP 409 RUNTIME_NO_GO)."""

    readiness_status: ReadinessStatus
    reason_codes: tuple[str, ...] = ()
    status: int = 409
    code: str = RUNTIME_NO_GO

    allowed: bool = field(default=False, init=False)


LegitimacyResult = Union[LegitimacyAllowed, LegitimacyDenied]


@dataclass(frozen=True)
class GateDecision:
    """Everything the gate resolved for one evaluation.

    Attributes:
        scope: SHIFT or ORG.
        readiness_status: Composed overall status.
        legitimacy_status: OK or LEGAL_STOP.
        reason_codes: Normalized reason codes (sorted).
        unknown_reason_codes: Codes quarantined under UNKNOWN_REASON_CODE.
        policy_fingerprint: Reported or derived policy fingerprint.
        legal: Legal flag, None when signals were unavailable.
        ops: Ops flag, None when signals were unavailable.
        signal_unavailable: True when the gate failed closed.
    """

    scope: GateScope
    readiness_status: ReadinessStatus
    legitimacy_status: LegitimacyStatus
    reason_codes: tuple[str, ...]
    unknown_reason_codes: tuple[str, ...]
    policy_fingerprint: str
    legal: LegalFlag | None = None
    ops: OpsFlag | None = None
    signal_unavailable: bool = False

    @property
    def is_blocked(self) -> bool:
        return self.readiness_status == ReadinessStatus.NO_GO

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope.value,
            "readiness_status": self.readiness_status.value,
            "legitimacy_status": self.legitimacy_status.value,
            "reason_codes": list(self.reason_codes),
            "unknown_reason_codes": list(self.unknown_reason_codes),
            "policy_fingerprint": self.policy_fingerprint,
            "legal": self.legal.value if self.legal is not None else None,
            "ops": self.ops.value if self.ops is not None else None,
            "signal_unavailable": self.signal_unavailable,
        }


@dataclass(frozen=True)
class GateError:
    """Structured error carried by a denied gate result.

    Attributes:
        code: RUNTIME_NO_GO or GOVERNANCE_UNAVAILABLE (or a caller code).
        message: Human-readable explanation.
        decision: Gate decision, None when the gate could not evaluate.
    """

    code: str
    message: str
    decision: GateDecision | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.decision is not None:
            data["readiness_status"] = self.decision.readiness_status.value
            data["legitimacy_status"] = self.decision.legitimacy_status.value
            data["reason_codes"] = list(self.decision.reason_codes)
            data["policy_fingerprint"] = self.decision.policy_fingerprint
        return data


@dataclass(frozen=True)
class GateAllowed(Generic[T]):
    """The gate allowed the handler, which returned ``value``."""

    value: T
    decision: GateDecision

    allowed: bool = field(default=True, init=False)


@dataclass(frozen=True)
class GateDenied:
    """The gate refused; the handler was never invoked."""

    status: int
    error: GateError

    allowed: bool = field(default=False, init=False)


GateResult = Union[GateAllowed[T], GateDenied]
