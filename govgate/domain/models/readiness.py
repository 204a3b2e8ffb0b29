"""Readiness composition: legal + operational signals into one posture.

Governance Constraints:
- overall is NO_GO iff legal is LEGAL_NO_GO or ops is OPS_NO_GO
- overall is WARNING iff not NO_GO and either flag is a warning
- otherwise GO
- Reason codes are emitted independently for each flag and sorted
- Readiness is computed fresh per request and never persisted directly
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from govgate.domain.models.reason_codes import ReasonCode


class LegalFlag(str, Enum):
    """Legal compliance posture reported by the compliance calculator."""

    LEGAL_GO = "LEGAL_GO"
    LEGAL_WARNING = "LEGAL_WARNING"
    LEGAL_NO_GO = "LEGAL_NO_GO"


class OpsFlag(str, Enum):
    """Operational coverage posture reported by the coverage calculator."""

    OPS_GO = "OPS_GO"
    OPS_WARNING = "OPS_WARNING"
    OPS_NO_GO = "OPS_NO_GO"


class ReadinessStatus(str, Enum):
    """Composed readiness posture."""

    GO = "GO"
    WARNING = "WARNING"
    NO_GO = "NO_GO"


class LegitimacyStatus(str, Enum):
    """Legal dimension of readiness recorded on every ledger row."""

    OK = "OK"
    LEGAL_STOP = "LEGAL_STOP"


_G, _W, _N = ReadinessStatus.GO, ReadinessStatus.WARNING, ReadinessStatus.NO_GO

# Total over the 3x3 product. Reviewed as a table, not as branches.
READINESS_TRUTH_TABLE: MappingProxyType[tuple[LegalFlag, OpsFlag], ReadinessStatus] = (
    MappingProxyType(
        {
            (LegalFlag.LEGAL_GO, OpsFlag.OPS_GO): _G,
            (LegalFlag.LEGAL_GO, OpsFlag.OPS_WARNING): _W,
            (LegalFlag.LEGAL_GO, OpsFlag.OPS_NO_GO): _N,
            (LegalFlag.LEGAL_WARNING, OpsFlag.OPS_GO): _W,
            (LegalFlag.LEGAL_WARNING, OpsFlag.OPS_WARNING): _W,
            (LegalFlag.LEGAL_WARNING, OpsFlag.OPS_NO_GO): _N,
            (LegalFlag.LEGAL_NO_GO, OpsFlag.OPS_GO): _N,
            (LegalFlag.LEGAL_NO_GO, OpsFlag.OPS_WARNING): _N,
            (LegalFlag.LEGAL_NO_GO, OpsFlag.OPS_NO_GO): _N,
        }
    )
)

_LEGAL_REASON: MappingProxyType[LegalFlag, str | None] = MappingProxyType(
    {
        LegalFlag.LEGAL_GO: None,
        LegalFlag.LEGAL_WARNING: ReasonCode.LEGAL_EXPIRING.value,
        LegalFlag.LEGAL_NO_GO: ReasonCode.LEGAL_BLOCKING.value,
    }
)

_OPS_REASON: MappingProxyType[OpsFlag, str | None] = MappingProxyType(
    {
        OpsFlag.OPS_GO: None,
        OpsFlag.OPS_WARNING: ReasonCode.OPS_RISK.value,
        OpsFlag.OPS_NO_GO: ReasonCode.OPS_NO_COVERAGE.value,
    }
)


def compose_readiness(legal: LegalFlag, ops: OpsFlag) -> ReadinessStatus:
    """Compose legal and operational flags into an overall status."""
    return READINESS_TRUTH_TABLE[(LegalFlag(legal), OpsFlag(ops))]


def readiness_reason_codes(legal: LegalFlag, ops: OpsFlag) -> tuple[str, ...]:
    """Reason codes implied by the flags, sorted lexicographically."""
    codes = [
        code
        for code in (_LEGAL_REASON[LegalFlag(legal)], _OPS_REASON[OpsFlag(ops)])
        if code is not None
    ]
    return tuple(sorted(codes))


def resolve_legitimacy_status(
    legal: LegalFlag | None, *, signal_unavailable: bool = False
) -> LegitimacyStatus:
    """LEGAL_STOP when legal is NO_GO or unknown, or the signals could not be fetched."""
    if signal_unavailable or legal is None or LegalFlag(legal) == LegalFlag.LEGAL_NO_GO:
        return LegitimacyStatus.LEGAL_STOP
    return LegitimacyStatus.OK


@dataclass(frozen=True)
class ReadinessSignal:
    """Raw signals from the external calculators for one scope.

    Attributes:
        legal: Legal compliance flag.
        ops: Operational coverage flag.
        extra_reason_codes: Additional codes the calculators reported
            (e.g. NO_SHIFT, MISSING_SKILLS). Normalized by the gate.
        policy_fingerprint: Fingerprint of the policy the calculators
            evaluated against, when they report one.
    """

    legal: LegalFlag
    ops: OpsFlag
    extra_reason_codes: tuple[str, ...] = field(default_factory=tuple)
    policy_fingerprint: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "legal", LegalFlag(self.legal))
        object.__setattr__(self, "ops", OpsFlag(self.ops))
        object.__setattr__(self, "extra_reason_codes", tuple(self.extra_reason_codes))


@dataclass(frozen=True)
class ComposedReadiness:
    """Composed readiness for one scope.

    Attributes:
        overall: GO, WARNING or NO_GO.
        reason_codes: Sorted, deduplicated reason codes.
    """

    overall: ReadinessStatus
    reason_codes: tuple[str, ...]

    @classmethod
    def from_flags(cls, legal: LegalFlag, ops: OpsFlag) -> ComposedReadiness:
        """Compose readiness from raw flags."""
        return cls(
            overall=compose_readiness(legal, ops),
            reason_codes=readiness_reason_codes(legal, ops),
        )


# Structural gaps that block even when both flags are GO: the posture
# cannot be evaluated without a site, a policy or an organizational unit.
STRUCTURAL_BLOCKING_REASON_CODES: frozenset[str] = frozenset(
    {
        ReasonCode.NO_SITE.value,
        ReasonCode.POLICY_MISSING.value,
        ReasonCode.UNIT_MISSING.value,
    }
)


def apply_structural_blockers(
    overall: ReadinessStatus, reason_codes: tuple[str, ...]
) -> ReadinessStatus:
    """Escalate to NO_GO when a structural blocking code is present."""
    if STRUCTURAL_BLOCKING_REASON_CODES.intersection(reason_codes):
        return ReadinessStatus.NO_GO
    return overall
