"""Governance snapshot: the readiness posture behind one gate evaluation.

The ledger row records the decision and its fingerprint; the snapshot
records the posture that produced it (scope, statuses, reason codes and
the legal/ops policy envelope). Each governed mutation writes one
snapshot and links it from the event meta, together with the snapshot's
payload hash, so the link is covered by the event's own payload hash.

Governance Constraints:
- Immutable after construction
- Snapshots are append-only; a stored snapshot is never rewritten
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from govgate.domain.models.gate_context import GateContext
from govgate.domain.models.gate_result import GateDecision
from govgate.domain.models.governance_event import as_utc

SNAPSHOT_META_KEY: str = "snapshot"


@dataclass(frozen=True)
class GovernanceSnapshot:
    """Posture captured at one gate evaluation.

    Attributes:
        id: Snapshot identifier (UUIDv7).
        org_id: Organization evaluated.
        site_id: Site scope, None for organization-wide evaluations.
        scope: SHIFT or ORG.
        shift_id: Shift identity for shift-scoped evaluations.
        shift_date: Shift date for shift-scoped evaluations.
        shift_code: Shift code for shift-scoped evaluations.
        legitimacy_status: OK or LEGAL_STOP.
        readiness_status: GO, WARNING or NO_GO.
        reason_codes: Normalized reason codes.
        unknown_reason_codes: Codes quarantined by the registry.
        policy_fingerprint: Fingerprint of the evaluated policy.
        legal: Legal flag, None when signals were unavailable.
        ops: Ops flag, None when signals were unavailable.
        signal_unavailable: True when the gate failed closed.
        created_at: Evaluation time (UTC).
    """

    id: UUID
    org_id: str
    scope: str
    legitimacy_status: str
    readiness_status: str
    policy_fingerprint: str
    created_at: datetime
    site_id: str | None = None
    shift_id: str | None = None
    shift_date: date | None = None
    shift_code: str | None = None
    reason_codes: tuple[str, ...] = ()
    unknown_reason_codes: tuple[str, ...] = ()
    legal: str | None = None
    ops: str | None = None
    signal_unavailable: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.id, UUID):
            object.__setattr__(self, "id", UUID(str(self.id)))
        if not isinstance(self.org_id, str) or not self.org_id.strip():
            raise ValueError("org_id must be a non-empty string")
        object.__setattr__(self, "created_at", as_utc(self.created_at))
        object.__setattr__(self, "reason_codes", tuple(self.reason_codes))
        object.__setattr__(self, "unknown_reason_codes", tuple(self.unknown_reason_codes))

    @classmethod
    def from_decision(
        cls,
        *,
        id: UUID,
        org_id: str,
        site_id: str | None,
        context: GateContext,
        decision: GateDecision,
        created_at: datetime,
    ) -> GovernanceSnapshot:
        """Capture the posture of one evaluation."""
        shift_scoped = context.is_shift_scoped
        return cls(
            id=id,
            org_id=org_id,
            site_id=site_id,
            scope=decision.scope.value,
            shift_id=context.shift_id if shift_scoped else None,
            shift_date=context.date if shift_scoped else None,
            shift_code=context.shift_code if shift_scoped else None,
            legitimacy_status=decision.legitimacy_status.value,
            readiness_status=decision.readiness_status.value,
            reason_codes=decision.reason_codes,
            unknown_reason_codes=decision.unknown_reason_codes,
            policy_fingerprint=decision.policy_fingerprint,
            legal=decision.legal.value if decision.legal is not None else None,
            ops=decision.ops.value if decision.ops is not None else None,
            signal_unavailable=decision.signal_unavailable,
            created_at=created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "org_id": self.org_id,
            "site_id": self.site_id,
            "scope": self.scope,
            "shift_id": self.shift_id,
            "shift_date": self.shift_date.isoformat() if self.shift_date else None,
            "shift_code": self.shift_code,
            "legitimacy_status": self.legitimacy_status,
            "readiness_status": self.readiness_status,
            "reason_codes": list(self.reason_codes),
            "unknown_reason_codes": list(self.unknown_reason_codes),
            "policy_fingerprint": self.policy_fingerprint,
            "policy": {"legal": self.legal, "ops": self.ops},
            "signal_unavailable": self.signal_unavailable,
            "created_at": self.created_at.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GovernanceSnapshot:
        """Load a snapshot from its exported form."""
        policy = data.get("policy") or {}
        shift_date = data.get("shift_date")
        if isinstance(shift_date, str):
            shift_date = date.fromisoformat(shift_date)
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(
            id=UUID(str(data["id"])),
            org_id=data["org_id"],
            site_id=data.get("site_id"),
            scope=data["scope"],
            shift_id=data.get("shift_id"),
            shift_date=shift_date,
            shift_code=data.get("shift_code"),
            legitimacy_status=data["legitimacy_status"],
            readiness_status=data["readiness_status"],
            reason_codes=tuple(data.get("reason_codes") or ()),
            unknown_reason_codes=tuple(data.get("unknown_reason_codes") or ()),
            policy_fingerprint=data["policy_fingerprint"],
            legal=policy.get("legal"),
            ops=policy.get("ops"),
            signal_unavailable=bool(data.get("signal_unavailable", False)),
            created_at=created_at,
        )
