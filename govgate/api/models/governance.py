"""Governance API models.

Pydantic models for gate evaluation, classification, ledger verification,
attestation, reporting and execution token requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from govgate.domain.models.gate_context import GateContext


class ProblemResponse(BaseModel):
    """Problem details body returned for every refusal."""

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Short summary")
    status: int = Field(..., description="HTTP status code")
    code: str = Field(..., description="Machine-readable error code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: str | None = Field(default=None, description="Request path")
    readiness_status: str | None = None
    legitimacy_status: str | None = None
    reason_codes: list[str] | None = None
    policy_fingerprint: str | None = None


class GateContextRequest(BaseModel):
    """What is being gated.

    Shift scope is selected by ``shift_id`` or by ``date`` plus
    ``shift_code``; anything else is judged at organization scope.
    """

    action: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Action code",
        examples=["SHIFT_OVERRIDE_APPROVE"],
    )
    target_type: str = Field(
        ..., min_length=1, max_length=200, description="Kind of entity", examples=["shift"]
    )
    target_id: str | None = Field(default=None, max_length=200)
    shift_id: str | None = Field(default=None, max_length=200)
    date: str | None = Field(
        default=None, description="Shift date (YYYY-MM-DD)", examples=["2026-03-14"]
    )
    shift_code: str | None = Field(default=None, max_length=50, examples=["night"])
    meta: dict[str, Any] | None = Field(
        default=None,
        description="Change ({before, after}), decision ({decision, note}) or free-form payload",
    )
    idempotency_key: str | None = Field(default=None, max_length=200)

    @field_validator("action")
    @classmethod
    def normalize_action(cls, v: str) -> str:
        """Action codes are upper-case identifiers."""
        normalized = v.strip().upper()
        if not normalized:
            raise ValueError("action must not be blank")
        return normalized

    def to_context(self, route: str | None = None) -> GateContext:
        """Convert to the domain context.

        Raises:
            ShiftContextError: If ``date`` is not a valid YYYY-MM-DD date.
            EventMetaError: If ``meta`` holds a NaN or infinite number.
        """
        return GateContext(
            action=self.action,
            target_type=self.target_type,
            target_id=self.target_id,
            meta=self.meta,
            shift_id=self.shift_id,
            date=self.date,
            shift_code=self.shift_code,
            idempotency_key=self.idempotency_key,
            route=route,
        )


class GovernedActionRequest(GateContextRequest):
    """A governed action to authorize and record."""

    require_execution_token: bool = Field(
        default=False,
        description="Refuse unless a valid X-Execution-Token accompanies the request",
    )


class GateDecisionResponse(BaseModel):
    """Resolved gate decision."""

    allowed: bool
    scope: str
    readiness_status: str
    legitimacy_status: str
    reason_codes: list[str]
    unknown_reason_codes: list[str]
    policy_fingerprint: str
    legal: str | None = None
    ops: str | None = None
    signal_unavailable: bool = False


class GovernedActionResponse(BaseModel):
    """A governed action that was authorized and recorded."""

    event_id: str
    outcome: str
    chain_position: int | None
    payload_hash: str | None
    readiness_status: str
    reason_codes: list[str]
    policy_fingerprint: str | None
    snapshot_id: str | None = None


class ClassifyRequest(BaseModel):
    """Classification request."""

    action: str = Field(..., min_length=1, max_length=200)
    target_type: str = Field(default="", max_length=200)


class ClassificationResponse(BaseModel):
    """Category, severity and blocking impact of an event."""

    category: str
    severity: str
    impact: str
    is_blocking: bool
    ruleset_version: str


class LedgerVerificationResponse(BaseModel):
    """Result of verifying the caller org's chain."""

    org_id: str
    is_valid: bool
    rows_verified: int
    reason: str | None = None
    first_invalid_position: int | None = None
    event_id: str | None = None
    message: str | None = None


class AttestationPayloadModel(BaseModel):
    """Statement covered by an attestation signature."""

    org_id: str
    head_position: int | None
    head_hash: str | None
    total_events: int
    verified_at: str


class AttestationResponse(BaseModel):
    """Signed attestation of a verified chain head."""

    payload: AttestationPayloadModel
    signature: str
    public_key: str
    signature_algo: str


class GovernanceEventResponse(BaseModel):
    """One ledger row in export format."""

    id: str
    org_id: str
    site_id: str | None
    actor_user_id: str | None
    action: str
    target_type: str
    target_id: str | None
    outcome: str
    legitimacy_status: str
    readiness_status: str
    reason_codes: list[str]
    meta: dict[str, Any]
    policy_fingerprint: str | None
    idempotency_key: str | None
    created_at: str
    classification_version: str | None
    chain_position: int | None
    payload_hash: str | None
    payload_hash_algo: str | None
    previous_hash: str | None


class CategoryCountsModel(BaseModel):
    blocking: int
    non_blocking: int
    total: int


class BlockingReportResponse(BaseModel):
    """Blocking-event counts over a window."""

    org_id: str
    since: datetime | None
    until: datetime | None
    total_events: int
    blocking_events: int
    non_blocking_events: int
    by_category: dict[str, CategoryCountsModel]


class GovernanceSnapshotResponse(BaseModel):
    """The readiness posture behind one governed event."""

    id: str
    org_id: str
    site_id: str | None
    scope: str
    shift_id: str | None
    shift_date: str | None
    shift_code: str | None
    legitimacy_status: str
    readiness_status: str
    reason_codes: list[str]
    unknown_reason_codes: list[str]
    policy_fingerprint: str
    policy: dict[str, str | None]
    signal_unavailable: bool
    created_at: str
    payload_hash: str = Field(..., description="Hash the linking event records")


class ExecutionTokenRequest(BaseModel):
    """Scope and actions an execution token should cover."""

    shift_id: str | None = Field(default=None, max_length=200)
    date: str | None = Field(default=None, description="Shift date (YYYY-MM-DD)")
    shift_code: str | None = Field(default=None, max_length=50)
    allowed_actions: list[str] = Field(
        default_factory=list,
        max_length=50,
        description="Actions the token may authorize; empty allows any",
    )


class ExecutionTokenResponse(BaseModel):
    """An issued execution token and its claims."""

    token: str
    expires_at: int
    readiness_status: str
    policy_fingerprint: str
    allowed_actions: list[str]
    jti: str
