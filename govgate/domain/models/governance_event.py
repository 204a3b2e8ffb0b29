"""Governance event: one immutable audit ledger row.

A governance event records a gated decision (ALLOWED or BLOCKED) or an
audited state change, together with the readiness posture and reason
codes that justified it. Rows are written once by the ledger writer and
are never updated or deleted.

Governance Constraints:
- Immutable after construction (frozen dataclass, meta frozen at every
  depth as MappingProxyType and tuples)
- chain_position is 1-based and None only for pre-chain rows
- previous_hash is None only at chain position 1
- The ledger is the single source of truth for past decisions
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

from govgate.domain.models.event_meta import EventMeta, to_plain


class GovernanceOutcome(str, Enum):
    """Outcome recorded for a gated action."""

    ALLOWED = "ALLOWED"
    BLOCKED = "BLOCKED"


def _value(item: Any) -> Any:
    return item.value if isinstance(item, Enum) else item


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _freeze_meta(meta: Any) -> MappingProxyType[str, Any]:
    if meta is None:
        return MappingProxyType({})
    if hasattr(meta, "to_dict") and not isinstance(meta, Mapping):
        return _freeze(meta.to_dict())
    if isinstance(meta, Mapping):
        return _freeze(to_plain(meta))
    raise TypeError(f"meta must be a mapping or EventMeta, got {type(meta).__name__}")


def as_utc(value: datetime) -> datetime:
    """Read naive timestamps as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class GovernanceEventDraft:
    """Content of a governance event before the ledger assigns chain fields.

    Attributes:
        org_id: Organization owning the ledger chain.
        site_id: Site scope, None for organization-wide actions.
        actor_user_id: Authenticated actor that triggered the action.
        action: Action code.
        target_type: Kind of entity acted on.
        target_id: Identifier of that entity.
        outcome: ALLOWED or BLOCKED for gated actions.
        legitimacy_status: OK or LEGAL_STOP.
        readiness_status: GO, WARNING or NO_GO.
        reason_codes: Normalized reason codes.
        meta: Structured payload (EventMeta variant or mapping).
        policy_fingerprint: Fingerprint of the evaluated policy.
        idempotency_key: Key for at-most-once semantics.
        created_at: Decision time (UTC).
        classification_version: Rule table version used to classify the row.
    """

    org_id: str
    actor_user_id: str | None
    action: str
    target_type: str
    outcome: str
    legitimacy_status: str
    readiness_status: str
    created_at: datetime
    site_id: str | None = None
    target_id: str | None = None
    reason_codes: tuple[str, ...] = field(default_factory=tuple)
    meta: Mapping[str, Any] | EventMeta | None = None
    policy_fingerprint: str | None = None
    idempotency_key: str | None = None
    classification_version: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.org_id, str) or not self.org_id.strip():
            raise ValueError("org_id must be a non-empty string")
        if not isinstance(self.action, str) or not self.action.strip():
            raise ValueError("action must be a non-empty string")
        if not isinstance(self.created_at, datetime):
            raise ValueError("created_at must be a datetime")
        object.__setattr__(self, "created_at", as_utc(self.created_at))
        object.__setattr__(self, "outcome", _value(self.outcome))
        object.__setattr__(self, "legitimacy_status", _value(self.legitimacy_status))
        object.__setattr__(self, "readiness_status", _value(self.readiness_status))
        object.__setattr__(
            self, "reason_codes", tuple(_value(code) for code in self.reason_codes)
        )
        object.__setattr__(self, "meta", _freeze_meta(self.meta))

    def __hash__(self) -> int:
        return hash((self.org_id, self.action, self.created_at, self.idempotency_key))


@dataclass(frozen=True)
class GovernanceEvent:
    """A stored governance event (ledger row).

    Content attributes mirror GovernanceEventDraft. Chain attributes:

    Attributes:
        id: Server-assigned identifier (UUIDv7, time ordered).
        chain_position: 1-based position within the org chain.
        payload_hash: SHA-256 hex digest of the canonical content.
        payload_hash_algo: ``v1`` (content only) or ``v2`` (content and
            chain position).
        previous_hash: payload_hash of the row at chain_position - 1.
    """

    id: UUID
    org_id: str
    actor_user_id: str | None
    action: str
    target_type: str
    outcome: str
    legitimacy_status: str
    readiness_status: str
    created_at: datetime
    site_id: str | None = None
    target_id: str | None = None
    reason_codes: tuple[str, ...] = field(default_factory=tuple)
    meta: Mapping[str, Any] = field(default_factory=dict)
    policy_fingerprint: str | None = None
    idempotency_key: str | None = None
    classification_version: str | None = None
    chain_position: int | None = None
    payload_hash: str | None = None
    payload_hash_algo: str | None = None
    previous_hash: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, UUID):
            object.__setattr__(self, "id", UUID(str(self.id)))
        if not isinstance(self.created_at, datetime):
            raise ValueError("created_at must be a datetime")
        if self.chain_position is not None and (
            isinstance(self.chain_position, bool)
            or not isinstance(self.chain_position, int)
            or self.chain_position < 1
        ):
            raise ValueError(
                f"chain_position must be a positive integer, got {self.chain_position!r}"
            )
        object.__setattr__(self, "created_at", as_utc(self.created_at))
        object.__setattr__(self, "outcome", _value(self.outcome))
        object.__setattr__(self, "legitimacy_status", _value(self.legitimacy_status))
        object.__setattr__(self, "readiness_status", _value(self.readiness_status))
        object.__setattr__(
            self, "reason_codes", tuple(_value(code) for code in self.reason_codes)
        )
        object.__setattr__(self, "meta", _freeze_meta(self.meta))

    def __hash__(self) -> int:
        """Hash by id. Two rows with the same id are the same row."""
        return hash(self.id)

    @classmethod
    def from_draft(
        cls,
        draft: GovernanceEventDraft,
        *,
        id: UUID,
        chain_position: int | None,
        payload_hash: str,
        payload_hash_algo: str,
        previous_hash: str | None,
    ) -> GovernanceEvent:
        """Materialize a stored row from a draft and its chain fields."""
        return cls(
            id=id,
            org_id=draft.org_id,
            site_id=draft.site_id,
            actor_user_id=draft.actor_user_id,
            action=draft.action,
            target_type=draft.target_type,
            target_id=draft.target_id,
            outcome=draft.outcome,
            legitimacy_status=draft.legitimacy_status,
            readiness_status=draft.readiness_status,
            reason_codes=draft.reason_codes,
            meta=draft.meta,
            policy_fingerprint=draft.policy_fingerprint,
            idempotency_key=draft.idempotency_key,
            created_at=draft.created_at,
            classification_version=draft.classification_version,
            chain_position=chain_position,
            payload_hash=payload_hash,
            payload_hash_algo=payload_hash_algo,
            previous_hash=previous_hash,
        )

    def with_changes(self, **changes: Any) -> GovernanceEvent:
        """Return a copy with fields replaced. The stored row is untouched."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Export as a JSON-compatible dict (ledger export format)."""
        return {
            "id": str(self.id),
            "org_id": self.org_id,
            "site_id": self.site_id,
            "actor_user_id": self.actor_user_id,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "outcome": self.outcome,
            "legitimacy_status": self.legitimacy_status,
            "readiness_status": self.readiness_status,
            "reason_codes": list(self.reason_codes),
            "meta": to_plain(self.meta),
            "policy_fingerprint": self.policy_fingerprint,
            "idempotency_key": self.idempotency_key,
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
            "classification_version": self.classification_version,
            "chain_position": self.chain_position,
            "payload_hash": self.payload_hash,
            "payload_hash_algo": self.payload_hash_algo,
            "previous_hash": self.previous_hash,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GovernanceEvent:
        """Load a row from the ledger export format.

        Raises:
            ValueError: If a required field is missing or malformed.
            KeyError: If ``id``, ``org_id``, ``action`` or ``created_at``
                is absent.
        """
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(
            id=UUID(str(data["id"])),
            org_id=data["org_id"],
            site_id=data.get("site_id"),
            actor_user_id=data.get("actor_user_id"),
            action=data["action"],
            target_type=data.get("target_type") or "",
            target_id=data.get("target_id"),
            outcome=data.get("outcome") or "",
            legitimacy_status=data.get("legitimacy_status") or "",
            readiness_status=data.get("readiness_status") or "",
            reason_codes=tuple(data.get("reason_codes") or ()),
            meta=data.get("meta") or {},
            policy_fingerprint=data.get("policy_fingerprint"),
            idempotency_key=data.get("idempotency_key"),
            created_at=created_at,
            classification_version=data.get("classification_version"),
            chain_position=data.get("chain_position"),
            payload_hash=data.get("payload_hash"),
            payload_hash_algo=data.get("payload_hash_algo"),
            previous_hash=data.get("previous_hash"),
        )
