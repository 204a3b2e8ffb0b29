"""Structured payloads recorded in a governance event's ``meta`` field.

``meta`` is a tagged union discriminated by ``kind``. Callers pick the
variant matching their action; anything else is carried as LegacyMeta so
older producers keep working. Every variant serializes to a plain dict
whose keys are hashed in sorted order.

Values are normalized so the hashed form survives a JSONB round-trip:
timestamps become UTC ISO strings, UUIDs strings, and integral floats
and Decimals become ints.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Union
from uuid import UUID

from govgate.domain.errors.event_meta import EventMetaError


def _plain_scalar(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def to_plain(value: Any) -> Any:
    """Convert mapping proxies, tuples and rich scalars into JSON values."""
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return _plain_scalar(value)


def validate_meta(value: Any) -> None:
    """Reject payloads the ledger cannot hash.

    Raises:
        EventMetaError: If a NaN or infinite number appears anywhere.
    """
    if isinstance(value, (ChangeMeta, DecisionMeta, LegacyMeta)):
        value = value.to_dict()
    if isinstance(value, Mapping):
        for item in value.values():
            validate_meta(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            validate_meta(item)
    elif isinstance(value, float) and not math.isfinite(value):
        raise EventMetaError(f"meta holds a non-finite number: {value!r}")
    elif isinstance(value, Decimal) and not value.is_finite():
        raise EventMetaError(f"meta holds a non-finite number: {value!r}")


@dataclass(frozen=True)
class ChangeMeta:
    """Before/after snapshot of a mutated entity."""

    before: Mapping[str, Any] | None = None
    after: Mapping[str, Any] | None = None
    request_id: str | None = None
    kind: str = field(default="change", init=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind}
        if self.before is not None:
            data["before"] = to_plain(self.before)
        if self.after is not None:
            data["after"] = to_plain(self.after)
        if self.request_id is not None:
            data["request_id"] = self.request_id
        return data


@dataclass(frozen=True)
class DecisionMeta:
    """A recorded operator decision, e.g. approving an override."""

    decision: str
    note: str | None = None
    request_id: str | None = None
    kind: str = field(default="decision", init=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind, "decision": self.decision}
        if self.note is not None:
            data["note"] = self.note
        if self.request_id is not None:
            data["request_id"] = self.request_id
        return data


@dataclass(frozen=True)
class LegacyMeta:
    """Unstructured payload from producers that predate the typed variants."""

    payload: Mapping[str, Any] = field(default_factory=dict)
    kind: str = field(default="legacy", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "payload": to_plain(self.payload)}


EventMeta = Union[ChangeMeta, DecisionMeta, LegacyMeta]

_CHANGE_KEYS = frozenset({"before", "after", "request_id"})
_DECISION_KEYS = frozenset({"decision", "note", "request_id"})


def parse_event_meta(raw: Any) -> EventMeta | None:
    """Coerce a raw meta value into a typed variant.

    Dicts carrying an explicit ``kind`` are parsed as that variant.
    Untagged dicts whose keys fit the change or decision shape are
    promoted; everything else becomes LegacyMeta.

    Returns:
        The variant, or None when ``raw`` is None.
    """
    if raw is None:
        return None
    if isinstance(raw, (ChangeMeta, DecisionMeta, LegacyMeta)):
        return raw
    if not isinstance(raw, Mapping):
        return LegacyMeta(payload={"value": to_plain(raw)})

    kind = raw.get("kind")
    keys = set(raw.keys()) - {"kind"}
    if kind == "change" or (kind is None and keys and keys <= _CHANGE_KEYS):
        if keys <= _CHANGE_KEYS:
            return ChangeMeta(
                before=raw.get("before"),
                after=raw.get("after"),
                request_id=raw.get("request_id"),
            )
    if kind == "decision" or (kind is None and "decision" in keys):
        if keys <= _DECISION_KEYS and isinstance(raw.get("decision"), str):
            return DecisionMeta(
                decision=raw["decision"],
                note=raw.get("note"),
                request_id=raw.get("request_id"),
            )
    if kind == "legacy" and keys == {"payload"} and isinstance(raw["payload"], Mapping):
        return LegacyMeta(payload=raw["payload"])
    return LegacyMeta(payload={k: v for k, v in raw.items()})
