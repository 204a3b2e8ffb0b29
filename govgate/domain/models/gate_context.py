"""Gate context: what is being gated and at which scope.

A context is shift-scoped when it carries ``shift_id`` or both ``date``
and ``shift_code``. Otherwise it is organization-scoped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import Any

from govgate.domain.errors.shift_context import ShiftContextError
from govgate.domain.models.event_meta import validate_meta


class GateScope(str, Enum):
    """Granularity at which readiness is resolved."""

    SHIFT = "SHIFT"
    ORG = "ORG"


def normalize_shift_code(value: Any) -> str | None:
    """Trim and upper-case a shift code. Blank or non-string values become None."""
    if not isinstance(value, str):
        return None
    normalized = value.strip().upper()
    return normalized or None


def parse_shift_date(value: Any) -> date_type | None:
    """Parse a YYYY-MM-DD shift date.

    Raises:
        ShiftContextError: If the value is present but not a valid date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    if not isinstance(value, str):
        raise ShiftContextError(f"Shift date must be YYYY-MM-DD, got {value!r}")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ShiftContextError(f"Shift date must be YYYY-MM-DD, got {value!r}") from exc


@dataclass(frozen=True)
class GateContext:
    """Description of one gated mutation.

    Attributes:
        action: Action code, e.g. ``SHIFT_OVERRIDE_APPROVE``.
        target_type: Kind of entity being mutated.
        target_id: Identifier of the entity, when known.
        meta: Structured payload recorded in the ledger (see event_meta).
        shift_id: Shift identity for shift-scoped operations.
        date: Shift date for shift-scoped operations.
        shift_code: Shift code for shift-scoped operations (normalized).
        idempotency_key: Caller-supplied key; when absent one is derived.
        route: Route or operation name recorded for diagnostics.
    """

    action: str
    target_type: str
    target_id: str | None = None
    meta: Any = None
    shift_id: str | None = None
    date: date_type | None = None
    shift_code: str | None = None
    idempotency_key: str | None = None
    route: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.action, str) or not self.action.strip():
            raise ValueError("GateContext.action must be a non-empty string")
        if not isinstance(self.target_type, str) or not self.target_type.strip():
            raise ValueError("GateContext.target_type must be a non-empty string")
        validate_meta(self.meta)
        object.__setattr__(self, "date", parse_shift_date(self.date))
        object.__setattr__(self, "shift_code", normalize_shift_code(self.shift_code))
        shift_id = self.shift_id.strip() if isinstance(self.shift_id, str) else None
        object.__setattr__(self, "shift_id", shift_id or None)

    @property
    def scope(self) -> GateScope:
        if self.shift_id is not None:
            return GateScope.SHIFT
        if self.date is not None and self.shift_code is not None:
            return GateScope.SHIFT
        return GateScope.ORG

    @property
    def is_shift_scoped(self) -> bool:
        return self.scope == GateScope.SHIFT


@dataclass(frozen=True)
class ReadinessScope:
    """Scope passed to a readiness signal source."""

    org_id: str
    site_id: str | None = None
    shift_id: str | None = None
    date: date_type | None = None
    shift_code: str | None = None

    @property
    def scope(self) -> GateScope:
        if self.shift_id is not None or (
            self.date is not None and self.shift_code is not None
        ):
            return GateScope.SHIFT
        return GateScope.ORG

    @classmethod
    def for_context(
        cls, org_id: str, site_id: str | None, context: GateContext
    ) -> ReadinessScope:
        """Build the readiness scope for a gate context.

        Organization-scoped contexts drop any partial shift identity so
        the signal source resolves the aggregate posture.
        """
        if context.is_shift_scoped:
            return cls(
                org_id=org_id,
                site_id=site_id,
                shift_id=context.shift_id,
                date=context.date,
                shift_code=context.shift_code,
            )
        return cls(org_id=org_id, site_id=site_id)
