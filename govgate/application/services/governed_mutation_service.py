"""Governed mutation wrapper.

The audited form of the gate: every governed mutation attempt, allowed
or blocked, leaves exactly one ledger row describing the decision.

Flow:
1. Rate limit the actor (when a limiter is wired)
2. Evaluate the gate decision for the context
3. Store a snapshot of the posture, then append the ALLOWED or BLOCKED
   event linking it
4. Apply the legitimacy guard and run the handler only on allow

Governance Constraints:
- The decision is recorded before the handler runs, so a crashing
  handler still leaves its authorization in the trail
- No unaudited mutation: if the ledger cannot record the decision the
  handler does not run (503 GOVERNANCE_UNAVAILABLE)
- Content the ledger cannot hash is refused with 400 and nothing runs
- Idempotency key defaults to a digest of (org, action, target, outcome,
  policy fingerprint, scope, shift date, shift code)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar
from uuid import UUID

from structlog import get_logger
from uuid6 import uuid7

from govgate.application.ports.mutation_rate_limiter import (
    MutationRateLimiterProtocol,
    RateLimitDecision,
)
from govgate.application.services.governance_gate_service import (
    GovernanceGateService,
)
from govgate.application.services.ledger_writer_service import (
    LedgerAppendFailed,
    LedgerWriterService,
)
from govgate.domain.errors.ledger import LedgerPayloadError
from govgate.domain.models.actor_context import ActorContext
from govgate.domain.models.event_meta import parse_event_meta
from govgate.domain.models.gate_context import GateContext
from govgate.domain.models.gate_result import (
    GOVERNANCE_UNAVAILABLE,
    GateDecision,
    GateDenied,
    GateError,
    GateResult,
)
from govgate.domain.models.governance_event import (
    GovernanceEvent,
    GovernanceEventDraft,
    GovernanceOutcome,
)
from govgate.domain.models.governance_snapshot import GovernanceSnapshot
from govgate.domain.services.idempotency import compute_idempotency_key

logger = get_logger(__name__)

T = TypeVar("T")

RATE_LIMITED: str = "RATE_LIMITED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GovernedMutationResult(Generic[T]):
    """Outcome of a governed mutation.

    Attributes:
        result: GateAllowed with the handler value, or GateDenied.
        ledger_event: The recorded decision, None when nothing was recorded
            (rate limited, or the ledger failed).
        rate_limit: Rate limit decision, when a limiter is wired.
    """

    result: GateResult[T]
    ledger_event: GovernanceEvent | None = None
    rate_limit: RateLimitDecision | None = None

    @property
    def decision(self) -> GateDecision | None:
        if isinstance(self.result, GateDenied):
            return self.result.error.decision
        return self.result.decision


def build_event_meta(context: GateContext, decision: GateDecision) -> dict[str, Any]:
    """Meta recorded for a governed mutation.

    The caller's payload is kept under its variant; gate diagnostics
    (route, scope, quarantined codes) sit beside it.
    """
    meta: dict[str, Any] = {}
    payload = parse_event_meta(context.meta)
    if payload is not None:
        meta["payload"] = payload.to_dict()
    gate: dict[str, Any] = {"scope": decision.scope.value}
    if context.route:
        gate["route"] = context.route
    if decision.unknown_reason_codes:
        gate["unknown_reason_codes"] = list(decision.unknown_reason_codes)
        gate["unknown_reason_codes_count"] = len(decision.unknown_reason_codes)
    if decision.signal_unavailable:
        gate["signal_unavailable"] = True
    meta["gate"] = gate
    return meta


class GovernedMutationService:
    """Runs mutations behind the gate and records every decision."""

    def __init__(
        self,
        gate: GovernanceGateService,
        ledger_writer: LedgerWriterService,
        rate_limiter: MutationRateLimiterProtocol | None = None,
        clock: Callable[[], datetime] = _utcnow,
        snapshot_id_factory: Callable[[], UUID] = uuid7,
    ) -> None:
        """Initialize the wrapper.

        Args:
            gate: Governance gate orchestrator.
            ledger_writer: Ledger writer for decision rows.
            rate_limiter: Optional per-actor limiter.
            clock: Returns the current UTC time.
            snapshot_id_factory: Produces governance snapshot ids.
        """
        self._gate = gate
        self._ledger_writer = ledger_writer
        self._rate_limiter = rate_limiter
        self._clock = clock
        self._snapshot_id_factory = snapshot_id_factory

    async def run(
        self,
        actor: ActorContext,
        context: GateContext,
        handler: Callable[[], Awaitable[T]],
    ) -> GovernedMutationResult[T]:
        """Run a governed mutation.

        Raises:
            GateConfigurationError: If the ledger or signal source is not
                wired. Raised before anything is evaluated or executed.
        """
        log = logger.bind(
            org_id=actor.org_id,
            site_id=actor.site_id,
            actor_user_id=actor.actor_user_id,
            action=context.action,
        )
        self._ledger_writer.ensure_configured()

        rate_limit: RateLimitDecision | None = None
        if self._rate_limiter is not None:
            rate_limit = await self._rate_limiter.hit(actor.rate_limit_key)
            if not rate_limit.allowed:
                log.warning(
                    "governed_mutation_rate_limited",
                    limit=rate_limit.limit,
                    retry_after_seconds=rate_limit.retry_after_seconds,
                )
                return GovernedMutationResult(
                    result=GateDenied(
                        status=429,
                        error=GateError(
                            code=RATE_LIMITED,
                            message="Too many governed mutations; retry later.",
                        ),
                    ),
                    rate_limit=rate_limit,
                )

        decision = await self._gate.evaluate(actor.org_id, actor.site_id, context)
        outcome = (
            GovernanceOutcome.BLOCKED if decision.is_blocked else GovernanceOutcome.ALLOWED
        )
        idempotency_key = context.idempotency_key or compute_idempotency_key(
            org_id=actor.org_id,
            action=context.action,
            target_id=context.target_id,
            outcome=outcome.value,
            policy_fingerprint=decision.policy_fingerprint,
            scope=decision.scope.value,
            shift_date=context.date,
            shift_code=context.shift_code,
        )
        decided_at = self._clock()
        draft = GovernanceEventDraft(
            org_id=actor.org_id,
            site_id=actor.site_id,
            actor_user_id=actor.actor_user_id,
            action=context.action,
            target_type=context.target_type,
            target_id=context.target_id,
            outcome=outcome,
            legitimacy_status=decision.legitimacy_status,
            readiness_status=decision.readiness_status,
            reason_codes=decision.reason_codes,
            meta=build_event_meta(context, decision),
            policy_fingerprint=decision.policy_fingerprint,
            idempotency_key=idempotency_key,
            created_at=decided_at,
        )
        snapshot = GovernanceSnapshot.from_decision(
            id=self._snapshot_id_factory(),
            org_id=actor.org_id,
            site_id=actor.site_id,
            context=context,
            decision=decision,
            created_at=decided_at,
        )

        appended = await self._ledger_writer.append(draft, snapshot=snapshot)
        if isinstance(appended, LedgerAppendFailed):
            if isinstance(appended.error, LedgerPayloadError):
                log.warning("governed_mutation_payload_rejected", error=str(appended.error))
                return GovernedMutationResult(
                    result=GateDenied(
                        status=400,
                        error=GateError(
                            code=LedgerPayloadError.code,
                            message=str(appended.error),
                            decision=decision,
                        ),
                    ),
                    rate_limit=rate_limit,
                )
            log.critical("governance_not_configured", missing="ledger_write")
            return GovernedMutationResult(
                result=GateDenied(
                    status=503,
                    error=GateError(
                        code=GOVERNANCE_UNAVAILABLE,
                        message="Governance ledger unavailable; mutation not executed.",
                        decision=decision,
                    ),
                ),
                rate_limit=rate_limit,
            )

        result = await self._gate.apply(actor.org_id, context, decision, handler)
        return GovernedMutationResult(
            result=result,
            ledger_event=appended.event,
            rate_limit=rate_limit,
        )
