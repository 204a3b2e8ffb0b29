"""Governance gate orchestrator.

Wraps every state-changing operation: resolves readiness at the right
scope, normalizes reason codes, applies the runtime legitimacy guard and
only then invokes the handler.

Governance Constraints:
- Shift-scoped contexts (shift_id, or date + shift_code) are judged
  against that shift's posture; everything else against the org's
- Signal fetch failure fails CLOSED: NO_GO with SIGNAL_SOURCE_UNAVAILABLE
- On denial the handler is never invoked
- On allow the handler result is returned unchanged; the gate adds no
  side effects of its own
- Readiness is fetched fresh on every evaluation, never cached
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from structlog import get_logger

from govgate.application.ports.readiness_signal_source import ReadinessSignalSource
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.models.gate_context import GateContext, ReadinessScope
from govgate.domain.models.gate_result import (
    GOVERNANCE_UNAVAILABLE,
    GateAllowed,
    GateDecision,
    GateDenied,
    GateError,
    GateResult,
    LegitimacyDenied,
)
from govgate.domain.models.readiness import (
    ComposedReadiness,
    ReadinessStatus,
    apply_structural_blockers,
    resolve_legitimacy_status,
)
from govgate.domain.models.reason_codes import ReasonCode, normalize_reason_codes
from govgate.domain.services.idempotency import derive_policy_fingerprint
from govgate.domain.services.runtime_legitimacy_guard import (
    assert_execution_legitimacy,
)

logger = get_logger(__name__)

T = TypeVar("T")


class GovernanceGateService:
    """Resolves readiness and gates handlers on it.

    Example:
        >>> gate = GovernanceGateService(signal_source=source)
        >>> result = await gate.with_governance_gate(
        ...     org_id="org-1",
        ...     site_id="site-1",
        ...     context=GateContext(action="SHIFT_OVERRIDE_APPROVE", target_type="shift"),
        ...     handler=approve_override,
        ... )
        >>> if isinstance(result, GateDenied):
        ...     return conflict(result.error)
    """

    def __init__(self, signal_source: ReadinessSignalSource | None) -> None:
        """Initialize the gate.

        Args:
            signal_source: Legal/ops signal source. None means the gate is
                not configured and every gated call is refused with 503.
        """
        self._signal_source = signal_source

    @property
    def is_configured(self) -> bool:
        return self._signal_source is not None

    async def evaluate(
        self, org_id: str, site_id: str | None, context: GateContext
    ) -> GateDecision:
        """Resolve the gate decision for a context without running anything.

        Never raises for upstream failures; those produce a fail-closed
        NO_GO decision.

        Raises:
            GateConfigurationError: If no signal source is configured.
        """
        scope = ReadinessScope.for_context(org_id, site_id, context)
        log = logger.bind(
            org_id=org_id,
            site_id=site_id,
            action=context.action,
            scope=scope.scope.value,
        )

        if self._signal_source is None:
            log.critical("governance_not_configured", missing="readiness_signal_source")
            raise GateConfigurationError("readiness_signal_source")

        try:
            signal = await self._signal_source.fetch_signal(scope)
        except Exception as exc:
            log.error(
                "readiness_signal_fetch_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return self._fail_closed(scope)

        composed = ComposedReadiness.from_flags(signal.legal, signal.ops)
        normalized = normalize_reason_codes(
            composed.reason_codes + signal.extra_reason_codes
        )
        if normalized.has_unknown:
            log.warning(
                "unknown_reason_codes_quarantined",
                unknown_reason_codes=list(normalized.unknown),
            )

        overall = apply_structural_blockers(composed.overall, normalized.reason_codes)
        legitimacy = resolve_legitimacy_status(signal.legal)
        fingerprint = signal.policy_fingerprint or derive_policy_fingerprint(
            legitimacy.value,
            normalized.reason_codes,
            signal.legal.value,
            signal.ops.value,
        )
        return GateDecision(
            scope=scope.scope,
            readiness_status=overall,
            legitimacy_status=legitimacy,
            reason_codes=normalized.reason_codes,
            unknown_reason_codes=normalized.unknown,
            policy_fingerprint=fingerprint,
            legal=signal.legal,
            ops=signal.ops,
        )

    def _fail_closed(self, scope: ReadinessScope) -> GateDecision:
        reason_codes = (ReasonCode.SIGNAL_SOURCE_UNAVAILABLE.value,)
        legitimacy = resolve_legitimacy_status(None, signal_unavailable=True)
        return GateDecision(
            scope=scope.scope,
            readiness_status=ReadinessStatus.NO_GO,
            legitimacy_status=legitimacy,
            reason_codes=reason_codes,
            unknown_reason_codes=(),
            policy_fingerprint=derive_policy_fingerprint(
                legitimacy.value, reason_codes, None, None
            ),
            signal_unavailable=True,
        )

    async def apply(
        self,
        org_id: str,
        context: GateContext,
        decision: GateDecision,
        handler: Callable[[], Awaitable[T]],
    ) -> GateResult[T]:
        """Apply the legitimacy guard to a decision and run the handler on allow."""
        log = logger.bind(
            org_id=org_id,
            action=context.action,
            target_type=context.target_type,
            readiness_status=decision.readiness_status.value,
        )
        verdict = assert_execution_legitimacy(
            decision.readiness_status, decision.reason_codes
        )
        if isinstance(verdict, LegitimacyDenied):
            log.warning(
                "governance_gate_denied",
                reason_codes=list(verdict.reason_codes),
                legitimacy_status=decision.legitimacy_status.value,
            )
            return GateDenied(
                status=verdict.status,
                error=GateError(
                    code=verdict.code,
                    message="Execution refused: readiness is NO_GO.",
                    decision=decision,
                ),
            )

        log.info("governance_gate_allowed", reason_codes=list(decision.reason_codes))
        value = await handler()
        return GateAllowed(value=value, decision=decision)

    async def with_governance_gate(
        self,
        org_id: str,
        site_id: str | None,
        context: GateContext,
        handler: Callable[[], Awaitable[T]],
    ) -> GateResult[T]:
        """Gate a handler on the current readiness for its context.

        Args:
            org_id: Organization scope.
            site_id: Site scope, when any.
            context: What is being gated.
            handler: Zero-argument coroutine function performing the mutation.

        Returns:
            GateAllowed with the handler's value, GateDenied(409) on NO_GO,
            or GateDenied(503) when the gate is not configured.
        """
        try:
            decision = await self.evaluate(org_id, site_id, context)
        except GateConfigurationError as exc:
            return GateDenied(
                status=503,
                error=GateError(code=GOVERNANCE_UNAVAILABLE, message=str(exc)),
            )
        return await self.apply(org_id, context, decision, handler)
