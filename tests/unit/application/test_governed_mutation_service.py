"""Unit tests for GovernedMutationService.

Every attempt, allowed or blocked, leaves exactly one ledger row; a
blocked or unrecorded attempt never reaches the handler.
"""

from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from govgate.application.ports.ledger_store import LedgerStore
from govgate.application.services.governance_gate_service import (
    GovernanceGateService,
)
from govgate.application.services.governed_mutation_service import (
    RATE_LIMITED,
    GovernedMutationService,
    build_event_meta,
)
from govgate.application.services.ledger_writer_service import LedgerWriterService
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.errors.ledger import LedgerPayloadError, LedgerStoreError
from govgate.domain.models.actor_context import ActorContext
from govgate.domain.models.gate_context import GateContext
from govgate.domain.models.gate_result import (
    GOVERNANCE_UNAVAILABLE,
    RUNTIME_NO_GO,
    GateAllowed,
    GateDenied,
)
from govgate.domain.models.governance_snapshot import SNAPSHOT_META_KEY
from govgate.domain.models.readiness import LegalFlag, OpsFlag
from govgate.domain.services.ledger_chain_verifier import verify_ledger_chain
from govgate.domain.services.ledger_hashing import compute_snapshot_hash
from govgate.infrastructure.adapters.memory_rate_limiter import (
    InMemoryMutationRateLimiter,
)
from govgate.infrastructure.stubs.ledger_store_stub import LedgerStoreStub

ACTOR = ActorContext(org_id="org-1", actor_user_id="user-1", site_id="site-1")


@pytest.fixture
def context() -> GateContext:
    return GateContext(
        action="SHIFT_OVERRIDE_APPROVE",
        target_type="shift",
        target_id="shift-42",
        shift_id="shift-42",
        meta={"decision": "approve", "note": "short staffed"},
        route="/v1/governance/actions",
    )


@pytest.fixture
def service(signal_source, ledger_store, fixed_now) -> GovernedMutationService:
    return GovernedMutationService(
        gate=GovernanceGateService(signal_source),
        ledger_writer=LedgerWriterService(ledger_store),
        clock=lambda: fixed_now,
    )


class TestAllowed:
    async def test_records_allowed_and_runs_handler(self, service, ledger_store, context) -> None:
        handler = AsyncMock(return_value="approved")

        outcome = await service.run(ACTOR, context, handler)

        assert isinstance(outcome.result, GateAllowed)
        assert outcome.result.value == "approved"
        handler.assert_awaited_once()
        event = outcome.ledger_event
        assert event is not None
        assert event.outcome == "ALLOWED"
        assert event.readiness_status == "GO"
        assert event.actor_user_id == "user-1"
        assert event.chain_position == 1
        assert ledger_store.count == 1

    async def test_meta_keeps_payload_and_gate_diagnostics(self, service, context) -> None:
        event = (await service.run(ACTOR, context, AsyncMock())).ledger_event

        assert event.meta["payload"] == {
            "kind": "decision",
            "decision": "approve",
            "note": "short staffed",
        }
        assert event.meta["gate"] == {"scope": "SHIFT", "route": "/v1/governance/actions"}

    async def test_decision_recorded_before_handler_runs(
        self, service, ledger_store, context
    ) -> None:
        seen: list[int] = []

        async def handler() -> None:
            seen.append(ledger_store.count)

        await service.run(ACTOR, context, handler)

        assert seen == [1]

    async def test_crashing_handler_still_leaves_row(self, service, ledger_store, context) -> None:
        handler = AsyncMock(side_effect=RuntimeError("write failed"))

        with pytest.raises(RuntimeError):
            await service.run(ACTOR, context, handler)

        assert ledger_store.count == 1

    async def test_repeat_attempt_is_idempotent(self, service, ledger_store, context) -> None:
        first = await service.run(ACTOR, context, AsyncMock())
        second = await service.run(ACTOR, context, AsyncMock())

        assert second.ledger_event.id == first.ledger_event.id
        assert ledger_store.count == 1

    async def test_caller_idempotency_key_wins(self, service, context) -> None:
        keyed = GateContext(
            action=context.action, target_type=context.target_type, idempotency_key="req-1"
        )

        event = (await service.run(ACTOR, keyed, AsyncMock())).ledger_event

        assert event.idempotency_key == "req-1"


class TestBlocked:
    async def test_no_go_records_blocked_and_skips_handler(
        self, service, signal_source, ledger_store, context
    ) -> None:
        signal_source.set_signal(LegalFlag.LEGAL_NO_GO, OpsFlag.OPS_GO)
        handler = AsyncMock()

        outcome = await service.run(ACTOR, context, handler)

        assert isinstance(outcome.result, GateDenied)
        assert outcome.result.status == 409
        assert outcome.result.error.code == RUNTIME_NO_GO
        handler.assert_not_awaited()
        event = outcome.ledger_event
        assert event.outcome == "BLOCKED"
        assert event.legitimacy_status == "LEGAL_STOP"
        assert event.reason_codes == ("LEGAL_BLOCKING",)
        assert ledger_store.count == 1

    async def test_signal_failure_records_blocked(self, service, signal_source, context) -> None:
        signal_source.set_failure()

        outcome = await service.run(ACTOR, context, AsyncMock())

        event = outcome.ledger_event
        assert event.outcome == "BLOCKED"
        assert event.reason_codes == ("SIGNAL_SOURCE_UNAVAILABLE",)
        assert event.meta["gate"]["signal_unavailable"] is True

    async def test_allowed_then_blocked_are_two_rows(
        self, service, signal_source, ledger_store, context
    ) -> None:
        await service.run(ACTOR, context, AsyncMock())
        signal_source.set_signal(LegalFlag.LEGAL_GO, OpsFlag.OPS_NO_GO)
        await service.run(ACTOR, context, AsyncMock())

        rows = await ledger_store.list_chain("org-1")
        assert [row.outcome for row in rows] == ["ALLOWED", "BLOCKED"]
        assert verify_ledger_chain(rows).is_valid


class TestRateLimit:
    async def test_over_limit_is_429_without_row(
        self, signal_source, ledger_store, fixed_now, context
    ) -> None:
        service = GovernedMutationService(
            gate=GovernanceGateService(signal_source),
            ledger_writer=LedgerWriterService(ledger_store),
            rate_limiter=InMemoryMutationRateLimiter(limit=1, window_seconds=60, clock=lambda: 100.0),
            clock=lambda: fixed_now,
        )
        handler = AsyncMock()

        await service.run(ACTOR, context, handler)
        outcome = await service.run(ACTOR, context, handler)

        assert isinstance(outcome.result, GateDenied)
        assert outcome.result.status == 429
        assert outcome.result.error.code == RATE_LIMITED
        assert outcome.ledger_event is None
        assert outcome.decision is None
        assert outcome.rate_limit.retry_after_seconds == 60
        assert handler.await_count == 1
        assert ledger_store.count == 1
        assert len(signal_source.calls) == 1


class TestUnavailable:
    async def test_ledger_write_failure_is_503(self, signal_source, fixed_now, context) -> None:
        store = AsyncMock(spec=LedgerStore)
        store.get_by_idempotency_key.return_value = None
        store.append_chained.side_effect = LedgerStoreError("disk full")
        service = GovernedMutationService(
            gate=GovernanceGateService(signal_source),
            ledger_writer=LedgerWriterService(store),
            clock=lambda: fixed_now,
        )
        handler = AsyncMock()

        outcome = await service.run(ACTOR, context, handler)

        assert isinstance(outcome.result, GateDenied)
        assert outcome.result.status == 503
        assert outcome.result.error.code == GOVERNANCE_UNAVAILABLE
        assert outcome.ledger_event is None
        handler.assert_not_awaited()

    async def test_missing_ledger_raises_before_evaluation(self, signal_source, context) -> None:
        service = GovernedMutationService(
            gate=GovernanceGateService(signal_source),
            ledger_writer=LedgerWriterService(None),
        )
        handler = AsyncMock()

        with pytest.raises(GateConfigurationError):
            await service.run(ACTOR, context, handler)

        handler.assert_not_awaited()
        assert signal_source.calls == []

    async def test_missing_signal_source_raises(self, ledger_store, context) -> None:
        service = GovernedMutationService(
            gate=GovernanceGateService(None),
            ledger_writer=LedgerWriterService(ledger_store),
        )

        with pytest.raises(GateConfigurationError):
            await service.run(ACTOR, context, AsyncMock())

        assert ledger_store.count == 0


class FailingSnapshotStore(LedgerStoreStub):
    async def append_snapshot(self, snapshot):
        raise LedgerStoreError("snapshot table unavailable")


class TestSnapshot:
    async def test_snapshot_is_stored_and_linked(self, service, ledger_store, context) -> None:
        event = (await service.run(ACTOR, context, AsyncMock())).ledger_event

        link = event.meta[SNAPSHOT_META_KEY]
        snapshot = await ledger_store.get_snapshot("org-1", UUID(link["id"]))
        assert snapshot is not None
        assert link["payload_hash"] == compute_snapshot_hash(snapshot)
        assert snapshot.scope == "SHIFT"
        assert snapshot.shift_id == "shift-42"
        assert snapshot.readiness_status == "GO"
        assert snapshot.legal == "LEGAL_GO"
        assert snapshot.created_at == event.created_at
        assert verify_ledger_chain([event]).is_valid

    async def test_blocked_attempt_snapshot_keeps_reasons(
        self, service, signal_source, ledger_store, context
    ) -> None:
        signal_source.set_signal(LegalFlag.LEGAL_NO_GO, OpsFlag.OPS_GO)

        event = (await service.run(ACTOR, context, AsyncMock())).ledger_event

        snapshot = await ledger_store.get_snapshot(
            "org-1", UUID(event.meta[SNAPSHOT_META_KEY]["id"])
        )
        assert snapshot.legitimacy_status == "LEGAL_STOP"
        assert snapshot.reason_codes == ("LEGAL_BLOCKING",)

    async def test_replay_writes_no_second_snapshot(self, service, ledger_store, context) -> None:
        await service.run(ACTOR, context, AsyncMock())
        await service.run(ACTOR, context, AsyncMock())

        assert ledger_store.snapshot_count == 1

    async def test_snapshot_failure_still_records_event(
        self, signal_source, fixed_now, context
    ) -> None:
        store = FailingSnapshotStore()
        service = GovernedMutationService(
            gate=GovernanceGateService(signal_source),
            ledger_writer=LedgerWriterService(store),
            clock=lambda: fixed_now,
        )
        handler = AsyncMock(return_value="approved")

        outcome = await service.run(ACTOR, context, handler)

        assert isinstance(outcome.result, GateAllowed)
        assert SNAPSHOT_META_KEY not in outcome.ledger_event.meta
        assert store.count == 1
        handler.assert_awaited_once()

    async def test_org_scoped_snapshot_has_no_shift(self, service, ledger_store) -> None:
        context = GateContext(action="POLICY_PUBLISH", target_type="policy")

        event = (await service.run(ACTOR, context, AsyncMock())).ledger_event

        snapshot = await ledger_store.get_snapshot(
            "org-1", UUID(event.meta[SNAPSHOT_META_KEY]["id"])
        )
        assert snapshot.scope == "ORG"
        assert snapshot.shift_id is None
        assert snapshot.shift_date is None


class TestUnhashablePayload:
    async def test_unhashable_meta_is_400_without_row(
        self, service, ledger_store, context
    ) -> None:
        bad = GateContext(
            action=context.action,
            target_type=context.target_type,
            meta={"tags": {"night", "short"}},
        )
        handler = AsyncMock()

        outcome = await service.run(ACTOR, bad, handler)

        assert isinstance(outcome.result, GateDenied)
        assert outcome.result.status == 400
        assert outcome.result.error.code == LedgerPayloadError.code
        assert outcome.result.error.decision is not None
        assert outcome.ledger_event is None
        handler.assert_not_awaited()
        assert ledger_store.count == 0
        assert ledger_store.snapshot_count == 0


async def test_build_event_meta_records_quarantined_codes(signal_source, context) -> None:
    signal_source.set_signal(LegalFlag.LEGAL_GO, OpsFlag.OPS_GO, extra_reason_codes=("ODD",))
    decision = await GovernanceGateService(signal_source).evaluate("org-1", None, context)

    meta = build_event_meta(context, decision)

    assert meta["gate"]["unknown_reason_codes"] == ["ODD"]
    assert meta["gate"]["unknown_reason_codes_count"] == 1
