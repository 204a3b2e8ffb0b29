"""
Pytest configuration and shared fixtures for govgate tests.

Testing Standards:
- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Use the in-memory stubs for ports instead of hand-rolled fakes
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest
from uuid6 import uuid7

from govgate.domain.models.governance_event import (
    GovernanceEvent,
    GovernanceEventDraft,
    GovernanceOutcome,
)
from govgate.domain.models.governance_snapshot import GovernanceSnapshot
from govgate.domain.models.readiness import LegitimacyStatus, ReadinessStatus
from govgate.domain.services.ledger_hashing import HASH_ALGO_V2, compute_payload_hash
from govgate.infrastructure.stubs.ledger_store_stub import LedgerStoreStub
from govgate.infrastructure.stubs.readiness_signal_source_stub import (
    ReadinessSignalSourceStub,
)

FIXED_NOW = datetime(2026, 3, 14, 9, 30, 0, 123456, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed, timezone-aware decision time."""
    return FIXED_NOW


@pytest.fixture
def make_draft() -> Callable[..., GovernanceEventDraft]:
    """Factory for ledger drafts with sensible defaults."""

    def _make(**overrides: Any) -> GovernanceEventDraft:
        fields: dict[str, Any] = {
            "org_id": "org-1",
            "site_id": "site-1",
            "actor_user_id": "user-1",
            "action": "SHIFT_OVERRIDE_APPROVE",
            "target_type": "shift",
            "target_id": "shift-42",
            "outcome": GovernanceOutcome.ALLOWED,
            "legitimacy_status": LegitimacyStatus.OK,
            "readiness_status": ReadinessStatus.GO,
            "reason_codes": (),
            "meta": {"decision": "approve"},
            "policy_fingerprint": "fp-1",
            "created_at": FIXED_NOW,
        }
        fields.update(overrides)
        return GovernanceEventDraft(**fields)

    return _make


@pytest.fixture
def ledger_store() -> LedgerStoreStub:
    """Fresh in-memory ledger store for each test."""
    return LedgerStoreStub()


@pytest.fixture
def signal_source() -> ReadinessSignalSourceStub:
    """Signal source reporting LEGAL_GO / OPS_GO until told otherwise."""
    return ReadinessSignalSourceStub()


@pytest.fixture
def make_chain(
    make_draft: Callable[..., GovernanceEventDraft],
) -> Callable[..., list[GovernanceEvent]]:
    """Factory for correctly hashed and linked ledger rows."""

    def _make(count: int, algo: str = HASH_ALGO_V2, **overrides: Any) -> list[GovernanceEvent]:
        rows: list[GovernanceEvent] = []
        previous_hash: str | None = None
        for position in range(1, count + 1):
            draft = make_draft(
                target_id=f"shift-{position}",
                created_at=FIXED_NOW + timedelta(seconds=position),
                **overrides,
            )
            chain_position = position if algo == HASH_ALGO_V2 else None
            payload_hash = compute_payload_hash(draft, algo, chain_position=chain_position)
            rows.append(
                GovernanceEvent.from_draft(
                    draft,
                    id=uuid7(),
                    chain_position=chain_position,
                    payload_hash=payload_hash,
                    payload_hash_algo=algo,
                    previous_hash=previous_hash,
                )
            )
            if algo == HASH_ALGO_V2:
                previous_hash = payload_hash
        return rows

    return _make


@pytest.fixture
def make_snapshot() -> Callable[..., GovernanceSnapshot]:
    """Factory for shift-scoped governance snapshots."""

    def _make(**overrides: Any) -> GovernanceSnapshot:
        fields: dict[str, Any] = {
            "id": uuid7(),
            "org_id": "org-1",
            "site_id": "site-1",
            "scope": "SHIFT",
            "shift_id": "shift-42",
            "shift_date": date(2026, 3, 14),
            "shift_code": "N",
            "legitimacy_status": "OK",
            "readiness_status": "WARNING",
            "reason_codes": ("OPS_RISK",),
            "policy_fingerprint": "fp-1",
            "legal": "LEGAL_GO",
            "ops": "OPS_WARNING",
            "created_at": FIXED_NOW,
        }
        fields.update(overrides)
        return GovernanceSnapshot(**fields)

    return _make
