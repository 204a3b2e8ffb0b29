"""In-memory ledger store for tests and local development.

Chain appends are serialized per org by an asyncio.Lock, matching the
advisory lock the PostgreSQL adapter takes. The (org, site,
idempotency_key) uniqueness constraint is enforced as the database
would enforce it.

WARNING: Process-local. Use only for development/testing
(GOVGATE_ALLOW_IN_MEMORY_LEDGER).
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from govgate.application.ports.ledger_store import ChainHead, LedgerStore
from govgate.domain.errors.ledger import DuplicateIdempotencyKeyError, LedgerStoreError
from govgate.domain.models.governance_event import GovernanceEvent, as_utc
from govgate.domain.models.governance_snapshot import GovernanceSnapshot
from govgate.domain.services.ledger_chain_verifier import order_for_verification


class LedgerStoreStub(LedgerStore):
    """In-memory LedgerStore.

    Stores events per org in insertion order. ``seed`` and
    ``replace_event`` let tests load pre-chain rows or simulate tampering
    at the storage level.
    """

    def __init__(self) -> None:
        self._events: dict[str, list[GovernanceEvent]] = {}
        self._by_key: dict[tuple[str, str | None, str], GovernanceEvent] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._snapshots: dict[str, dict[UUID, GovernanceSnapshot]] = {}

    def _lock_for(self, org_id: str) -> asyncio.Lock:
        if org_id not in self._locks:
            self._locks[org_id] = asyncio.Lock()
        return self._locks[org_id]

    def _head(self, org_id: str) -> ChainHead:
        chained = [
            event
            for event in self._events.get(org_id, [])
            if event.chain_position is not None
        ]
        if not chained:
            return ChainHead()
        head = max(chained, key=lambda event: event.chain_position or 0)
        return ChainHead(position=head.chain_position or 0, payload_hash=head.payload_hash)

    def _store(self, event: GovernanceEvent) -> None:
        if event.idempotency_key:
            key = (event.org_id, event.site_id, event.idempotency_key)
            if key in self._by_key:
                raise DuplicateIdempotencyKeyError(*key)
            self._by_key[key] = event
        self._events.setdefault(event.org_id, []).append(event)

    async def append_chained(
        self,
        org_id: str,
        build: Callable[[ChainHead], GovernanceEvent],
    ) -> GovernanceEvent:
        async with self._lock_for(org_id):
            event = build(self._head(org_id))
            self._store(event)
            return event

    async def get_by_idempotency_key(
        self, org_id: str, site_id: str | None, idempotency_key: str
    ) -> GovernanceEvent | None:
        return self._by_key.get((org_id, site_id, idempotency_key))

    async def get_event(self, org_id: str, event_id: UUID) -> GovernanceEvent | None:
        for event in self._events.get(org_id, []):
            if event.id == event_id:
                return event
        return None

    async def list_chain(self, org_id: str) -> list[GovernanceEvent]:
        return order_for_verification(self._events.get(org_id, []))

    async def list_events(
        self,
        org_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[GovernanceEvent]:
        since = as_utc(since) if since is not None else None
        until = as_utc(until) if until is not None else None
        events = [
            event
            for event in self._events.get(org_id, [])
            if (since is None or event.created_at >= since)
            and (until is None or event.created_at < until)
        ]
        return sorted(events, key=lambda event: event.created_at)

    async def get_chain_head(self, org_id: str) -> ChainHead:
        return self._head(org_id)

    async def append_snapshot(self, snapshot: GovernanceSnapshot) -> GovernanceSnapshot:
        org_snapshots = self._snapshots.setdefault(snapshot.org_id, {})
        if snapshot.id in org_snapshots:
            raise LedgerStoreError(f"Governance snapshot {snapshot.id} already stored")
        org_snapshots[snapshot.id] = snapshot
        return snapshot

    async def get_snapshot(
        self, org_id: str, snapshot_id: UUID
    ) -> GovernanceSnapshot | None:
        return self._snapshots.get(org_id, {}).get(snapshot_id)

    # Test helpers

    def seed(self, *events: GovernanceEvent) -> None:
        """Insert rows as-is, bypassing chain assignment."""
        for event in events:
            self._store(event)

    def replace_event(self, event: GovernanceEvent) -> None:
        """Overwrite a stored row in place (simulates out-of-band tampering)."""
        rows = self._events.get(event.org_id, [])
        for index, existing in enumerate(rows):
            if existing.id == event.id:
                rows[index] = event
                return
        raise KeyError(str(event.id))

    def clear(self) -> None:
        """Remove every stored row and snapshot."""
        self._events.clear()
        self._by_key.clear()
        self._snapshots.clear()

    @property
    def count(self) -> int:
        return sum(len(rows) for rows in self._events.values())

    @property
    def snapshot_count(self) -> int:
        return sum(len(snapshots) for snapshots in self._snapshots.values())
