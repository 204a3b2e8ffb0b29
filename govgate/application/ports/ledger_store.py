"""Ledger store port: append-only storage for governance events and snapshots.

Implementations own two guarantees the writer cannot provide alone:
- Chain positions are assigned under a serializing lock, so concurrent
  writers never produce duplicate or skipped positions
- (org_id, site_id, idempotency_key) is unique; a violation raises
  DuplicateIdempotencyKeyError and writes nothing

Chain scope is the organization: each org has one chain starting at
position 1.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from govgate.domain.models.governance_event import GovernanceEvent
from govgate.domain.models.governance_snapshot import GovernanceSnapshot


@dataclass(frozen=True)
class ChainHead:
    """The last chained row of an org's ledger.

    Attributes:
        position: Highest chain_position, 0 for an empty chain.
        payload_hash: payload_hash of that row, None for an empty chain.
    """

    position: int = 0
    payload_hash: str | None = None

    @property
    def next_position(self) -> int:
        return self.position + 1


class LedgerStore(ABC):
    """Abstract interface for the governance audit ledger."""

    @abstractmethod
    async def append_chained(
        self,
        org_id: str,
        build: Callable[[ChainHead], GovernanceEvent],
    ) -> GovernanceEvent:
        """Append one event at the head of the org chain.

        The store reads the current head and calls ``build`` with it
        while holding the chain lock, then persists the returned event.

        Args:
            org_id: Chain scope.
            build: Produces the complete event for the given head.

        Returns:
            The stored event.

        Raises:
            DuplicateIdempotencyKeyError: If the idempotency key is taken.
            LedgerStoreError: If the write fails.
        """
        ...

    @abstractmethod
    async def get_by_idempotency_key(
        self, org_id: str, site_id: str | None, idempotency_key: str
    ) -> GovernanceEvent | None:
        """Find an event by its idempotency key within (org, site)."""
        ...

    @abstractmethod
    async def get_event(self, org_id: str, event_id: UUID) -> GovernanceEvent | None:
        """Fetch one event, only if it belongs to ``org_id``."""
        ...

    @abstractmethod
    async def list_chain(self, org_id: str) -> list[GovernanceEvent]:
        """All events of an org chain, ordered by chain_position then created_at.

        Rows without a chain_position sort last.
        """
        ...

    @abstractmethod
    async def list_events(
        self,
        org_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[GovernanceEvent]:
        """Events with ``since <= created_at < until``, ordered by created_at."""
        ...

    @abstractmethod
    async def get_chain_head(self, org_id: str) -> ChainHead:
        """Current head of an org chain."""
        ...

    @abstractmethod
    async def append_snapshot(self, snapshot: GovernanceSnapshot) -> GovernanceSnapshot:
        """Store a governance snapshot. Snapshots are never updated.

        Raises:
            LedgerStoreError: If the write fails.
        """
        ...

    @abstractmethod
    async def get_snapshot(
        self, org_id: str, snapshot_id: UUID
    ) -> GovernanceSnapshot | None:
        """Fetch one snapshot, only if it belongs to ``org_id``."""
        ...
