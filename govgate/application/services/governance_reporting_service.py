"""Governance reporting: blocking-event KPIs, event and snapshot lookup.

Counts are derived with the same classifier used at write time, so a
report never re-implements the rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from structlog import get_logger

from govgate.application.ports.ledger_store import LedgerStore
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.models.governance_classification import (
    GovernanceCategory,
    describe_governance_event,
)
from govgate.domain.models.governance_event import GovernanceEvent, as_utc
from govgate.domain.models.governance_snapshot import GovernanceSnapshot

logger = get_logger(__name__)


@dataclass
class CategoryCounts:
    """Blocking and non-blocking counts for one category."""

    blocking: int = 0
    non_blocking: int = 0

    @property
    def total(self) -> int:
        return self.blocking + self.non_blocking


@dataclass(frozen=True)
class BlockingReport:
    """Blocking-event counts over a time window for one org."""

    org_id: str
    since: datetime | None
    until: datetime | None
    total_events: int
    blocking_events: int
    by_category: dict[str, CategoryCounts] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "org_id": self.org_id,
            "since": self.since.isoformat() if self.since else None,
            "until": self.until.isoformat() if self.until else None,
            "total_events": self.total_events,
            "blocking_events": self.blocking_events,
            "non_blocking_events": self.total_events - self.blocking_events,
            "by_category": {
                category: {
                    "blocking": counts.blocking,
                    "non_blocking": counts.non_blocking,
                    "total": counts.total,
                }
                for category, counts in self.by_category.items()
            },
        }


def summarize_blocking(
    org_id: str,
    events: list[GovernanceEvent],
    since: datetime | None = None,
    until: datetime | None = None,
) -> BlockingReport:
    """Aggregate classified events into a BlockingReport."""
    by_category = {category.value: CategoryCounts() for category in GovernanceCategory}
    blocking = 0
    for event in events:
        classification = describe_governance_event(event.action, event.target_type)
        counts = by_category[classification.category.value]
        if classification.is_blocking:
            counts.blocking += 1
            blocking += 1
        else:
            counts.non_blocking += 1
    return BlockingReport(
        org_id=org_id,
        since=since,
        until=until,
        total_events=len(events),
        blocking_events=blocking,
        by_category=by_category,
    )


class GovernanceReportingService:
    """Read-side queries over the ledger for reporting collaborators."""

    def __init__(self, store: LedgerStore | None) -> None:
        self._store = store

    def _require_store(self) -> LedgerStore:
        if self._store is None:
            logger.critical("governance_not_configured", missing="ledger_store")
            raise GateConfigurationError("ledger_store")
        return self._store

    async def blocking_report(
        self,
        org_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> BlockingReport:
        """Count blocking events per category in ``[since, until)``.

        Naive bounds are read as UTC.

        Raises:
            ValueError: If ``since`` is after ``until``.
            GateConfigurationError: If no ledger store is configured.
        """
        since = as_utc(since) if since is not None else None
        until = as_utc(until) if until is not None else None
        if since is not None and until is not None and since > until:
            raise ValueError("since must not be after until")
        events = await self._require_store().list_events(org_id, since, until)
        return summarize_blocking(org_id, events, since, until)

    async def get_event(self, org_id: str, event_id: UUID) -> GovernanceEvent | None:
        """Fetch one event within the caller's org."""
        return await self._require_store().get_event(org_id, event_id)

    async def get_snapshot(
        self, org_id: str, snapshot_id: UUID
    ) -> GovernanceSnapshot | None:
        """Fetch the posture snapshot a governed event links to."""
        return await self._require_store().get_snapshot(org_id, snapshot_id)
