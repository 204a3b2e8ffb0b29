"""Audit ledger writer.

Appends one immutable governance event per gated action, computing the
payload hash and chain linkage at the head of the org chain.

Governance Constraints:
- chain_position is one more than the current head of the org chain
- previous_hash is the head's payload_hash, None only at position 1
- A supplied idempotency_key is at-most-once within (org, site): a
  replay returns the existing row instead of writing a duplicate
- A uniqueness race is resolved by re-reading the winner's row; it is
  never reported to the caller as an error
- A linked governance snapshot is stored before the event that names it
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Union
from uuid import UUID

from structlog import get_logger
from uuid6 import uuid7

from govgate.application.ports.ledger_store import ChainHead, LedgerStore
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.errors.ledger import (
    DuplicateIdempotencyKeyError,
    LedgerPayloadError,
    LedgerStoreError,
)
from govgate.domain.models.event_meta import to_plain
from govgate.domain.models.governance_classification import (
    CLASSIFICATION_RULESET_VERSION,
)
from govgate.domain.models.governance_event import (
    GovernanceEvent,
    GovernanceEventDraft,
)
from govgate.domain.models.governance_snapshot import (
    SNAPSHOT_META_KEY,
    GovernanceSnapshot,
)
from govgate.domain.services.ledger_hashing import (
    DEFAULT_HASH_ALGO,
    compute_payload_hash,
    compute_snapshot_hash,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class LedgerAppended:
    """The event is in the ledger.

    Attributes:
        event: The stored row.
        created: False when an idempotent replay returned an existing row.
    """

    event: GovernanceEvent
    created: bool = True

    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class LedgerAppendFailed:
    """The store could not record the event."""

    error: LedgerStoreError

    ok: bool = field(default=False, init=False)


LedgerAppendResult = Union[LedgerAppended, LedgerAppendFailed]


def _payload_hash(draft: GovernanceEventDraft, position: int) -> str:
    try:
        return compute_payload_hash(draft, DEFAULT_HASH_ALGO, chain_position=position)
    except (TypeError, ValueError) as exc:
        raise LedgerPayloadError(f"Event content cannot be hashed: {exc}") from exc


class LedgerWriterService:
    """Writes governance events to the hash-chained ledger."""

    def __init__(
        self,
        store: LedgerStore | None,
        id_factory: Callable[[], UUID] = uuid7,
    ) -> None:
        """Initialize the writer.

        Args:
            store: Ledger store. None means the ledger is not configured.
            id_factory: Produces event ids (time-ordered UUIDv7 by default).
        """
        self._store = store
        self._id_factory = id_factory

    @property
    def is_configured(self) -> bool:
        return self._store is not None

    def _require_store(self) -> LedgerStore:
        if self._store is None:
            logger.critical("governance_not_configured", missing="ledger_store")
            raise GateConfigurationError("ledger_store")
        return self._store

    def ensure_configured(self) -> None:
        """Raise GateConfigurationError when no store is wired."""
        self._require_store()

    def _builder(self, draft: GovernanceEventDraft) -> Callable[[ChainHead], GovernanceEvent]:
        def build(head: ChainHead) -> GovernanceEvent:
            position = head.next_position
            return GovernanceEvent.from_draft(
                draft,
                id=self._id_factory(),
                chain_position=position,
                payload_hash=_payload_hash(draft, position),
                payload_hash_algo=DEFAULT_HASH_ALGO,
                previous_hash=head.payload_hash if position > 1 else None,
            )

        return build

    async def _link_snapshot(
        self,
        store: LedgerStore,
        draft: GovernanceEventDraft,
        snapshot: GovernanceSnapshot,
    ) -> GovernanceEventDraft:
        _payload_hash(draft, 1)
        try:
            await store.append_snapshot(snapshot)
        except LedgerStoreError as exc:
            logger.warning(
                "governance_snapshot_failed",
                org_id=draft.org_id,
                snapshot_id=str(snapshot.id),
                error=str(exc),
            )
            return draft
        meta = to_plain(draft.meta)
        meta[SNAPSHOT_META_KEY] = {
            "id": str(snapshot.id),
            "payload_hash": compute_snapshot_hash(snapshot),
        }
        return replace(draft, meta=meta)

    async def append(
        self,
        draft: GovernanceEventDraft,
        snapshot: GovernanceSnapshot | None = None,
    ) -> LedgerAppendResult:
        """Append a governance event.

        When a snapshot is given and the event is new, the snapshot is
        stored first and linked from the event meta under ``snapshot``
        with its id and payload hash. A replay writes no snapshot. A
        snapshot that cannot be stored is logged and the event is
        recorded without the link.

        Args:
            draft: Event content without chain fields.
            snapshot: Posture behind the decision, if any.

        Returns:
            LedgerAppended (created or replayed) or LedgerAppendFailed.

        Raises:
            GateConfigurationError: If no ledger store is configured.
        """
        store = self._require_store()
        if draft.classification_version is None:
            draft = replace(draft, classification_version=CLASSIFICATION_RULESET_VERSION)

        log = logger.bind(
            org_id=draft.org_id,
            site_id=draft.site_id,
            action=draft.action,
            outcome=draft.outcome,
            idempotency_key=draft.idempotency_key,
        )

        try:
            if draft.idempotency_key:
                existing = await store.get_by_idempotency_key(
                    draft.org_id, draft.site_id, draft.idempotency_key
                )
                if existing is not None:
                    log.info("ledger_idempotent_replay", event_id=str(existing.id))
                    return LedgerAppended(event=existing, created=False)

            if snapshot is not None:
                draft = await self._link_snapshot(store, draft, snapshot)
            event = await store.append_chained(draft.org_id, self._builder(draft))
        except DuplicateIdempotencyKeyError as exc:
            winner = await store.get_by_idempotency_key(
                exc.org_id, exc.site_id, exc.idempotency_key
            )
            if winner is None:
                log.error("ledger_append_failed", error=str(exc))
                return LedgerAppendFailed(error=exc)
            log.info("ledger_idempotent_replay", event_id=str(winner.id), raced=True)
            return LedgerAppended(event=winner, created=False)
        except LedgerPayloadError as exc:
            log.warning("ledger_payload_rejected", error=str(exc))
            return LedgerAppendFailed(error=exc)
        except LedgerStoreError as exc:
            log.error("ledger_append_failed", error=str(exc))
            return LedgerAppendFailed(error=exc)

        log.info(
            "ledger_event_appended",
            event_id=str(event.id),
            chain_position=event.chain_position,
        )
        return LedgerAppended(event=event, created=True)
