"""PostgreSQL ledger store (SQLAlchemy async, asyncpg driver).

Governance Constraints:
- Appends for one org are serialized by a transaction-scoped advisory
  lock, so "read head, insert head + 1" is atomic across processes
- UNIQUE (org_id, chain_position) backs the lock; a violation there is a
  store error, never silently retried
- The idempotency unique index raises DuplicateIdempotencyKeyError
- Triggers reject UPDATE and DELETE on governance_events and
  governance_snapshots: both tables are append-only

SQL Pattern (append):
    BEGIN;
    SELECT pg_advisory_xact_lock(hashtext('governance_events:' || :org_id));
    SELECT chain_position, payload_hash FROM governance_events
        WHERE org_id = :org_id AND chain_position IS NOT NULL
        ORDER BY chain_position DESC LIMIT 1;
    INSERT INTO governance_events (...) VALUES (...);
    COMMIT;
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from govgate.application.ports.ledger_store import ChainHead, LedgerStore
from govgate.domain.errors.ledger import (
    DuplicateIdempotencyKeyError,
    LedgerStoreError,
)
from govgate.domain.models.governance_event import GovernanceEvent
from govgate.domain.models.governance_snapshot import GovernanceSnapshot

logger = get_logger(__name__)

IDEMPOTENCY_INDEX = "governance_events_idempotency_uq"

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS governance_events (
        id UUID PRIMARY KEY,
        org_id TEXT NOT NULL,
        site_id TEXT,
        actor_user_id TEXT,
        action TEXT NOT NULL,
        target_type TEXT NOT NULL,
        target_id TEXT,
        outcome TEXT NOT NULL,
        legitimacy_status TEXT NOT NULL,
        readiness_status TEXT NOT NULL,
        reason_codes JSONB NOT NULL DEFAULT '[]'::jsonb,
        meta JSONB NOT NULL DEFAULT '{}'::jsonb,
        policy_fingerprint TEXT,
        idempotency_key TEXT,
        classification_version TEXT,
        created_at TIMESTAMPTZ NOT NULL,
        chain_position BIGINT,
        payload_hash TEXT,
        payload_hash_algo TEXT,
        previous_hash TEXT,
        CONSTRAINT governance_events_chain_position_uq UNIQUE (org_id, chain_position)
    )
    """,
    f"""
    CREATE UNIQUE INDEX IF NOT EXISTS {IDEMPOTENCY_INDEX}
        ON governance_events (org_id, COALESCE(site_id, ''), idempotency_key)
        WHERE idempotency_key IS NOT NULL
    """,
    """
    CREATE INDEX IF NOT EXISTS governance_events_org_created_idx
        ON governance_events (org_id, created_at)
    """,
    """
    CREATE OR REPLACE FUNCTION governance_append_only()
    RETURNS trigger AS $$
    BEGIN
        RAISE EXCEPTION '% is append-only', TG_TABLE_NAME;
    END;
    $$ LANGUAGE plpgsql
    """,
    """
    DROP TRIGGER IF EXISTS governance_events_no_update ON governance_events
    """,
    """
    CREATE TRIGGER governance_events_no_update
        BEFORE UPDATE OR DELETE ON governance_events
        FOR EACH ROW EXECUTE FUNCTION governance_append_only()
    """,
    """
    CREATE TABLE IF NOT EXISTS governance_snapshots (
        id UUID PRIMARY KEY,
        org_id TEXT NOT NULL,
        site_id TEXT,
        scope TEXT NOT NULL,
        shift_id TEXT,
        shift_date DATE,
        shift_code TEXT,
        legitimacy_status TEXT NOT NULL,
        readiness_status TEXT NOT NULL,
        reason_codes JSONB NOT NULL DEFAULT '[]'::jsonb,
        unknown_reason_codes JSONB NOT NULL DEFAULT '[]'::jsonb,
        policy_fingerprint TEXT NOT NULL,
        policy JSONB NOT NULL DEFAULT '{}'::jsonb,
        signal_unavailable BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS governance_snapshots_org_created_idx
        ON governance_snapshots (org_id, created_at)
    """,
    """
    DROP TRIGGER IF EXISTS governance_snapshots_no_update ON governance_snapshots
    """,
    """
    CREATE TRIGGER governance_snapshots_no_update
        BEFORE UPDATE OR DELETE ON governance_snapshots
        FOR EACH ROW EXECUTE FUNCTION governance_append_only()
    """,
)

_COLUMNS = (
    "id, org_id, site_id, actor_user_id, action, target_type, target_id, "
    "outcome, legitimacy_status, readiness_status, reason_codes, meta, "
    "policy_fingerprint, idempotency_key, classification_version, created_at, "
    "chain_position, payload_hash, payload_hash_algo, previous_hash"
)

_INSERT = text(
    f"""
    INSERT INTO governance_events ({_COLUMNS})
    VALUES (
        :id, :org_id, :site_id, :actor_user_id, :action, :target_type, :target_id,
        :outcome, :legitimacy_status, :readiness_status,
        CAST(:reason_codes AS JSONB), CAST(:meta AS JSONB),
        :policy_fingerprint, :idempotency_key, :classification_version, :created_at,
        :chain_position, :payload_hash, :payload_hash_algo, :previous_hash
    )
    """
)

_SELECT_HEAD = text(
    """
    SELECT chain_position, payload_hash
    FROM governance_events
    WHERE org_id = :org_id AND chain_position IS NOT NULL
    ORDER BY chain_position DESC
    LIMIT 1
    """
)

_SNAPSHOT_COLUMNS = (
    "id, org_id, site_id, scope, shift_id, shift_date, shift_code, "
    "legitimacy_status, readiness_status, reason_codes, unknown_reason_codes, "
    "policy_fingerprint, policy, signal_unavailable, created_at"
)

_INSERT_SNAPSHOT = text(
    f"""
    INSERT INTO governance_snapshots ({_SNAPSHOT_COLUMNS})
    VALUES (
        :id, :org_id, :site_id, :scope, :shift_id, :shift_date, :shift_code,
        :legitimacy_status, :readiness_status,
        CAST(:reason_codes AS JSONB), CAST(:unknown_reason_codes AS JSONB),
        :policy_fingerprint, CAST(:policy AS JSONB), :signal_unavailable, :created_at
    )
    """
)


def _load_json(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def row_to_event(row: Mapping[str, Any]) -> GovernanceEvent:
    """Map a governance_events row to a GovernanceEvent."""
    return GovernanceEvent(
        id=row["id"] if isinstance(row["id"], UUID) else UUID(str(row["id"])),
        org_id=row["org_id"],
        site_id=row["site_id"],
        actor_user_id=row["actor_user_id"],
        action=row["action"],
        target_type=row["target_type"],
        target_id=row["target_id"],
        outcome=row["outcome"],
        legitimacy_status=row["legitimacy_status"],
        readiness_status=row["readiness_status"],
        reason_codes=tuple(_load_json(row["reason_codes"], [])),
        meta=_load_json(row["meta"], {}),
        policy_fingerprint=row["policy_fingerprint"],
        idempotency_key=row["idempotency_key"],
        classification_version=row["classification_version"],
        created_at=row["created_at"],
        chain_position=row["chain_position"],
        payload_hash=row["payload_hash"],
        payload_hash_algo=row["payload_hash_algo"],
        previous_hash=row["previous_hash"],
    )


def event_to_params(event: GovernanceEvent) -> dict[str, Any]:
    """Bind parameters for inserting an event."""
    data = event.to_dict()
    data["id"] = event.id
    data["created_at"] = event.created_at
    data["reason_codes"] = json.dumps(list(event.reason_codes))
    data["meta"] = json.dumps(data["meta"], sort_keys=True)
    return data


def row_to_snapshot(row: Mapping[str, Any]) -> GovernanceSnapshot:
    """Map a governance_snapshots row to a GovernanceSnapshot."""
    data = dict(row)
    data["reason_codes"] = _load_json(row["reason_codes"], [])
    data["unknown_reason_codes"] = _load_json(row["unknown_reason_codes"], [])
    data["policy"] = _load_json(row["policy"], {})
    return GovernanceSnapshot.from_dict(data)


def snapshot_to_params(snapshot: GovernanceSnapshot) -> dict[str, Any]:
    """Bind parameters for inserting a snapshot."""
    data = snapshot.to_dict()
    data["id"] = snapshot.id
    data["shift_date"] = snapshot.shift_date
    data["created_at"] = snapshot.created_at
    data["reason_codes"] = json.dumps(data["reason_codes"])
    data["unknown_reason_codes"] = json.dumps(data["unknown_reason_codes"])
    data["policy"] = json.dumps(data["policy"], sort_keys=True)
    return data


class PostgresLedgerStore(LedgerStore):
    """LedgerStore persisted in the ``governance_events`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory

    async def ensure_schema(self) -> None:
        """Create the table, indexes and append-only triggers if missing."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    for statement in SCHEMA_STATEMENTS:
                        await session.execute(text(statement))
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Failed to create ledger schema: {e}") from e
        logger.info("ledger_schema_ensured")

    async def _read_head(self, session: AsyncSession, org_id: str) -> ChainHead:
        result = await session.execute(_SELECT_HEAD, {"org_id": org_id})
        row = result.fetchone()
        if row is None:
            return ChainHead()
        return ChainHead(position=int(row[0]), payload_hash=row[1])

    async def append_chained(
        self,
        org_id: str,
        build: Callable[[ChainHead], GovernanceEvent],
    ) -> GovernanceEvent:
        log = logger.bind(org_id=org_id)
        event: GovernanceEvent | None = None
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
                        {"lock_key": f"governance_events:{org_id}"},
                    )
                    head = await self._read_head(session, org_id)
                    event = build(head)
                    await session.execute(_INSERT, event_to_params(event))
        except IntegrityError as e:
            if event is not None and IDEMPOTENCY_INDEX in str(e.orig):
                raise DuplicateIdempotencyKeyError(
                    org_id, event.site_id, event.idempotency_key or ""
                ) from e
            log.error("ledger_insert_integrity_error", error=str(e.orig))
            raise LedgerStoreError(f"Ledger integrity error: {e.orig}") from e
        except SQLAlchemyError as e:
            log.error("ledger_insert_failed", error=str(e))
            raise LedgerStoreError(f"Ledger write failed: {e}") from e
        return event

    async def _fetch_all(self, sql: str, params: dict[str, Any]) -> list[GovernanceEvent]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(text(sql), params)
                return [row_to_event(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Ledger read failed: {e}") from e

    async def get_by_idempotency_key(
        self, org_id: str, site_id: str | None, idempotency_key: str
    ) -> GovernanceEvent | None:
        rows = await self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM governance_events
            WHERE org_id = :org_id
              AND COALESCE(site_id, '') = COALESCE(:site_id, '')
              AND idempotency_key = :idempotency_key
            LIMIT 1
            """,
            {"org_id": org_id, "site_id": site_id, "idempotency_key": idempotency_key},
        )
        return rows[0] if rows else None

    async def get_event(self, org_id: str, event_id: UUID) -> GovernanceEvent | None:
        rows = await self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM governance_events
            WHERE org_id = :org_id AND id = :event_id
            """,
            {"org_id": org_id, "event_id": event_id},
        )
        return rows[0] if rows else None

    async def list_chain(self, org_id: str) -> list[GovernanceEvent]:
        return await self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM governance_events
            WHERE org_id = :org_id
            ORDER BY chain_position ASC NULLS LAST, created_at ASC
            """,
            {"org_id": org_id},
        )

    async def list_events(
        self,
        org_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[GovernanceEvent]:
        return await self._fetch_all(
            f"""
            SELECT {_COLUMNS} FROM governance_events
            WHERE org_id = :org_id
              AND (CAST(:since AS TIMESTAMPTZ) IS NULL OR created_at >= :since)
              AND (CAST(:until AS TIMESTAMPTZ) IS NULL OR created_at < :until)
            ORDER BY created_at ASC
            """,
            {"org_id": org_id, "since": since, "until": until},
        )

    async def get_chain_head(self, org_id: str) -> ChainHead:
        try:
            async with self._session_factory() as session:
                return await self._read_head(session, org_id)
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Ledger read failed: {e}") from e

    async def append_snapshot(self, snapshot: GovernanceSnapshot) -> GovernanceSnapshot:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(_INSERT_SNAPSHOT, snapshot_to_params(snapshot))
        except SQLAlchemyError as e:
            logger.error(
                "snapshot_insert_failed", org_id=snapshot.org_id, error=str(e)
            )
            raise LedgerStoreError(f"Snapshot write failed: {e}") from e
        return snapshot

    async def get_snapshot(
        self, org_id: str, snapshot_id: UUID
    ) -> GovernanceSnapshot | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text(
                        f"""
                        SELECT {_SNAPSHOT_COLUMNS} FROM governance_snapshots
                        WHERE org_id = :org_id AND id = :snapshot_id
                        """
                    ),
                    {"org_id": org_id, "snapshot_id": snapshot_id},
                )
                rows = result.mappings().all()
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Snapshot read failed: {e}") from e
        return row_to_snapshot(rows[0]) if rows else None
