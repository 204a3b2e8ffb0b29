"""Persistence adapters."""

from govgate.infrastructure.adapters.persistence.postgres_ledger_store import (
    PostgresLedgerStore,
)

__all__: list[str] = ["PostgresLedgerStore"]
