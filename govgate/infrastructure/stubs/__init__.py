"""In-memory stubs for every governance port."""

from govgate.infrastructure.stubs.ledger_store_stub import LedgerStoreStub
from govgate.infrastructure.stubs.readiness_signal_source_stub import (
    ReadinessSignalSourceStub,
)

__all__: list[str] = [
    "LedgerStoreStub",
    "ReadinessSignalSourceStub",
]
