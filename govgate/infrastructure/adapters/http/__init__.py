"""HTTP adapters."""

from govgate.infrastructure.adapters.http.readiness_signal_client import (
    HttpReadinessSignalSource,
)

__all__: list[str] = ["HttpReadinessSignalSource"]
