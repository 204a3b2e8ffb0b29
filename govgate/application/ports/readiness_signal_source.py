"""Readiness signal source port.

The compliance-status and coverage calculators live outside this
service. The gate asks them for fresh signals on every evaluation;
nothing is cached across requests because compliance facts change
continuously.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from govgate.domain.models.gate_context import ReadinessScope
from govgate.domain.models.readiness import ReadinessSignal


class ReadinessSignalSource(ABC):
    """Abstract interface for fetching legal and operational signals."""

    @abstractmethod
    async def fetch_signal(self, scope: ReadinessScope) -> ReadinessSignal:
        """Fetch legal and ops flags for a scope.

        Shift-scoped requests carry ``shift_id`` or ``date`` plus
        ``shift_code``; organization-scoped requests carry neither.

        Args:
            scope: Organization, site and optional shift identity.

        Returns:
            ReadinessSignal for that scope.

        Raises:
            ReadinessSignalError: If the calculators cannot be reached or
                return an unusable answer.
        """
        ...
