"""Runtime legitimacy guard.

The last synchronous check before a mutation executes. It sees only the
already-composed readiness status, never raw signals, so all policy
lives in readiness composition.

Governance Constraints:
- Denies iff readiness_status is NO_GO, whatever the reason codes
- Returns a typed result; never raises for a denial
- Deterministic: no retries, no I/O
"""

from __future__ import annotations

from collections.abc import Iterable

from govgate.domain.models.gate_result import (
    LegitimacyAllowed,
    LegitimacyDenied,
    LegitimacyResult,
)
from govgate.domain.models.readiness import ReadinessStatus


def assert_execution_legitimacy(
    readiness_status: ReadinessStatus | str,
    reason_codes: Iterable[str] = (),
) -> LegitimacyResult:
    """Check whether execution may proceed.

    Args:
        readiness_status: Composed readiness (GO, WARNING or NO_GO).
        reason_codes: Reason codes to carry on the result.

    Returns:
        LegitimacyDenied (409 RUNTIME_NO_GO) for NO_GO, else LegitimacyAllowed.
    """
    status = ReadinessStatus(readiness_status)
    codes = tuple(reason_codes)
    if status == ReadinessStatus.NO_GO:
        return LegitimacyDenied(readiness_status=status, reason_codes=codes)
    return LegitimacyAllowed(readiness_status=status, reason_codes=codes)
