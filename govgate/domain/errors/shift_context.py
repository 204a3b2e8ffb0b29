"""Shift context validation errors."""

from govgate.domain.exceptions import GovernanceError


class ShiftContextError(GovernanceError):
    """Raised when a gate context carries a malformed shift identity."""

    code = "SHIFT_CONTEXT_INVALID"
