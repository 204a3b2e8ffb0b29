"""Execution token errors."""

from govgate.domain.exceptions import GovernanceError


class ExecutionTokenError(GovernanceError):
    """Raised when an execution token is invalid, expired or not usable.

    Attributes:
        code: Machine-readable code (TOKEN_INVALID, TOKEN_EXPIRED,
            TOKEN_ACTION_NOT_ALLOWED, TOKEN_NOT_CONFIGURED,
            TOKEN_REQUIRED).
    """

    def __init__(self, code: str, message: str = "") -> None:
        self.code = code
        super().__init__(message or code)
