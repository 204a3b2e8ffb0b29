"""Base exception classes for the govgate domain layer."""


class GovernanceError(Exception):
    """Base exception for all governance errors.

    All domain-specific exceptions MUST inherit from this class.
    Policy denials are NOT exceptions; they are returned as typed
    results (see domain.models.gate_result). Exceptions are reserved
    for port failures and wiring faults.
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
