"""Result types for audit ledger hash-chain verification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class LedgerVerificationFailure(str, Enum):
    """Why a ledger failed verification."""

    MISSING_HASH = "MISSING_HASH"
    HASH_MISMATCH = "HASH_MISMATCH"
    UNSUPPORTED_HASH_ALGO = "UNSUPPORTED_HASH_ALGO"
    CHAIN_BROKEN_AT_GENESIS = "CHAIN_BROKEN_AT_GENESIS"
    CHAIN_LINK_MISMATCH = "CHAIN_LINK_MISMATCH"
    CHAIN_POSITION_GAP = "CHAIN_POSITION_GAP"


@dataclass(frozen=True)
class LedgerVerificationResult:
    """Outcome of verifying an ordered sequence of ledger rows.

    Attributes:
        is_valid: True when every row passed.
        rows_verified: Rows that passed before the first failure.
        reason: Failure reason, None when valid.
        first_invalid_position: chain_position of the failing row, or its
            1-based index in traversal order for pre-chain rows.
        event_id: Identifier of the failing row.
        message: Human-readable detail.
    """

    is_valid: bool
    rows_verified: int
    reason: LedgerVerificationFailure | None = None
    first_invalid_position: int | None = None
    event_id: str | None = None
    message: str | None = None

    @classmethod
    def valid(cls, rows_verified: int) -> LedgerVerificationResult:
        return cls(is_valid=True, rows_verified=rows_verified)

    @classmethod
    def invalid(
        cls,
        reason: LedgerVerificationFailure,
        *,
        rows_verified: int,
        position: int | None,
        event_id: str | None = None,
        message: str | None = None,
    ) -> LedgerVerificationResult:
        return cls(
            is_valid=False,
            rows_verified=rows_verified,
            reason=reason,
            first_invalid_position=position,
            event_id=event_id,
            message=message,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "rows_verified": self.rows_verified,
            "reason": self.reason.value if self.reason is not None else None,
            "first_invalid_position": self.first_invalid_position,
            "event_id": self.event_id,
            "message": self.message,
        }
