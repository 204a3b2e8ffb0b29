"""Hash-chain verification for the governance audit ledger.

Walks stored rows in chain order and proves they have not been altered.
Read-only: rows are never modified, not even to repair a mismatch.

Traversal order: chain_position ascending with pre-chain rows (no
position) last, then created_at ascending.

Per row:
1. Step A (every row): payload_hash must be present, its algorithm must
   be supported, and the recomputed hash must equal the stored one.
2. Step B (chain-aware rows only): position 1 must have no
   previous_hash; later positions must link to the preceding row's
   payload_hash.
3. Continuity: consecutive chain-aware rows must have consecutive
   positions.

The first failure short-circuits. A broken chain invalidates confidence
in everything after it.
"""

from __future__ import annotations

import hmac
from collections.abc import Iterable

from govgate.domain.errors.ledger import UnsupportedHashAlgorithmError
from govgate.domain.models.governance_event import GovernanceEvent
from govgate.domain.models.ledger_verification import (
    LedgerVerificationFailure,
    LedgerVerificationResult,
)
from govgate.domain.services.ledger_hashing import (
    HASH_ALGO_V1,
    compute_payload_hash,
    is_chain_aware,
)

_MAX_POSITION = float("inf")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _hashes_equal(left: str | None, right: str | None) -> bool:
    if left is None or right is None:
        return left is right
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


def order_for_verification(rows: Iterable[GovernanceEvent]) -> list[GovernanceEvent]:
    """Sort rows into verification order without mutating the input."""
    return sorted(
        rows,
        key=lambda row: (
            row.chain_position is None,
            row.chain_position if row.chain_position is not None else _MAX_POSITION,
            row.created_at,
        ),
    )


def verify_ledger_chain(rows: Iterable[GovernanceEvent]) -> LedgerVerificationResult:
    """Verify per-row hashes and chain linkage.

    Never raises for malformed rows: every problem is reported as an
    invalid result.

    Args:
        rows: Ledger rows for one chain scope, in any order.

    Returns:
        LedgerVerificationResult, valid for empty input.
    """
    ordered = order_for_verification(rows)
    previous: GovernanceEvent | None = None
    previous_chain_position: int | None = None

    for index, row in enumerate(ordered):
        position = row.chain_position
        event_id = str(row.id)

        def fail(
            reason: LedgerVerificationFailure, message: str
        ) -> LedgerVerificationResult:
            return LedgerVerificationResult.invalid(
                reason,
                rows_verified=index,
                position=position,
                event_id=event_id,
                message=message,
            )

        # Step A: per-row hash
        stored_hash = _clean(row.payload_hash)
        if stored_hash is None:
            return fail(LedgerVerificationFailure.MISSING_HASH, "payload_hash is empty")

        algo = _clean(row.payload_hash_algo) or HASH_ALGO_V1
        try:
            recomputed = compute_payload_hash(row, algo)
        except UnsupportedHashAlgorithmError:
            return fail(
                LedgerVerificationFailure.UNSUPPORTED_HASH_ALGO,
                f"payload_hash_algo {algo!r} is not supported",
            )
        except (TypeError, ValueError) as exc:
            return fail(LedgerVerificationFailure.HASH_MISMATCH, str(exc))

        if not _hashes_equal(recomputed, stored_hash):
            return fail(
                LedgerVerificationFailure.HASH_MISMATCH,
                "recomputed payload_hash differs from stored value",
            )

        # Step B: chain linkage
        if is_chain_aware(algo) and row.chain_position is not None:
            previous_hash = _clean(row.previous_hash)
            if row.chain_position == 1:
                if previous_hash is not None:
                    return fail(
                        LedgerVerificationFailure.CHAIN_BROKEN_AT_GENESIS,
                        "genesis row must not carry previous_hash",
                    )
            else:
                expected = _clean(previous.payload_hash) if previous else None
                if not _hashes_equal(previous_hash, expected):
                    return fail(
                        LedgerVerificationFailure.CHAIN_LINK_MISMATCH,
                        "previous_hash does not match preceding row",
                    )

            if (
                previous_chain_position is not None
                and row.chain_position != previous_chain_position + 1
            ):
                return fail(
                    LedgerVerificationFailure.CHAIN_POSITION_GAP,
                    f"expected chain_position {previous_chain_position + 1}, "
                    f"got {row.chain_position}",
                )
            previous_chain_position = row.chain_position

        previous = row

    return LedgerVerificationResult.valid(rows_verified=len(ordered))
