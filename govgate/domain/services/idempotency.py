"""Deterministic keys and fingerprints for governed mutations.

Both values are SHA-256 digests over canonical JSON, so identical
decisions produce identical keys regardless of how callers ordered
their inputs.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from datetime import date

from govgate.domain.services.ledger_hashing import canonical_json


def _digest(payload: object) -> str:
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()


def derive_policy_fingerprint(
    legitimacy_status: str,
    reason_codes: Iterable[str],
    legal: str | None,
    ops: str | None,
) -> str:
    """Fingerprint the posture a decision was taken under.

    Used when the signal source does not report its own fingerprint.
    """
    return _digest(
        {
            "legitimacy_status": legitimacy_status,
            "reason_codes": sorted(set(reason_codes)),
            "legal": legal,
            "ops": ops,
        }
    )


def compute_idempotency_key(
    *,
    org_id: str,
    action: str,
    target_id: str | None,
    outcome: str,
    policy_fingerprint: str,
    scope: str,
    shift_date: date | None = None,
    shift_code: str | None = None,
) -> str:
    """Idempotency key for a governed mutation.

    Two attempts at the same action on the same target, with the same
    outcome under the same policy and scope, collapse to one ledger row.
    """
    return _digest(
        {
            "org_id": org_id,
            "action": action,
            "target_id": target_id,
            "outcome": outcome,
            "policy_fingerprint": policy_fingerprint,
            "scope": scope,
            "shift_date": shift_date.isoformat() if shift_date else None,
            "shift_code": shift_code,
        }
    )
