"""Reason code registry for governance decisions.

A closed, versioned vocabulary of machine-checkable reason codes. Every
decision recorded in the ledger carries reason codes normalized here, so
ordering and membership are deterministic regardless of how a caller
assembled the list.

Governance Constraints:
- Output ordering never depends on input order (idempotency keys and
  ledger hashes are computed over the normalized list)
- Unknown codes are quarantined under UNKNOWN_REASON_CODE in the output
  and returned separately, never silently dropped
- normalize_reason_codes never raises
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

REASON_CODE_REGISTRY_VERSION: str = "RC_V1"


class ReasonCode(str, Enum):
    """Allowlisted reason codes (registry RC_V1).

    Additions are allowed; removals or renames are not, since stored
    ledger rows reference these values.
    """

    LEGAL_BLOCKING = "LEGAL_BLOCKING"
    LEGAL_EXPIRING = "LEGAL_EXPIRING"
    OPS_NO_COVERAGE = "OPS_NO_COVERAGE"
    OPS_RISK = "OPS_RISK"
    NO_SITE = "NO_SITE"
    NO_SHIFT = "NO_SHIFT"
    NO_ASSIGNMENTS = "NO_ASSIGNMENTS"
    POLICY_MISSING = "POLICY_MISSING"
    UNIT_MISSING = "UNIT_MISSING"
    SIGNAL_SOURCE_UNAVAILABLE = "SIGNAL_SOURCE_UNAVAILABLE"
    COMPLIANCE_EXPIRED = "COMPLIANCE_EXPIRED"
    COMPLIANCE_EXPIRING = "COMPLIANCE_EXPIRING"
    NO_STATION_COVERAGE = "NO_STATION_COVERAGE"
    MISSING_SKILLS = "MISSING_SKILLS"
    UNKNOWN_REASON_CODE = "UNKNOWN_REASON_CODE"


UNKNOWN_REASON_CODE: str = ReasonCode.UNKNOWN_REASON_CODE.value

ALLOWED_REASON_CODES: frozenset[str] = frozenset(code.value for code in ReasonCode)


@dataclass(frozen=True)
class NormalizedReasonCodes:
    """Result of reason code normalization.

    Attributes:
        reason_codes: Sorted, deduplicated, allowlisted codes. Contains
            UNKNOWN_REASON_CODE iff ``unknown`` is non-empty.
        unknown: Sorted, deduplicated codes that were not allowlisted.
    """

    reason_codes: tuple[str, ...]
    unknown: tuple[str, ...]

    @property
    def has_unknown(self) -> bool:
        """True when at least one unknown code was quarantined."""
        return bool(self.unknown)


def is_known_reason_code(code: Any) -> bool:
    """Check whether a value is an allowlisted reason code."""
    return isinstance(code, str) and code in ALLOWED_REASON_CODES


def normalize_reason_codes(codes: Iterable[Any] | None) -> NormalizedReasonCodes:
    """Normalize a reason code list.

    Non-string entries (including None) are dropped before deduplication.
    Enum members are reduced to their string value.

    Args:
        codes: Any iterable of candidate codes. None is treated as empty.

    Returns:
        NormalizedReasonCodes with sorted known codes (plus the sentinel
        when unknown codes were present) and the sorted unknown codes.
    """
    if codes is None:
        return NormalizedReasonCodes(reason_codes=(), unknown=())

    candidates: set[str] = set()
    for code in codes:
        if isinstance(code, Enum):
            code = code.value
        if isinstance(code, str):
            candidates.add(code)

    known = {code for code in candidates if code in ALLOWED_REASON_CODES}
    unknown = candidates - known
    if unknown:
        known.add(UNKNOWN_REASON_CODE)

    return NormalizedReasonCodes(
        reason_codes=tuple(sorted(known)),
        unknown=tuple(sorted(unknown)),
    )
