"""Deterministic payload hashing for the governance audit ledger.

Every ledger row carries a SHA-256 ``payload_hash`` over a canonical
JSON rendering of its content fields. Independent re-verification must
reproduce the same digest, so canonicalization is fixed here and only
here.

Governance Constraints:
- Keys sorted, compact separators, UTF-8, NFKC-normalized strings
- Non-finite floats are rejected, never rendered
- Integral floats render as integers, matching what PostgreSQL JSONB
  numeric hands back on read
- created_at rendered as YYYY-MM-DDTHH:MM:SS.ffffffZ in UTC
- reason_codes hashed in sorted order
- previous_hash is NOT hashed; chain linkage is checked separately

Algorithm versions:
- v1: content fields only (rows written before chaining)
- v2: content fields plus chain_position (default for new rows)
"""

from __future__ import annotations

import hashlib
import json
import math
import unicodedata
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Union

from govgate.domain.errors.ledger import UnsupportedHashAlgorithmError
from govgate.domain.models.event_meta import to_plain

if TYPE_CHECKING:
    from govgate.domain.models.governance_event import (
        GovernanceEvent,
        GovernanceEventDraft,
    )
    from govgate.domain.models.governance_snapshot import GovernanceSnapshot

    HashableRow = Union[GovernanceEvent, GovernanceEventDraft]

HASH_ALGO_V1: str = "v1"
HASH_ALGO_V2: str = "v2"
DEFAULT_HASH_ALGO: str = HASH_ALGO_V2
SUPPORTED_HASH_ALGOS: frozenset[str] = frozenset({HASH_ALGO_V1, HASH_ALGO_V2})
CHAIN_AWARE_HASH_ALGOS: frozenset[str] = frozenset({HASH_ALGO_V2})

# Content fields covered by every algorithm version, in documentation order.
CONTENT_FIELDS: tuple[str, ...] = (
    "action",
    "target_type",
    "target_id",
    "outcome",
    "legitimacy_status",
    "readiness_status",
    "reason_codes",
    "meta",
    "org_id",
    "site_id",
    "actor_user_id",
    "created_at",
)


def _sanitize_for_json(data: Any) -> Any:
    """Recursively sanitize data for deterministic JSON serialization.

    Raises:
        ValueError: If data contains NaN, Infinity, or -Infinity values.
    """
    if isinstance(data, str):
        return unicodedata.normalize("NFKC", data)
    elif isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            raise ValueError(
                f"Cannot serialize non-finite float value: {data!r}. "
                "NaN and Infinity are not valid JSON."
            )
        return data
    elif isinstance(data, dict):
        return {_sanitize_for_json(k): _sanitize_for_json(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_sanitize_for_json(item) for item in data]
    else:
        return data


def canonical_json(data: Any) -> str:
    """Produce deterministic JSON representation for hashing.

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'

    Raises:
        ValueError: If data contains NaN, Infinity, or -Infinity values.
        TypeError: If data holds a value JSON cannot encode.
    """
    sanitized = _sanitize_for_json(to_plain(data))
    return json.dumps(
        sanitized,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def format_created_at(value: datetime) -> str:
    """Render a timestamp in the fixed hashed format."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def hashable_content(
    row: HashableRow, algo: str, chain_position: int | None = None
) -> dict[str, Any]:
    """Build the dict that is canonicalized and hashed for a row.

    Args:
        row: A stored event or a draft.
        algo: ``v1`` or ``v2``.
        chain_position: Position to hash under v2. Defaults to the row's
            own chain_position when it has one.

    Raises:
        UnsupportedHashAlgorithmError: If ``algo`` is not supported.
    """
    if algo not in SUPPORTED_HASH_ALGOS:
        raise UnsupportedHashAlgorithmError(algo)

    content: dict[str, Any] = {
        "action": row.action,
        "target_type": row.target_type,
        "target_id": row.target_id,
        "outcome": row.outcome,
        "legitimacy_status": row.legitimacy_status,
        "readiness_status": row.readiness_status,
        "reason_codes": sorted(row.reason_codes),
        "meta": to_plain(row.meta),
        "org_id": row.org_id,
        "site_id": row.site_id,
        "actor_user_id": row.actor_user_id,
        "created_at": format_created_at(row.created_at),
    }
    if algo == HASH_ALGO_V2:
        if chain_position is None:
            chain_position = getattr(row, "chain_position", None)
        content["chain_position"] = chain_position
    return content


def compute_payload_hash(
    row: HashableRow, algo: str = DEFAULT_HASH_ALGO, chain_position: int | None = None
) -> str:
    """Compute the lowercase hex SHA-256 payload hash of a row.

    Raises:
        UnsupportedHashAlgorithmError: If ``algo`` is not supported.
        ValueError: If the content holds non-finite floats.
    """
    canonical = canonical_json(hashable_content(row, algo, chain_position))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def is_chain_aware(algo: str | None) -> bool:
    """True when rows hashed with ``algo`` participate in chain linkage."""
    return algo in CHAIN_AWARE_HASH_ALGOS


def compute_snapshot_hash(snapshot: GovernanceSnapshot) -> str:
    """SHA-256 over the canonical export of a governance snapshot."""
    canonical = canonical_json(snapshot.to_dict())
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
