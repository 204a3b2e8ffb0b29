"""Signed attestation of a verified ledger chain head."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

ATTESTATION_SIGNATURE_ALGO: str = "ED25519_V1"


@dataclass(frozen=True)
class LedgerAttestationPayload:
    """The statement being signed.

    Attributes:
        org_id: Organization whose chain was verified.
        head_position: chain_position of the last row, None for an empty chain.
        head_hash: payload_hash of the last row, None for an empty chain.
        total_events: Number of rows verified.
        verified_at: When verification completed (UTC).
    """

    org_id: str
    head_position: int | None
    head_hash: str | None
    total_events: int
    verified_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "org_id": self.org_id,
            "head_position": self.head_position,
            "head_hash": self.head_hash,
            "total_events": self.total_events,
            "verified_at": self.verified_at.isoformat().replace("+00:00", "Z"),
        }


@dataclass(frozen=True)
class LedgerAttestation:
    """A payload plus its detached signature."""

    payload: LedgerAttestationPayload
    signature: str
    public_key: str
    signature_algo: str = ATTESTATION_SIGNATURE_ALGO

    def to_dict(self) -> dict[str, Any]:
        return {
            "payload": self.payload.to_dict(),
            "signature": self.signature,
            "public_key": self.public_key,
            "signature_algo": self.signature_algo,
        }
