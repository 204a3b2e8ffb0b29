"""Ledger verification and attestation service.

Loads an org chain from the store, runs the hash-chain verifier over it
and, when the chain is intact, signs a statement about its head.

Governance Constraints:
- Integrity violations are always surfaced, never auto-corrected or retried
- No attestation is produced for an invalid chain
- Verification is read-only
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from structlog import get_logger

from govgate.application.ports.attestation_signer import AttestationSigner
from govgate.application.ports.ledger_store import LedgerStore
from govgate.domain.errors.attestation import AttestationNotConfiguredError
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.models.attestation import (
    LedgerAttestation,
    LedgerAttestationPayload,
)
from govgate.domain.models.ledger_verification import LedgerVerificationResult
from govgate.domain.services.ledger_chain_verifier import (
    order_for_verification,
    verify_ledger_chain,
)
from govgate.domain.services.ledger_hashing import canonical_json

logger = get_logger(__name__)

LEDGER_NOT_VALID: str = "LEDGER_NOT_VALID"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def attestation_message(payload: LedgerAttestationPayload) -> bytes:
    """Bytes that an attestation signature covers."""
    return canonical_json(payload.to_dict()).encode("utf-8")


@dataclass(frozen=True)
class AttestationRefused:
    """Attestation was refused because the chain failed verification."""

    verification: LedgerVerificationResult
    code: str = LEDGER_NOT_VALID


class LedgerVerificationService:
    """Verifies org chains and attests to verified heads."""

    def __init__(
        self,
        store: LedgerStore | None,
        signer: AttestationSigner | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._signer = signer
        self._clock = clock

    def _require_store(self) -> LedgerStore:
        if self._store is None:
            logger.critical("governance_not_configured", missing="ledger_store")
            raise GateConfigurationError("ledger_store")
        return self._store

    async def verify_org_chain(self, org_id: str) -> LedgerVerificationResult:
        """Verify every row of an org chain.

        Raises:
            GateConfigurationError: If no ledger store is configured.
        """
        store = self._require_store()
        rows = await store.list_chain(org_id)
        result = verify_ledger_chain(rows)
        if not result.is_valid:
            logger.error(
                "ledger_chain_invalid",
                org_id=org_id,
                reason=result.reason.value if result.reason else None,
                first_invalid_position=result.first_invalid_position,
                event_id=result.event_id,
            )
        else:
            logger.info("ledger_chain_verified", org_id=org_id, rows=result.rows_verified)
        return result

    async def attest(self, org_id: str) -> LedgerAttestation | AttestationRefused:
        """Verify the chain and sign its head.

        Returns:
            LedgerAttestation, or AttestationRefused when the chain is invalid.

        Raises:
            AttestationNotConfiguredError: If no signing key is configured.
            GateConfigurationError: If no ledger store is configured.
        """
        if self._signer is None:
            raise AttestationNotConfiguredError()
        store = self._require_store()

        rows = order_for_verification(await store.list_chain(org_id))
        verification = verify_ledger_chain(rows)
        if not verification.is_valid:
            logger.error(
                "ledger_chain_invalid",
                org_id=org_id,
                reason=verification.reason.value if verification.reason else None,
                first_invalid_position=verification.first_invalid_position,
            )
            return AttestationRefused(verification=verification)

        chained = [row for row in rows if row.chain_position is not None]
        head = chained[-1] if chained else None
        payload = LedgerAttestationPayload(
            org_id=org_id,
            head_position=head.chain_position if head else None,
            head_hash=head.payload_hash if head else None,
            total_events=len(rows),
            verified_at=self._clock(),
        )
        attestation = LedgerAttestation(
            payload=payload,
            signature=self._signer.sign(attestation_message(payload)),
            public_key=self._signer.public_key,
        )
        logger.info(
            "ledger_attested",
            org_id=org_id,
            head_position=payload.head_position,
            total_events=payload.total_events,
        )
        return attestation
