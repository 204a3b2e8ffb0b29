"""Unit tests for LedgerVerificationService (verify and attest)."""

import pytest

from govgate.application.services.ledger_verification_service import (
    LEDGER_NOT_VALID,
    AttestationRefused,
    LedgerVerificationService,
    attestation_message,
)
from govgate.application.services.ledger_writer_service import LedgerWriterService
from govgate.domain.errors.attestation import AttestationNotConfiguredError
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.models.attestation import LedgerAttestation
from govgate.domain.models.ledger_verification import LedgerVerificationFailure
from govgate.domain.services.ledger_hashing import HASH_ALGO_V1
from govgate.infrastructure.adapters.crypto import (
    Ed25519AttestationSigner,
    verify_with_public_key,
)


@pytest.fixture
def signer() -> Ed25519AttestationSigner:
    return Ed25519AttestationSigner.generate()


@pytest.fixture
def service(ledger_store, signer, fixed_now) -> LedgerVerificationService:
    return LedgerVerificationService(ledger_store, signer, clock=lambda: fixed_now)


@pytest.fixture
async def three_rows(ledger_store, make_draft):
    writer = LedgerWriterService(ledger_store)
    return [
        (await writer.append(make_draft(target_id=f"shift-{n}"))).event for n in range(3)
    ]


class TestVerifyOrgChain:
    async def test_valid_chain(self, service, three_rows) -> None:
        result = await service.verify_org_chain("org-1")

        assert result.is_valid
        assert result.rows_verified == 3

    async def test_unknown_org_is_empty_and_valid(self, service, three_rows) -> None:
        result = await service.verify_org_chain("org-9")

        assert result.is_valid
        assert result.rows_verified == 0

    async def test_tampered_row_detected(self, service, ledger_store, three_rows) -> None:
        ledger_store.replace_event(three_rows[1].with_changes(meta={"decision": "reject"}))

        result = await service.verify_org_chain("org-1")

        assert not result.is_valid
        assert result.reason == LedgerVerificationFailure.HASH_MISMATCH
        assert result.first_invalid_position == 2
        assert result.event_id == str(three_rows[1].id)

    async def test_verification_is_read_only(self, service, ledger_store, three_rows) -> None:
        ledger_store.replace_event(three_rows[2].with_changes(previous_hash="0" * 64))

        await service.verify_org_chain("org-1")

        stored = await ledger_store.list_chain("org-1")
        assert stored[2].previous_hash == "0" * 64

    async def test_unconfigured_store(self) -> None:
        with pytest.raises(GateConfigurationError):
            await LedgerVerificationService(None).verify_org_chain("org-1")


class TestAttest:
    async def test_signs_verified_head(self, service, signer, three_rows) -> None:
        attestation = await service.attest("org-1")

        assert isinstance(attestation, LedgerAttestation)
        payload = attestation.payload
        assert payload.org_id == "org-1"
        assert payload.head_position == 3
        assert payload.head_hash == three_rows[2].payload_hash
        assert payload.total_events == 3
        assert attestation.signature_algo == "ED25519_V1"
        assert attestation.public_key == signer.public_key
        message = attestation_message(payload)
        assert signer.verify(message, attestation.signature)
        assert verify_with_public_key(attestation.public_key, message, attestation.signature)

    async def test_signature_covers_payload(self, service, three_rows) -> None:
        attestation = await service.attest("org-1")
        altered = attestation_message(attestation.payload).replace(b'"total_events":3', b'"total_events":4')

        assert not verify_with_public_key(attestation.public_key, altered, attestation.signature)

    async def test_empty_chain(self, service) -> None:
        attestation = await service.attest("org-1")

        assert attestation.payload.head_position is None
        assert attestation.payload.head_hash is None
        assert attestation.payload.total_events == 0

    async def test_pre_chain_rows_counted_but_not_head(
        self, service, ledger_store, three_rows, make_chain
    ) -> None:
        ledger_store.seed(*make_chain(1, algo=HASH_ALGO_V1))

        attestation = await service.attest("org-1")

        assert attestation.payload.total_events == 4
        assert attestation.payload.head_position == 3

    async def test_refused_for_invalid_chain(self, service, ledger_store, three_rows) -> None:
        ledger_store.replace_event(three_rows[0].with_changes(payload_hash="f" * 64))

        refused = await service.attest("org-1")

        assert isinstance(refused, AttestationRefused)
        assert refused.code == LEDGER_NOT_VALID
        assert refused.verification.first_invalid_position == 1

    async def test_no_signing_key(self, ledger_store) -> None:
        with pytest.raises(AttestationNotConfiguredError):
            await LedgerVerificationService(ledger_store, signer=None).attest("org-1")

    async def test_to_dict(self, service, fixed_now) -> None:
        data = (await service.attest("org-1")).to_dict()

        assert data["payload"]["verified_at"] == "2026-03-14T09:30:00.123456Z"
        assert set(data) == {"payload", "signature", "public_key", "signature_algo"}
