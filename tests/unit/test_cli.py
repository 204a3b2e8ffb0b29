"""Tests for the offline verification CLI."""

import json
from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner

from govgate.application.services.ledger_verification_service import (
    attestation_message,
)
from govgate.cli import app, load_ledger_rows
from govgate.domain.models.attestation import (
    LedgerAttestation,
    LedgerAttestationPayload,
)
from govgate.infrastructure.adapters.crypto import Ed25519AttestationSigner

runner = CliRunner()


@pytest.fixture
def export_file(tmp_path, make_chain):
    """Write an export of two org chains and return a writer for variants."""

    def _write(rows=None, name="ledger.json"):
        if rows is None:
            rows = make_chain(3) + make_chain(2, org_id="org-2")
        path = tmp_path / name
        path.write_text(json.dumps([row.to_dict() for row in rows]), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def signer() -> Ed25519AttestationSigner:
    return Ed25519AttestationSigner.generate()


@pytest.fixture
def attestation_file(tmp_path, signer):
    payload = LedgerAttestationPayload(
        org_id="org-1",
        head_position=3,
        head_hash="ab" * 32,
        total_events=3,
        verified_at=datetime(2026, 3, 14, 10, 0, tzinfo=timezone.utc),
    )
    attestation = LedgerAttestation(
        payload=payload,
        signature=signer.sign(attestation_message(payload)),
        public_key=signer.public_key,
    )
    path = tmp_path / "attestation.json"
    path.write_text(json.dumps(attestation.to_dict()), encoding="utf-8")
    return path


class TestCheckChain:
    def test_valid_export(self, export_file) -> None:
        result = runner.invoke(app, ["check-chain", str(export_file())])

        assert result.exit_code == 0
        assert "org-1" in result.stdout
        assert "org-2" in result.stdout

    def test_json_output(self, export_file) -> None:
        result = runner.invoke(app, ["check-chain", str(export_file()), "--format", "json"])

        output = json.loads(result.stdout)
        assert output["is_valid"] is True
        assert output["chains"]["org-1"]["rows_verified"] == 3
        assert output["chains"]["org-2"]["rows_verified"] == 2

    def test_tampered_row(self, export_file, make_chain) -> None:
        rows = make_chain(3)
        rows[1] = rows[1].with_changes(reason_codes=("NO_SHIFT",))

        result = runner.invoke(
            app, ["check-chain", str(export_file(rows)), "-o", "json"]
        )

        assert result.exit_code == 1
        chain = json.loads(result.stdout)["chains"]["org-1"]
        assert chain["reason"] == "HASH_MISMATCH"
        assert chain["first_invalid_position"] == 2

    def test_deleted_row(self, export_file, make_chain) -> None:
        rows = make_chain(3)
        del rows[1]

        result = runner.invoke(app, ["check-chain", str(export_file(rows))])

        assert result.exit_code == 1

    def test_org_filter(self, export_file, make_chain) -> None:
        broken = make_chain(2, org_id="org-2")
        broken[0] = broken[0].with_changes(target_id="elsewhere")
        path = export_file(make_chain(3) + broken)

        result = runner.invoke(app, ["check-chain", str(path), "--org", "org-1", "-o", "json"])

        assert result.exit_code == 0
        assert list(json.loads(result.stdout)["chains"]) == ["org-1"]

    def test_events_envelope(self, tmp_path, make_chain) -> None:
        path = tmp_path / "envelope.json"
        path.write_text(
            json.dumps({"events": [row.to_dict() for row in make_chain(2)]}),
            encoding="utf-8",
        )

        assert runner.invoke(app, ["check-chain", str(path)]).exit_code == 0

    def test_missing_file(self, tmp_path) -> None:
        result = runner.invoke(app, ["check-chain", str(tmp_path / "absent.json")])

        assert result.exit_code == 2

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        assert runner.invoke(app, ["check-chain", str(path)]).exit_code == 2


class TestLoadLedgerRows:
    def test_rejects_non_list(self) -> None:
        with pytest.raises(ValueError, match="JSON array"):
            load_ledger_rows({"rows": []})

    def test_rejects_row_without_id(self, make_chain) -> None:
        data = make_chain(1)[0].to_dict()
        del data["id"]

        with pytest.raises(ValueError, match="row 1 is missing id"):
            load_ledger_rows([data])

    def test_rejects_scalar_row(self) -> None:
        with pytest.raises(ValueError, match="row 1 is not an object"):
            load_ledger_rows([42])


class TestVerifyAttestation:
    def test_valid_signature(self, attestation_file, signer) -> None:
        result = runner.invoke(
            app, ["verify-attestation", str(attestation_file), "-k", signer.public_key]
        )

        assert result.exit_code == 0
        assert "org-1" in result.stdout

    def test_embedded_key(self, attestation_file) -> None:
        result = runner.invoke(app, ["verify-attestation", str(attestation_file), "-o", "json"])

        output = json.loads(result.stdout)
        assert output["is_valid"] is True
        assert output["key_matches"] is True

    def test_unexpected_public_key(self, attestation_file) -> None:
        other = Ed25519AttestationSigner.generate()

        result = runner.invoke(
            app,
            ["verify-attestation", str(attestation_file), "-k", other.public_key, "-o", "json"],
        )

        assert result.exit_code == 1
        assert json.loads(result.stdout)["key_matches"] is False

    def test_altered_payload(self, attestation_file) -> None:
        data = json.loads(attestation_file.read_text(encoding="utf-8"))
        data["payload"]["total_events"] = 4
        attestation_file.write_text(json.dumps(data), encoding="utf-8")

        result = runner.invoke(app, ["verify-attestation", str(attestation_file), "-o", "json"])

        assert result.exit_code == 1
        assert json.loads(result.stdout)["signature_valid"] is False

    def test_not_an_attestation(self, tmp_path) -> None:
        path = tmp_path / "other.json"
        path.write_text("[]", encoding="utf-8")

        assert runner.invoke(app, ["verify-attestation", str(path)]).exit_code == 2


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "govgate-verify version 0.1.0" in result.stdout
