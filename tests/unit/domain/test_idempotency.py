"""Unit tests for idempotency keys and policy fingerprints."""

from datetime import date

from govgate.domain.services.idempotency import (
    compute_idempotency_key,
    derive_policy_fingerprint,
)


def _key(**overrides) -> str:
    fields = {
        "org_id": "org-1",
        "action": "SHIFT_OVERRIDE_APPROVE",
        "target_id": "shift-42",
        "outcome": "ALLOWED",
        "policy_fingerprint": "fp-1",
        "scope": "SHIFT",
        "shift_date": date(2026, 3, 14),
        "shift_code": "NIGHT",
    }
    fields.update(overrides)
    return compute_idempotency_key(**fields)


class TestIdempotencyKey:
    def test_stable(self) -> None:
        assert _key() == _key()
        assert len(_key()) == 64

    def test_outcome_distinguishes_attempts(self) -> None:
        assert _key(outcome="ALLOWED") != _key(outcome="BLOCKED")

    def test_policy_change_distinguishes_attempts(self) -> None:
        assert _key(policy_fingerprint="fp-1") != _key(policy_fingerprint="fp-2")

    def test_shift_identity_distinguishes_attempts(self) -> None:
        assert _key(shift_date=date(2026, 3, 15)) != _key()
        assert _key(shift_code="DAY") != _key()

    def test_org_scope_without_shift(self) -> None:
        assert _key(scope="ORG", shift_date=None, shift_code=None) != _key()


class TestPolicyFingerprint:
    def test_reason_code_order_and_duplicates_ignored(self) -> None:
        a = derive_policy_fingerprint("OK", ["OPS_RISK", "LEGAL_EXPIRING"], "LEGAL_WARNING", "OPS_WARNING")
        b = derive_policy_fingerprint(
            "OK", ["LEGAL_EXPIRING", "OPS_RISK", "OPS_RISK"], "LEGAL_WARNING", "OPS_WARNING"
        )
        assert a == b

    def test_posture_change_changes_fingerprint(self) -> None:
        go = derive_policy_fingerprint("OK", [], "LEGAL_GO", "OPS_GO")
        stop = derive_policy_fingerprint("LEGAL_STOP", ["LEGAL_BLOCKING"], "LEGAL_NO_GO", "OPS_GO")
        assert go != stop

    def test_unavailable_signals(self) -> None:
        fingerprint = derive_policy_fingerprint(
            "LEGAL_STOP", ["SIGNAL_SOURCE_UNAVAILABLE"], None, None
        )
        assert len(fingerprint) == 64
