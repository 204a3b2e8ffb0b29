"""Unit tests for HttpReadinessSignalSource using httpx.MockTransport."""

from datetime import date

import httpx
import pytest

from govgate.application.services.governance_gate_service import (
    GovernanceGateService,
)
from govgate.domain.errors.readiness import ReadinessSignalError
from govgate.domain.models.gate_context import GateContext, ReadinessScope
from govgate.domain.models.readiness import LegalFlag, OpsFlag, ReadinessStatus
from govgate.infrastructure.adapters.http import HttpReadinessSignalSource
from govgate.infrastructure.adapters.http.readiness_signal_client import scope_params

BASE_URL = "http://calculators.test"

SHIFT_SCOPE = ReadinessScope(
    org_id="org-1", site_id="site-1", date=date(2026, 3, 14), shift_code="NIGHT"
)


def make_source(handler) -> HttpReadinessSignalSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpReadinessSignalSource(base_url=f"{BASE_URL}/", client=client)


def calculators(legal: dict, ops: dict, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if request.url.path == "/v1/readiness/legal":
            return httpx.Response(200, json=legal)
        if request.url.path == "/v1/readiness/ops":
            return httpx.Response(200, json=ops)
        return httpx.Response(404)

    return handler


class TestFetchSignal:
    async def test_combines_both_calculators(self) -> None:
        source = make_source(
            calculators(
                {
                    "flag": "LEGAL_WARNING",
                    "reason_codes": ["COMPLIANCE_EXPIRING"],
                    "policy_fingerprint": "policy-9",
                },
                {"flag": "OPS_GO", "reason_codes": ["MISSING_SKILLS", 5]},
            )
        )

        signal = await source.fetch_signal(SHIFT_SCOPE)

        assert signal.legal == LegalFlag.LEGAL_WARNING
        assert signal.ops == OpsFlag.OPS_GO
        assert signal.extra_reason_codes == ("COMPLIANCE_EXPIRING", "MISSING_SKILLS")
        assert signal.policy_fingerprint == "policy-9"

    async def test_sends_scope_as_query(self) -> None:
        seen: list[httpx.Request] = []
        source = make_source(calculators({"flag": "LEGAL_GO"}, {"flag": "OPS_GO"}, seen))

        await source.fetch_signal(SHIFT_SCOPE)

        assert len(seen) == 2
        params = dict(seen[0].url.params)
        assert params == {
            "org_id": "org-1",
            "site_id": "site-1",
            "date": "2026-03-14",
            "shift_code": "NIGHT",
        }

    async def test_missing_fingerprint_is_none(self) -> None:
        source = make_source(calculators({"flag": "LEGAL_GO"}, {"flag": "OPS_GO"}))

        signal = await source.fetch_signal(ReadinessScope(org_id="org-1"))

        assert signal.policy_fingerprint is None
        assert signal.extra_reason_codes == ()

    @pytest.mark.parametrize(
        ("status", "kwargs"),
        [
            (500, {}),
            (200, {"content": b"not json"}),
            (200, {"json": ["LEGAL_GO"]}),
            (200, {"json": {"flag": "MAYBE"}}),
        ],
    )
    async def test_bad_answers_raise(self, status: int, kwargs: dict) -> None:
        source = make_source(lambda request: httpx.Response(status, **kwargs))

        with pytest.raises(ReadinessSignalError):
            await source.fetch_signal(SHIFT_SCOPE)

    @pytest.mark.parametrize(
        "error", [httpx.ConnectError("refused"), httpx.ReadTimeout("slow")]
    )
    async def test_transport_errors_raise(self, error: Exception) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        with pytest.raises(ReadinessSignalError):
            await make_source(handler).fetch_signal(SHIFT_SCOPE)

    async def test_gate_fails_closed_on_http_failure(self) -> None:
        gate = GovernanceGateService(make_source(lambda request: httpx.Response(503)))
        context = GateContext(action="SHIFT_PUBLISH", target_type="shift", shift_id="s-1")

        decision = await gate.evaluate("org-1", None, context)

        assert decision.readiness_status == ReadinessStatus.NO_GO
        assert decision.reason_codes == ("SIGNAL_SOURCE_UNAVAILABLE",)


def test_scope_params_omit_absent_fields() -> None:
    assert scope_params(ReadinessScope(org_id="org-1", shift_id="s-1")) == {
        "org_id": "org-1",
        "shift_id": "s-1",
    }
