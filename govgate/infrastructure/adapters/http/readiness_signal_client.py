"""HTTP readiness signal source.

Fetches the legal flag from the compliance-status calculator and the ops
flag from the coverage calculator, concurrently, for one scope.

Endpoints (relative to the configured base URL):
    GET /v1/readiness/legal?org_id=&site_id=&shift_id=&date=&shift_code=
        -> {"flag": "LEGAL_GO", "reason_codes": [...], "policy_fingerprint": "..."}
    GET /v1/readiness/ops?org_id=&site_id=&shift_id=&date=&shift_code=
        -> {"flag": "OPS_WARNING", "reason_codes": [...]}

Every transport error, non-2xx status or malformed body becomes a
ReadinessSignalError, which the gate turns into a fail-closed NO_GO.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from structlog import get_logger

from govgate.application.ports.readiness_signal_source import ReadinessSignalSource
from govgate.domain.errors.readiness import ReadinessSignalError
from govgate.domain.models.gate_context import ReadinessScope
from govgate.domain.models.readiness import LegalFlag, OpsFlag, ReadinessSignal

logger = get_logger(__name__)

LEGAL_ENDPOINT = "/v1/readiness/legal"
OPS_ENDPOINT = "/v1/readiness/ops"


def scope_params(scope: ReadinessScope) -> dict[str, str]:
    """Query parameters for a scope, omitting absent fields."""
    params: dict[str, str] = {"org_id": scope.org_id}
    if scope.site_id:
        params["site_id"] = scope.site_id
    if scope.shift_id:
        params["shift_id"] = scope.shift_id
    if scope.date is not None:
        params["date"] = scope.date.isoformat()
    if scope.shift_code:
        params["shift_code"] = scope.shift_code
    return params


class HttpReadinessSignalSource(ReadinessSignalSource):
    """ReadinessSignalSource backed by the calculators' HTTP API."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the calculators.
            timeout_seconds: Per-request timeout.
            client: Shared client; one is created per fetch when omitted.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = client

    async def _get(
        self, client: httpx.AsyncClient, endpoint: str, params: dict[str, str]
    ) -> dict[str, Any]:
        url = f"{self._base_url}{endpoint}"
        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise ReadinessSignalError(
                endpoint, f"Request timeout after {self._timeout}s"
            ) from e
        except httpx.RequestError as e:
            raise ReadinessSignalError(endpoint, f"Request failed: {e}") from e

        if response.status_code != 200:
            raise ReadinessSignalError(
                endpoint, f"Calculator returned HTTP {response.status_code}"
            )
        try:
            body = response.json()
        except ValueError as e:
            raise ReadinessSignalError(endpoint, "Calculator returned invalid JSON") from e
        if not isinstance(body, dict):
            raise ReadinessSignalError(endpoint, "Calculator returned a non-object body")
        return body

    async def _fetch(self, client: httpx.AsyncClient, scope: ReadinessScope) -> ReadinessSignal:
        params = scope_params(scope)
        legal_body, ops_body = await asyncio.gather(
            self._get(client, LEGAL_ENDPOINT, params),
            self._get(client, OPS_ENDPOINT, params),
        )
        try:
            legal = LegalFlag(legal_body.get("flag"))
            ops = OpsFlag(ops_body.get("flag"))
        except ValueError as e:
            raise ReadinessSignalError("calculators", f"Unknown readiness flag: {e}") from e

        extra: list[str] = []
        for body in (legal_body, ops_body):
            codes = body.get("reason_codes") or []
            if isinstance(codes, list):
                extra.extend(code for code in codes if isinstance(code, str))

        fingerprint = legal_body.get("policy_fingerprint")
        return ReadinessSignal(
            legal=legal,
            ops=ops,
            extra_reason_codes=tuple(extra),
            policy_fingerprint=fingerprint if isinstance(fingerprint, str) else None,
        )

    async def fetch_signal(self, scope: ReadinessScope) -> ReadinessSignal:
        log = logger.bind(org_id=scope.org_id, scope=scope.scope.value)
        if self._client is not None:
            signal = await self._fetch(self._client, scope)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                signal = await self._fetch(client, scope)
        log.debug("readiness_signal_fetched", legal=signal.legal.value, ops=signal.ops.value)
        return signal
