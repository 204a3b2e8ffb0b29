"""Problem details responses for governance refusals.

Every refusal carries a machine-readable ``code`` next to the usual
type/title/status/detail/instance fields. Gate refusals also carry the
readiness diagnostics of the decision that caused them.
"""

from http import HTTPStatus
from typing import Any

from fastapi.responses import JSONResponse

from govgate.domain.models.gate_result import GateDecision, GateDenied
from govgate.infrastructure.observability.correlation import (
    CORRELATION_ID_HEADER,
    get_correlation_id,
)

ERROR_TYPE_BASE = "https://govgate.example.com/errors/"


def problem_response(
    status_code: int,
    code: str,
    detail: str,
    instance: str | None = None,
    decision: GateDecision | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a problem details JSON response.

    Args:
        status_code: HTTP status.
        code: Machine-readable error code, e.g. RUNTIME_NO_GO.
        detail: Human-readable explanation.
        instance: Request path.
        decision: Gate decision whose diagnostics are included, if any.
        headers: Extra response headers.
    """
    content: dict[str, Any] = {
        "type": ERROR_TYPE_BASE + code.lower().replace("_", "-"),
        "title": HTTPStatus(status_code).phrase,
        "status": status_code,
        "code": code,
        "detail": detail,
        "instance": instance,
    }
    if decision is not None:
        content["readiness_status"] = decision.readiness_status.value
        content["legitimacy_status"] = decision.legitimacy_status.value
        content["reason_codes"] = list(decision.reason_codes)
        content["policy_fingerprint"] = decision.policy_fingerprint

    response_headers = dict(headers or {})
    correlation_id = get_correlation_id()
    if correlation_id:
        response_headers.setdefault(CORRELATION_ID_HEADER, correlation_id)
    return JSONResponse(status_code=status_code, content=content, headers=response_headers)


def gate_denied_response(
    denied: GateDenied,
    instance: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render a GateDenied result."""
    return problem_response(
        status_code=denied.status,
        code=denied.error.code,
        detail=denied.error.message,
        instance=instance,
        decision=denied.error.decision,
        headers=headers,
    )
