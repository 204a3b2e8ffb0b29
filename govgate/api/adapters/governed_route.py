"""Governed route adapter.

Mutating routes hand their work to ``run_governed_mutation`` instead of
running it directly. The adapter checks the optional execution token,
runs the governed mutation wrapper and maps its typed result to HTTP:

- 200 (or ``success_status``) with the handler's value on allow
- 409 RUNTIME_NO_GO when readiness is NO_GO
- 429 RATE_LIMITED with Retry-After when the actor is over its limit
- 503 GOVERNANCE_UNAVAILABLE when the ledger or signal source is missing
- 400 TOKEN_REQUIRED / TOKEN_INVALID / TOKEN_EXPIRED, 409
  TOKEN_ACTION_NOT_ALLOWED for execution token problems

Every response from a governed route carries ``x-governed: 1``; once a
decision exists it also carries ``x-policy-fingerprint``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from structlog import get_logger

from govgate.api.adapters.problems import gate_denied_response, problem_response
from govgate.application.services.governed_mutation_service import (
    GovernedMutationResult,
    GovernedMutationService,
)
from govgate.domain.errors.configuration import GateConfigurationError
from govgate.domain.errors.execution_token import ExecutionTokenError
from govgate.domain.models.actor_context import ActorContext
from govgate.domain.models.gate_context import GateContext
from govgate.domain.models.gate_result import GOVERNANCE_UNAVAILABLE, GateDenied
from govgate.domain.services.execution_token import (
    TOKEN_ACTION_NOT_ALLOWED,
    TOKEN_NOT_CONFIGURED,
    ExecutionTokenService,
)

logger = get_logger(__name__)

T = TypeVar("T")

EXECUTION_TOKEN_HEADER = "X-Execution-Token"
GOVERNED_HEADER = "x-governed"
POLICY_FINGERPRINT_HEADER = "x-policy-fingerprint"
TOKEN_REQUIRED = "TOKEN_REQUIRED"


def token_error_status(code: str) -> int:
    """HTTP status for an execution token error code."""
    if code == TOKEN_ACTION_NOT_ALLOWED:
        return 409
    if code == TOKEN_NOT_CONFIGURED:
        return 503
    return 400


def _check_execution_token(
    request: Request,
    actor: ActorContext,
    context: GateContext,
    token_service: ExecutionTokenService | None,
    require_execution_token: bool,
) -> None:
    """Verify the request's execution token, if one is present or required.

    Raises:
        ExecutionTokenError: If the token is missing, unusable or refused.
    """
    token = (request.headers.get(EXECUTION_TOKEN_HEADER) or "").strip()
    if not token:
        if require_execution_token:
            raise ExecutionTokenError(TOKEN_REQUIRED, "X-Execution-Token header is required")
        return
    if token_service is None:
        raise ExecutionTokenError(
            TOKEN_NOT_CONFIGURED, "Execution tokens are not configured"
        )
    token_service.verify(token, org_id=actor.org_id, action=context.action)


async def run_governed_mutation(
    request: Request,
    actor: ActorContext,
    context: GateContext,
    handler: Callable[[], Awaitable[T]],
    *,
    service: GovernedMutationService,
    token_service: ExecutionTokenService | None = None,
    require_execution_token: bool = False,
    success_status: int = 200,
    serialize: Callable[[T, GovernedMutationResult[T]], Any] | None = None,
) -> JSONResponse:
    """Run ``handler`` behind the governance gate and render the outcome.

    Args:
        request: Current request (path and execution token header).
        actor: Caller's actor context.
        context: What is being gated.
        handler: Zero-argument coroutine function performing the mutation.
        service: Governed mutation wrapper.
        token_service: Execution token verifier, when configured.
        require_execution_token: Refuse requests without a token.
        success_status: Status code for the allowed response.
        serialize: Builds the response body from the handler value and the
            mutation result. Defaults to the handler value.

    Returns:
        JSONResponse with the governed headers set.
    """
    instance = request.url.path
    headers = {GOVERNED_HEADER: "1"}
    log = logger.bind(org_id=actor.org_id, action=context.action, route=instance)

    try:
        _check_execution_token(
            request, actor, context, token_service, require_execution_token
        )
    except ExecutionTokenError as exc:
        log.warning("execution_token_rejected", code=exc.code)
        return problem_response(
            status_code=token_error_status(exc.code),
            code=exc.code,
            detail=str(exc),
            instance=instance,
            headers=headers,
        )

    try:
        outcome = await service.run(actor, context, handler)
    except GateConfigurationError as exc:
        return problem_response(
            status_code=503,
            code=GOVERNANCE_UNAVAILABLE,
            detail=str(exc),
            instance=instance,
            headers=headers,
        )

    decision = outcome.decision
    if decision is not None:
        headers[POLICY_FINGERPRINT_HEADER] = decision.policy_fingerprint

    if isinstance(outcome.result, GateDenied):
        if outcome.rate_limit is not None and not outcome.rate_limit.allowed:
            headers["Retry-After"] = str(outcome.rate_limit.retry_after_seconds)
        return gate_denied_response(outcome.result, instance=instance, headers=headers)

    value = outcome.result.value
    body = serialize(value, outcome) if serialize is not None else value
    return JSONResponse(
        status_code=success_status, content=jsonable_encoder(body), headers=headers
    )
