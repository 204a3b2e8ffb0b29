"""Governance API routes.

Preflight gate evaluation, governed action recording, classification,
ledger verification and attestation, event lookup, reporting and
execution token issue. All routes are scoped to the caller's org taken
from the X-Org-Id header.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from govgate.api.adapters.governed_route import run_governed_mutation
from govgate.api.adapters.problems import problem_response
from govgate.api.dependencies.governance import (
    get_actor_context,
    get_execution_token_service,
    get_gate_service,
    get_governed_mutation_service,
    get_reporting_service,
    get_verification_service,
)
from govgate.api.models.governance import (
    AttestationResponse,
    BlockingReportResponse,
    ClassificationResponse,
    ClassifyRequest,
    ExecutionTokenRequest,
    ExecutionTokenResponse,
    GateContextRequest,
    GateDecisionResponse,
    GovernanceEventResponse,
    GovernanceSnapshotResponse,
    GovernedActionRequest,
    GovernedActionResponse,
    LedgerVerificationResponse,
    ProblemResponse,
)
from govgate.application.services.governance_gate_service import (
    GovernanceGateService,
)
from govgate.application.services.governance_reporting_service import (
    GovernanceReportingService,
)
from govgate.application.services.governed_mutation_service import (
    GovernedMutationResult,
    GovernedMutationService,
)
from govgate.application.services.ledger_verification_service import (
    AttestationRefused,
    LedgerVerificationService,
)
from govgate.domain.errors.execution_token import ExecutionTokenError
from govgate.domain.errors.ledger import LedgerStoreError
from govgate.domain.models.actor_context import ActorContext
from govgate.domain.models.gate_context import GateContext, ReadinessScope
from govgate.domain.models.gate_result import GateDecision, RUNTIME_NO_GO
from govgate.domain.models.governance_classification import describe_governance_event
from govgate.domain.models.governance_snapshot import SNAPSHOT_META_KEY
from govgate.domain.services.execution_token import (
    TOKEN_NOT_CONFIGURED,
    ExecutionTokenService,
)
from govgate.domain.services.ledger_hashing import compute_snapshot_hash

router = APIRouter(prefix="/v1/governance", tags=["governance"])

EXECUTION_TOKEN_ACTION = "EXECUTION_TOKEN_ISSUE"

_REFUSALS = {
    400: {"model": ProblemResponse, "description": "Invalid context"},
    409: {"model": ProblemResponse, "description": "Readiness is NO_GO"},
    503: {"model": ProblemResponse, "description": "Governance unavailable"},
}


def _decision_response(decision: GateDecision) -> GateDecisionResponse:
    return GateDecisionResponse(allowed=not decision.is_blocked, **decision.to_dict())


@router.post(
    "/gate/evaluate",
    response_model=GateDecisionResponse,
    responses=_REFUSALS,
    summary="Preflight a gated action",
)
async def evaluate_gate(
    body: GateContextRequest,
    request: Request,
    actor: Annotated[ActorContext, Depends(get_actor_context)],
    gate: Annotated[GovernanceGateService, Depends(get_gate_service)],
) -> GateDecisionResponse:
    """Resolve the gate decision for a context.

    Nothing is executed and nothing is recorded. A NO_GO decision is a
    normal 200 answer here; only governed mutations turn it into a 409.
    """
    context = body.to_context(route=request.url.path)
    decision = await gate.evaluate(actor.org_id, actor.site_id, context)
    return _decision_response(decision)


@router.post(
    "/actions",
    response_model=GovernedActionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_REFUSALS, 429: {"model": ProblemResponse, "description": "Rate limited"}},
    summary="Authorize and record a governed action",
)
async def record_governed_action(
    body: GovernedActionRequest,
    request: Request,
    actor: Annotated[ActorContext, Depends(get_actor_context)],
    service: Annotated[GovernedMutationService, Depends(get_governed_mutation_service)],
    token_service: Annotated[
        ExecutionTokenService | None, Depends(get_execution_token_service)
    ],
) -> JSONResponse:
    """Gate an action performed by another service and record the decision.

    The calling service performs the mutation itself once this returns
    201; a 409 means it must not. Either way the attempt is in the ledger.
    """
    context = body.to_context(route=request.url.path)

    async def accept() -> None:
        return None

    def serialize(_: None, outcome: GovernedMutationResult[None]) -> GovernedActionResponse:
        event = outcome.ledger_event
        decision = outcome.decision
        if event is None or decision is None:
            raise LedgerStoreError("Governed action was allowed without a ledger row")
        link = event.meta.get(SNAPSHOT_META_KEY)
        return GovernedActionResponse(
            event_id=str(event.id),
            outcome=event.outcome,
            chain_position=event.chain_position,
            payload_hash=event.payload_hash,
            readiness_status=decision.readiness_status.value,
            reason_codes=list(decision.reason_codes),
            policy_fingerprint=event.policy_fingerprint,
            snapshot_id=link["id"] if link else None,
        )

    return await run_governed_mutation(
        request,
        actor,
        context,
        accept,
        service=service,
        token_service=token_service,
        require_execution_token=body.require_execution_token,
        success_status=status.HTTP_201_CREATED,
        serialize=serialize,
    )


@router.post(
    "/classify",
    response_model=ClassificationResponse,
    summary="Classify a governance event",
)
async def classify_event(body: ClassifyRequest) -> ClassificationResponse:
    """Category, severity and blocking impact for an (action, target_type) pair."""
    return ClassificationResponse(
        **describe_governance_event(body.action, body.target_type).to_dict()
    )


@router.get(
    "/ledger/verify",
    response_model=LedgerVerificationResponse,
    responses={503: {"model": ProblemResponse}},
    summary="Verify the org ledger chain",
)
async def verify_ledger(
    actor: Annotated[ActorContext, Depends(get_actor_context)],
    verification: Annotated[LedgerVerificationService, Depends(get_verification_service)],
) -> LedgerVerificationResponse:
    """Verify every row of the caller org's chain.

    An invalid chain is reported with 200 and ``is_valid=false``; the
    first failing row and the reason are included.
    """
    result = await verification.verify_org_chain(actor.org_id)
    return LedgerVerificationResponse(org_id=actor.org_id, **result.to_dict())


@router.get(
    "/ledger/attest",
    response_model=AttestationResponse,
    responses={
        409: {"model": ProblemResponse, "description": "Chain failed verification"},
        501: {"model": ProblemResponse, "description": "No signing key configured"},
        503: {"model": ProblemResponse},
    },
    summary="Signed attestation of the verified chain head",
)
async def attest_ledger(
    request: Request,
    actor: Annotated[ActorContext, Depends(get_actor_context)],
    verification: Annotated[LedgerVerificationService, Depends(get_verification_service)],
) -> AttestationResponse | JSONResponse:
    """Verify the caller org's chain and sign its head."""
    attestation = await verification.attest(actor.org_id)
    if isinstance(attestation, AttestationRefused):
        failure = attestation.verification
        return problem_response(
            status_code=status.HTTP_409_CONFLICT,
            code=attestation.code,
            detail=failure.message or "Ledger chain failed verification",
            instance=request.url.path,
        )
    return AttestationResponse(**attestation.to_dict())


@router.get(
    "/events/{event_id}",
    response_model=GovernanceEventResponse,
    responses={404: {"model": ProblemResponse}, 503: {"model": ProblemResponse}},
    summary="Look up one governance event",
)
async def get_governance_event(
    event_id: UUID,
    request: Request,
    actor: Annotated[ActorContext, Depends(get_actor_context)],
    reporting: Annotated[GovernanceReportingService, Depends(get_reporting_service)],
) -> GovernanceEventResponse | JSONResponse:
    """Fetch one event; events of other orgs are reported as not found."""
    event = await reporting.get_event(actor.org_id, event_id)
    if event is None:
        return problem_response(
            status_code=status.HTTP_404_NOT_FOUND,
            code="EVENT_NOT_FOUND",
            detail=f"Governance event {event_id} not found",
            instance=request.url.path,
        )
    return GovernanceEventResponse(**event.to_dict())


@router.get(
    "/snapshots/{snapshot_id}",
    response_model=GovernanceSnapshotResponse,
    responses={404: {"model": ProblemResponse}, 503: {"model": ProblemResponse}},
    summary="Look up the posture behind a governed event",
)
async def get_governance_snapshot(
    snapshot_id: UUID,
    request: Request,
    actor: Annotated[ActorContext, Depends(get_actor_context)],
    reporting: Annotated[GovernanceReportingService, Depends(get_reporting_service)],
) -> GovernanceSnapshotResponse | JSONResponse:
    snapshot = await reporting.get_snapshot(actor.org_id, snapshot_id)
    if snapshot is None:
        return problem_response(
            status_code=status.HTTP_404_NOT_FOUND,
            code="SNAPSHOT_NOT_FOUND",
            detail=f"Governance snapshot {snapshot_id} not found",
            instance=request.url.path,
        )
    return GovernanceSnapshotResponse(
        **snapshot.to_dict(), payload_hash=compute_snapshot_hash(snapshot)
    )


@router.get(
    "/reports/blocking",
    response_model=BlockingReportResponse,
    responses={400: {"model": ProblemResponse}, 503: {"model": ProblemResponse}},
    summary="Blocking-event counts per category",
)
async def blocking_report(
    request: Request,
    actor: Annotated[ActorContext, Depends(get_actor_context)],
    reporting: Annotated[GovernanceReportingService, Depends(get_reporting_service)],
    since: Annotated[datetime | None, Query(description="Inclusive lower bound")] = None,
    until: Annotated[datetime | None, Query(description="Exclusive upper bound")] = None,
) -> BlockingReportResponse | JSONResponse:
    """Count blocking and non-blocking events in ``[since, until)``."""
    try:
        report = await reporting.blocking_report(actor.org_id, since, until)
    except ValueError as exc:
        return problem_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="INVALID_REPORT_WINDOW",
            detail=str(exc),
            instance=request.url.path,
        )
    return BlockingReportResponse(**report.to_dict())


@router.post(
    "/execution-tokens",
    response_model=ExecutionTokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_REFUSALS,
    summary="Issue an execution token",
)
async def issue_execution_token(
    body: ExecutionTokenRequest,
    request: Request,
    actor: Annotated[ActorContext, Depends(get_actor_context)],
    gate: Annotated[GovernanceGateService, Depends(get_gate_service)],
    token_service: Annotated[
        ExecutionTokenService | None, Depends(get_execution_token_service)
    ],
) -> ExecutionTokenResponse | JSONResponse:
    """Issue a short-lived token proving readiness was not NO_GO.

    The readiness is resolved fresh for the requested scope.
    """
    instance = request.url.path
    if token_service is None:
        return problem_response(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code=TOKEN_NOT_CONFIGURED,
            detail="Execution tokens are not configured",
            instance=instance,
        )

    context = GateContext(
        action=EXECUTION_TOKEN_ACTION,
        target_type="execution_token",
        shift_id=body.shift_id,
        date=body.date,
        shift_code=body.shift_code,
        route=instance,
    )
    decision = await gate.evaluate(actor.org_id, actor.site_id, context)
    if decision.is_blocked:
        return problem_response(
            status_code=status.HTTP_409_CONFLICT,
            code=RUNTIME_NO_GO,
            detail="Execution refused: readiness is NO_GO.",
            instance=instance,
            decision=decision,
        )

    scope = ReadinessScope.for_context(actor.org_id, actor.site_id, context)
    try:
        token, claims = token_service.issue(
            scope,
            decision.readiness_status,
            decision.policy_fingerprint,
            allowed_actions=body.allowed_actions,
        )
    except ExecutionTokenError as exc:
        return problem_response(
            status_code=status.HTTP_409_CONFLICT,
            code=exc.code,
            detail=str(exc),
            instance=instance,
            decision=decision,
        )
    return ExecutionTokenResponse(
        token=token,
        expires_at=claims.expires_at,
        readiness_status=claims.readiness_status,
        policy_fingerprint=claims.policy_fingerprint,
        allowed_actions=list(claims.allowed_actions),
        jti=claims.jti,
    )
