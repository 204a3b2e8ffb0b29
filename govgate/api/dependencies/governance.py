"""Governance dependencies for route handlers.

Service getters delegate to bootstrap wiring so that tests can swap them
with ``app.dependency_overrides``. The actor context comes from headers
set by the upstream authentication layer.
"""

from typing import Annotated

from fastapi import Header, HTTPException, status

from govgate.application.services.governance_gate_service import (
    GovernanceGateService,
)
from govgate.application.services.governance_reporting_service import (
    GovernanceReportingService,
)
from govgate.application.services.governed_mutation_service import (
    GovernedMutationService,
)
from govgate.application.services.ledger_verification_service import (
    LedgerVerificationService,
)
from govgate.bootstrap import governance as bootstrap
from govgate.domain.models.actor_context import ActorContext
from govgate.domain.services.execution_token import ExecutionTokenService

ORG_CONTEXT_REQUIRED = "ORG_CONTEXT_REQUIRED"


def get_actor_context(
    x_org_id: Annotated[
        str | None, Header(description="Organization of the authenticated actor.")
    ] = None,
    x_site_id: Annotated[str | None, Header(description="Active site, if any.")] = None,
    x_actor_user_id: Annotated[
        str | None, Header(description="Authenticated user id.")
    ] = None,
) -> ActorContext:
    """Build the actor context from request headers.

    Raises:
        HTTPException: 400 ORG_CONTEXT_REQUIRED if X-Org-Id is missing.
    """
    org_id = (x_org_id or "").strip()
    if not org_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": ORG_CONTEXT_REQUIRED,
                "message": "X-Org-Id header is required",
            },
        )
    return ActorContext(
        org_id=org_id,
        site_id=(x_site_id or "").strip() or None,
        actor_user_id=(x_actor_user_id or "").strip() or None,
    )


def get_gate_service() -> GovernanceGateService:
    return bootstrap.get_gate_service()


def get_governed_mutation_service() -> GovernedMutationService:
    return bootstrap.get_governed_mutation_service()


def get_verification_service() -> LedgerVerificationService:
    return bootstrap.get_verification_service()


def get_reporting_service() -> GovernanceReportingService:
    return bootstrap.get_reporting_service()


def get_execution_token_service() -> ExecutionTokenService | None:
    return bootstrap.get_execution_token_service()
