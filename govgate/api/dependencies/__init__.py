"""FastAPI dependencies."""

from govgate.api.dependencies.governance import (
    get_actor_context,
    get_execution_token_service,
    get_gate_service,
    get_governed_mutation_service,
    get_reporting_service,
    get_verification_service,
)

__all__: list[str] = [
    "get_actor_context",
    "get_execution_token_service",
    "get_gate_service",
    "get_governed_mutation_service",
    "get_reporting_service",
    "get_verification_service",
]
