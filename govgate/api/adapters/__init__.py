"""Adapters between application results and HTTP responses."""

from govgate.api.adapters.governed_route import run_governed_mutation
from govgate.api.adapters.problems import gate_denied_response, problem_response

__all__: list[str] = [
    "gate_denied_response",
    "problem_response",
    "run_governed_mutation",
]
