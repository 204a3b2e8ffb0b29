"""Configurable readiness signal source for tests and local development."""

from __future__ import annotations

from govgate.application.ports.readiness_signal_source import ReadinessSignalSource
from govgate.domain.errors.readiness import ReadinessSignalError
from govgate.domain.models.gate_context import GateScope, ReadinessScope
from govgate.domain.models.readiness import LegalFlag, OpsFlag, ReadinessSignal


class ReadinessSignalSourceStub(ReadinessSignalSource):
    """Returns preset signals per scope and records every request.

    Attributes:
        calls: Every scope requested, in order.
    """

    def __init__(
        self,
        legal: LegalFlag = LegalFlag.LEGAL_GO,
        ops: OpsFlag = OpsFlag.OPS_GO,
        extra_reason_codes: tuple[str, ...] = (),
        policy_fingerprint: str | None = None,
    ) -> None:
        self._default = ReadinessSignal(
            legal=legal,
            ops=ops,
            extra_reason_codes=extra_reason_codes,
            policy_fingerprint=policy_fingerprint,
        )
        self._by_scope: dict[GateScope, ReadinessSignal] = {}
        self._failure: str | None = None
        self.calls: list[ReadinessScope] = []

    def set_signal(
        self,
        legal: LegalFlag,
        ops: OpsFlag,
        extra_reason_codes: tuple[str, ...] = (),
        policy_fingerprint: str | None = None,
        scope: GateScope | None = None,
    ) -> None:
        """Set the signal returned for one scope, or the default."""
        signal = ReadinessSignal(
            legal=legal,
            ops=ops,
            extra_reason_codes=extra_reason_codes,
            policy_fingerprint=policy_fingerprint,
        )
        if scope is None:
            self._default = signal
        else:
            self._by_scope[scope] = signal

    def set_failure(self, message: str = "calculator unavailable") -> None:
        """Make every fetch raise ReadinessSignalError."""
        self._failure = message

    def clear_failure(self) -> None:
        self._failure = None

    async def fetch_signal(self, scope: ReadinessScope) -> ReadinessSignal:
        self.calls.append(scope)
        if self._failure is not None:
            raise ReadinessSignalError("stub", self._failure)
        return self._by_scope.get(scope.scope, self._default)
