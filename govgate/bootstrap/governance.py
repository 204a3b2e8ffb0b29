"""Bootstrap wiring for governance gate dependencies.

Each getter builds its singleton lazily from GovernanceGateConfig. Tests
replace any piece with the matching ``set_*`` function and call
``reset_governance_dependencies`` between cases.

Unconfigured collaborators are wired as None, never as a silent
fallback in production: the services then refuse with 503 (ledger or
signal source) or 501 (attestation).
"""

from __future__ import annotations

from structlog import get_logger

from govgate.application.ports.attestation_signer import AttestationSigner
from govgate.application.ports.ledger_store import LedgerStore
from govgate.application.ports.mutation_rate_limiter import (
    MutationRateLimiterProtocol,
)
from govgate.application.ports.readiness_signal_source import ReadinessSignalSource
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
from govgate.application.services.ledger_writer_service import LedgerWriterService
from govgate.config.gate_config import GovernanceGateConfig
from govgate.domain.errors.execution_token import ExecutionTokenError
from govgate.domain.services.execution_token import ExecutionTokenService

logger = get_logger(__name__)

_UNSET = object()

_config: GovernanceGateConfig | None = None
_ledger_store: LedgerStore | None | object = _UNSET
_signal_source: ReadinessSignalSource | None | object = _UNSET
_attestation_signer: AttestationSigner | None | object = _UNSET
_rate_limiter: MutationRateLimiterProtocol | None | object = _UNSET
_execution_token_service: ExecutionTokenService | None | object = _UNSET


def get_config() -> GovernanceGateConfig:
    """Get the configuration, read from the environment on first use."""
    global _config
    if _config is None:
        _config = GovernanceGateConfig.from_environment()
    return _config


def get_ledger_store() -> LedgerStore | None:
    """Get the ledger store: PostgreSQL, in-memory (when allowed), or None."""
    global _ledger_store
    if _ledger_store is _UNSET:
        config = get_config()
        if config.database_url:
            from govgate.bootstrap.database import get_session_factory
            from govgate.infrastructure.adapters.persistence import PostgresLedgerStore

            _ledger_store = PostgresLedgerStore(get_session_factory(config.database_url))
        elif config.allow_in_memory_ledger:
            from govgate.infrastructure.stubs.ledger_store_stub import LedgerStoreStub

            logger.warning("in_memory_ledger_in_use", environment=config.environment)
            _ledger_store = LedgerStoreStub()
        else:
            logger.critical("governance_not_configured", missing="ledger_store")
            _ledger_store = None
    return _ledger_store  # type: ignore[return-value]


def get_signal_source() -> ReadinessSignalSource | None:
    """Get the readiness signal source.

    Uses the HTTP calculators when GOVGATE_SIGNAL_SOURCE_URL is set.
    Outside production an all-GO stub stands in; in production the
    source stays unset and the gate answers 503.
    """
    global _signal_source
    if _signal_source is _UNSET:
        config = get_config()
        if config.signal_source_url:
            from govgate.infrastructure.adapters.http import HttpReadinessSignalSource

            _signal_source = HttpReadinessSignalSource(
                base_url=config.signal_source_url,
                timeout_seconds=config.signal_timeout_seconds,
            )
        elif not config.is_production:
            from govgate.infrastructure.stubs.readiness_signal_source_stub import (
                ReadinessSignalSourceStub,
            )

            logger.warning("readiness_signal_stub_in_use", environment=config.environment)
            _signal_source = ReadinessSignalSourceStub()
        else:
            logger.critical("governance_not_configured", missing="readiness_signal_source")
            _signal_source = None
    return _signal_source  # type: ignore[return-value]


def get_attestation_signer() -> AttestationSigner | None:
    """Get the Ed25519 attestation signer, or None without a key."""
    global _attestation_signer
    if _attestation_signer is _UNSET:
        key = get_config().ledger_signing_key
        if key:
            from govgate.infrastructure.adapters.crypto import Ed25519AttestationSigner

            _attestation_signer = Ed25519AttestationSigner.from_base64(key)
        else:
            _attestation_signer = None
    return _attestation_signer  # type: ignore[return-value]


def get_rate_limiter() -> MutationRateLimiterProtocol | None:
    """Get the per-actor rate limiter, or None when disabled."""
    global _rate_limiter
    if _rate_limiter is _UNSET:
        config = get_config()
        if config.rate_limiting_enabled:
            from govgate.infrastructure.adapters.memory_rate_limiter import (
                InMemoryMutationRateLimiter,
            )

            _rate_limiter = InMemoryMutationRateLimiter(
                limit=config.rate_limit_per_minute,
                window_seconds=60.0,
                max_keys=config.rate_limit_max_keys,
            )
        else:
            _rate_limiter = None
    return _rate_limiter  # type: ignore[return-value]


def get_execution_token_service() -> ExecutionTokenService | None:
    """Get the execution token service, or None without a valid secret."""
    global _execution_token_service
    if _execution_token_service is _UNSET:
        config = get_config()
        if config.execution_token_secret:
            try:
                _execution_token_service = ExecutionTokenService(
                    secret=config.execution_token_secret,
                    ttl_seconds=config.execution_token_ttl_seconds,
                )
            except ExecutionTokenError as exc:
                logger.error("execution_token_secret_rejected", error=str(exc))
                _execution_token_service = None
        else:
            _execution_token_service = None
    return _execution_token_service  # type: ignore[return-value]


def get_gate_service() -> GovernanceGateService:
    """Build the gate orchestrator over the configured signal source."""
    return GovernanceGateService(signal_source=get_signal_source())


def get_ledger_writer() -> LedgerWriterService:
    """Build the ledger writer over the configured store."""
    return LedgerWriterService(store=get_ledger_store())


def get_governed_mutation_service() -> GovernedMutationService:
    """Build the governed mutation wrapper."""
    return GovernedMutationService(
        gate=get_gate_service(),
        ledger_writer=get_ledger_writer(),
        rate_limiter=get_rate_limiter(),
    )


def get_verification_service() -> LedgerVerificationService:
    """Build the verification and attestation service."""
    return LedgerVerificationService(
        store=get_ledger_store(),
        signer=get_attestation_signer(),
    )


def get_reporting_service() -> GovernanceReportingService:
    """Build the reporting service."""
    return GovernanceReportingService(store=get_ledger_store())


def set_config(config: GovernanceGateConfig) -> None:
    """Set custom configuration for testing."""
    global _config
    _config = config


def set_ledger_store(store: LedgerStore | None) -> None:
    """Set custom ledger store for testing."""
    global _ledger_store
    _ledger_store = store


def set_signal_source(source: ReadinessSignalSource | None) -> None:
    """Set custom signal source for testing."""
    global _signal_source
    _signal_source = source


def set_attestation_signer(signer: AttestationSigner | None) -> None:
    """Set custom attestation signer for testing."""
    global _attestation_signer
    _attestation_signer = signer


def set_rate_limiter(limiter: MutationRateLimiterProtocol | None) -> None:
    """Set custom rate limiter for testing."""
    global _rate_limiter
    _rate_limiter = limiter


def set_execution_token_service(service: ExecutionTokenService | None) -> None:
    """Set custom execution token service for testing."""
    global _execution_token_service
    _execution_token_service = service


def reset_governance_dependencies() -> None:
    """Reset all singleton instances for testing."""
    global _config
    global _ledger_store
    global _signal_source
    global _attestation_signer
    global _rate_limiter
    global _execution_token_service

    _config = None
    _ledger_store = _UNSET
    _signal_source = _UNSET
    _attestation_signer = _UNSET
    _rate_limiter = _UNSET
    _execution_token_service = _UNSET
