"""Startup and shutdown hooks for the governance gate API.

Startup:
1. Configure structured logging from GovernanceGateConfig
2. Create the ledger schema when the PostgreSQL store is in use
3. Log which collaborators are wired, loudly when one is missing

Shutdown:
1. Dispose of the database engine
"""

from structlog import get_logger

from govgate.bootstrap import governance as bootstrap
from govgate.bootstrap.database import close_database_engine
from govgate.bootstrap.logging import configure_structlog
from govgate.infrastructure.adapters.persistence import PostgresLedgerStore

logger = get_logger(__name__)


def configure_logging() -> None:
    """Configure structlog from the environment configuration."""
    config = bootstrap.get_config()
    configure_structlog(environment=config.environment, log_level=config.log_level)


async def prepare_ledger() -> None:
    """Create the ledger table, index and append-only trigger if missing."""
    store = bootstrap.get_ledger_store()
    if isinstance(store, PostgresLedgerStore):
        await store.ensure_schema()
        logger.info("ledger_schema_ready")


def log_wiring() -> None:
    """Report which collaborators the gate runs with."""
    config = bootstrap.get_config()
    logger.info(
        "governance_gate_starting",
        environment=config.environment,
        ledger_configured=bootstrap.get_ledger_store() is not None,
        signal_source_configured=bootstrap.get_signal_source() is not None,
        attestation_configured=bootstrap.get_attestation_signer() is not None,
        execution_tokens_configured=bootstrap.get_execution_token_service() is not None,
        rate_limiting_enabled=config.rate_limiting_enabled,
    )


async def run_startup() -> None:
    configure_logging()
    log_wiring()
    await prepare_ledger()


async def run_shutdown() -> None:
    await close_database_engine()
    logger.info("governance_gate_stopped")
