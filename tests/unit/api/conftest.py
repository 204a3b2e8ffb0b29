"""Fixtures for API tests.

The app is built without entering its lifespan, so startup logging
configuration never runs here; collaborators are wired through the
bootstrap setters instead.
"""

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from govgate.api.main import create_app
from govgate.bootstrap import governance as bootstrap
from govgate.config.gate_config import GovernanceGateConfig
from govgate.domain.services.execution_token import ExecutionTokenService
from govgate.infrastructure.adapters.crypto import Ed25519AttestationSigner
from govgate.infrastructure.stubs import LedgerStoreStub, ReadinessSignalSourceStub

TOKEN_SECRET = "api-test-secret-0123456789"

ORG_HEADERS = {
    "X-Org-Id": "org-1",
    "X-Site-Id": "site-1",
    "X-Actor-User-Id": "user-1",
}


@dataclass
class Wiring:
    store: LedgerStoreStub
    source: ReadinessSignalSourceStub
    signer: Ed25519AttestationSigner
    tokens: ExecutionTokenService


@pytest.fixture
def wiring():
    """Wire in-memory collaborators into the bootstrap singletons."""
    bootstrap.reset_governance_dependencies()
    bootstrap.set_config(GovernanceGateConfig(rate_limit_per_minute=0))
    wired = Wiring(
        store=LedgerStoreStub(),
        source=ReadinessSignalSourceStub(),
        signer=Ed25519AttestationSigner.generate(),
        tokens=ExecutionTokenService(secret=TOKEN_SECRET),
    )
    bootstrap.set_ledger_store(wired.store)
    bootstrap.set_signal_source(wired.source)
    bootstrap.set_attestation_signer(wired.signer)
    bootstrap.set_rate_limiter(None)
    bootstrap.set_execution_token_service(wired.tokens)
    yield wired
    bootstrap.reset_governance_dependencies()


@pytest.fixture
def client(wiring) -> TestClient:
    """Test client with org headers preset."""
    return TestClient(create_app(), headers=ORG_HEADERS)


@pytest.fixture
def anonymous_client(wiring) -> TestClient:
    """Test client without actor headers."""
    return TestClient(create_app())
