"""Tests for the health endpoint."""

from govgate.bootstrap import governance as bootstrap


def test_healthy_when_wired(client) -> None:
    response = client.get("/v1/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "ledger_configured": True,
        "signal_source_configured": True,
    }


def test_degraded_without_ledger(client) -> None:
    bootstrap.set_ledger_store(None)

    body = client.get("/v1/health").json()

    assert body["status"] == "degraded"
    assert body["ledger_configured"] is False


def test_correlation_id_echoed(client) -> None:
    response = client.get("/v1/health", headers={"X-Correlation-ID": "corr-123"})

    assert response.headers["X-Correlation-ID"] == "corr-123"


def test_correlation_id_generated(client) -> None:
    response = client.get("/v1/health")

    assert response.headers["X-Correlation-ID"]


def test_unusable_correlation_id_is_replaced(client) -> None:
    response = client.get("/v1/health", headers={"X-Correlation-ID": "a" * 200})

    echoed = response.headers["X-Correlation-ID"]
    assert echoed != "a" * 200
    assert len(echoed) == 36
