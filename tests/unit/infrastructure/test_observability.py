"""Unit tests for request correlation and structlog configuration."""

import logging
import uuid

import pytest
import structlog

from govgate.infrastructure.observability import (
    accept_correlation_id,
    configure_structlog,
    correlation_id_processor,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
)
from govgate.infrastructure.observability.logging import _get_log_level


class TestCorrelationId:
    def test_generated_ids_are_time_ordered(self) -> None:
        first = generate_correlation_id()
        second = generate_correlation_id()

        assert uuid.UUID(first).version == 7
        assert first != second

    @pytest.mark.parametrize("raw", ["req-123", "trace:abc.DEF_9", "a" * 128])
    def test_plausible_caller_ids_are_kept(self, raw: str) -> None:
        assert accept_correlation_id(raw) == raw

    @pytest.mark.parametrize("raw", [None, "", "   ", "a" * 129, "x\r\ninjected: 1", "<script>"])
    def test_other_ids_are_replaced(self, raw) -> None:
        replaced = accept_correlation_id(raw)

        assert replaced != raw
        assert uuid.UUID(replaced).version == 7

    def test_scope_binds_and_resets(self) -> None:
        assert get_correlation_id() is None

        with correlation_scope("req-123") as correlation_id:
            assert correlation_id == "req-123"
            assert get_correlation_id() == "req-123"

        assert get_correlation_id() is None

    def test_nested_scope_restores_outer_id(self) -> None:
        with correlation_scope("outer"):
            with correlation_scope("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"

    def test_processor_adds_id_in_scope(self) -> None:
        with correlation_scope("req-123"):
            event = correlation_id_processor(None, "info", {"event": "x"})

        assert event == {"event": "x", "correlation_id": "req-123"}

    def test_processor_keeps_explicit_id(self) -> None:
        with correlation_scope("req-123"):
            event = correlation_id_processor(None, "info", {"correlation_id": "job-7"})

        assert event == {"correlation_id": "job-7"}

    def test_processor_leaves_event_alone_outside_scope(self) -> None:
        assert correlation_id_processor(None, "info", {"event": "x"}) == {"event": "x"}


class TestConfigureStructlog:
    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    @pytest.mark.parametrize("environment", ["production", "development"])
    def test_configures(self, environment: str) -> None:
        configure_structlog(environment=environment, log_level="debug")

        assert structlog.is_configured()

    def test_production_emits_json(self, capsys) -> None:
        configure_structlog(environment="production", log_level="info")

        with correlation_scope("req-9"):
            structlog.get_logger("test").info("ledger_chain_verified", org_id="org-1")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        assert '"event": "ledger_chain_verified"' in line
        assert '"correlation_id": "req-9"' in line
        assert '"org_id": "org-1"' in line


@pytest.mark.parametrize(
    ("name", "expected"),
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("nonsense", logging.INFO)],
)
def test_log_level_resolution(name, expected) -> None:
    assert _get_log_level(name) == expected


def test_log_level_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "error")
    assert _get_log_level() == logging.ERROR
