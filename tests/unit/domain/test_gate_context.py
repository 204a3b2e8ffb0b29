"""Unit tests for gate context scoping and shift normalization."""

from datetime import date

import pytest

from govgate.domain.errors.event_meta import EventMetaError
from govgate.domain.errors.shift_context import ShiftContextError
from govgate.domain.models.actor_context import ActorContext
from govgate.domain.models.gate_context import (
    GateContext,
    GateScope,
    ReadinessScope,
    normalize_shift_code,
    parse_shift_date,
)


class TestShiftNormalization:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(" night ", "NIGHT"), ("E", "E"), ("   ", None), ("", None), (None, None), (3, None)],
    )
    def test_normalize_shift_code(self, raw, expected) -> None:
        assert normalize_shift_code(raw) == expected

    def test_parse_valid_date(self) -> None:
        assert parse_shift_date("2026-03-14") == date(2026, 3, 14)
        assert parse_shift_date(date(2026, 3, 14)) == date(2026, 3, 14)

    @pytest.mark.parametrize("raw", [None, ""])
    def test_parse_absent_date(self, raw) -> None:
        assert parse_shift_date(raw) is None

    @pytest.mark.parametrize("raw", ["14.03.2026", "2026-02-30", "tomorrow", 20260314])
    def test_parse_invalid_date(self, raw) -> None:
        with pytest.raises(ShiftContextError) as exc_info:
            parse_shift_date(raw)
        assert exc_info.value.code == "SHIFT_CONTEXT_INVALID"


class TestGateContext:
    def test_shift_id_selects_shift_scope(self) -> None:
        context = GateContext(action="SHIFT_PUBLISH", target_type="shift", shift_id=" s-1 ")

        assert context.shift_id == "s-1"
        assert context.scope == GateScope.SHIFT
        assert context.is_shift_scoped

    def test_date_and_code_select_shift_scope(self) -> None:
        context = GateContext(
            action="SHIFT_PUBLISH",
            target_type="shift",
            date="2026-03-14",
            shift_code="night",
        )

        assert context.scope == GateScope.SHIFT
        assert context.date == date(2026, 3, 14)
        assert context.shift_code == "NIGHT"

    def test_date_without_code_is_org_scope(self) -> None:
        context = GateContext(action="SHIFT_PUBLISH", target_type="shift", date="2026-03-14")
        assert context.scope == GateScope.ORG

    def test_blank_shift_id_is_org_scope(self) -> None:
        context = GateContext(action="USER_LOGIN", target_type="session", shift_id="  ")
        assert context.shift_id is None
        assert context.scope == GateScope.ORG

    @pytest.mark.parametrize(("action", "target_type"), [("", "shift"), ("X", " "), (None, "x")])
    def test_action_and_target_type_required(self, action, target_type) -> None:
        with pytest.raises(ValueError):
            GateContext(action=action, target_type=target_type)

    def test_invalid_date_raises(self) -> None:
        with pytest.raises(ShiftContextError):
            GateContext(action="SHIFT_PUBLISH", target_type="shift", date="2026/03/14")

    def test_non_finite_meta_raises(self) -> None:
        with pytest.raises(EventMetaError):
            GateContext(
                action="SHIFT_PUBLISH",
                target_type="shift",
                meta={"after": {"coverage": float("nan")}},
            )


class TestReadinessScope:
    def test_shift_context_keeps_identity(self) -> None:
        context = GateContext(
            action="SHIFT_PUBLISH", target_type="shift", date="2026-03-14", shift_code="n"
        )

        scope = ReadinessScope.for_context("org-1", "site-1", context)

        assert scope == ReadinessScope(
            org_id="org-1", site_id="site-1", date=date(2026, 3, 14), shift_code="N"
        )
        assert scope.scope == GateScope.SHIFT

    def test_org_context_drops_partial_shift_identity(self) -> None:
        context = GateContext(action="SHIFT_PUBLISH", target_type="shift", shift_code="n")

        scope = ReadinessScope.for_context("org-1", None, context)

        assert scope == ReadinessScope(org_id="org-1")
        assert scope.scope == GateScope.ORG


class TestActorContext:
    def test_rate_limit_key(self) -> None:
        assert ActorContext(org_id="org-1", actor_user_id="u-1").rate_limit_key == "org-1:u-1"
        assert ActorContext(org_id="org-1").rate_limit_key == "org-1:anonymous"

    def test_org_required(self) -> None:
        with pytest.raises(ValueError):
            ActorContext(org_id=" ")
