"""Unit tests for the reason code registry.

Properties tested:
- normalize is idempotent
- normalize is independent of input order and duplicates
- unknown codes are quarantined under UNKNOWN_REASON_CODE, never dropped
- normalize never raises, whatever it is given
"""

from enum import Enum

from hypothesis import given
from hypothesis import strategies as st

from govgate.domain.models.reason_codes import (
    ALLOWED_REASON_CODES,
    REASON_CODE_REGISTRY_VERSION,
    UNKNOWN_REASON_CODE,
    ReasonCode,
    is_known_reason_code,
    normalize_reason_codes,
)

code_lists = st.lists(
    st.one_of(
        st.sampled_from(sorted(ALLOWED_REASON_CODES)),
        st.text(min_size=1, max_size=12),
    ),
    max_size=12,
)


class TestRegistry:
    """Tests for the allowlist itself."""

    def test_registry_is_versioned(self) -> None:
        assert REASON_CODE_REGISTRY_VERSION == "RC_V1"

    def test_sentinel_is_allowlisted(self) -> None:
        assert UNKNOWN_REASON_CODE in ALLOWED_REASON_CODES

    def test_is_known_reason_code(self) -> None:
        assert is_known_reason_code("NO_SITE")
        assert not is_known_reason_code("BOGUS_CODE")
        assert not is_known_reason_code(None)
        assert not is_known_reason_code(42)


class TestNormalizeReasonCodes:
    """Tests for normalize_reason_codes()."""

    def test_unknown_code_is_quarantined(self) -> None:
        """NO_SITE plus an unknown code keeps NO_SITE and adds the sentinel."""
        result = normalize_reason_codes(["NO_SITE", "BOGUS_CODE"])

        assert list(result.reason_codes) == ["NO_SITE", "UNKNOWN_REASON_CODE"]
        assert list(result.unknown) == ["BOGUS_CODE"]
        assert result.has_unknown

    def test_known_codes_are_sorted_and_deduplicated(self) -> None:
        result = normalize_reason_codes(["OPS_RISK", "LEGAL_EXPIRING", "OPS_RISK"])

        assert result.reason_codes == ("LEGAL_EXPIRING", "OPS_RISK")
        assert result.unknown == ()
        assert not result.has_unknown

    def test_none_and_non_strings_are_dropped(self) -> None:
        result = normalize_reason_codes([None, 7, "NO_SHIFT", {"x": 1}])

        assert result.reason_codes == ("NO_SHIFT",)
        assert result.unknown == ()

    def test_none_input_is_empty(self) -> None:
        result = normalize_reason_codes(None)

        assert result.reason_codes == ()
        assert result.unknown == ()

    def test_enum_members_reduce_to_values(self) -> None:
        result = normalize_reason_codes([ReasonCode.LEGAL_BLOCKING, "LEGAL_BLOCKING"])

        assert result.reason_codes == ("LEGAL_BLOCKING",)

    def test_foreign_enum_value_is_checked_against_allowlist(self) -> None:
        class Other(str, Enum):
            THING = "THING"

        result = normalize_reason_codes([Other.THING])

        assert result.unknown == ("THING",)
        assert UNKNOWN_REASON_CODE in result.reason_codes

    @given(code_lists)
    def test_normalize_is_idempotent(self, codes: list[str]) -> None:
        once = normalize_reason_codes(codes).reason_codes
        twice = normalize_reason_codes(once).reason_codes

        assert twice == once

    @given(code_lists, st.randoms(use_true_random=False))
    def test_normalize_is_order_independent(self, codes: list[str], rnd) -> None:
        shuffled = list(codes)
        rnd.shuffle(shuffled)

        assert normalize_reason_codes(shuffled) == normalize_reason_codes(codes)

    @given(code_lists)
    def test_sentinel_present_iff_unknown(self, codes: list[str]) -> None:
        result = normalize_reason_codes(codes)
        unknown_in_input = any(code not in ALLOWED_REASON_CODES for code in codes)

        assert result.has_unknown == unknown_in_input
        if unknown_in_input:
            assert UNKNOWN_REASON_CODE in result.reason_codes

    @given(st.lists(st.one_of(st.none(), st.integers(), st.text(), st.floats())))
    def test_never_raises(self, codes: list[object]) -> None:
        result = normalize_reason_codes(codes)

        assert list(result.reason_codes) == sorted(result.reason_codes)
        assert all(code in ALLOWED_REASON_CODES for code in result.reason_codes)
