"""
Tests for the per-field token decoders.

Verifies integer, percentage, capacity, state, and pass-through decoding,
including the failure modes the assemblers rely on.

CHANGELOG:
- 2026-10-12: Initial creation -- TDD tests written first (STORY-002)

TODO:
- None
"""

from __future__ import annotations

import pytest
from exporter.src.decoders import (
    SENTINEL,
    DecodeError,
    decode_capacity,
    decode_int,
    decode_percent,
    decode_state,
    passthrough,
)


class TestDecodeInt:
    """Base-10 signed integers, whitespace trimmed."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [("3750", 3750), ("-1240", -1240), ("+5", 5), ("  301 ", 301), ("0", 0)],
    )
    def test_valid_integers(self, token: str, expected: int) -> None:
        assert decode_int(token) == expected

    @pytest.mark.parametrize("token", ["", "abc", "12a", "3.5", "-", "1_000", "85%"])
    def test_non_numeric_raises(self, token: str) -> None:
        with pytest.raises(DecodeError):
            decode_int(token)

    def test_decode_error_is_value_error(self) -> None:
        assert issubclass(DecodeError, ValueError)


class TestDecodePercent:
    """Optional trailing '%', then integer, narrowed to a signed byte."""

    def test_with_percent_sign(self) -> None:
        assert decode_percent("85%") == 85

    def test_without_percent_sign(self) -> None:
        assert decode_percent("85") == 85

    def test_hundred_percent(self) -> None:
        assert decode_percent("100%") == 100

    def test_only_one_percent_sign_stripped(self) -> None:
        with pytest.raises(DecodeError):
            decode_percent("85%%")

    @pytest.mark.parametrize("token", ["abc", "%", "", "N/A"])
    def test_non_numeric_raises(self, token: str) -> None:
        with pytest.raises(DecodeError):
            decode_percent(token)

    def test_values_wrap_like_a_signed_byte(self) -> None:
        """Out-of-range values wrap the way an 8-bit store does."""
        assert decode_percent("127%") == 127
        assert decode_percent("128%") == -128
        assert decode_percent("200%") == -56
        assert decode_percent("-1%") == -1


class TestDecodeCapacity:
    """Numeric token decoded, unit token ignored."""

    def test_value_decoded(self) -> None:
        assert decode_capacity("3450", "mAH") == 3450

    def test_unit_not_validated(self) -> None:
        assert decode_capacity("3450", "furlongs") == 3450

    def test_bad_value_raises(self) -> None:
        with pytest.raises(DecodeError):
            decode_capacity("-", "mAH")


class TestDecodeState:
    """State decoding is total: unknown tokens give -1."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [("Charge", 0), ("Dischg", 1), ("Idle", 2), ("Balance", 3)],
    )
    def test_known_states(self, token: str, expected: int) -> None:
        assert decode_state(token) == expected

    @pytest.mark.parametrize("token", ["N/A", "", "charge", "Discharge", "Absent", "123"])
    def test_unknown_states_never_raise(self, token: str) -> None:
        assert decode_state(token) == -1


class TestPassthrough:
    def test_returns_token_unchanged(self) -> None:
        assert passthrough("Normal") == "Normal"
        assert passthrough("245") == "245"


def test_sentinel_is_minus_one() -> None:
    assert SENTINEL == -1
