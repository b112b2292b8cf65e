"""Unit tests for commit offset validation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from frolyk.assignment.offsets import MAX_OFFSET, parse_offset, validate_commit
from frolyk.errors import InvalidOffset


class TestParseOffset:
    def test_int(self):
        assert parse_offset(42) == 42

    def test_zero(self):
        assert parse_offset(0) == 0

    def test_decimal_string(self):
        assert parse_offset("1234") == 1234

    def test_string_with_surrounding_whitespace(self):
        assert parse_offset(" 7\n") == 7

    def test_beyond_float_precision(self):
        """Offsets above 2**53 survive without rounding."""
        value = 2**53 + 1
        assert parse_offset(str(value)) == value
        assert parse_offset(value) == value

    def test_max_int64(self):
        assert parse_offset(str(MAX_OFFSET)) == MAX_OFFSET

    @pytest.mark.parametrize(
        "value",
        [
            "not-a-valid-offset",
            "",
            "12abc",
            "-1",
            "+5",
            "1.5",
            "1e3",
            -1,
            1.0,
            1.5,
            Decimal("2"),
            None,
            True,
            [1],
            {"offset": 1},
            MAX_OFFSET + 1,
        ],
    )
    def test_rejects(self, value):
        with pytest.raises(InvalidOffset, match="Valid offset required"):
            parse_offset(value)

    def test_error_carries_value(self):
        with pytest.raises(InvalidOffset) as excinfo:
            parse_offset("nope")
        assert excinfo.value.value == "nope"

    def test_invalid_offset_is_value_error(self):
        with pytest.raises(ValueError):
            parse_offset("x")


class TestValidateCommit:
    def test_metadata_passes_through(self):
        assert validate_commit("5", "abc") == (5, "abc")

    def test_missing_metadata_is_none(self):
        assert validate_commit(5) == (5, None)

    def test_empty_metadata_is_kept_distinct(self):
        assert validate_commit(5, "") == (5, "")
