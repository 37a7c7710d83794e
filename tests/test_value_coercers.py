"""
tests/test_value_coercers.py

Unit tests for app/validators/value_coercers.py.

Coverage
--------
- coerce_number: separators, rounding, negatives, junk, BIGINT bound
- clamp_streams
- to_strptime_format pattern translation
- coerce_date: ISO passthrough, format hint, fallbacks, free-form, junk
- week_start_of Monday alignment
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.validators.value_coercers import (
    MAX_STREAM_COUNT,
    clamp_streams,
    coerce_date,
    coerce_number,
    to_strptime_format,
    week_start_of,
)


class TestCoerceNumber:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1,234,567", 1234567),
            (" 12 345 ", 12345),
            ("1 234", 1234),
            ("12.5", 13),
            ("12.4", 12),
            ("-5", -5),
            (42, 42),
            (3.7, 4),
            (Decimal("2.5"), 3),
        ],
    )
    def test_parses_numbers(self, raw, expected) -> None:
        assert coerce_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "12abc", True, float("nan"), "inf"])
    def test_rejects_non_numbers(self, raw) -> None:
        assert coerce_number(raw) is None

    @pytest.mark.parametrize(
        "raw",
        ["1e30", "-1e30", "9223372036854775808", "1e999999999", 10**30, Decimal("1E+19")],
    )
    def test_rejects_counts_beyond_bigint(self, raw) -> None:
        assert coerce_number(raw) is None

    def test_accepts_largest_bigint(self) -> None:
        assert coerce_number(str(MAX_STREAM_COUNT)) == MAX_STREAM_COUNT
        assert coerce_number("1e18") == 10**18


def test_clamp_streams_floors_at_zero() -> None:
    assert clamp_streams(-3) == 0
    assert clamp_streams(0) == 0
    assert clamp_streams(17) == 17


class TestToStrptimeFormat:
    @pytest.mark.parametrize(
        ("pattern", "expected"),
        [
            ("MM/dd/yyyy", "%m/%d/%Y"),
            ("mm/dd/yyyy", "%m/%d/%Y"),
            ("dd.MM.yy", "%d.%m.%y"),
            ("yyyy-MM-dd", "%Y-%m-%d"),
            ("MMM d, yyyy", "%b %d, %Y"),
        ],
    )
    def test_translates_tokens(self, pattern: str, expected: str) -> None:
        assert to_strptime_format(pattern) == expected


class TestCoerceDate:
    def test_iso_passthrough(self) -> None:
        assert coerce_date("2025-01-06") == "2025-01-06"

    def test_invalid_iso_is_rejected(self) -> None:
        assert coerce_date("2025-13-45") is None

    def test_default_us_format(self) -> None:
        assert coerce_date("01/06/2025") == "2025-01-06"
        assert coerce_date("1/6/2025") == "2025-01-06"

    def test_format_hint_is_tried_first(self) -> None:
        assert coerce_date("06/01/2025", "dd/MM/yyyy") == "2025-01-06"

    @pytest.mark.parametrize(
        ("raw", "pattern"),
        [
            ("3/14/2025", "M/d/yyyy"),
            ("03/14/2025", "MM/dd/yyyy"),
            ("2025-03-14", "yyyy-MM-dd"),
            ("14/3/2025", "d/M/yyyy"),
            ("14/03/2025", "dd/MM/yyyy"),
        ],
    )
    def test_fixed_formats_with_matching_hint(self, raw: str, pattern: str) -> None:
        assert coerce_date(raw, pattern) == "2025-03-14"

    def test_day_first_falls_through_when_month_overflows(self) -> None:
        assert coerce_date("14/03/2025") == "2025-03-14"

    def test_free_form_text(self) -> None:
        assert coerce_date("Jan 6, 2025") == "2025-01-06"

    def test_date_objects(self) -> None:
        assert coerce_date(date(2025, 1, 6)) == "2025-01-06"
        assert coerce_date(datetime(2025, 1, 6, 15, 30)) == "2025-01-06"

    @pytest.mark.parametrize("raw", [None, "", "   ", "unknown"])
    def test_unparseable_values(self, raw) -> None:
        assert coerce_date(raw) is None


class TestWeekStartOf:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2025-01-06", "2025-01-06"),
            ("2025-01-08", "2025-01-06"),
            ("2025-01-12", "2025-01-06"),
            ("01/13/2025", "2025-01-13"),
        ],
    )
    def test_aligns_to_monday(self, raw: str, expected: str) -> None:
        assert week_start_of(raw) == expected

    def test_unparseable_returns_none(self) -> None:
        assert week_start_of("unknown") is None
