"""Tests for display unit scaling and number formatting."""

import math

import pytest

from fundingscope.formatting import (
    FundingUnit,
    format_number,
    format_pct,
    next_funding_time,
    scale_rate,
)


class TestScaleRate:
    @pytest.mark.parametrize(
        ("unit", "expected"),
        [
            (FundingUnit.HOUR, 0.0001),
            (FundingUnit.EIGHT_HOURS, 0.0008),
            (FundingUnit.DAY, 0.0024),
            (FundingUnit.YEAR, 0.876),
        ],
    )
    def test_units(self, unit: FundingUnit, expected: float) -> None:
        assert scale_rate(0.0001, unit) == pytest.approx(expected)

    @pytest.mark.parametrize("rate", [None, math.nan, math.inf])
    def test_invalid_rate(self, rate: float | None) -> None:
        assert scale_rate(rate, FundingUnit.DAY) is None

    def test_unit_from_string(self) -> None:
        assert FundingUnit("8h") is FundingUnit.EIGHT_HOURS
        assert FundingUnit("1y").hours == 8760


class TestFormatPct:
    def test_positive_signed(self) -> None:
        assert format_pct(0.0001) == "+0.0100%"

    def test_negative(self) -> None:
        assert format_pct(-0.00025) == "-0.0250%"

    def test_digits(self) -> None:
        assert format_pct(0.3285, digits=2) == "+32.85%"

    def test_invalid(self) -> None:
        assert format_pct(None) == "N/A"
        assert format_pct(math.nan) == "N/A"


class TestFormatNumber:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1_500_000_000, "1.50B"),
            (2_340_000, "2.34M"),
            (12_500, "12.50K"),
            (999, "999.00"),
            (0, "-"),
            (None, "-"),
        ],
    )
    def test_compact(self, value: float | None, expected: str) -> None:
        assert format_number(value) == expected


class TestNextFundingTime:
    def test_next_hour_boundary(self) -> None:
        assert next_funding_time(1.0, 1_700_000_000.0) == 1_700_002_800.0

    def test_eight_hour_boundary(self) -> None:
        # 2023-11-14T22:13:20Z -> 2023-11-15T00:00:00Z
        assert next_funding_time(8.0, 1_700_000_000.0) == 1_700_006_400.0

    def test_on_boundary_moves_to_next(self) -> None:
        assert next_funding_time(8.0, 1_700_006_400.0) == 1_700_035_200.0
