"""Display helpers: funding unit scaling and compact number formatting.

Rates are stored per hour; the table can show them per 1h, 8h, day or year.
This is presentation only and never feeds back into spread math.
"""

from enum import Enum

from fundingscope.models import HOURS_PER_YEAR, is_finite_number


class FundingUnit(str, Enum):
    """Period a displayed funding rate is expressed over."""

    HOUR = "1h"
    EIGHT_HOURS = "8h"
    DAY = "1d"
    YEAR = "1y"

    @property
    def hours(self) -> int:
        return _UNIT_HOURS[self]


_UNIT_HOURS = {
    FundingUnit.HOUR: 1,
    FundingUnit.EIGHT_HOURS: 8,
    FundingUnit.DAY: 24,
    FundingUnit.YEAR: HOURS_PER_YEAR,
}


def scale_rate(rate_per_hour: float | None, unit: FundingUnit = FundingUnit.HOUR) -> float | None:
    """Express a per-hour rate over `unit`. None/non-finite stays None."""
    if not is_finite_number(rate_per_hour):
        return None
    return rate_per_hour * unit.hours


def format_pct(rate: float | None, digits: int = 4) -> str:
    """Format a fractional rate as a signed percentage, e.g. 0.0001 -> "+0.0100%"."""
    if not is_finite_number(rate):
        return "N/A"
    value = rate * 100
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{digits}f}%"


def format_number(value: float | None) -> str:
    """Compact K/M/B formatting for volume and open interest."""
    if not is_finite_number(value) or value == 0:
        return "-"
    if value >= 1e9:
        return f"{value / 1e9:.2f}B"
    if value >= 1e6:
        return f"{value / 1e6:.2f}M"
    if value >= 1e3:
        return f"{value / 1e3:.2f}K"
    return f"{value:.2f}"


def next_funding_time(period_hours: float, now: float) -> float:
    """Next settlement (unix seconds), assuming settlements on UTC multiples of the period."""
    period = period_hours * 3600
    return (now // period + 1) * period
