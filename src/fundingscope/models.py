"""Shared data models for the funding rate screener.

Rates, open interest and volume are floats, not Decimal: they are ranking
and display signals, and malformed upstream values are detected through
float non-finite semantics (NaN, inf).

Every rate past the normalizer is a fraction per hour.
"""

import math
from dataclasses import dataclass, field
from enum import Enum

HOURS_PER_YEAR = 24 * 365

PAGE_SIZE_OPTIONS = (10, 25, 50, 100)


def is_finite_number(value: object) -> bool:
    """True for an int/float that is neither NaN nor infinite (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class SortKey(str, Enum):
    """Column the funding table is ordered by."""

    ASSET = "asset"
    MAX_RATE = "max_rate"
    SPREAD = "spread"
    APR = "apr"
    VOLUME = "volume"
    OPEN_INTEREST = "open_interest"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class RawRecord:
    """One venue's view of one symbol, exactly as the source reported it."""

    platform_id: str
    symbol_raw: str
    rate_raw: float | None
    open_interest_raw: float | None = None
    volume_24h_raw: float | None = None
    mark_price: float | None = None
    funding_period_hours: float | None = None  # only some venues report it


@dataclass(frozen=True)
class NormalizedRecord:
    """A raw record converted to the canonical asset and per-hour units."""

    platform_id: str
    asset: str
    symbol_raw: str
    rate_per_hour: float | None
    open_interest_usd: float | None
    volume_24h_usd: float | None
    mark_price: float = 0.0


@dataclass(frozen=True)
class IntervalRecord:
    """Resolved funding interval for one symbol on one venue."""

    platform_id: str
    symbol: str
    hours: float


@dataclass(frozen=True)
class PlatformEntry:
    """One platform's figures inside an AssetGroup.

    Use PlatformEntry.build(); the validity flags are computed there and
    trusted everywhere downstream.
    """

    funding_rate: float | None
    open_interest: float | None
    volume_24h: float | None
    valid_oi: bool
    valid_vol: bool

    @classmethod
    def build(
        cls,
        funding_rate: float | None,
        open_interest: float | None,
        volume_24h: float | None,
    ) -> "PlatformEntry":
        return cls(
            funding_rate=funding_rate,
            open_interest=open_interest,
            volume_24h=volume_24h,
            valid_oi=is_finite_number(open_interest) and open_interest >= 0,
            valid_vol=is_finite_number(volume_24h) and volume_24h >= 0,
        )


@dataclass(frozen=True)
class AssetGroup:
    """All platforms quoting one canonical asset, with spread metrics.

    Built by the aggregator; the query stage returns annotated copies with
    pass_count/checked_count/meets_arb_threshold filled in.
    """

    asset: str
    platforms: dict[str, PlatformEntry]
    volume_24h: float = 0.0
    open_interest: float = 0.0
    max_rate: float | None = None
    min_rate: float | None = None
    apr: float | None = None
    long_platform: str | None = None
    short_platform: str | None = None
    pass_count: int = 0
    checked_count: int = 0
    meets_arb_threshold: bool = False

    @property
    def spread_per_hour(self) -> float | None:
        if self.max_rate is None or self.min_rate is None:
            return None
        return self.max_rate - self.min_rate


@dataclass(frozen=True)
class QueryParams:
    """View parameters for the funding table.

    Absent thresholds (None) always pass. selected_platforms=None means
    every known platform is selected.
    """

    search_text: str = ""
    favorites_only: bool = False
    min_apr_percent: float | None = None
    min_open_interest: float | None = None
    min_volume_24h: float | None = None
    only_positive_spread: bool = False
    selected_platforms: tuple[str, ...] | None = None
    sort_by: SortKey = SortKey.MAX_RATE
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: int = 25

    @property
    def has_liquidity_thresholds(self) -> bool:
        return self.min_open_interest is not None or self.min_volume_24h is not None


@dataclass(frozen=True)
class PageResult:
    """One page of the filtered, sorted funding table."""

    rows: list[AssetGroup] = field(default_factory=list)
    total_pages: int = 1
    total_count: int = 0
    page: int = 1
