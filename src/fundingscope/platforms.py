"""Venue metadata and funding rate conventions.

Each venue quotes funding differently:

  hyperliquid  rate per 1h
  extended     rate per 1h
  lighter      rate per 8h
  aster        rate per funding interval, which varies by symbol (1h/4h/8h)
  paradex      rate per period, period reported on each market record

Only the normalizer reads `convention`/`period_hours`; everything past it
works in per-hour units.
"""

from dataclasses import dataclass
from enum import Enum

from fundingscope.exceptions import UnknownPlatformError


class RateConvention(str, Enum):
    """How a venue's raw funding figure relates to time."""

    FIXED_PERIOD = "fixed_period"
    VARIABLE_INTERVAL = "variable_interval"
    EXPLICIT_PERIOD = "explicit_period"


@dataclass(frozen=True)
class PlatformMeta:
    """Static description of one venue."""

    id: str
    name: str
    description: str
    convention: RateConvention
    period_hours: float | None = None  # FIXED_PERIOD only
    default_period_hours: float = 8.0  # EXPLICIT_PERIOD fallback
    open_interest_in_base: bool = False  # OI reported in contracts, not USD


PLATFORMS: dict[str, PlatformMeta] = {
    "hyperliquid": PlatformMeta(
        id="hyperliquid",
        name="Hyperliquid",
        description="Perpetual futures DEX",
        convention=RateConvention.FIXED_PERIOD,
        period_hours=1.0,
    ),
    "extended": PlatformMeta(
        id="extended",
        name="Extended",
        description="Advanced derivatives",
        convention=RateConvention.FIXED_PERIOD,
        period_hours=1.0,
    ),
    "aster": PlatformMeta(
        id="aster",
        name="Aster",
        description="Decentralized exchange",
        convention=RateConvention.VARIABLE_INTERVAL,
        open_interest_in_base=True,
    ),
    "lighter": PlatformMeta(
        id="lighter",
        name="Lighter",
        description="Perpetual futures on Lighter",
        convention=RateConvention.FIXED_PERIOD,
        period_hours=8.0,
    ),
    "paradex": PlatformMeta(
        id="paradex",
        name="Paradex",
        description="Perpetual futures on Paradex",
        convention=RateConvention.EXPLICIT_PERIOD,
        default_period_hours=8.0,
    ),
}

ALL_PLATFORM_IDS: tuple[str, ...] = tuple(PLATFORMS)


def get_platform(platform_id: str) -> PlatformMeta:
    """Return metadata for a platform id, raising UnknownPlatformError if absent."""
    try:
        return PLATFORMS[platform_id]
    except KeyError:
        raise UnknownPlatformError(f"unknown platform: {platform_id}") from None


def uses_interval_resolver(platform_id: str) -> bool:
    return get_platform(platform_id).convention is RateConvention.VARIABLE_INTERVAL
