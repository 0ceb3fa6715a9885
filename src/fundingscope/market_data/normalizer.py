"""Rate normalizer -- converts one venue record into per-hour, USD units.

This is the only place period math happens. Conversion rule by convention:

  FIXED_PERIOD       rate / platform.period_hours
  VARIABLE_INTERVAL  rate / resolved_interval_hours (fallback if unresolved)
  EXPLICIT_PERIOD    rate / record.funding_period_hours (platform default if absent)

Malformed numbers are dropped per field: a record with a NaN volume still
contributes its rate, and a record with no usable rate still contributes
its open interest and volume.
"""

from fundingscope.market_data.symbols import canonicalize
from fundingscope.models import NormalizedRecord, RawRecord, is_finite_number
from fundingscope.platforms import PlatformMeta, RateConvention, get_platform

DEFAULT_FALLBACK_INTERVAL_HOURS = 4.0


def _finite_or_none(value: float | None) -> float | None:
    return float(value) if is_finite_number(value) else None


def _positive_or(value: float | None, default: float) -> float:
    if is_finite_number(value) and value > 0:
        return float(value)
    return default


def period_hours_for(
    raw: RawRecord,
    platform: PlatformMeta,
    resolved_interval_hours: float | None = None,
    fallback_hours: float = DEFAULT_FALLBACK_INTERVAL_HOURS,
) -> float:
    """Return the funding period (hours) that raw.rate_raw is quoted over."""
    if platform.convention is RateConvention.FIXED_PERIOD:
        return _positive_or(platform.period_hours, 1.0)
    if platform.convention is RateConvention.VARIABLE_INTERVAL:
        return _positive_or(resolved_interval_hours, fallback_hours)
    return _positive_or(raw.funding_period_hours, platform.default_period_hours)


def normalize(
    raw: RawRecord,
    resolved_interval_hours: float | None = None,
    *,
    platform: PlatformMeta | None = None,
    fallback_hours: float = DEFAULT_FALLBACK_INTERVAL_HOURS,
) -> NormalizedRecord:
    """Convert a RawRecord to a NormalizedRecord.

    Args:
        raw: Record as reported by the venue.
        resolved_interval_hours: Interval from the resolver; only consulted
            for VARIABLE_INTERVAL venues.
        platform: Venue metadata; looked up from raw.platform_id if omitted.
        fallback_hours: Period used when a variable interval is unresolved.

    Returns:
        NormalizedRecord with rate_per_hour=None when the raw rate is missing
        or non-finite.
    """
    if platform is None:
        platform = get_platform(raw.platform_id)

    rate = _finite_or_none(raw.rate_raw)
    rate_per_hour = None
    if rate is not None:
        period = period_hours_for(raw, platform, resolved_interval_hours, fallback_hours)
        rate_per_hour = rate / period

    mark_price = _finite_or_none(raw.mark_price)

    open_interest = _finite_or_none(raw.open_interest_raw)
    if open_interest is not None and platform.open_interest_in_base:
        # contracts * mark; without a usable mark price the notional is unknown
        open_interest = open_interest * mark_price if mark_price is not None else None

    return NormalizedRecord(
        platform_id=raw.platform_id,
        asset=canonicalize(raw.symbol_raw),
        symbol_raw=raw.symbol_raw,
        rate_per_hour=rate_per_hour,
        open_interest_usd=open_interest,
        volume_24h_usd=_finite_or_none(raw.volume_24h_raw),
        mark_price=mark_price if mark_price is not None else 0.0,
    )
