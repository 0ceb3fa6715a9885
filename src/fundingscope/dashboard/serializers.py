"""JSON shapes for the API responses."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from fundingscope.formatting import (
    FundingUnit,
    format_number,
    format_pct,
    next_funding_time,
    scale_rate,
)
from fundingscope.models import AssetGroup, PageResult
from fundingscope.platforms import PLATFORMS, PlatformMeta


def timestamp_to_iso(value: float | None) -> str | None:
    """Convert unix seconds to an ISO-8601 UTC string."""
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


def _next_funding_iso(meta: PlatformMeta | None, now: float) -> str | None:
    # Variable-interval venues have no fixed period; use their default settlement period.
    if meta is None:
        return None
    period = meta.period_hours or meta.default_period_hours
    return timestamp_to_iso(next_funding_time(period, now))


def group_to_dict(
    group: AssetGroup,
    unit: FundingUnit = FundingUnit.HOUR,
    favorites: frozenset[str] = frozenset(),
    now: float | None = None,
) -> dict[str, Any]:
    """Serialize one table row. Rates are scaled to `unit`; apr stays annual."""
    now = time.time() if now is None else now
    platforms = {}
    for platform_id, entry in group.platforms.items():
        rate = scale_rate(entry.funding_rate, unit)
        meta = PLATFORMS.get(platform_id)
        platforms[platform_id] = {
            "name": meta.name if meta is not None else platform_id,
            "funding_rate": rate,
            "funding_rate_display": format_pct(rate),
            "open_interest": entry.open_interest,
            "volume_24h": entry.volume_24h,
            "valid_oi": entry.valid_oi,
            "valid_vol": entry.valid_vol,
            "next_funding": _next_funding_iso(meta, now),
        }

    return {
        "asset": group.asset,
        "favorite": group.asset in favorites,
        "platforms": platforms,
        "max_rate": scale_rate(group.max_rate, unit),
        "min_rate": scale_rate(group.min_rate, unit),
        "spread": scale_rate(group.spread_per_hour, unit),
        "apr": group.apr,
        "apr_display": format_pct(group.apr, digits=2),
        "short_platform": group.short_platform,
        "long_platform": group.long_platform,
        "volume_24h": group.volume_24h,
        "volume_24h_display": format_number(group.volume_24h),
        "open_interest": group.open_interest,
        "open_interest_display": format_number(group.open_interest),
        "pass_count": group.pass_count,
        "checked_count": group.checked_count,
        "meets_arb_threshold": group.meets_arb_threshold,
    }


def page_to_dict(
    page: PageResult,
    unit: FundingUnit = FundingUnit.HOUR,
    favorites: frozenset[str] = frozenset(),
) -> dict[str, Any]:
    return {
        "rows": [group_to_dict(g, unit, favorites) for g in page.rows],
        "page": page.page,
        "total_pages": page.total_pages,
        "total_count": page.total_count,
        "unit": unit.value,
    }
