"""Filter & ranking engine for the funding table.

Filters run in this order: search text, positive-spread toggle, favorites,
minimum APR, per-platform liquidity thresholds. Then a stable sort and
offset/limit pagination.

Liquidity thresholds (min open interest, min 24h volume) apply per platform,
not per asset. For each row:

  checked_count = selected platforms quoting the asset
  pass_count    = those whose OI and volume both meet the active thresholds

A row stays visible when pass_count >= 1 and is flagged arbitrage-viable
(meets_arb_threshold) when pass_count >= 2. With no thresholds set,
pass_count = checked_count.
"""

import math
from collections.abc import Callable, Collection, Iterable
from dataclasses import replace

from fundingscope.models import (
    AssetGroup,
    PageResult,
    PlatformEntry,
    QueryParams,
    SortKey,
    SortOrder,
)

_MISSING = float("-inf")

_SORT_KEYS: dict[SortKey, Callable[[AssetGroup], object]] = {
    SortKey.ASSET: lambda g: g.asset,
    SortKey.MAX_RATE: lambda g: g.max_rate if g.max_rate is not None else _MISSING,
    SortKey.SPREAD: lambda g: g.spread_per_hour if g.spread_per_hour is not None else _MISSING,
    SortKey.APR: lambda g: g.apr if g.apr is not None else _MISSING,
    SortKey.VOLUME: lambda g: g.volume_24h,
    SortKey.OPEN_INTEREST: lambda g: g.open_interest,
}


def _entry_passes(
    entry: PlatformEntry,
    min_open_interest: float | None,
    min_volume_24h: float | None,
) -> bool:
    ok_oi = min_open_interest is None or (
        entry.valid_oi and entry.open_interest >= min_open_interest
    )
    ok_vol = min_volume_24h is None or (
        entry.valid_vol and entry.volume_24h >= min_volume_24h
    )
    return ok_oi and ok_vol


def annotate_liquidity(
    group: AssetGroup,
    selected_platforms: Collection[str] | None,
    min_open_interest: float | None = None,
    min_volume_24h: float | None = None,
) -> AssetGroup:
    """Return a copy of group with pass_count/checked_count/meets_arb_threshold set."""
    checked = [
        entry
        for platform_id, entry in group.platforms.items()
        if selected_platforms is None or platform_id in selected_platforms
    ]
    if min_open_interest is None and min_volume_24h is None:
        passes = len(checked)
    else:
        passes = sum(
            1 for entry in checked
            if _entry_passes(entry, min_open_interest, min_volume_24h)
        )
    return replace(
        group,
        checked_count=len(checked),
        pass_count=passes,
        meets_arb_threshold=passes >= 2,
    )


def filter_groups(
    groups: Iterable[AssetGroup],
    params: QueryParams,
    favorites: Collection[str] = frozenset(),
) -> list[AssetGroup]:
    """Apply every filter in params and annotate liquidity counts. Order is preserved."""
    needle = params.search_text.strip().lower()
    selected = (
        frozenset(params.selected_platforms)
        if params.selected_platforms is not None
        else None
    )
    min_apr = params.min_apr_percent
    if min_apr is not None and not (math.isfinite(min_apr) and min_apr >= 0):
        min_apr = None

    result: list[AssetGroup] = []
    for group in groups:
        if needle and needle not in group.asset.lower():
            continue
        if params.only_positive_spread and not (group.apr or 0) > 0:
            continue
        if params.favorites_only and group.asset not in favorites:
            continue
        if min_apr is not None and (group.apr or 0) * 100 < min_apr:
            continue

        annotated = annotate_liquidity(
            group, selected, params.min_open_interest, params.min_volume_24h
        )
        if params.has_liquidity_thresholds and annotated.pass_count < 1:
            continue
        result.append(annotated)
    return result


def sort_groups(
    groups: list[AssetGroup],
    sort_by: SortKey = SortKey.MAX_RATE,
    sort_order: SortOrder = SortOrder.DESC,
) -> list[AssetGroup]:
    """Stable sort; rows with equal keys keep their incoming order in both directions."""
    return sorted(
        groups,
        key=_SORT_KEYS[sort_by],
        reverse=sort_order is SortOrder.DESC,
    )


def total_pages_for(count: int, page_size: int) -> int:
    return max(1, math.ceil(count / page_size))


def paginate(
    groups: list[AssetGroup], page: int, page_size: int
) -> PageResult:
    """Slice one page. A page outside 1..total_pages resets to page 1."""
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    total_pages = total_pages_for(len(groups), page_size)
    if page < 1 or page > total_pages:
        page = 1
    start = (page - 1) * page_size
    return PageResult(
        rows=groups[start:start + page_size],
        total_pages=total_pages,
        total_count=len(groups),
        page=page,
    )


def query(
    groups: Iterable[AssetGroup],
    params: QueryParams,
    favorites: Collection[str] = frozenset(),
) -> PageResult:
    """Filter, sort, and paginate aggregated groups."""
    filtered = filter_groups(groups, params, favorites)
    ordered = sort_groups(filtered, params.sort_by, params.sort_order)
    return paginate(ordered, params.page, params.page_size)
