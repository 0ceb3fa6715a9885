"""Asset aggregator -- merges normalized venue records into per-asset spread rows.

For each canonical asset:
  volume_24h / open_interest = max across platforms (presentation signals,
      not sums; one venue under-reporting should not hide an asset)
  short_platform = highest per-hour rate (shorts collect there)
  long_platform  = lowest per-hour rate
  apr = (max_rate - min_rate) * 24 * 365

An asset quoted with a rate on fewer than two platforms has no spread and is
left out entirely; apr/long/short are never defaulted to zero.
"""

from collections.abc import Iterable

from fundingscope.models import HOURS_PER_YEAR, AssetGroup, NormalizedRecord, PlatformEntry


def _as_signal(value: float | None) -> float:
    return value if value is not None and value > 0 else 0.0


def build_group(asset: str, platforms: dict[str, PlatformEntry]) -> AssetGroup | None:
    """Compute spread metrics for one asset, or None if fewer than two rates exist."""
    rated = [
        (platform_id, entry.funding_rate)
        for platform_id, entry in platforms.items()
        if entry.funding_rate is not None
    ]
    if len(rated) < 2:
        return None

    # strict comparisons: on equal rates the first platform seen keeps the slot
    short_platform, max_rate = rated[0]
    long_platform, min_rate = rated[0]
    for platform_id, rate in rated[1:]:
        if rate > max_rate:
            short_platform, max_rate = platform_id, rate
        if rate < min_rate:
            long_platform, min_rate = platform_id, rate

    return AssetGroup(
        asset=asset,
        platforms=platforms,
        volume_24h=max(_as_signal(e.volume_24h) for e in platforms.values()),
        open_interest=max(_as_signal(e.open_interest) for e in platforms.values()),
        max_rate=max_rate,
        min_rate=min_rate,
        apr=(max_rate - min_rate) * HOURS_PER_YEAR,
        long_platform=long_platform,
        short_platform=short_platform,
    )


def aggregate(records: Iterable[NormalizedRecord]) -> list[AssetGroup]:
    """Group normalized records by canonical asset and compute spreads.

    Records with an empty asset are skipped. If a platform reports the same
    asset twice (e.g. USDT- and USDC-margined listings), the later record
    replaces the earlier one.

    Returns:
        One AssetGroup per asset with at least two rated platforms, in
        first-seen asset order.
    """
    by_asset: dict[str, dict[str, PlatformEntry]] = {}
    for record in records:
        if not record.asset:
            continue
        by_asset.setdefault(record.asset, {})[record.platform_id] = PlatformEntry.build(
            funding_rate=record.rate_per_hour,
            open_interest=record.open_interest_usd,
            volume_24h=record.volume_24h_usd,
        )

    groups: list[AssetGroup] = []
    for asset, platforms in by_asset.items():
        group = build_group(asset, platforms)
        if group is not None:
            groups.append(group)
    return groups
