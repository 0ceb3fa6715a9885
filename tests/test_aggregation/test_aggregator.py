"""Tests for the asset aggregator (per-asset spread rows)."""

import math

import pytest

from fundingscope.aggregation.aggregator import aggregate, build_group
from fundingscope.market_data.normalizer import normalize
from fundingscope.models import HOURS_PER_YEAR, NormalizedRecord, PlatformEntry, RawRecord


def _rec(
    platform_id: str,
    asset: str,
    rate: float | None,
    oi: float | None = None,
    vol: float | None = None,
) -> NormalizedRecord:
    return NormalizedRecord(
        platform_id=platform_id,
        asset=asset,
        symbol_raw=asset,
        rate_per_hour=rate,
        open_interest_usd=oi,
        volume_24h_usd=vol,
    )


class TestSpread:
    """Short/long slots, spread and APR."""

    def test_max_and_min_platforms(self) -> None:
        groups = aggregate([
            _rec("hyperliquid", "BTC", 0.0001),
            _rec("lighter", "BTC", -0.00005),
            _rec("extended", "BTC", 0.00002),
        ])

        assert len(groups) == 1
        group = groups[0]
        assert group.short_platform == "hyperliquid"
        assert group.long_platform == "lighter"
        assert group.max_rate == 0.0001
        assert group.min_rate == -0.00005
        assert group.apr == pytest.approx(0.00015 * HOURS_PER_YEAR)

    def test_eight_hour_vs_one_hour_venue(self) -> None:
        """0.0001 per 8h against 0.00005 per 1h: the hourly venue pays more."""
        records = [
            normalize(RawRecord("lighter", "ETH", 0.0001)),
            normalize(RawRecord("hyperliquid", "ETH", 0.00005)),
        ]

        group = aggregate(records)[0]

        assert group.short_platform == "hyperliquid"
        assert group.long_platform == "lighter"
        assert group.spread_per_hour == pytest.approx(0.0000375)
        assert group.apr == pytest.approx(0.3285)

    def test_tie_keeps_first_platform(self) -> None:
        group = aggregate([
            _rec("extended", "SOL", 0.0001),
            _rec("hyperliquid", "SOL", 0.0001),
        ])[0]

        assert group.short_platform == "extended"
        assert group.long_platform == "extended"
        assert group.apr == 0.0

    def test_apr_never_negative(self) -> None:
        group = aggregate([
            _rec("extended", "SOL", -0.0003),
            _rec("hyperliquid", "SOL", -0.0001),
        ])[0]
        assert group.apr >= 0


class TestExclusion:
    """Assets without at least two rated platforms are left out."""

    def test_single_platform_excluded(self) -> None:
        assert aggregate([_rec("hyperliquid", "DOGE", 0.0001)]) == []

    def test_null_rate_does_not_count(self) -> None:
        groups = aggregate([
            _rec("hyperliquid", "DOGE", 0.0001),
            _rec("lighter", "DOGE", None, oi=1e6),
        ])
        assert groups == []

    def test_build_group_returns_none(self) -> None:
        platforms = {"hyperliquid": PlatformEntry.build(0.0001, None, None)}
        assert build_group("DOGE", platforms) is None

    def test_empty_asset_skipped(self) -> None:
        groups = aggregate([_rec("hyperliquid", "", 0.1), _rec("lighter", "", 0.2)])
        assert groups == []

    def test_null_rate_platform_still_listed(self) -> None:
        """A platform without a rate still reports its OI and volume."""
        group = aggregate([
            _rec("hyperliquid", "BTC", 0.0001, oi=1e6),
            _rec("lighter", "BTC", 0.0002, oi=2e6),
            _rec("aster", "BTC", None, oi=9e6, vol=5e6),
        ])[0]

        assert set(group.platforms) == {"hyperliquid", "lighter", "aster"}
        assert group.open_interest == 9e6
        assert group.volume_24h == 5e6


class TestLiquiditySignals:
    """Volume and OI are maxima across platforms, never sums."""

    def test_max_not_sum(self) -> None:
        group = aggregate([
            _rec("hyperliquid", "BTC", 0.0001, oi=3e6, vol=1e6),
            _rec("lighter", "BTC", 0.0002, oi=1e6, vol=4e6),
        ])[0]

        assert group.open_interest == 3e6
        assert group.volume_24h == 4e6

    def test_missing_values_count_as_zero(self) -> None:
        group = aggregate([
            _rec("hyperliquid", "BTC", 0.0001),
            _rec("lighter", "BTC", 0.0002, oi=math.nan),
        ])[0]

        assert group.open_interest == 0.0
        assert group.volume_24h == 0.0
        assert group.platforms["lighter"].valid_oi is False

    def test_validity_flags(self) -> None:
        entry = PlatformEntry.build(0.0001, -5.0, 10.0)
        assert entry.valid_oi is False
        assert entry.valid_vol is True


class TestGrouping:
    """Records group on the canonical asset."""

    def test_first_seen_order(self) -> None:
        groups = aggregate([
            _rec("hyperliquid", "ETH", 0.1),
            _rec("hyperliquid", "BTC", 0.1),
            _rec("lighter", "BTC", 0.2),
            _rec("lighter", "ETH", 0.2),
        ])
        assert [g.asset for g in groups] == ["ETH", "BTC"]

    def test_later_record_replaces_same_platform(self) -> None:
        group = aggregate([
            _rec("hyperliquid", "BTC", 0.1),
            _rec("hyperliquid", "BTC", 0.3),
            _rec("lighter", "BTC", 0.2),
        ])[0]
        assert group.platforms["hyperliquid"].funding_rate == 0.3
        assert group.short_platform == "hyperliquid"

    def test_cross_venue_spellings_merge(self) -> None:
        records = [
            normalize(RawRecord("hyperliquid", "kPEPE", 0.0001)),
            normalize(RawRecord("paradex", "1000PEPE-USD-PERP", 0.0008, funding_period_hours=8.0)),
        ]
        groups = aggregate(records)
        assert [g.asset for g in groups] == ["KPEPE"]
        assert set(groups[0].platforms) == {"hyperliquid", "paradex"}
