"""Tests for CcxtFundingSource.

All tests use mocked ccxt exchange objects to avoid real API calls.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from fundingscope.exceptions import IntervalLookupFailed, SourceUnavailable
from fundingscope.sources.ccxt_source import CcxtFundingSource, parse_interval_hours

# ---------------------------------------------------------------------------
# Sample data (mimics ccxt fetch_funding_rates / fetch_tickers responses)
# ---------------------------------------------------------------------------

MOCK_FUNDING_RATES = {
    "BTC/USDC:USDC": {
        "symbol": "BTC/USDC:USDC",
        "fundingRate": 0.0000125,
        "markPrice": 50000.0,
        "interval": "1h",
        "info": {"openInterest": "10"},
    },
    "ETH/USDC:USDC": {
        "symbol": "ETH/USDC:USDC",
        "fundingRate": None,
        "markPrice": None,
        "interval": None,
        "info": {},
    },
}

MOCK_TICKERS = {
    "BTC/USDC:USDC": {"symbol": "BTC/USDC:USDC", "last": 50010.0, "quoteVolume": 1_500_000.0},
    "ETH/USDC:USDC": {
        "symbol": "ETH/USDC:USDC",
        "last": 3000.0,
        "quoteVolume": "250000",
        "info": {"openInterest": "100"},
    },
}


@pytest.fixture
def mock_exchange() -> MagicMock:
    exchange = MagicMock()
    exchange.has = {"fetchFundingRates": True, "fetchTickers": True}
    exchange.load_markets = AsyncMock(return_value={"BTC/USDC:USDC": {}})
    exchange.fetch_funding_rates = AsyncMock(return_value=MOCK_FUNDING_RATES)
    exchange.fetch_tickers = AsyncMock(return_value=MOCK_TICKERS)
    exchange.fetch_funding_rate_history = AsyncMock(return_value=[])
    exchange.close = AsyncMock()
    return exchange


class TestParseIntervalHours:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("8h", 8.0), ("1h", 1.0), ("60m", 1.0), ("1d", 24.0), (" 4H ", 4.0)],
    )
    def test_valid(self, value: str, expected: float) -> None:
        assert parse_interval_hours(value) == expected

    @pytest.mark.parametrize("value", [None, "", "8", "soon", 8])
    def test_invalid(self, value: object) -> None:
        assert parse_interval_hours(value) is None


class TestFetchSnapshot:
    """Snapshot mapping into RawRecords."""

    @pytest.mark.asyncio
    async def test_records(self, mock_exchange: MagicMock) -> None:
        source = CcxtFundingSource("hyperliquid", "hyperliquid", exchange=mock_exchange)

        records = {r.symbol_raw: r for r in await source.fetch_snapshot()}

        btc = records["BTC/USDC:USDC"]
        assert btc.platform_id == "hyperliquid"
        assert btc.rate_raw == 0.0000125
        assert btc.mark_price == 50000.0
        assert btc.open_interest_raw == pytest.approx(500_000.0)
        assert btc.volume_24h_raw == 1_500_000.0
        assert btc.funding_period_hours == 1.0

    @pytest.mark.asyncio
    async def test_missing_fields_fall_back_to_ticker(self, mock_exchange: MagicMock) -> None:
        source = CcxtFundingSource("hyperliquid", "hyperliquid", exchange=mock_exchange)

        records = {r.symbol_raw: r for r in await source.fetch_snapshot()}

        eth = records["ETH/USDC:USDC"]
        assert eth.rate_raw is None
        assert eth.mark_price == 3000.0
        assert eth.open_interest_raw == pytest.approx(300_000.0)
        assert eth.volume_24h_raw == 250_000.0
        assert eth.funding_period_hours is None

    @pytest.mark.asyncio
    async def test_base_unit_open_interest_left_for_normalizer(self, mock_exchange: MagicMock) -> None:
        source = CcxtFundingSource("aster", "aster", exchange=mock_exchange)

        records = {r.symbol_raw: r for r in await source.fetch_snapshot()}

        assert records["BTC/USDC:USDC"].open_interest_raw == 10.0

    @pytest.mark.asyncio
    async def test_no_tickers_support(self, mock_exchange: MagicMock) -> None:
        mock_exchange.has = {"fetchTickers": False}
        source = CcxtFundingSource("hyperliquid", "hyperliquid", exchange=mock_exchange)

        records = await source.fetch_snapshot()

        mock_exchange.fetch_tickers.assert_not_awaited()
        assert all(r.volume_24h_raw is None for r in records)

    @pytest.mark.asyncio
    async def test_failure_raises_source_unavailable(self, mock_exchange: MagicMock) -> None:
        mock_exchange.fetch_funding_rates.side_effect = RuntimeError("network down")
        source = CcxtFundingSource("paradex", "paradex", exchange=mock_exchange)

        with pytest.raises(SourceUnavailable) as exc_info:
            await source.fetch_snapshot()

        assert exc_info.value.platform_id == "paradex"
        assert "network down" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_partial_failure_raises(self, mock_exchange: MagicMock) -> None:
        mock_exchange.fetch_tickers.side_effect = RuntimeError("rate limited")
        source = CcxtFundingSource("hyperliquid", "hyperliquid", exchange=mock_exchange)

        with pytest.raises(SourceUnavailable):
            await source.fetch_snapshot()


class TestFetchFundingInterval:
    """Interval inference from funding history."""

    @pytest.mark.asyncio
    async def test_eight_hour_spacing(self, mock_exchange: MagicMock) -> None:
        hour_ms = 3_600_000
        mock_exchange.fetch_funding_rate_history.return_value = [
            {"timestamp": 1_700_000_000_000},
            {"timestamp": 1_700_000_000_000 + 8 * hour_ms},
        ]
        source = CcxtFundingSource("aster", "aster", exchange=mock_exchange)

        assert await source.fetch_funding_interval("BTC/USDT:USDT") == 8.0
        mock_exchange.fetch_funding_rate_history.assert_awaited_once_with("BTC/USDT:USDT", limit=2)

    @pytest.mark.asyncio
    async def test_sub_hour_spacing_rounds_up_to_one(self, mock_exchange: MagicMock) -> None:
        mock_exchange.fetch_funding_rate_history.return_value = [
            {"timestamp": 0},
            {"timestamp": 60_000},
        ]
        source = CcxtFundingSource("aster", "aster", exchange=mock_exchange)

        assert await source.fetch_funding_interval("BTC/USDT:USDT") == 1.0

    @pytest.mark.asyncio
    async def test_not_enough_history(self, mock_exchange: MagicMock) -> None:
        mock_exchange.fetch_funding_rate_history.return_value = [{"timestamp": 0}]
        source = CcxtFundingSource("aster", "aster", exchange=mock_exchange)

        with pytest.raises(IntervalLookupFailed):
            await source.fetch_funding_interval("BTC/USDT:USDT")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_connect_loads_markets(self, mock_exchange: MagicMock) -> None:
        source = CcxtFundingSource("hyperliquid", "hyperliquid", exchange=mock_exchange)
        await source.connect()
        mock_exchange.load_markets.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close(self, mock_exchange: MagicMock) -> None:
        source = CcxtFundingSource("hyperliquid", "hyperliquid", exchange=mock_exchange)
        await source.close()
        mock_exchange.close.assert_awaited_once()

    def test_platform_id(self, mock_exchange: MagicMock) -> None:
        source = CcxtFundingSource("paradex", "paradex", exchange=mock_exchange)
        assert source.platform_id == "paradex"
