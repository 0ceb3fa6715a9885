"""Funding snapshot source backed by ccxt async.

Works for any venue ccxt implements fetchFundingRates for. Funding rates,
mark prices and settlement periods come from fetch_funding_rates(); 24h
quote volume comes from fetch_tickers() where the venue supports it; open
interest is read from the venue-native payload when present.
"""

from __future__ import annotations

import re

import ccxt.async_support as ccxt_async

from fundingscope.exceptions import IntervalLookupFailed, SourceUnavailable
from fundingscope.logging import get_logger
from fundingscope.models import RawRecord, is_finite_number
from fundingscope.platforms import get_platform
from fundingscope.sources.base import FundingSource

logger = get_logger(__name__)

_INTERVAL_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([hmd])\s*$", re.IGNORECASE)
_UNIT_HOURS = {"m": 1 / 60, "h": 1.0, "d": 24.0}
_MS_PER_HOUR = 60 * 60 * 1000


def parse_interval_hours(value: object) -> float | None:
    """Parse a ccxt funding interval string ("8h", "60m", "1d") into hours."""
    if not isinstance(value, str):
        return None
    match = _INTERVAL_PATTERN.match(value)
    if match is None:
        return None
    return float(match.group(1)) * _UNIT_HOURS[match.group(2).lower()]


def _to_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if is_finite_number(number) else None


class CcxtFundingSource(FundingSource):
    """FundingSource over a ccxt async exchange instance.

    Args:
        platform_id: Platform id this source reports for.
        exchange_id: ccxt exchange id (e.g. "hyperliquid", "paradex").
        timeout_ms: ccxt request timeout.
        exchange: Pre-built ccxt exchange (tests); built from exchange_id if omitted.
    """

    def __init__(
        self,
        platform_id: str,
        exchange_id: str,
        timeout_ms: int = 10_000,
        exchange: ccxt_async.Exchange | None = None,
    ) -> None:
        self._platform_id = platform_id
        self._meta = get_platform(platform_id)
        self._exchange_id = exchange_id
        if exchange is None:
            exchange_cls = getattr(ccxt_async, exchange_id)
            exchange = exchange_cls(
                {
                    "enableRateLimit": True,
                    "timeout": timeout_ms,
                    "options": {"defaultType": "swap"},
                }
            )
        self._exchange = exchange

    @property
    def platform_id(self) -> str:
        return self._platform_id

    async def connect(self) -> None:
        markets = await self._exchange.load_markets()
        logger.info(
            "ccxt_source_connected",
            platform=self._platform_id,
            exchange=self._exchange_id,
            market_count=len(markets),
        )

    async def close(self) -> None:
        """Clean up ccxt async resources."""
        await self._exchange.close()
        logger.info("ccxt_source_closed", platform=self._platform_id)

    async def fetch_snapshot(self) -> list[RawRecord]:
        try:
            rates = await self._exchange.fetch_funding_rates()
            tickers: dict = {}
            if self._exchange.has.get("fetchTickers"):
                tickers = await self._exchange.fetch_tickers()
        except Exception as e:
            raise SourceUnavailable(self._platform_id, str(e)) from e

        records = [
            self._to_raw_record(symbol, rate, tickers.get(symbol) or {})
            for symbol, rate in rates.items()
        ]
        logger.debug(
            "ccxt_snapshot_fetched",
            platform=self._platform_id,
            count=len(records),
        )
        return records

    async def fetch_funding_interval(self, symbol: str) -> float:
        """Infer the funding interval from the two latest settlement timestamps."""
        history = await self._exchange.fetch_funding_rate_history(symbol, limit=2)
        timestamps = sorted(
            int(h["timestamp"]) for h in history if h.get("timestamp") is not None
        )
        if len(timestamps) < 2:
            raise IntervalLookupFailed(symbol, "fewer than two funding events")
        interval_ms = abs(timestamps[-1] - timestamps[-2])
        return float(max(1, round(interval_ms / _MS_PER_HOUR)))

    def _to_raw_record(self, symbol: str, rate: dict, ticker: dict) -> RawRecord:
        info = rate.get("info") or {}
        ticker_info = ticker.get("info") or {}

        mark_price = _to_float(rate.get("markPrice"))
        if mark_price is None:
            mark_price = _to_float(ticker.get("last"))

        # ccxt has no unified OI on funding/ticker structures; venues that
        # expose it natively report it in base units
        open_interest = _to_float(info.get("openInterest"))
        if open_interest is None:
            open_interest = _to_float(ticker_info.get("openInterest"))
        if open_interest is not None and not self._meta.open_interest_in_base:
            open_interest = open_interest * mark_price if mark_price is not None else None

        return RawRecord(
            platform_id=self._platform_id,
            symbol_raw=symbol,
            rate_raw=_to_float(rate.get("fundingRate")),
            open_interest_raw=open_interest,
            volume_24h_raw=_to_float(ticker.get("quoteVolume")),
            mark_price=mark_price,
            funding_period_hours=parse_interval_hours(rate.get("interval")),
        )
