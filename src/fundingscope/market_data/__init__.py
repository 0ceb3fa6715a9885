"""Market data layer -- symbol canonicalization, rate normalization, interval resolution."""

from fundingscope.market_data.interval_cache import (
    IntervalCache,
    MemoryIntervalCache,
    TieredIntervalCache,
)
from fundingscope.market_data.interval_resolver import IntervalResolver
from fundingscope.market_data.normalizer import normalize
from fundingscope.market_data.symbols import canonicalize

__all__ = [
    "IntervalCache",
    "IntervalResolver",
    "MemoryIntervalCache",
    "TieredIntervalCache",
    "canonicalize",
    "normalize",
]
