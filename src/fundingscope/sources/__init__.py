"""Funding snapshot sources -- the venue-facing contract and a ccxt implementation."""

from fundingscope.sources.base import FundingSource
from fundingscope.sources.ccxt_source import CcxtFundingSource, parse_interval_hours

__all__ = ["CcxtFundingSource", "FundingSource", "parse_interval_hours"]
