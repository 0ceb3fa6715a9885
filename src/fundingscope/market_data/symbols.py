"""Asset canonicalization across venue symbol conventions.

Venues name the same perpetual very differently:

  ccxt unified   BTC/USDT:USDT
  Binance-style  BTCUSDT, 1000PEPEUSDT
  Paradex        BTC-USD-PERP
  Extended       BTC-USD
  Hyperliquid    BTC, kPEPE

canonicalize() maps all of them onto one base-asset identifier. It is pure
and deterministic; the aggregator groups on its output.
"""

import re

_SETTLE_SUFFIX = re.compile(r":\w+$")
_CONTRACT_SUFFIX = re.compile(r"(?:[-_/]|\s+)(?:PERP|SWAP)$")
_QUOTE_SUFFIX = re.compile(r"[-_/]?(?:USDT|USDC|BUSD|USD)$")
_INVALID_CHARS = re.compile(r"[^A-Z0-9.]")

# Scaled listings and legacy tickers that name the same instrument
SYMBOL_ALIASES: dict[str, str] = {
    "1000PEPE": "KPEPE",
    "1000SHIB": "KSHIB",
    "1000BONK": "KBONK",
    "1000FLOKI": "KFLOKI",
    "1000LUNC": "KLUNC",
    "XBT": "BTC",
}


def canonicalize(symbol: str | None) -> str:
    """Return the canonical asset identifier for a venue symbol.

    Returns "" for empty input. A symbol that is nothing but a quote
    currency (e.g. "USDC") is returned as-is rather than stripped to "".
    """
    if not symbol:
        return ""

    name = symbol.strip().upper()
    name = _SETTLE_SUFFIX.sub("", name)
    name = _CONTRACT_SUFFIX.sub("", name)

    stripped = _QUOTE_SUFFIX.sub("", name)
    if _INVALID_CHARS.sub("", stripped):
        name = stripped

    name = _INVALID_CHARS.sub("", name)
    return SYMBOL_ALIASES.get(name, name)
