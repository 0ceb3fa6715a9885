"""Custom exceptions for the funding rate screener.

Only SourceUnavailable ever reaches the presentation layer, and then only
as a per-platform error flag. Everything else is absorbed with a fallback.
"""


class FundingScopeError(Exception):
    """Base exception for all screener errors."""


class SourceUnavailable(FundingScopeError):
    """Raised when a venue snapshot fetch fails (fully or partially)."""

    def __init__(self, platform_id: str, message: str) -> None:
        super().__init__(f"{platform_id}: {message}")
        self.platform_id = platform_id
        self.message = message


class IntervalLookupFailed(FundingScopeError):
    """Raised when a per-symbol funding interval cannot be determined."""

    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(f"interval lookup failed for {symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class UnknownPlatformError(FundingScopeError):
    """Raised when a platform id has no registered metadata."""
