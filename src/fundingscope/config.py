"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class SourceSettings(BaseSettings):
    """Funding snapshot sources: which venues are polled and how.

    Poll intervals are per platform in seconds; 0 means manual refresh only.
    ``ccxt_ids`` maps a platform to the ccxt exchange id that backs it.
    Platforms without a ccxt id are skipped unless a source is injected.
    """

    model_config = SettingsConfigDict(env_prefix="SOURCES_")

    enabled: list[str] = ["hyperliquid", "extended", "aster", "lighter", "paradex"]
    ccxt_ids: dict[str, str] = {
        "hyperliquid": "hyperliquid",
        "extended": "extended",
        "aster": "aster",
        "lighter": "lighter",
        "paradex": "paradex",
    }
    poll_intervals: dict[str, float] = {}
    default_poll_interval: float = 0.0  # manual refresh only
    request_timeout_ms: int = 10_000


class ResolverSettings(BaseSettings):
    """Funding interval resolution for venues with per-symbol periods."""

    model_config = SettingsConfigDict(env_prefix="RESOLVER_")

    concurrency: int = 6
    fallback_hours: float = 4.0  # conservative default when lookup fails
    lookup_timeout: float = 5.0  # seconds per symbol


class ScreenerSettings(BaseSettings):
    """Default view parameters for the funding table."""

    model_config = SettingsConfigDict(env_prefix="SCREENER_")

    page_size: int = 25
    sort_by: Literal["asset", "max_rate", "apr", "volume", "open_interest"] = "max_rate"
    sort_order: Literal["asc", "desc"] = "desc"


class StorageSettings(BaseSettings):
    """Durable key-value storage for favorites and resolved intervals."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/fundingscope.db"


class DashboardSettings(BaseSettings):
    """JSON API server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    sources: SourceSettings = SourceSettings()
    resolver: ResolverSettings = ResolverSettings()
    screener: ScreenerSettings = ScreenerSettings()
    storage: StorageSettings = StorageSettings()
    dashboard: DashboardSettings = DashboardSettings()
