"""Shared test fixtures for the funding screener."""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from fundingscope.config import AppSettings, DashboardSettings, SourceSettings, StorageSettings
from fundingscope.models import RawRecord


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (in-memory storage, manual refresh)."""
    return AppSettings(
        log_level="DEBUG",
        sources=SourceSettings(default_poll_interval=0.0),
        storage=StorageSettings(db_path=":memory:"),
        dashboard=DashboardSettings(enabled=False),
    )


@pytest.fixture
def make_source() -> Callable[..., AsyncMock]:
    """Factory for AsyncMock FundingSources returning fixed snapshots."""

    def _make(platform_id: str, records: list[RawRecord] | None = None) -> AsyncMock:
        source = AsyncMock()
        source.platform_id = platform_id
        source.fetch_snapshot = AsyncMock(return_value=list(records or []))
        source.fetch_funding_interval = AsyncMock(return_value=8.0)
        return source

    return _make
