"""Tests for the in-memory and durable-backed interval caches."""

import pytest

from fundingscope.data.database import FundingScopeDatabase
from fundingscope.data.store import IntervalStore
from fundingscope.market_data.interval_cache import MemoryIntervalCache, TieredIntervalCache
from fundingscope.models import IntervalRecord


class TestMemoryIntervalCache:
    """Process-scoped cache behaviour."""

    @pytest.mark.asyncio
    async def test_put_and_get(self) -> None:
        cache = MemoryIntervalCache("aster")
        assert cache.get("BTCUSDT") is None
        assert not cache.contains("BTCUSDT")

        await cache.put("BTCUSDT", 8.0)

        assert cache.get("BTCUSDT") == 8.0
        assert cache.contains("BTCUSDT")
        assert cache.snapshot() == {"BTCUSDT": 8.0}

    @pytest.mark.asyncio
    async def test_version_bumps_only_on_change(self) -> None:
        cache = MemoryIntervalCache("aster")
        await cache.put("BTCUSDT", 8.0)
        version = cache.version

        await cache.put("BTCUSDT", 8.0)
        assert cache.version == version

        await cache.put("BTCUSDT", 4.0)
        assert cache.version == version + 1
        assert cache.get("BTCUSDT") == 4.0

    def test_initial_values(self) -> None:
        cache = MemoryIntervalCache("aster", {"ETHUSDT": 1.0})
        assert cache.get("ETHUSDT") == 1.0


class TestTieredIntervalCache:
    """In-memory tier over the aiosqlite IntervalStore."""

    @pytest.mark.asyncio
    async def test_put_writes_through(self) -> None:
        async with FundingScopeDatabase(":memory:") as db:
            store = IntervalStore(db)
            cache = TieredIntervalCache(store, "aster")

            await cache.put("BTCUSDT", 8.0)

            assert await store.load_intervals("aster") == {"BTCUSDT": 8.0}

    @pytest.mark.asyncio
    async def test_seed_restores_durable_tier(self) -> None:
        async with FundingScopeDatabase(":memory:") as db:
            store = IntervalStore(db)
            for record in (
                IntervalRecord("aster", "BTCUSDT", 8.0),
                IntervalRecord("aster", "ETHUSDT", 4.0),
                IntervalRecord("other", "BTCUSDT", 1.0),
            ):
                await store.save_interval(record)

            cache = TieredIntervalCache(store, "aster")
            loaded = await cache.seed()

            assert loaded == 2
            assert cache.snapshot() == {"BTCUSDT": 8.0, "ETHUSDT": 4.0}

    @pytest.mark.asyncio
    async def test_seed_does_not_override_memory(self) -> None:
        async with FundingScopeDatabase(":memory:") as db:
            store = IntervalStore(db)
            await store.save_interval(IntervalRecord("aster", "BTCUSDT", 8.0))

            cache = TieredIntervalCache(store, "aster")
            await cache.put("BTCUSDT", 1.0)
            loaded = await cache.seed()

            assert loaded == 0
            assert cache.get("BTCUSDT") == 1.0

    @pytest.mark.asyncio
    async def test_fresh_value_overwrites_durable(self) -> None:
        async with FundingScopeDatabase(":memory:") as db:
            store = IntervalStore(db)
            await store.save_interval(IntervalRecord("aster", "BTCUSDT", 8.0))
            cache = TieredIntervalCache(store, "aster")
            await cache.seed()

            await cache.put("BTCUSDT", 4.0)

            assert cache.get("BTCUSDT") == 4.0
            assert await store.load_intervals("aster") == {"BTCUSDT": 4.0}
