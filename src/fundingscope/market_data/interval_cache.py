"""Two-level cache of resolved funding intervals.

Level 1 is an in-process dict: checked first, authoritative for the life
of the process once populated. Level 2 is the durable IntervalStore: read
once at startup by seed(), written on every new resolution, never consulted
on the lookup path.

One cache instance per variable-interval platform, built at startup and
handed to that platform's IntervalResolver.
"""

from abc import ABC, abstractmethod

from fundingscope.data.store import IntervalStore
from fundingscope.logging import get_logger
from fundingscope.models import IntervalRecord

logger = get_logger(__name__)


class IntervalCache(ABC):
    """Symbol -> funding interval (hours) cache contract."""

    @abstractmethod
    def get(self, symbol: str) -> float | None:
        """Return the cached interval for a symbol, or None."""
        ...

    @abstractmethod
    def contains(self, symbol: str) -> bool:
        ...

    @abstractmethod
    async def put(self, symbol: str, hours: float) -> None:
        """Store an interval, overwriting any previous value."""
        ...

    @abstractmethod
    def snapshot(self) -> dict[str, float]:
        """Return a copy of every cached interval."""
        ...

    @property
    @abstractmethod
    def version(self) -> int:
        """Counter bumped on every change; lets readers detect new intervals."""
        ...


class MemoryIntervalCache(IntervalCache):
    """In-process interval cache with no durable backing."""

    def __init__(self, platform_id: str, initial: dict[str, float] | None = None) -> None:
        self._platform_id = platform_id
        self._intervals: dict[str, float] = dict(initial or {})
        self._version = 0

    @property
    def platform_id(self) -> str:
        return self._platform_id

    @property
    def version(self) -> int:
        return self._version

    def get(self, symbol: str) -> float | None:
        return self._intervals.get(symbol)

    def contains(self, symbol: str) -> bool:
        return symbol in self._intervals

    async def put(self, symbol: str, hours: float) -> None:
        self._store_in_memory(symbol, hours)

    def snapshot(self) -> dict[str, float]:
        return dict(self._intervals)

    def _store_in_memory(self, symbol: str, hours: float) -> bool:
        """Write level 1. Returns True if the stored value changed."""
        previous = self._intervals.get(symbol)
        if previous == hours:
            return False
        if previous is not None:
            # Venue changed the symbol's period; the fresh value wins
            logger.info(
                "funding_interval_changed",
                platform=self._platform_id,
                symbol=symbol,
                previous_hours=previous,
                hours=hours,
            )
        self._intervals[symbol] = hours
        self._version += 1
        return True


class TieredIntervalCache(MemoryIntervalCache):
    """In-process cache backed by a durable IntervalStore."""

    def __init__(self, store: IntervalStore, platform_id: str) -> None:
        super().__init__(platform_id)
        self._store = store

    async def seed(self) -> int:
        """Load durable intervals into memory. Returns the number loaded.

        Entries already resolved in this process are kept; the durable tier
        only fills gaps.
        """
        stored = await self._store.load_intervals(self._platform_id)
        loaded = 0
        for symbol, hours in stored.items():
            if symbol not in self._intervals:
                self._intervals[symbol] = hours
                loaded += 1
        if loaded:
            self._version += 1
        logger.info(
            "interval_cache_seeded",
            platform=self._platform_id,
            count=loaded,
        )
        return loaded

    async def put(self, symbol: str, hours: float) -> None:
        if self._store_in_memory(symbol, hours):
            await self._store.save_interval(
                IntervalRecord(platform_id=self._platform_id, symbol=symbol, hours=hours)
            )
