"""Bounded-concurrency resolver for per-symbol funding intervals.

Some venues (Aster) settle funding every 1h, 4h or 8h depending on the
symbol and do not say which on the snapshot. The resolver looks intervals up
in the background with a fixed-size worker pool so the snapshot refresh
never waits on it; until a symbol resolves, the normalizer uses the
fallback interval.

Cycle boundaries are tracked with an epoch counter. start_batch() bumps the
epoch only when the set of symbols needing resolution changes; resubmitting
symbols the running batch already covers joins that batch. A worker
captures the epoch it was started with and checks it before pulling the
next symbol and before committing a result, so a superseded batch winds
down on its own without new lookups.

Failure policy: a failed or timed-out lookup caches the fallback interval,
so a broken symbol is not retried every cycle.
"""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable, Iterable

from fundingscope.exceptions import IntervalLookupFailed
from fundingscope.logging import get_logger
from fundingscope.market_data.interval_cache import IntervalCache
from fundingscope.market_data.normalizer import DEFAULT_FALLBACK_INTERVAL_HOURS
from fundingscope.models import is_finite_number

logger = get_logger(__name__)

IntervalFetcher = Callable[[str], Awaitable[float]]


class IntervalResolver:
    """Resolves {symbol -> hours} for one variable-interval platform.

    Args:
        platform_id: Venue the symbols belong to (for logging).
        fetch_interval: Coroutine function returning a symbol's interval in hours.
        cache: Process-scoped interval cache shared with the screener.
        concurrency: Maximum simultaneous lookups.
        fallback_hours: Interval cached when a lookup fails.
        lookup_timeout: Seconds before a single lookup counts as failed.
    """

    def __init__(
        self,
        platform_id: str,
        fetch_interval: IntervalFetcher,
        cache: IntervalCache,
        concurrency: int = 6,
        fallback_hours: float = DEFAULT_FALLBACK_INTERVAL_HOURS,
        lookup_timeout: float = 5.0,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._platform_id = platform_id
        self._fetch_interval = fetch_interval
        self._cache = cache
        self._concurrency = concurrency
        self._fallback_hours = fallback_hours
        self._lookup_timeout = lookup_timeout
        self._epoch = 0
        self._workers: set[asyncio.Task] = set()  # type: ignore[type-arg]
        self._batch: asyncio.Future | None = None  # type: ignore[type-arg]
        self._batch_symbols: frozenset[str] = frozenset()

    @property
    def platform_id(self) -> str:
        return self._platform_id

    @property
    def cache(self) -> IntervalCache:
        return self._cache

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def fallback_hours(self) -> float:
        return self._fallback_hours

    def interval_for(self, symbol: str) -> float | None:
        """Return the cached interval for a symbol, or None if not yet resolved."""
        return self._cache.get(symbol)

    def start_batch(self, symbols: Iterable[str]) -> asyncio.Future | None:  # type: ignore[type-arg]
        """Begin resolving a new batch of symbols without waiting for it.

        Symbols already cached are skipped, and duplicates are resolved once.
        If every remaining symbol belongs to the batch still in progress, that
        batch's future is returned and nothing is restarted. Otherwise the
        batch in progress is superseded: its workers finish the lookup they
        are on, discard the result, and exit.

        Must be called from a running event loop.

        Returns:
            Future resolving to the number of intervals committed, or None if
            nothing needed resolving.
        """
        pending: deque[str] = deque(
            dict.fromkeys(s for s in symbols if s and not self._cache.contains(s))
        )

        if (
            pending
            and self._batch is not None
            and not self._batch.done()
            and self._batch_symbols.issuperset(pending)
        ):
            logger.debug(
                "interval_batch_joined",
                platform=self._platform_id,
                epoch=self._epoch,
                symbols=len(pending),
            )
            return self._batch

        self._epoch += 1
        epoch = self._epoch
        self._batch = None
        self._batch_symbols = frozenset()

        if not pending:
            logger.debug(
                "interval_batch_nothing_to_resolve",
                platform=self._platform_id,
                epoch=epoch,
            )
            return None

        pool_size = min(self._concurrency, len(pending))
        logger.info(
            "interval_batch_started",
            platform=self._platform_id,
            epoch=epoch,
            symbols=len(pending),
            workers=pool_size,
        )

        workers = [
            asyncio.create_task(self._worker(epoch, pending))
            for _ in range(pool_size)
        ]
        for task in workers:
            self._workers.add(task)
            task.add_done_callback(self._workers.discard)

        self._batch_symbols = frozenset(pending)
        self._batch = asyncio.ensure_future(self._collect(epoch, workers))
        return self._batch

    async def resolve(self, symbols: Iterable[str]) -> int:
        """Resolve a batch and wait for it. Returns the number of intervals committed."""
        batch = self.start_batch(symbols)
        if batch is None:
            return 0
        return await batch

    async def wait_idle(self) -> None:
        """Wait until every outstanding worker has exited."""
        while self._workers:
            await asyncio.gather(*list(self._workers), return_exceptions=True)

    async def close(self) -> None:
        """Supersede the current batch and cancel outstanding workers."""
        self._epoch += 1
        self._batch = None
        self._batch_symbols = frozenset()
        workers = list(self._workers)
        for task in workers:
            task.cancel()
        if workers:
            await asyncio.gather(*workers, return_exceptions=True)
        logger.info("interval_resolver_closed", platform=self._platform_id)

    async def _collect(self, epoch: int, workers: list[asyncio.Task]) -> int:  # type: ignore[type-arg]
        results = await asyncio.gather(*workers, return_exceptions=True)
        committed = sum(r for r in results if isinstance(r, int))
        logger.info(
            "interval_batch_finished",
            platform=self._platform_id,
            epoch=epoch,
            committed=committed,
            superseded=epoch != self._epoch,
        )
        return committed

    async def _worker(self, epoch: int, queue: deque[str]) -> int:
        """Pull symbols off the shared queue until it is empty or the epoch moves on."""
        committed = 0
        while queue and epoch == self._epoch:
            symbol = queue.popleft()
            if self._cache.contains(symbol):
                continue

            hours = await self._lookup(symbol)

            if epoch != self._epoch:
                logger.debug(
                    "interval_result_discarded",
                    platform=self._platform_id,
                    symbol=symbol,
                    epoch=epoch,
                    current_epoch=self._epoch,
                )
                break

            await self._cache.put(symbol, hours)
            committed += 1
        return committed

    async def _lookup(self, symbol: str) -> float:
        """Fetch one interval, substituting the fallback on any failure."""
        try:
            hours = await asyncio.wait_for(
                self._fetch_interval(symbol), timeout=self._lookup_timeout
            )
            if not is_finite_number(hours) or hours <= 0:
                raise IntervalLookupFailed(symbol, f"invalid interval {hours!r}")
            return float(hours)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            reason = "timeout" if isinstance(e, asyncio.TimeoutError) else str(e)
            logger.warning(
                "interval_lookup_failed",
                platform=self._platform_id,
                symbol=symbol,
                error=reason,
                fallback_hours=self._fallback_hours,
            )
            return self._fallback_hours
