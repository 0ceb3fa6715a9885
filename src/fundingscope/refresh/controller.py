"""Refresh controller -- independent per-source polling plus manual refresh-all.

Each source refreshes on its own task and interval; the controller never
serializes them. refresh_all() fans out to the selected sources and waits
for all of them, best-effort: one source failing only sets that source's
error flag.

After a variable-interval venue refreshes, its symbols are handed to the
IntervalResolver in the background. The new snapshot is usable immediately
with fallback intervals.
"""

import asyncio
import time
from collections.abc import Callable, Iterable, Mapping

import structlog

from fundingscope.exceptions import SourceUnavailable, UnknownPlatformError
from fundingscope.logging import get_logger
from fundingscope.market_data.interval_resolver import IntervalResolver
from fundingscope.refresh import state as screener_state
from fundingscope.refresh.state import (
    Event,
    PlatformsSelected,
    PlatformToggled,
    RefreshCancelled,
    RefreshFailed,
    RefreshStarted,
    RefreshSucceeded,
    ScreenerState,
    initial_state,
    reduce,
)
from fundingscope.sources.base import FundingSource

logger = get_logger(__name__)


class RefreshController:
    """Owns the screener state and drives source refreshes.

    Args:
        sources: FundingSource per platform id.
        resolvers: IntervalResolver per variable-interval platform id.
        poll_intervals: Seconds between automatic refreshes per platform.
            Missing platforms use default_poll_interval; <= 0 means the source
            is loaded once at start() and then only on manual refresh.
        selected: Initially selected platforms (default: all sources).
        clock: Time source for last-success timestamps.
    """

    def __init__(
        self,
        sources: Mapping[str, FundingSource],
        resolvers: Mapping[str, IntervalResolver] | None = None,
        poll_intervals: Mapping[str, float] | None = None,
        default_poll_interval: float = 0.0,
        selected: Iterable[str] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sources = dict(sources)
        self._resolvers = dict(resolvers or {})
        self._poll_intervals = dict(poll_intervals or {})
        self._default_poll_interval = default_poll_interval
        self._clock = clock
        self._state = initial_state(self._sources, selected)
        self._locks = {pid: asyncio.Lock() for pid in self._sources}
        self._tasks: dict[str, asyncio.Task] = {}  # type: ignore[type-arg]
        self._running = False

    # ──────────────────────────────────────────────
    # State access
    # ──────────────────────────────────────────────

    @property
    def state(self) -> ScreenerState:
        return self._state

    @property
    def sources(self) -> dict[str, FundingSource]:
        return dict(self._sources)

    @property
    def resolvers(self) -> dict[str, IntervalResolver]:
        return dict(self._resolvers)

    @property
    def is_running(self) -> bool:
        return self._running

    def dispatch(self, event: Event) -> ScreenerState:
        """Apply an event through the reducer and store the result."""
        self._state = reduce(self._state, event)
        return self._state

    def last_updated(self) -> float | None:
        return screener_state.last_updated(self._state)

    def is_loading(self) -> bool:
        return screener_state.is_loading(self._state)

    def errors(self) -> dict[str, str | None]:
        return screener_state.errors(self._state)

    # ──────────────────────────────────────────────
    # Selection
    # ──────────────────────────────────────────────

    def toggle_platform(self, platform_id: str) -> bool:
        """Toggle a platform's selection. Returns True if it is now selected."""
        self._require_source(platform_id)
        self.dispatch(PlatformToggled(platform_id))
        selected = platform_id in self._state.selected
        if selected:
            self._enrich(platform_id)
        logger.info("platform_toggled", platform=platform_id, selected=selected)
        return selected

    def select_platforms(self, platform_ids: Iterable[str]) -> frozenset[str]:
        """Replace the selection. Unknown platform ids are ignored."""
        previous = self._state.selected
        self.dispatch(PlatformsSelected(frozenset(platform_ids)))
        for platform_id in self._state.selected - previous:
            self._enrich(platform_id)
        return self._state.selected

    # ──────────────────────────────────────────────
    # Refresh
    # ──────────────────────────────────────────────

    async def refresh(self, platform_id: str) -> bool:
        """Refresh one source. Returns True on success.

        Failures never raise: they are logged and recorded as the platform's
        error flag, and its previous records stay in place.
        """
        source = self._require_source(platform_id)

        with structlog.contextvars.bound_contextvars(platform=platform_id):
            async with self._locks[platform_id]:
                self.dispatch(RefreshStarted(platform_id))
                try:
                    records = await source.fetch_snapshot()
                except asyncio.CancelledError:
                    self.dispatch(RefreshCancelled(platform_id))
                    raise
                except SourceUnavailable as e:
                    logger.warning("source_refresh_failed", error=e.message)
                    self.dispatch(RefreshFailed(platform_id, e.message))
                    return False
                except Exception as e:
                    logger.warning("source_refresh_failed", error=str(e), exc_info=True)
                    self.dispatch(RefreshFailed(platform_id, str(e) or type(e).__name__))
                    return False

                self.dispatch(
                    RefreshSucceeded(platform_id, tuple(records), self._clock())
                )
                logger.info("source_refreshed", count=len(records))

        self._enrich(platform_id)
        return True

    async def refresh_all(self) -> dict[str, bool]:
        """Refresh every selected source concurrently and wait for all of them.

        Returns:
            Success flag per refreshed platform.
        """
        targets = [pid for pid in self._sources if pid in self._state.selected]
        if not targets:
            return {}
        results = await asyncio.gather(
            *(self.refresh(pid) for pid in targets), return_exceptions=True
        )
        outcome = {pid: result is True for pid, result in zip(targets, results)}
        logger.info(
            "refresh_all_complete",
            succeeded=sum(outcome.values()),
            failed=len(outcome) - sum(outcome.values()),
        )
        return outcome

    # ──────────────────────────────────────────────
    # Polling lifecycle
    # ──────────────────────────────────────────────

    async def start(self) -> None:
        """Start one background refresh task per source."""
        if self._running:
            logger.warning("refresh_controller_already_running")
            return
        self._running = True
        for platform_id in self._sources:
            interval = self._poll_intervals.get(platform_id, self._default_poll_interval)
            self._tasks[platform_id] = asyncio.create_task(
                self._poll_loop(platform_id, interval)
            )
        logger.info("refresh_controller_started", sources=list(self._sources))

    async def stop(self) -> None:
        """Cancel all polling tasks and wait for them to exit."""
        self._running = False
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("refresh_controller_stopped")

    async def _poll_loop(self, platform_id: str, interval: float) -> None:
        """Refresh immediately, then every `interval` seconds (once if interval <= 0)."""
        while self._running:
            try:
                await self.refresh(platform_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("source_poll_error", platform=platform_id, exc_info=True)
            if interval <= 0:
                return
            await asyncio.sleep(interval)

    # ──────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────

    def _require_source(self, platform_id: str) -> FundingSource:
        try:
            return self._sources[platform_id]
        except KeyError:
            raise UnknownPlatformError(f"no source for platform: {platform_id}") from None

    def _enrich(self, platform_id: str) -> None:
        """Queue interval resolution for a selected variable-interval platform."""
        resolver = self._resolvers.get(platform_id)
        if resolver is None or platform_id not in self._state.selected:
            return
        records = self._state.sources[platform_id].records
        if records:
            resolver.start_batch(r.symbol_raw for r in records)
