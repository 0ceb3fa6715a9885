"""Entry point for the funding rate spread screener.

Wires all components together, optionally embeds the FastAPI JSON API,
and starts the per-source refresh loops. When the API is enabled (default),
the screener and the server share a single asyncio event loop via uvicorn's
programmatic API and FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown when running headless.

Component wiring order (in _build_components):
1. Database and durable stores (intervals, favorites)
2. FundingSource per enabled platform that has a ccxt exchange id
3. TieredIntervalCache + IntervalResolver per variable-interval platform
4. RefreshController (state, polling)
5. FundingScreener (presentation contract)
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import ccxt.async_support as ccxt_async
import uvicorn
from fastapi import FastAPI

from fundingscope.config import AppSettings
from fundingscope.data.database import FundingScopeDatabase
from fundingscope.data.store import FavoritesStore, IntervalStore
from fundingscope.logging import get_logger, setup_logging
from fundingscope.market_data.interval_cache import TieredIntervalCache
from fundingscope.market_data.interval_resolver import IntervalResolver
from fundingscope.platforms import PLATFORMS, uses_interval_resolver
from fundingscope.refresh.controller import RefreshController
from fundingscope.screener import FundingScreener
from fundingscope.sources.base import FundingSource
from fundingscope.sources.ccxt_source import CcxtFundingSource


def _build_components(
    settings: AppSettings,
    sources: dict[str, FundingSource] | None = None,
) -> dict[str, Any]:
    """Build all screener components from settings.

    Note: Does NOT open the database or connect sources -- that happens in
    startup() so both the API and headless modes share it.

    Args:
        settings: Application-wide settings.
        sources: Pre-built sources by platform id. When None, a
            CcxtFundingSource is created for each enabled platform with a
            configured ccxt id. Ids with no platform metadata are dropped.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("fundingscope.main")

    # 1. Storage
    database = FundingScopeDatabase(settings.storage.db_path)
    interval_store = IntervalStore(database)
    favorites_store = FavoritesStore(database)

    # 2. Sources
    if sources is None:
        sources = {}
        for platform_id in settings.sources.enabled:
            if platform_id not in PLATFORMS:
                logger.warning("unknown_platform_configured", platform=platform_id)
                continue
            exchange_id = settings.sources.ccxt_ids.get(platform_id)
            if exchange_id is None:
                logger.warning("no_source_for_platform", platform=platform_id)
                continue
            if exchange_id not in ccxt_async.exchanges:
                logger.warning(
                    "ccxt_exchange_unavailable",
                    platform=platform_id,
                    exchange=exchange_id,
                )
                continue
            sources[platform_id] = CcxtFundingSource(
                platform_id,
                exchange_id,
                timeout_ms=settings.sources.request_timeout_ms,
            )
    else:
        unknown = [pid for pid in sources if pid not in PLATFORMS]
        for platform_id in unknown:
            logger.warning("unknown_platform_source_ignored", platform=platform_id)
        sources = {pid: s for pid, s in sources.items() if pid in PLATFORMS}

    # 3. Interval resolvers for variable-interval venues
    caches: dict[str, TieredIntervalCache] = {}
    resolvers: dict[str, IntervalResolver] = {}
    for platform_id, source in sources.items():
        if not uses_interval_resolver(platform_id):
            continue
        cache = TieredIntervalCache(interval_store, platform_id)
        caches[platform_id] = cache
        resolvers[platform_id] = IntervalResolver(
            platform_id,
            source.fetch_funding_interval,
            cache,
            concurrency=settings.resolver.concurrency,
            fallback_hours=settings.resolver.fallback_hours,
            lookup_timeout=settings.resolver.lookup_timeout,
        )

    # 4. Refresh controller
    controller = RefreshController(
        sources,
        resolvers=resolvers,
        poll_intervals=settings.sources.poll_intervals,
        default_poll_interval=settings.sources.default_poll_interval,
    )

    # 5. Screener facade
    screener = FundingScreener(
        controller,
        favorites_store=favorites_store,
        fallback_hours=settings.resolver.fallback_hours,
    )

    return {
        "database": database,
        "interval_store": interval_store,
        "favorites_store": favorites_store,
        "sources": sources,
        "caches": caches,
        "resolvers": resolvers,
        "controller": controller,
        "screener": screener,
    }


async def startup(components: dict[str, Any]) -> None:
    """Open storage, warm caches and favorites, connect sources, start polling."""
    logger = get_logger("fundingscope.main")

    await components["database"].connect()

    for cache in components["caches"].values():
        await cache.seed()

    await components["screener"].load_favorites()

    for platform_id, source in components["sources"].items():
        try:
            await source.connect()
        except Exception as e:
            # The first refresh surfaces the failure as the platform's error flag
            logger.warning("source_connect_failed", platform=platform_id, error=str(e))

    await components["controller"].start()
    logger.info("screener_started", sources=list(components["sources"]))


async def shutdown(components: dict[str, Any]) -> None:
    """Stop polling, cancel resolvers, close sources and storage."""
    logger = get_logger("fundingscope.main")

    await components["controller"].stop()

    for resolver in components["resolvers"].values():
        await resolver.close()

    for platform_id, source in components["sources"].items():
        try:
            await source.close()
        except Exception as e:
            logger.warning("source_close_failed", platform=platform_id, error=str(e))

    await components["database"].close()
    logger.info("screener_stopped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage screener component lifecycle within the FastAPI application."""
    components = app.state.components
    app.state.screener = components["screener"]

    await startup(components)
    try:
        yield
    finally:
        await shutdown(components)


def _setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """SIGINT/SIGTERM set the stop event. Must be called inside the running loop."""
    logger = get_logger("fundingscope.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


async def run() -> None:
    """Run the funding screener.

    When the API is enabled (DASHBOARD_ENABLED=true, the default):
    - Creates the FastAPI app with lifespan
    - Runs refresh loops and the server in a single asyncio event loop via uvicorn

    When the API is disabled (DASHBOARD_ENABLED=false):
    - Runs the refresh loops headless until SIGINT/SIGTERM
    """
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("fundingscope.main")

    components = _build_components(settings)

    if settings.dashboard.enabled:
        from fundingscope.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_dashboard",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        stop_event = asyncio.Event()
        _setup_signal_handlers(stop_event)

        logger.info("starting_without_dashboard", sources=list(components["sources"]))

        try:
            await startup(components)
            await stop_event.wait()
        finally:
            await shutdown(components)


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
