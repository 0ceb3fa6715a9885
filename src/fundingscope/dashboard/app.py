"""FastAPI application factory for the screener's JSON API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from fundingscope.dashboard.routes import actions, api


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to start and stop the screener components.

    Returns:
        FastAPI application. Route handlers expect app.state.screener (and
        app.state.settings for defaults) to be set before serving.
    """
    app = FastAPI(
        title="Funding Rate Spread Screener",
        lifespan=lifespan,
    )

    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/actions")

    return app
