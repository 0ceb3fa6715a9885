"""POST endpoints that trigger screener work."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from fundingscope.dashboard.routes.api import status_payload

log = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/refresh")
async def refresh(request: Request) -> JSONResponse:
    """Refresh every selected source and return the resulting status.

    Source failures are reported in the status errors map, never as an HTTP
    error.
    """
    screener = request.app.state.screener
    outcome = await screener.refresh_all()
    log.info("refresh_via_dashboard", results=outcome)

    payload = status_payload(request)
    payload["results"] = outcome
    return JSONResponse(content=payload)
