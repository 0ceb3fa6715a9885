"""JSON API endpoints: funding table, status, platforms, favorites, selection."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from fundingscope.dashboard.serializers import page_to_dict, timestamp_to_iso
from fundingscope.exceptions import UnknownPlatformError
from fundingscope.formatting import FundingUnit
from fundingscope.market_data.symbols import canonicalize
from fundingscope.models import PAGE_SIZE_OPTIONS, QueryParams, SortKey, SortOrder
from fundingscope.platforms import PLATFORMS

log = structlog.get_logger(__name__)

router = APIRouter()


def _split_platforms(value: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    return tuple(p.strip() for p in value.split(",") if p.strip())


def status_payload(request: Request) -> dict:
    screener = request.app.state.screener
    return {
        "last_updated": timestamp_to_iso(screener.get_last_updated()),
        "loading": screener.is_loading(),
        "errors": screener.get_errors(),
        "selected": list(screener.selected_platforms()),
    }


@router.get("/funding")
async def get_funding(
    request: Request,
    search: str = "",
    favorites_only: bool = False,
    min_apr: float | None = None,
    min_oi: float | None = None,
    min_volume: float | None = None,
    only_positive_spread: bool = False,
    platforms: str | None = None,
    sort_by: SortKey | None = None,
    sort_order: SortOrder | None = None,
    page: int = 1,
    page_size: int | None = None,
    unit: FundingUnit = FundingUnit.HOUR,
) -> JSONResponse:
    """One page of the funding table.

    ``platforms`` is a comma-separated list of platform ids; omitted means
    the current selection. Rates are scaled to ``unit`` for display.
    """
    screener = request.app.state.screener
    defaults = request.app.state.settings.screener

    page_size = page_size or defaults.page_size
    if page_size not in PAGE_SIZE_OPTIONS:
        raise HTTPException(
            status_code=400,
            detail=f"page_size must be one of {list(PAGE_SIZE_OPTIONS)}",
        )

    params = QueryParams(
        search_text=search,
        favorites_only=favorites_only,
        min_apr_percent=min_apr,
        min_open_interest=min_oi,
        min_volume_24h=min_volume,
        only_positive_spread=only_positive_spread,
        selected_platforms=_split_platforms(platforms),
        sort_by=sort_by or SortKey(defaults.sort_by),
        sort_order=sort_order or SortOrder(defaults.sort_order),
        page=page,
        page_size=page_size,
    )
    result = screener.get_page(params)
    return JSONResponse(content=page_to_dict(result, unit, screener.favorites()))


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    return JSONResponse(content=status_payload(request))


@router.get("/platforms")
async def get_platforms(request: Request) -> JSONResponse:
    """Metadata for every known platform, with its selection flag."""
    screener = request.app.state.screener
    selected = set(screener.selected_platforms())
    available = set(screener.controller.sources)

    result = []
    for meta in PLATFORMS.values():
        result.append({
            "id": meta.id,
            "name": meta.name,
            "description": meta.description,
            "convention": meta.convention.value,
            "period_hours": meta.period_hours,
            "available": meta.id in available,
            "selected": meta.id in selected,
        })
    return JSONResponse(content=result)


@router.post("/favorites/{asset}")
async def toggle_favorite(request: Request, asset: str) -> JSONResponse:
    screener = request.app.state.screener
    try:
        favorite = await screener.toggle_favorite(asset)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return JSONResponse(content={"asset": canonicalize(asset), "favorite": favorite})


@router.post("/platforms/{platform_id}/toggle")
async def toggle_platform(request: Request, platform_id: str) -> JSONResponse:
    screener = request.app.state.screener
    try:
        selected = screener.toggle_platform(platform_id)
    except UnknownPlatformError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    log.info("platform_toggled_via_dashboard", platform=platform_id, selected=selected)
    return JSONResponse(content={
        "platform_id": platform_id,
        "selected": selected,
        "selected_platforms": list(screener.selected_platforms()),
    })
