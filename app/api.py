"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.schemas import (
    DashboardResponse,
    FilterRequest,
    HoverResponse,
    PointerRequest,
    dashboard_response,
    hover_response,
)
from canvas.base import PointerEvent
from services.dashboard import Dashboard, build_default_dashboard

router = APIRouter()


def get_dashboard() -> Dashboard:
    return build_default_dashboard()


@router.get(
    "/api/dashboard",
    response_model=DashboardResponse,
    summary="Re-render every chart and table from the current filtered view.",
)
async def render_dashboard(
    width: Optional[int] = Query(None, gt=0, description="Chart panel width in pixels."),
    height: Optional[int] = Query(None, gt=0, description="Chart panel height in pixels."),
    viewport_width: Optional[int] = Query(None, gt=0, description="Page width for tooltip clamping."),
    dashboard: Dashboard = Depends(get_dashboard),
) -> DashboardResponse:
    view = dashboard.render_all(width=width, height=height, viewport_width=viewport_width)
    return dashboard_response(view, error=dashboard.last_error)


@router.post(
    "/api/filter",
    response_model=DashboardResponse,
    summary="Select a time window and re-render.",
)
async def apply_filter(
    request: FilterRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> DashboardResponse:
    dashboard.apply_time_filter(request.window)
    view = dashboard.render_all()
    return dashboard_response(view, error=dashboard.last_error)


@router.post(
    "/api/reload",
    response_model=DashboardResponse,
    summary="Fetch readings again from the configured source and re-render.",
)
async def reload_readings(dashboard: Dashboard = Depends(get_dashboard)) -> DashboardResponse:
    await dashboard.reload()
    view = dashboard.render_all()
    return dashboard_response(view, error=dashboard.last_error)


@router.post(
    "/api/charts/{chart_id}/pointer",
    response_model=HoverResponse,
    summary="Feed a pointer event to a chart and return its hover overlay.",
)
async def chart_pointer(
    chart_id: str,
    request: PointerRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> HoverResponse:
    if request.viewport_width is not None:
        interaction = dashboard.interactions.get(chart_id)
        if interaction is not None:
            interaction.viewport_width = request.viewport_width
    event = PointerEvent(x=request.x, y=request.y, page_x=request.page_x, page_y=request.page_y)
    try:
        overlay = dashboard.pointer(chart_id, request.kind.value, event)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc.args[0]),
        ) from exc
    return hover_response(chart_id, overlay)


@router.get(
    "/api/charts/{chart_id}.svg",
    summary="Current SVG markup of one chart.",
    response_class=Response,
)
async def chart_svg(
    chart_id: str,
    dashboard: Dashboard = Depends(get_dashboard),
) -> Response:
    try:
        canvas = dashboard.canvas(chart_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc.args[0]),
        ) from exc
    if dashboard.last_view is None:
        dashboard.render_all()
    to_svg = getattr(canvas, "to_svg", None)
    if to_svg is None:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Configured draw target cannot export SVG.",
        )
    return Response(content=to_svg(), media_type="image/svg+xml")


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /ui for the dashboard and /health for service status."}
