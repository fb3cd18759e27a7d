from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.api import get_dashboard
from models.records import TimeWindow
from services.dashboard import Dashboard

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    window: Optional[str] = Query(None),
    width: Optional[int] = Query(None, gt=0),
    dashboard: Dashboard = Depends(get_dashboard),
) -> HTMLResponse:
    if window is not None:
        try:
            dashboard.apply_time_filter(window)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc

    view = dashboard.render_all(width=width)
    charts = [
        {
            "chart_id": chart.chart_id,
            "title": chart.geometry.spec.title or chart.chart_id,
            "svg": getattr(dashboard.canvas(chart.chart_id), "to_svg", lambda: "")(),
        }
        for chart in view.charts
    ]
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "view": view,
            "charts": charts,
            "windows": [item.value for item in TimeWindow],
            "error": dashboard.last_error,
        },
    )
