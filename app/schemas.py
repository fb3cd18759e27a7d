"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from canvas.base import HoverOverlay
from models.records import TimeWindow
from services.dashboard import DashboardView
from services.renderer import RenderedChart


class PointerKind(str, Enum):
    """Pointer events a chart reacts to."""

    enter = "enter"
    move = "move"
    leave = "leave"


class FilterRequest(BaseModel):
    window: TimeWindow = Field(..., description="One of day, week, month or all.")


class PointerRequest(BaseModel):
    kind: PointerKind
    x: float = Field(0.0, description="Pointer x in chart-area pixels.")
    y: float = Field(0.0, description="Pointer y in chart-area pixels.")
    page_x: float = 0.0
    page_y: float = 0.0
    viewport_width: Optional[float] = Field(default=None, gt=0)


class LatestValue(BaseModel):
    label: str
    field: str
    value: str


class CorrelationEntry(BaseModel):
    field: str
    coefficient: Optional[float] = Field(
        default=None, description="Pearson r; null when undefined (NaN)."
    )
    display: str


class ChartSummary(BaseModel):
    chart_id: str
    x_domain: List[datetime]
    y_domain: List[float]
    point_count: int = Field(..., ge=0)
    segment_count: int = Field(..., ge=0)
    series: List[str]


class DashboardResponse(BaseModel):
    window: TimeWindow
    reading_count: int = Field(..., ge=0)
    latest_timestamp: Optional[datetime] = None
    latest: List[LatestValue] = Field(default_factory=list)
    charts: List[ChartSummary] = Field(default_factory=list)
    correlations: List[CorrelationEntry] = Field(default_factory=list)
    error: Optional[str] = Field(default=None, description="Last retrieval/config failure, if any.")


class MarkerPayload(BaseModel):
    field: str
    x: float
    y: float
    color: str


class LabelPayload(BaseModel):
    field: str
    text: str
    x: float
    y: float
    anchor: str


class TooltipPayload(BaseModel):
    title: str
    lines: List[str]
    left: float
    top: float


class HoverResponse(BaseModel):
    chart_id: str
    visible: bool
    crosshair_x: Optional[float] = None
    crosshair_height: Optional[float] = None
    markers: List[MarkerPayload] = Field(default_factory=list)
    labels: List[LabelPayload] = Field(default_factory=list)
    tooltip: Optional[TooltipPayload] = None


def chart_summary(chart: RenderedChart) -> ChartSummary:
    return ChartSummary(
        chart_id=chart.chart_id,
        x_domain=list(chart.x_domain),
        y_domain=list(chart.y_domain),
        point_count=chart.point_count,
        segment_count=chart.segment_count,
        series=list(chart.geometry.spec.series),
    )


def dashboard_response(view: DashboardView, error: Optional[str] = None) -> DashboardResponse:
    return DashboardResponse(
        window=view.window,
        reading_count=view.reading_count,
        latest_timestamp=view.latest.timestamp,
        latest=[LatestValue(label=row.label, field=row.field, value=row.value) for row in view.latest.rows],
        charts=[chart_summary(chart) for chart in view.charts],
        correlations=[
            CorrelationEntry(
                field=row.field,
                coefficient=None if math.isnan(row.coefficient) else row.coefficient,
                display=row.display,
            )
            for row in view.correlations
        ],
        error=error,
    )


def hover_response(chart_id: str, overlay: Optional[HoverOverlay]) -> HoverResponse:
    if overlay is None:
        return HoverResponse(chart_id=chart_id, visible=False)
    tooltip = overlay.tooltip
    return HoverResponse(
        chart_id=chart_id,
        visible=True,
        crosshair_x=overlay.crosshair_x,
        crosshair_height=overlay.crosshair_height,
        markers=[MarkerPayload(field=m.field, x=m.x, y=m.y, color=m.color) for m in overlay.markers],
        labels=[
            LabelPayload(field=label.field, text=label.text, x=label.x, y=label.y, anchor=label.anchor)
            for label in overlay.labels
        ],
        tooltip=None
        if tooltip is None
        else TooltipPayload(title=tooltip.title, lines=list(tooltip.lines), left=tooltip.left, top=tooltip.top),
    )
