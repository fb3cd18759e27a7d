"""Scaled, annotated line charts drawn onto a ``DrawTarget``."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from canvas.base import DrawTarget, Point
from models.charts import ChartSpec, ThresholdBand
from models.records import Reading
from services.scales import LinearScale, TimeScale
from services.units import display_value

logger = logging.getLogger(__name__)

# d3 category10
SERIES_COLORS: tuple[str, ...] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)


@dataclass(frozen=True)
class Margins:
    top: float = 20
    right: float = 20
    bottom: float = 30
    left: float = 50


@dataclass(frozen=True)
class ChartGeometry:
    """Everything the interaction layer needs to map pointer positions to data."""

    spec: ChartSpec
    readings: tuple[Reading, ...]
    x: TimeScale
    y: LinearScale
    width: float
    height: float

    def color(self, index: int) -> str:
        return SERIES_COLORS[index % len(SERIES_COLORS)]


@dataclass(frozen=True)
class RenderedChart:
    chart_id: str
    x_domain: tuple[datetime, datetime]
    y_domain: tuple[float, float]
    paths: dict[str, tuple[tuple[Point, ...], ...]]
    geometry: ChartGeometry

    @property
    def point_count(self) -> int:
        return sum(len(segment) for segments in self.paths.values() for segment in segments)

    @property
    def segment_count(self) -> int:
        return sum(len(segments) for segments in self.paths.values())


def series_segments(readings: Sequence[Reading], field: str) -> List[List[tuple[Reading, float]]]:
    """Split a series into runs of consecutive non-null values."""
    segments: List[List[tuple[Reading, float]]] = []
    current: List[tuple[Reading, float]] = []
    for reading in readings:
        value = display_value(field, reading.get(field))
        if value is None:
            if current:
                segments.append(current)
                current = []
            continue
        current.append((reading, value))
    if current:
        segments.append(current)
    return segments


def value_extent(readings: Sequence[Reading], series: Sequence[str]) -> tuple[Optional[float], Optional[float]]:
    values = [
        value
        for field in series
        for reading in readings
        if (value := display_value(field, reading.get(field))) is not None
    ]
    if not values:
        return None, None
    return min(values), max(values)


def band_extents(bands: Sequence[ThresholdBand], domain: tuple[float, float]) -> List[tuple[ThresholdBand, float, float]]:
    """Clip each band to the y-domain: from the previous bound (or floor) to its own."""
    floor, ceiling = domain
    extents: List[tuple[ThresholdBand, float, float]] = []
    lower = floor
    for band in sorted(bands, key=lambda item: item.upper):
        upper = ceiling if math.isinf(band.upper) else min(band.upper, ceiling)
        start = max(lower, floor)
        if upper > start:
            extents.append((band, start, upper))
        lower = band.upper
    return extents


class ChartRenderer:
    def __init__(self, margins: Margins = Margins(), x_ticks: int = 4, y_ticks: int = 5) -> None:
        self.margins = margins
        self.x_ticks = x_ticks
        self.y_ticks = y_ticks

    def render(
        self,
        spec: ChartSpec,
        readings: Sequence[Reading],
        canvas: DrawTarget,
        width: float,
        height: float,
        now: Optional[datetime] = None,
    ) -> RenderedChart:
        """Draw ``spec`` for ``readings`` onto a freshly cleared ``canvas``."""
        readings = tuple(readings)
        margins = self.margins
        inner_width = max(width - margins.left - margins.right, 0.0)
        inner_height = max(height - margins.top - margins.bottom, 0.0)

        canvas.clear()
        canvas.set_viewport(width, height, (margins.left, margins.top, inner_width, inner_height))

        if readings:
            time_domain = (readings[0].timestamp, readings[-1].timestamp)
        else:
            reference = now or datetime.now(timezone.utc)
            time_domain = (reference - timedelta(days=1), reference)
            logger.info("Rendering empty chart", extra={"chart_id": spec.chart_id, "reason": "no readings"})

        x = TimeScale(domain=time_domain, range=(0.0, inner_width))
        lo, hi = value_extent(readings, spec.series)
        y = LinearScale.from_extent(lo, hi, (inner_height, 0.0))
        geometry = ChartGeometry(spec=spec, readings=readings, x=x, y=y, width=inner_width, height=inner_height)

        self._draw_bands(canvas, spec, y, inner_width)
        self._draw_axes(canvas, x, y, inner_width, inner_height)
        self._draw_thresholds(canvas, spec, y, inner_width)

        paths: dict[str, tuple[tuple[Point, ...], ...]] = {}
        for index, field in enumerate(spec.series):
            color = geometry.color(index)
            drawn: List[tuple[Point, ...]] = []
            for segment in series_segments(readings, field):
                points = tuple((x(reading.timestamp), y(value)) for reading, value in segment)
                canvas.draw_path(points, stroke=color, width=2.0)
                drawn.append(points)
            paths[field] = tuple(drawn)

        canvas.draw_text(
            -margins.left + 15,
            inner_height / 2,
            spec.y_label,
            anchor="middle",
            rotate=-90,
            size="12px",
        )
        self._draw_legend(canvas, geometry)

        return RenderedChart(
            chart_id=spec.chart_id,
            x_domain=x.domain,
            y_domain=y.domain,
            paths=paths,
            geometry=geometry,
        )

    def _draw_bands(self, canvas: DrawTarget, spec: ChartSpec, y: LinearScale, width: float) -> None:
        domain = (min(y.domain), max(y.domain))
        for band, lower, upper in band_extents(spec.bands, domain):
            top = y(upper)
            canvas.draw_rect(0.0, top, width, y(lower) - top, fill=band.color, opacity=0.2)

    def _draw_axes(self, canvas: DrawTarget, x: TimeScale, y: LinearScale, width: float, height: float) -> None:
        axis_color = "#888"
        canvas.draw_line((0.0, height), (width, height), stroke=axis_color)
        fmt = x.tick_format(self.x_ticks)
        for tick in x.ticks(self.x_ticks):
            px = x(tick)
            canvas.draw_line((px, height), (px, height + 6), stroke=axis_color)
            canvas.draw_text(px, height + 18, tick.strftime(fmt), anchor="middle")

        canvas.draw_line((0.0, 0.0), (0.0, height), stroke=axis_color)
        for tick in y.ticks(self.y_ticks):
            py = y(tick)
            canvas.draw_line((-6.0, py), (0.0, py), stroke=axis_color)
            canvas.draw_text(-9.0, py + 3, f"{tick:g}", anchor="end")

    def _draw_thresholds(self, canvas: DrawTarget, spec: ChartSpec, y: LinearScale, width: float) -> None:
        lo, hi = min(y.domain), max(y.domain)
        for threshold in spec.thresholds:
            if not lo <= threshold.value <= hi:
                continue
            py = y(threshold.value)
            canvas.draw_line((0.0, py), (width, py), stroke=threshold.color, width=2.0, dash="4,4")
            canvas.draw_text(10.0, py - 6, threshold.label, fill=threshold.color, size="0.8em")

    def _draw_legend(self, canvas: DrawTarget, geometry: ChartGeometry) -> None:
        left = geometry.width - 80
        for index, field in enumerate(geometry.spec.series):
            top = index * 20
            canvas.draw_rect(left, top, 10, 10, fill=geometry.color(index))
            canvas.draw_text(left + 15, top + 10, field)
