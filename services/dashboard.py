"""Dashboard orchestration: load, filter, and re-render everything."""

from __future__ import annotations

import logging
import math
import time
import warnings
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Callable, Dict, Optional, Sequence

from canvas.base import DrawTarget, HoverOverlay, PointerEvent
from canvas.svg import SvgCanvas
from datastore.dataset import Dataset, DatasetStore, build_default_store
from errors import ConfigError, DegenerateInputWarning, RetrievalError
from models.charts import ChartSpec, ThresholdBand, ThresholdLine
from models.records import CorrelationRow, Reading, TimeWindow
from services.correlation import CORRELATION_FIELDS, correlation_table, soil_moisture_average
from services.interaction import ChartInteraction
from services.renderer import ChartRenderer, RenderedChart
from services.units import PLACEHOLDER, format_value
from settings import get_settings
from storage.sources import ReadingsSource, build_default_source

logger = logging.getLogger(__name__)

UV_BANDS = (
    ThresholdBand(upper=2, color="#00FF00"),
    ThresholdBand(upper=5, color="#FFFF00"),
    ThresholdBand(upper=7, color="#FFA500"),
    ThresholdBand(upper=10, color="#FF0000"),
    ThresholdBand(upper=math.inf, color="#800080"),
)

CHART_SPECS: tuple[ChartSpec, ...] = (
    ChartSpec("chart-temp", ("MTemp", "PTemp"), "Temperature (°C)", title="Temperature"),
    ChartSpec("chart-hum", ("MHum", "PHum"), "Humidity (%)", title="Humidity"),
    ChartSpec("chart-airp", ("MAirp", "PAirp"), "Air Pressure (hPa)", title="Air Pressure"),
    ChartSpec(
        "chart-soil",
        ("MSoil1", "MSoil2", "MSoil3"),
        "Soil Moisture",
        title="Soil Moisture",
        thresholds=(ThresholdLine(value=40, label="Threshold: 40"),),
    ),
    ChartSpec("chart-rain", ("PRain",), "Rain (mm)", title="Rain"),
    ChartSpec("chart-wind", ("PWind",), "Wind (m/s)", title="Wind"),
    ChartSpec("chart-uv", ("PUv",), "UV Index", title="UV Index", bands=UV_BANDS),
)

LATEST_FIELDS: tuple[tuple[str, str], ...] = (
    ("Temp (Local)", "MTemp"),
    ("Temp (API)", "PTemp"),
    ("Humidity (Local)", "MHum"),
    ("Humidity (API)", "PHum"),
    ("Pressure (Local)", "MAirp"),
    ("Pressure (API)", "PAirp"),
    ("Soil #1", "MSoil1"),
    ("Soil #2", "MSoil2"),
    ("Soil #3", "MSoil3"),
    ("Rain (API)", "PRain"),
    ("Wind (API)", "PWind"),
    ("UV Index", "PUv"),
)


@dataclass(frozen=True)
class LatestRow:
    label: str
    field: str
    value: str


@dataclass(frozen=True)
class LatestSummary:
    timestamp: Optional[datetime]
    rows: tuple[LatestRow, ...]

    @property
    def timestamp_display(self) -> str:
        if self.timestamp is None:
            return PLACEHOLDER
        return self.timestamp.strftime("%Y-%m-%d %H:%M:%S UTC")


@dataclass(frozen=True)
class DashboardView:
    window: TimeWindow
    reading_count: int
    latest: LatestSummary
    charts: tuple[RenderedChart, ...]
    correlations: tuple[CorrelationRow, ...]

    def chart(self, chart_id: str) -> RenderedChart:
        for chart in self.charts:
            if chart.chart_id == chart_id:
                return chart
        raise KeyError(f"Chart {chart_id!r} not found.")


def latest_summary(readings: Sequence[Reading]) -> LatestSummary:
    latest = readings[-1] if readings else None
    rows = tuple(
        LatestRow(
            label=label,
            field=field,
            value=format_value(field, latest.get(field)) if latest is not None else PLACEHOLDER,
        )
        for label, field in LATEST_FIELDS
    )
    return LatestSummary(timestamp=latest.timestamp if latest is not None else None, rows=rows)


class Dashboard:
    """Owns the dataset store, one draw target per chart, and their interactions."""

    def __init__(
        self,
        store: DatasetStore,
        renderer: Optional[ChartRenderer] = None,
        chart_specs: Sequence[ChartSpec] = CHART_SPECS,
        canvas_factory: Callable[[str], DrawTarget] = SvgCanvas,
        source_factory: Callable[[], ReadingsSource] = build_default_source,
        width: int = 640,
        height: int = 300,
        viewport_width: int = 1280,
    ) -> None:
        self.store = store
        self.renderer = renderer or ChartRenderer()
        self.chart_specs = tuple(chart_specs)
        self.source_factory = source_factory
        self.width = width
        self.height = height
        self.viewport_width = viewport_width
        self.canvases: Dict[str, DrawTarget] = {spec.chart_id: canvas_factory(spec.chart_id) for spec in self.chart_specs}
        self.interactions: Dict[str, ChartInteraction] = {}
        self.last_view: Optional[DashboardView] = None
        self.last_error: Optional[str] = None

    async def load(self, source: ReadingsSource) -> int:
        """Fetch once from ``source``; on failure ``raw`` keeps its previous contents."""
        try:
            rows = await source.fetch_rows()
        except RetrievalError as exc:
            self.last_error = str(exc)
            logger.error(
                "Failed to retrieve readings: %s",
                exc,
                extra={"source": source.name, "status_code": exc.status_code},
            )
            return 0
        dataset = self.store.load(rows)
        self.last_error = None
        return len(dataset.raw)

    async def reload(self) -> int:
        try:
            source = self.source_factory()
        except ConfigError as exc:
            self.last_error = str(exc)
            logger.error("Skipping data retrieval: %s", exc)
            return 0
        return await self.load(source)

    def apply_time_filter(self, window: TimeWindow | str, now: Optional[datetime] = None) -> Dataset:
        return self.store.apply_time_filter(window, now=now)

    def render_all(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        viewport_width: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DashboardView:
        """Rebuild every chart, the latest summary and the correlation table."""
        start = time.perf_counter()
        if width is not None:
            self.width = width
        if height is not None:
            self.height = height
        if viewport_width is not None:
            self.viewport_width = viewport_width

        dataset = self.store.snapshot()
        filtered = dataset.filtered

        charts = []
        for spec in self.chart_specs:
            canvas = self.canvases[spec.chart_id]
            rendered = self.renderer.render(spec, filtered, canvas, self.width, self.height, now=now)
            self.interactions[spec.chart_id] = ChartInteraction(rendered.geometry, canvas, self.viewport_width)
            charts.append(rendered)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", DegenerateInputWarning)
            rows = correlation_table(filtered, soil_moisture_average(filtered), CORRELATION_FIELDS)
        for warning in caught:
            logger.info("Degenerate correlation input: %s", warning.message, extra={"window": dataset.window.value})

        view = DashboardView(
            window=dataset.window,
            reading_count=len(filtered),
            latest=latest_summary(filtered),
            charts=tuple(charts),
            correlations=tuple(rows),
        )
        self.last_view = view
        logger.debug(
            "Rendered dashboard",
            extra={
                "window": dataset.window.value,
                "reading_count": len(filtered),
                "render_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return view

    def canvas(self, chart_id: str) -> DrawTarget:
        try:
            return self.canvases[chart_id]
        except KeyError as exc:
            raise KeyError(f"Chart {chart_id!r} not found.") from exc

    def pointer(self, chart_id: str, kind: str, event: PointerEvent) -> Optional[HoverOverlay]:
        """Feed one pointer event to a chart and return what it now shows."""
        canvas = self.canvas(chart_id)
        if chart_id not in self.interactions:
            self.render_all()
        canvas.dispatch(kind, event)
        return self.interactions[chart_id].overlay


@lru_cache
def build_default_dashboard() -> Dashboard:
    settings = get_settings()
    return Dashboard(
        store=build_default_store(),
        width=settings.chart_width,
        height=settings.chart_height,
        viewport_width=settings.viewport_width,
    )
