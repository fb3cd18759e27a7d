from __future__ import annotations

import asyncio
import warnings
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest

from canvas.base import PointerEvent
from canvas.recording import RecordingCanvas
from datastore.dataset import DatasetStore
from errors import ConfigError, RetrievalError
from services.dashboard import CHART_SPECS, Dashboard, latest_summary

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def _row(offset: timedelta, **values: Any) -> Dict[str, Any]:
    return {"created_at": (NOW - offset).isoformat(), **values}


ROWS = [
    _row(timedelta(days=2), MTemp=18.0, PTemp=17.5, MSoil1=30.0, MSoil2=32.0, MSoil3=34.0, PRain=0.0, PWind=18.0, PUv=1.0),
    _row(timedelta(hours=5), MTemp=21.0, PTemp=20.0, MSoil1=35.0, MSoil2=37.0, MSoil3=39.0, PRain=1.5, PWind=25.2, PUv=4.0),
    _row(timedelta(hours=1), MTemp=23.5, PTemp=None, MSoil1=41.0, MSoil2=42.0, MSoil3=43.0, PRain=2.0, PWind=36.0),
]


class StaticSource:
    name = "static"

    def __init__(self, rows: List[Dict[str, Any]]) -> None:
        self.rows = rows

    async def fetch_rows(self) -> List[Dict[str, Any]]:
        return list(self.rows)


class FailingSource:
    name = "failing"

    async def fetch_rows(self) -> List[Dict[str, Any]]:
        raise RetrievalError("Supabase returned 503 for table 'balcony_data'.", status_code=503)


def _dashboard(rows: List[Dict[str, Any]] | None = None) -> Dashboard:
    return Dashboard(
        store=DatasetStore(),
        canvas_factory=RecordingCanvas,
        source_factory=lambda: StaticSource(ROWS if rows is None else rows),
    )


def test_reload_and_render_every_chart() -> None:
    dashboard = _dashboard()

    assert asyncio.run(dashboard.reload()) == 3
    view = dashboard.render_all(now=NOW)

    assert [chart.chart_id for chart in view.charts] == [spec.chart_id for spec in CHART_SPECS]
    assert view.reading_count == 3
    assert set(dashboard.interactions) == {spec.chart_id for spec in CHART_SPECS}
    assert dashboard.last_view is view


def test_render_all_is_idempotent() -> None:
    dashboard = _dashboard()
    asyncio.run(dashboard.reload())

    first = dashboard.render_all(now=NOW)
    second = dashboard.render_all(now=NOW)

    for before, after in zip(first.charts, second.charts):
        assert before.x_domain == after.x_domain
        assert before.y_domain == after.y_domain
        assert before.point_count == after.point_count
        assert len(dashboard.canvases[after.chart_id].paths) == after.segment_count
    assert [row.display for row in first.correlations] == [row.display for row in second.correlations]


def test_latest_table_formats_values() -> None:
    dashboard = _dashboard()
    asyncio.run(dashboard.reload())

    latest = dashboard.render_all(now=NOW).latest
    values = {row.field: row.value for row in latest.rows}

    assert values["PWind"] == "10.0m/s"
    assert values["MTemp"] == "23.5°C"
    assert values["PTemp"] == "—"
    assert values["PUv"] == "—"
    assert latest.timestamp_display == "2024-06-30 11:00:00 UTC"


def test_latest_summary_of_nothing() -> None:
    summary = latest_summary([])

    assert summary.timestamp_display == "—"
    assert all(row.value == "—" for row in summary.rows)


def test_time_filter_narrows_every_chart() -> None:
    dashboard = _dashboard()
    asyncio.run(dashboard.reload())

    dashboard.apply_time_filter("day", now=NOW)
    view = dashboard.render_all(now=NOW)

    assert view.reading_count == 2
    assert view.chart("chart-temp").point_count == 3
    assert view.chart("chart-rain").x_domain == (NOW - timedelta(hours=5), NOW - timedelta(hours=1))


def test_failed_load_keeps_previous_readings() -> None:
    dashboard = _dashboard()
    asyncio.run(dashboard.reload())
    raw = dashboard.store.raw

    loaded = asyncio.run(dashboard.load(FailingSource()))

    assert loaded == 0
    assert dashboard.store.raw == raw
    assert "503" in dashboard.last_error
    assert dashboard.render_all(now=NOW).reading_count == 3


def test_missing_configuration_is_reported() -> None:
    def missing() -> StaticSource:
        raise ConfigError("Missing required configuration: DASHBOARD_SUPABASE_URL")

    dashboard = Dashboard(store=DatasetStore(), canvas_factory=RecordingCanvas, source_factory=missing)

    assert asyncio.run(dashboard.reload()) == 0
    assert "DASHBOARD_SUPABASE_URL" in dashboard.last_error
    view = dashboard.render_all(now=NOW)
    assert view.reading_count == 0
    assert all(chart.point_count == 0 for chart in view.charts)


def test_degenerate_correlations_do_not_escape() -> None:
    dashboard = _dashboard(rows=[_row(timedelta(hours=1), MTemp=20.0)])
    asyncio.run(dashboard.reload())

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        view = dashboard.render_all(now=NOW)

    assert [row.display for row in view.correlations] == ["NaN"] * 6


def test_pointer_events_drive_chart_overlay() -> None:
    dashboard = _dashboard()
    asyncio.run(dashboard.reload())
    dashboard.render_all(now=NOW)

    overlay = dashboard.pointer("chart-wind", "enter", PointerEvent(x=10_000, y=0, page_x=10, page_y=10))
    assert overlay is not None
    assert overlay.tooltip.lines == ("PWind: 10.0m/s",)
    assert dashboard.canvas("chart-wind").overlay is overlay

    assert dashboard.pointer("chart-wind", "leave", PointerEvent(x=0, y=0)) is None


def test_unknown_chart_raises_key_error() -> None:
    dashboard = _dashboard()
    view = dashboard.render_all(now=NOW)

    with pytest.raises(KeyError):
        dashboard.canvas("chart-missing")
    with pytest.raises(KeyError):
        view.chart("chart-missing")
