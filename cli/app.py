from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_dashboard
from canvas.recording import RecordingCanvas
from canvas.svg import SvgCanvas
from datastore.dataset import DatasetStore
from models.records import TimeWindow
from services.dashboard import Dashboard
from settings import get_settings
from storage.sources import JsonFileReadingsSource


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for the balcony dashboard service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _parse_window(value: str) -> TimeWindow:
    try:
        return TimeWindow.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("summary")
def summary_command(
    ctx: typer.Context,
    window: Optional[str] = typer.Option(None, "--window", "-w", help="day, week, month or all."),
) -> None:
    """Show latest readings, chart sizes and soil correlations."""
    state = _get_state(ctx)
    if window is None:
        payload = state.client.get_dashboard()
    else:
        payload = state.client.apply_filter(_parse_window(window).value)
    render_dashboard(payload)


@app.command("filter")
def filter_command(
    ctx: typer.Context,
    window: str = typer.Argument(..., help="day, week, month or all."),
) -> None:
    """Select the service's time window and show the result."""
    state = _get_state(ctx)
    selected = _parse_window(window)
    payload = state.client.apply_filter(selected.value)
    typer.secho(f"Time window set to {selected.value}.", fg=typer.colors.GREEN)
    typer.echo()
    render_dashboard(payload)


@app.command("snapshot")
def snapshot_command(
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", file_okay=False, help="Directory for SVG files."),
    window: str = typer.Option("all", "--window", "-w", help="day, week, month or all."),
    source_file: Optional[Path] = typer.Option(
        None,
        "--source-file",
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON file of readings; defaults to the configured source.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Render without writing files and report what each chart would draw.",
    ),
) -> None:
    """Render every chart locally and write one SVG per chart."""
    if output_dir is None and not dry_run:
        raise typer.BadParameter("--output-dir is required unless --dry-run is given.")
    selected = _parse_window(window)
    settings = get_settings()
    dashboard = Dashboard(
        store=DatasetStore(timestamp_field=settings.timestamp_field),
        canvas_factory=RecordingCanvas if dry_run else SvgCanvas,
        width=settings.chart_width,
        height=settings.chart_height,
        viewport_width=settings.viewport_width,
    )
    if source_file is not None:
        count = asyncio.run(dashboard.load(JsonFileReadingsSource(source_file)))
    else:
        count = asyncio.run(dashboard.reload())
    if dashboard.last_error:
        typer.secho(f"Data unavailable: {dashboard.last_error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    dashboard.apply_time_filter(selected)
    view = dashboard.render_all()

    if dry_run:
        for chart in view.charts:
            canvas = dashboard.canvas(chart.chart_id)
            typer.echo(
                f"{chart.chart_id}: {len(canvas.paths)} paths, {len(canvas.lines)} lines,"
                f" {len(canvas.rects)} rects, {len(canvas.texts)} labels"
            )
    else:
        output_dir.mkdir(parents=True, exist_ok=True)
        for chart in view.charts:
            target = output_dir / f"{chart.chart_id}.svg"
            target.write_text(dashboard.canvas(chart.chart_id).to_svg(), encoding="utf-8")
            typer.echo(f"Wrote {target}")
    typer.secho(
        f"Rendered {len(view.charts)} charts from {view.reading_count} of {count} readings.",
        fg=typer.colors.GREEN,
    )
