from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_dashboard(payload: Dict[str, Any]) -> None:
    error = payload.get("error")
    if error:
        typer.secho(f"Data unavailable: {error}", fg=typer.colors.YELLOW, err=True)

    echo_heading("Latest Readings")
    echo_key_values(
        [
            ("window", payload.get("window")),
            ("readings", payload.get("reading_count")),
            ("timestamp", payload.get("latest_timestamp") or "—"),
        ]
    )
    echo_key_values((row.get("label"), row.get("value")) for row in payload.get("latest") or [])

    typer.echo()
    echo_heading("Charts")
    charts = payload.get("charts") or []
    if charts:
        for chart in charts:
            typer.echo(
                f"  - {chart.get('chart_id')}: {chart.get('point_count')} points"
                f" in {chart.get('segment_count')} segments"
            )
    else:
        typer.echo("No charts rendered.")

    typer.echo()
    echo_heading("Soil Moisture Correlations")
    correlations = payload.get("correlations") or []
    if correlations:
        echo_key_values((row.get("field"), row.get("display")) for row in correlations)
    else:
        typer.echo("No correlations available.")
