"""Presentation rules: unit conversion and value formatting."""

from __future__ import annotations

from typing import Optional

PLACEHOLDER = "—"

# The weather API reports wind in km/h; the dashboard shows m/s.
WIND_FIELD = "PWind"
KMH_PER_MS = 3.6

UNITS: dict[str, str] = {
    "MTemp": "°C",
    "PTemp": "°C",
    "MHum": "%",
    "PHum": "%",
    "MAirp": "hPa",
    "PAirp": "hPa",
    "MSoil1": "",
    "MSoil2": "",
    "MSoil3": "",
    "PRain": "mm",
    "PWind": "m/s",
    "PUv": "",
}


def display_value(field: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if field == WIND_FIELD:
        return value / KMH_PER_MS
    return value


def format_value(field: str, value: Optional[float], with_unit: bool = True) -> str:
    shown = display_value(field, value)
    if shown is None:
        return PLACEHOLDER
    unit = UNITS.get(field, "") if with_unit else ""
    return f"{shown:.1f}{unit}"
