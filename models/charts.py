"""Static chart configuration values."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ThresholdBand:
    """Background band drawn from the previous band's bound up to ``upper``."""

    upper: float
    color: str


@dataclass(frozen=True, slots=True)
class ThresholdLine:
    """Horizontal reference line at a fixed value."""

    value: float
    label: str
    color: str = "#844"


@dataclass(frozen=True, slots=True)
class ChartSpec:
    chart_id: str
    series: tuple[str, ...]
    y_label: str
    title: str = ""
    bands: tuple[ThresholdBand, ...] = ()
    thresholds: tuple[ThresholdLine, ...] = ()
