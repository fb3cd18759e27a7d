"""Pearson correlation between soil moisture and the other variables."""

from __future__ import annotations

import math
import warnings
from typing import Iterable, List, Optional, Sequence

from errors import DegenerateInputWarning
from models.records import SOIL_FIELDS, CorrelationRow, Reading

CORRELATION_FIELDS: tuple[str, ...] = ("PRain", "PWind", "MAirp", "MTemp", "MHum", "PUv")


def _is_constant(values: Sequence[float]) -> bool:
    # fsum(values) / n can miss the shared value by an ulp, so compare directly.
    return all(value == values[0] for value in values)


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Sample Pearson coefficient of two equal-length series.

    Returns ``nan`` (and warns with ``DegenerateInputWarning``) when either
    series has zero variance.
    """
    n = len(xs)
    if n != len(ys):
        raise ValueError(f"Series lengths differ: {n} != {len(ys)}")
    if n < 2:
        raise ValueError("Pearson correlation needs at least two points.")

    if _is_constant(xs) or _is_constant(ys):
        warnings.warn("Zero-variance input; correlation is undefined.", DegenerateInputWarning, stacklevel=2)
        return math.nan

    mean_x = math.fsum(xs) / n
    mean_y = math.fsum(ys) / n
    dx = [x - mean_x for x in xs]
    dy = [y - mean_y for y in ys]
    numerator = math.fsum(a * b for a, b in zip(dx, dy))
    denominator = math.sqrt(math.fsum(a * a for a in dx) * math.fsum(b * b for b in dy))
    if denominator == 0:
        warnings.warn("Zero-variance input; correlation is undefined.", DegenerateInputWarning, stacklevel=2)
        return math.nan
    return max(-1.0, min(1.0, numerator / denominator))


def soil_moisture_average(readings: Iterable[Reading]) -> List[Optional[float]]:
    averages: List[Optional[float]] = []
    for reading in readings:
        values = [reading.get(name) for name in SOIL_FIELDS]
        if any(value is None for value in values):
            averages.append(None)
        else:
            averages.append(math.fsum(values) / len(values))  # type: ignore[arg-type]
    return averages


def correlation_table(
    filtered: Sequence[Reading],
    base_series: Sequence[Optional[float]],
    other_fields: Sequence[str] = CORRELATION_FIELDS,
) -> List[CorrelationRow]:
    """One row per field, in input order; null pairs are excluded per field."""
    if len(base_series) != len(filtered):
        raise ValueError("Base series must align with the filtered readings.")

    rows: List[CorrelationRow] = []
    for name in other_fields:
        xs: list[float] = []
        ys: list[float] = []
        for base, reading in zip(base_series, filtered):
            value = reading.get(name)
            if base is None or value is None:
                continue
            xs.append(base)
            ys.append(value)
        if len(xs) < 2:
            warnings.warn(
                f"Fewer than two complete pairs for {name}; correlation is undefined.",
                DegenerateInputWarning,
                stacklevel=2,
            )
            coefficient = math.nan
        else:
            coefficient = pearson(xs, ys)
        rows.append(CorrelationRow(field=name, coefficient=coefficient))
    return rows
