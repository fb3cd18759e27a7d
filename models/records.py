"""Domain models shared across services."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

# Wire column names of the readings table. ``M*`` come from the local
# sensors, ``P*`` from the weather API.
READING_FIELDS: tuple[str, ...] = (
    "MTemp",
    "PTemp",
    "MHum",
    "PHum",
    "MAirp",
    "PAirp",
    "MSoil1",
    "MSoil2",
    "MSoil3",
    "PRain",
    "PWind",
    "PUv",
)

SOIL_FIELDS: tuple[str, ...] = ("MSoil1", "MSoil2", "MSoil3")


class TimeWindow(str, Enum):
    """Time ranges selectable from the dashboard."""

    day = "day"
    week = "week"
    month = "month"
    all = "all"

    @property
    def duration(self) -> Optional[timedelta]:
        return _WINDOW_DURATIONS[self]

    @classmethod
    def parse(cls, value: "TimeWindow | str") -> "TimeWindow":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(window.value for window in cls)
            raise ValueError(f"Unknown time window {value!r}; expected one of {choices}.") from exc


_WINDOW_DURATIONS: dict[TimeWindow, Optional[timedelta]] = {
    TimeWindow.day: timedelta(hours=24),
    TimeWindow.week: timedelta(days=7),
    TimeWindow.month: timedelta(days=30),
    TimeWindow.all: None,
}


@dataclass(frozen=True, slots=True)
class Reading:
    """A single sensor sample: an instant plus nullable numeric fields."""

    timestamp: datetime
    values: Mapping[str, Optional[float]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, name: str) -> Optional[float]:
        return self.values.get(name)


@dataclass(frozen=True, slots=True)
class CorrelationRow:
    """Pearson coefficient between soil moisture and one variable."""

    field: str
    coefficient: float

    @property
    def display(self) -> str:
        if math.isnan(self.coefficient):
            return "NaN"
        return f"{self.coefficient:.3f}"
