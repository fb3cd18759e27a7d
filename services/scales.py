"""Time and linear scales mapping data values to pixel coordinates."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def tick_increment(start: float, stop: float, count: int) -> float:
    """Step between ticks; negative values mean ``1 / -step`` for sub-unit steps."""
    if count <= 0:
        return 0.0
    step = (stop - start) / count
    if step <= 0 or not math.isfinite(step):
        return 0.0
    power = math.floor(math.log10(step))
    error = step / 10**power
    if error >= _E10:
        factor = 10
    elif error >= _E5:
        factor = 5
    elif error >= _E2:
        factor = 2
    else:
        factor = 1
    if power >= 0:
        return float(factor * 10**power)
    return -(10 ** -power) / factor


def _interpolate(value: float, domain: tuple[float, float], output: tuple[float, float]) -> float:
    d0, d1 = domain
    r0, r1 = output
    if d1 == d0:
        return (r0 + r1) / 2
    return r0 + (value - d0) / (d1 - d0) * (r1 - r0)


@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    range: tuple[float, float]

    @classmethod
    def from_extent(cls, lo: float | None, hi: float | None, output: tuple[float, float]) -> "LinearScale":
        """Build a niced scale; empty or single-valued extents are widened."""
        if lo is None or hi is None:
            lo, hi = 0.0, 1.0
        elif lo == hi:
            lo, hi = lo - 1, hi + 1
        return cls(domain=(lo, hi), range=output).nice()

    def __call__(self, value: float) -> float:
        return _interpolate(value, self.domain, self.range)

    def invert(self, pixel: float) -> float:
        return _interpolate(pixel, self.range, self.domain)

    def nice(self, count: int = 10) -> "LinearScale":
        start, stop = self.domain
        reversed_domain = stop < start
        if reversed_domain:
            start, stop = stop, start
        previous = None
        for _ in range(10):
            step = tick_increment(start, stop, count)
            if step == previous:
                break
            if step > 0:
                start = math.floor(start / step) * step
                stop = math.ceil(stop / step) * step
            elif step < 0:
                start = math.ceil(start * step) / step
                stop = math.floor(stop * step) / step
            else:
                break
            previous = step
        domain = (stop, start) if reversed_domain else (start, stop)
        return LinearScale(domain=domain, range=self.range)

    def ticks(self, count: int = 10) -> List[float]:
        lo, hi = sorted(self.domain)
        step = tick_increment(lo, hi, count)
        if step > 0:
            first, last = math.ceil(lo / step), math.floor(hi / step)
            return [i * step for i in range(first, last + 1)]
        if step < 0:
            inverse = -step
            first, last = math.ceil(lo * inverse), math.floor(hi * inverse)
            return [i / inverse for i in range(first, last + 1)]
        return [lo] if lo == hi else []


_TIME_INTERVALS = (
    timedelta(minutes=1),
    timedelta(minutes=5),
    timedelta(minutes=15),
    timedelta(minutes=30),
    timedelta(hours=1),
    timedelta(hours=3),
    timedelta(hours=6),
    timedelta(hours=12),
    timedelta(days=1),
    timedelta(days=2),
    timedelta(days=7),
    timedelta(days=14),
    timedelta(days=30),
    timedelta(days=90),
)

_YEAR = timedelta(days=365)


@dataclass(frozen=True)
class TimeScale:
    domain: tuple[datetime, datetime]
    range: tuple[float, float]

    def __call__(self, value: datetime) -> float:
        d0, d1 = self.domain
        return _interpolate(value.timestamp(), (d0.timestamp(), d1.timestamp()), self.range)

    def invert(self, pixel: float) -> datetime:
        d0, d1 = self.domain
        seconds = _interpolate(pixel, self.range, (d0.timestamp(), d1.timestamp()))
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    def tick_interval(self, count: int = 4) -> timedelta:
        d0, d1 = sorted(self.domain)
        target = (d1 - d0) / max(count, 1)
        for interval in _TIME_INTERVALS:
            if interval >= target:
                return interval
        return _YEAR * max(1, math.ceil(target / _YEAR))

    def ticks(self, count: int = 4) -> List[datetime]:
        d0, d1 = sorted(self.domain)
        if d0 == d1:
            return [d0]
        interval = self.tick_interval(count)
        if interval >= _YEAR:
            return _year_ticks(d0, d1, interval // _YEAR)
        step = interval.total_seconds()
        first = math.ceil(d0.timestamp() / step) * step
        ticks: List[datetime] = []
        current = first
        while current <= d1.timestamp():
            ticks.append(datetime.fromtimestamp(current, tz=timezone.utc))
            current += step
        return ticks

    def tick_format(self, count: int = 4) -> str:
        interval = self.tick_interval(count)
        if interval < timedelta(days=1):
            return "%H:%M"
        if interval < timedelta(days=90):
            return "%b %d"
        return "%b %Y" if interval < _YEAR else "%Y"


def _year_ticks(start: datetime, stop: datetime, every: int) -> List[datetime]:
    """January 1st (UTC) of every ``every``-th year within ``start .. stop``."""
    year = start.year if start == datetime(start.year, 1, 1, tzinfo=timezone.utc) else start.year + 1
    year = math.ceil(year / every) * every
    ticks: List[datetime] = []
    while year <= stop.year:
        ticks.append(datetime(year, 1, 1, tzinfo=timezone.utc))
        year += every
    return ticks
