"""Pointer tracking for a rendered chart.

Hover state is a small value type (``Idle`` or ``Hovering``) moved along by
pure transition functions; ``build_overlay`` turns a state into what should
be shown. ``ChartInteraction`` is the only piece that touches a draw target.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Union

from canvas.base import DrawTarget, HoverOverlay, Marker, MarkerLabel, PointerEvent, PointerHandlers, Tooltip
from models.records import Reading
from services.renderer import ChartGeometry
from services.units import display_value, format_value

LABEL_CHAR_WIDTH = 6
LABEL_OFFSET = 6
TOOLTIP_OFFSET = 12
TOOLTIP_MAX_WIDTH = 200


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Hovering:
    index: int
    reading: Reading
    pointer: PointerEvent


HoverState = Union[Idle, Hovering]

IDLE = Idle()


def nearest_index(readings: Sequence[Reading], moment: datetime) -> Optional[int]:
    """Index of the reading closest to ``moment``; ties go to the earlier one."""
    if not readings:
        return None
    index = bisect_left(readings, moment, key=lambda reading: reading.timestamp)
    if index == 0:
        return 0
    if index >= len(readings):
        return len(readings) - 1
    before = readings[index - 1].timestamp
    after = readings[index].timestamp
    return index if moment - before > after - moment else index - 1


def _resolve(event: PointerEvent, geometry: ChartGeometry) -> HoverState:
    index = nearest_index(geometry.readings, geometry.x.invert(event.x))
    if index is None:
        return IDLE
    return Hovering(index=index, reading=geometry.readings[index], pointer=event)


def pointer_enter(state: HoverState, event: PointerEvent, geometry: ChartGeometry) -> HoverState:
    return _resolve(event, geometry)


def pointer_move(state: HoverState, event: PointerEvent, geometry: ChartGeometry) -> HoverState:
    return _resolve(event, geometry)


def pointer_leave(state: HoverState) -> HoverState:
    return IDLE


def label_anchor(x: float, text: str, chart_width: float) -> str:
    return "end" if x + len(text) * LABEL_CHAR_WIDTH > chart_width else "start"


def build_overlay(state: HoverState, geometry: ChartGeometry, viewport_width: float) -> Optional[HoverOverlay]:
    if not isinstance(state, Hovering):
        return None

    reading = state.reading
    x = geometry.x(reading.timestamp)
    clock = reading.timestamp.strftime("%H:%M")
    markers: List[Marker] = []
    labels: List[MarkerLabel] = []
    lines: List[str] = []
    for index, field in enumerate(geometry.spec.series):
        raw = reading.get(field)
        value = display_value(field, raw)
        if value is None:
            continue
        y = geometry.y(value)
        markers.append(Marker(field=field, x=x, y=y, color=geometry.color(index)))

        text = f"{field}: {format_value(field, raw, with_unit=False)} @ {clock}"
        anchor = label_anchor(x, text, geometry.width)
        label_x = x + LABEL_OFFSET if anchor == "start" else x - LABEL_OFFSET
        labels.append(MarkerLabel(field=field, text=text, x=label_x, y=y, anchor=anchor))
        lines.append(f"{field}: {format_value(field, raw)}")

    pointer = state.pointer
    tooltip = Tooltip(
        title=reading.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        lines=tuple(lines),
        left=min(pointer.page_x + TOOLTIP_OFFSET, viewport_width - TOOLTIP_MAX_WIDTH),
        top=pointer.page_y + TOOLTIP_OFFSET,
    )
    return HoverOverlay(
        crosshair_x=x,
        crosshair_height=geometry.height,
        markers=tuple(markers),
        labels=tuple(labels),
        tooltip=tooltip,
    )


class ChartInteraction:
    """Binds hover transitions for one chart to its draw target."""

    def __init__(self, geometry: ChartGeometry, canvas: DrawTarget, viewport_width: float) -> None:
        self.geometry = geometry
        self.canvas = canvas
        self.viewport_width = viewport_width
        self.state: HoverState = IDLE
        self.overlay: Optional[HoverOverlay] = None
        canvas.register_pointer_handlers(
            PointerHandlers(on_enter=self.enter, on_move=self.move, on_leave=self.leave)
        )
        canvas.show_overlay(None)

    def enter(self, event: PointerEvent) -> None:
        self._apply(pointer_enter(self.state, event, self.geometry))

    def move(self, event: PointerEvent) -> None:
        self._apply(pointer_move(self.state, event, self.geometry))

    def leave(self, event: PointerEvent) -> None:
        self._apply(pointer_leave(self.state))

    def _apply(self, state: HoverState) -> None:
        self.state = state
        self.overlay = build_overlay(state, self.geometry, self.viewport_width)
        self.canvas.show_overlay(self.overlay)
