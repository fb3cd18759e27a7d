"""Drawing capability used by the chart renderer and interaction layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

Point = tuple[float, float]
# Chart area inside the panel: (left, top, width, height).
Area = tuple[float, float, float, float]


@dataclass(frozen=True, slots=True)
class PointerEvent:
    """Pointer position in chart-area pixels plus page coordinates for the tooltip."""

    x: float
    y: float
    page_x: float = 0.0
    page_y: float = 0.0


PointerHandler = Callable[[PointerEvent], None]


@dataclass(frozen=True, slots=True)
class Marker:
    field: str
    x: float
    y: float
    color: str


@dataclass(frozen=True, slots=True)
class MarkerLabel:
    field: str
    text: str
    x: float
    y: float
    anchor: str


@dataclass(frozen=True, slots=True)
class Tooltip:
    title: str
    lines: tuple[str, ...]
    left: float
    top: float


@dataclass(frozen=True, slots=True)
class HoverOverlay:
    """Everything shown while hovering; ``None`` in its place hides it all."""

    crosshair_x: float
    crosshair_height: float
    markers: tuple[Marker, ...] = ()
    labels: tuple[MarkerLabel, ...] = ()
    tooltip: Optional[Tooltip] = None


@dataclass
class PointerHandlers:
    on_enter: Optional[PointerHandler] = None
    on_move: Optional[PointerHandler] = None
    on_leave: Optional[PointerHandler] = None


class DrawTarget(Protocol):
    """Surface a chart is drawn on; coordinates are relative to the chart area."""

    def clear(self) -> None:
        ...

    def set_viewport(self, width: float, height: float, area: Area) -> None:
        ...

    def draw_path(
        self,
        points: Sequence[Point],
        stroke: str,
        width: float = 2.0,
        dash: Optional[str] = None,
    ) -> None:
        ...

    def draw_line(
        self,
        start: Point,
        end: Point,
        stroke: str,
        width: float = 1.0,
        dash: Optional[str] = None,
    ) -> None:
        ...

    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: str,
        opacity: float = 1.0,
    ) -> None:
        ...

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        anchor: str = "start",
        fill: str = "currentColor",
        rotate: float = 0.0,
        size: str = "10px",
    ) -> None:
        ...

    def register_pointer_handlers(self, handlers: PointerHandlers) -> None:
        ...

    def show_overlay(self, overlay: Optional[HoverOverlay]) -> None:
        ...

    def dispatch(self, kind: str, event: PointerEvent) -> None:
        ...


class PointerSurface:
    """Holds registered pointer handlers and feeds events to them.

    Headless surfaces have no native input, so events are dispatched here by
    whatever owns the surface (tests, the HTTP pointer endpoint).
    """

    handlers: Optional[PointerHandlers] = None

    def register_pointer_handlers(self, handlers: PointerHandlers) -> None:
        self.handlers = handlers

    def dispatch(self, kind: str, event: PointerEvent) -> None:
        if kind not in POINTER_KINDS:
            raise ValueError(f"Unknown pointer event kind {kind!r}")
        if self.handlers is None:
            return
        handler = getattr(self.handlers, f"on_{kind}")
        if handler is not None:
            handler(event)


POINTER_KINDS = ("enter", "move", "leave")
