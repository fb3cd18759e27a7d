"""Headless draw target that records operations instead of painting them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from canvas.base import Area, HoverOverlay, Point, PointerSurface


@dataclass(frozen=True)
class DrawnPath:
    points: tuple[Point, ...]
    stroke: str
    width: float
    dash: Optional[str]


@dataclass(frozen=True)
class DrawnLine:
    start: Point
    end: Point
    stroke: str
    dash: Optional[str]


@dataclass(frozen=True)
class DrawnRect:
    x: float
    y: float
    width: float
    height: float
    fill: str
    opacity: float


@dataclass(frozen=True)
class DrawnText:
    x: float
    y: float
    text: str
    anchor: str
    fill: str
    rotate: float


class RecordingCanvas(PointerSurface):
    def __init__(self, chart_id: str = "chart") -> None:
        self.chart_id = chart_id
        self.paths: List[DrawnPath] = []
        self.lines: List[DrawnLine] = []
        self.rects: List[DrawnRect] = []
        self.texts: List[DrawnText] = []
        self.overlay: Optional[HoverOverlay] = None
        self.handlers = None
        self.size: tuple[float, float] = (0.0, 0.0)
        self.area: Area = (0.0, 0.0, 0.0, 0.0)
        self.clear_count = 0

    def clear(self) -> None:
        self.paths.clear()
        self.lines.clear()
        self.rects.clear()
        self.texts.clear()
        self.overlay = None
        self.handlers = None
        self.clear_count += 1

    def set_viewport(self, width: float, height: float, area: Area) -> None:
        self.size = (width, height)
        self.area = area

    def draw_path(
        self,
        points: Sequence[Point],
        stroke: str,
        width: float = 2.0,
        dash: Optional[str] = None,
    ) -> None:
        self.paths.append(DrawnPath(tuple(points), stroke, width, dash))

    def draw_line(
        self,
        start: Point,
        end: Point,
        stroke: str,
        width: float = 1.0,
        dash: Optional[str] = None,
    ) -> None:
        self.lines.append(DrawnLine(start, end, stroke, dash))

    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: str,
        opacity: float = 1.0,
    ) -> None:
        self.rects.append(DrawnRect(x, y, width, height, fill, opacity))

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
        self.texts.append(DrawnText(x, y, text, anchor, fill, rotate))

    def show_overlay(self, overlay: Optional[HoverOverlay]) -> None:
        self.overlay = overlay
