"""Draw target that produces standalone SVG markup."""

from __future__ import annotations

from typing import List, Optional, Sequence

from jinja2 import Environment, select_autoescape

from canvas.base import Area, HoverOverlay, Point, PointerSurface

_env = Environment(
    autoescape=select_autoescape(default_for_string=True, default=True),
    trim_blocks=True,
    lstrip_blocks=True,
)

_SVG_TEMPLATE = _env.from_string(
    """\
<svg xmlns="http://www.w3.org/2000/svg" id="{{ chart_id }}-svg" viewBox="0 0 {{ width }} {{ height }}" preserveAspectRatio="xMinYMin meet" data-chart-id="{{ chart_id }}">
<g transform="translate({{ offset[0] }},{{ offset[1] }})">
{% for element in elements %}
{% if element.kind == "rect" %}
<rect x="{{ element.x }}" y="{{ element.y }}" width="{{ element.width }}" height="{{ element.height }}" fill="{{ element.fill }}" opacity="{{ element.opacity }}"/>
{% elif element.kind == "line" %}
<line x1="{{ element.x1 }}" y1="{{ element.y1 }}" x2="{{ element.x2 }}" y2="{{ element.y2 }}" stroke="{{ element.stroke }}" stroke-width="{{ element.width }}"{% if element.dash %} stroke-dasharray="{{ element.dash }}"{% endif %}/>
{% elif element.kind == "path" %}
<path d="{{ element.d }}" fill="none" stroke="{{ element.stroke }}" stroke-width="{{ element.width }}"{% if element.dash %} stroke-dasharray="{{ element.dash }}"{% endif %}/>
{% else %}
<text x="{{ element.x }}" y="{{ element.y }}" text-anchor="{{ element.anchor }}" fill="{{ element.fill }}" font-size="{{ element.size }}"{% if element.rotate %} transform="rotate({{ element.rotate }} {{ element.x }} {{ element.y }})"{% endif %}>{{ element.text }}</text>
{% endif %}
{% endfor %}
<g class="focus"{% if overlay is none %} style="display:none"{% endif %}>
{% if overlay is not none %}
<line x1="{{ overlay.crosshair_x }}" x2="{{ overlay.crosshair_x }}" y1="0" y2="{{ overlay.crosshair_height }}" stroke="#666" stroke-dasharray="3,3"/>
{% for marker in overlay.markers %}
<circle r="4" cx="{{ marker.x }}" cy="{{ marker.y }}" fill="{{ marker.color }}"/>
{% endfor %}
{% for label in overlay.labels %}
<text x="{{ label.x }}" y="{{ label.y }}" text-anchor="{{ label.anchor }}" font-size="10px">{{ label.text }}</text>
{% endfor %}
{% endif %}
</g>
<rect class="pointer-area" width="{{ area[0] }}" height="{{ area[1] }}" fill="none" pointer-events="all"/>
</g>
</svg>
"""
)

_ANCHORS = {"start": "start", "middle": "middle", "end": "end"}


def _fmt(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".") or "0"


class SvgCanvas(PointerSurface):
    def __init__(self, chart_id: str = "chart") -> None:
        self.chart_id = chart_id
        self.handlers = None
        self._elements: List[dict] = []
        self._overlay: Optional[HoverOverlay] = None
        self._width = 0.0
        self._height = 0.0
        self._area: Area = (0.0, 0.0, 0.0, 0.0)

    @property
    def overlay(self) -> Optional[HoverOverlay]:
        return self._overlay

    def clear(self) -> None:
        self._elements = []
        self._overlay = None
        self.handlers = None

    def set_viewport(self, width: float, height: float, area: Area) -> None:
        self._width = width
        self._height = height
        self._area = area

    def draw_path(
        self,
        points: Sequence[Point],
        stroke: str,
        width: float = 2.0,
        dash: Optional[str] = None,
    ) -> None:
        if not points:
            return
        commands = [f"M{_fmt(points[0][0])},{_fmt(points[0][1])}"]
        commands.extend(f"L{_fmt(x)},{_fmt(y)}" for x, y in points[1:])
        self._elements.append(
            {"kind": "path", "d": "".join(commands), "stroke": stroke, "width": width, "dash": dash}
        )

    def draw_line(
        self,
        start: Point,
        end: Point,
        stroke: str,
        width: float = 1.0,
        dash: Optional[str] = None,
    ) -> None:
        self._elements.append(
            {
                "kind": "line",
                "x1": _fmt(start[0]),
                "y1": _fmt(start[1]),
                "x2": _fmt(end[0]),
                "y2": _fmt(end[1]),
                "stroke": stroke,
                "width": width,
                "dash": dash,
            }
        )

    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: str,
        opacity: float = 1.0,
    ) -> None:
        self._elements.append(
            {
                "kind": "rect",
                "x": _fmt(x),
                "y": _fmt(y),
                "width": _fmt(width),
                "height": _fmt(height),
                "fill": fill,
                "opacity": opacity,
            }
        )

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
        self._elements.append(
            {
                "kind": "text",
                "x": _fmt(x),
                "y": _fmt(y),
                "text": text,
                "anchor": _ANCHORS.get(anchor, "start"),
                "fill": fill,
                "rotate": rotate,
                "size": size,
            }
        )

    def show_overlay(self, overlay: Optional[HoverOverlay]) -> None:
        self._overlay = overlay

    def to_svg(self) -> str:
        left, top, inner_width, inner_height = self._area
        return _SVG_TEMPLATE.render(
            chart_id=self.chart_id,
            width=_fmt(self._width),
            height=_fmt(self._height),
            offset=(_fmt(left), _fmt(top)),
            elements=self._elements,
            overlay=self._overlay,
            area=(_fmt(inner_width), _fmt(inner_height)),
        )
