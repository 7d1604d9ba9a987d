"""svgwrite-backed vector sink used for SVG export."""

import logging
import math
from typing import List, Optional, Tuple

import svgwrite

from .sinks import RGBA, DrawingSink

logger = logging.getLogger(__name__)


def svg_color(color: RGBA) -> Tuple[str, float]:
    """RGBA -> ('rgb(r,g,b)', opacity)."""
    r, g, b, a = color
    return f"rgb({r},{g},{b})", round(a / 255.0, 4)


class SvgSink(DrawingSink):
    """Retained-mode sink building an ``svgwrite.Drawing``.

    Every ``push`` opens a ``<g>``; transforms become that group's
    ``transform`` attribute, so the exported tree keeps the same coordinates
    the engine produced. Stroke widths are given in local units and scale with
    their group, exactly as on the raster canvas.
    """

    def __init__(self, width: int, height: int, filename: str = "pattern.svg"):
        self.width = int(width)
        self.height = int(height)
        self.drawing = svgwrite.Drawing(filename, size=(self.width, self.height), debug=False)
        self._groups: List = [self.drawing]
        self._stroke: Optional[RGBA] = (255, 255, 255, 255)
        self._fill: Optional[RGBA] = None
        self._stroke_width = 1.0
        self._path: List[Tuple[float, float]] = []

    # transforms ------------------------------------------------------------

    def push(self):
        group = self.drawing.g()
        self._groups[-1].add(group)
        self._groups.append(group)

    def pop(self):
        if len(self._groups) > 1:
            self._groups.pop()

    def _transform_target(self):
        # a transform must not reach back over elements already emitted
        top = self._groups[-1]
        if top is self.drawing or top.elements:
            group = self.drawing.g()
            top.add(group)
            self._groups[-1] = group
            top = group
        return top

    def translate(self, x, y):
        self._transform_target().translate(x, y)

    def rotate(self, angle):
        self._transform_target().rotate(math.degrees(angle))

    def scale(self, s):
        self._transform_target().scale(s)

    # style -----------------------------------------------------------------

    def background(self, color):
        fill, opacity = svg_color(color)
        self._groups[-1].add(self.drawing.rect(
            insert=(0, 0), size=(self.width, self.height), fill=fill, fill_opacity=opacity))

    def stroke_color(self, color):
        self._stroke = tuple(color)

    def fill_color(self, color):
        self._fill = tuple(color) if color is not None else None

    def stroke_width(self, w):
        self._stroke_width = float(w)

    def _style(self, filled: bool) -> dict:
        attrs = {"stroke_linejoin": "round", "stroke_linecap": "round"}
        if self._stroke is not None:
            stroke, opacity = svg_color(self._stroke)
            attrs.update(stroke=stroke, stroke_width=self._stroke_width)
            if opacity < 1:
                attrs["stroke_opacity"] = opacity
        else:
            attrs["stroke"] = "none"
        if filled and self._fill is not None:
            fill, opacity = svg_color(self._fill)
            attrs["fill"] = fill
            if opacity < 1:
                attrs["fill_opacity"] = opacity
        else:
            attrs["fill"] = "none"
        return attrs

    # geometry --------------------------------------------------------------

    def begin_path(self):
        self._path = []

    def vertex(self, x, y):
        self._path.append((float(x), float(y)))

    def close_path(self, closed):
        path, self._path = self._path, []
        if len(path) < 2:
            return
        if closed:
            element = self.drawing.polygon(points=path, **self._style(filled=True))
        else:
            element = self.drawing.polyline(points=path, **self._style(filled=False))
        self._groups[-1].add(element)

    def line(self, x1, y1, x2, y2):
        self._groups[-1].add(self.drawing.line(
            start=(float(x1), float(y1)), end=(float(x2), float(y2)), **self._style(filled=False)))

    # output ----------------------------------------------------------------

    def tostring(self) -> str:
        return self.drawing.tostring()

    def save(self, out_path: str) -> str:
        self.drawing.saveas(out_path, pretty=False)
        logger.info("Wrote %dx%d SVG to %s", self.width, self.height, out_path)
        return out_path
