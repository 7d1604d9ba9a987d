"""Pillow-backed raster sink used for previews and PNG export."""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from .sinks import RGBA, DrawingSink

logger = logging.getLogger(__name__)


class RasterSink(DrawingSink):
    """Immediate-mode sink drawing straight into an RGBA ``PIL.Image``.

    ``supersample`` draws at k times the requested size and downsamples in
    ``to_image`` for anti-aliased edges; geometry coordinates are unaffected.
    """

    def __init__(self, width: int, height: int, supersample: int = 1):
        self.width = int(width)
        self.height = int(height)
        self.supersample = max(1, int(supersample))
        ss = self.supersample
        self.image = Image.new("RGBA", (self.width * ss, self.height * ss), (0, 0, 0, 0))
        self._draw = ImageDraw.Draw(self.image, "RGBA")
        self._matrix = np.diag([float(ss), float(ss), 1.0])
        self._stack: List[np.ndarray] = []
        self._stroke: Optional[RGBA] = (255, 255, 255, 255)
        self._fill: Optional[RGBA] = None
        self._stroke_width = 1.0
        self._path: List[Tuple[float, float]] = []

    # transforms ------------------------------------------------------------

    def push(self):
        self._stack.append(self._matrix.copy())

    def pop(self):
        if self._stack:
            self._matrix = self._stack.pop()

    def translate(self, x, y):
        self._matrix = self._matrix @ np.array([[1.0, 0.0, x], [0.0, 1.0, y], [0.0, 0.0, 1.0]])

    def rotate(self, angle):
        c, s = math.cos(angle), math.sin(angle)
        self._matrix = self._matrix @ np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])

    def scale(self, s):
        self._matrix = self._matrix @ np.diag([s, s, 1.0])

    def _to_pixels(self, points: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
        pts = np.asarray(points, dtype=float)
        m = self._matrix
        px = pts[:, 0] * m[0, 0] + pts[:, 1] * m[0, 1] + m[0, 2]
        py = pts[:, 0] * m[1, 0] + pts[:, 1] * m[1, 1] + m[1, 2]
        return list(zip(px.tolist(), py.tolist()))

    def _pixel_width(self) -> int:
        # uniform scale factor of the current transform
        det = abs(np.linalg.det(self._matrix[:2, :2]))
        return max(1, int(round(self._stroke_width * math.sqrt(det))))

    # style -----------------------------------------------------------------

    def background(self, color):
        self._draw.rectangle([0, 0, self.image.width, self.image.height], fill=tuple(color))

    def stroke_color(self, color):
        self._stroke = tuple(color)

    def fill_color(self, color):
        self._fill = tuple(color) if color is not None else None

    def stroke_width(self, w):
        self._stroke_width = float(w)

    # geometry --------------------------------------------------------------

    def begin_path(self):
        self._path = []

    def vertex(self, x, y):
        self._path.append((x, y))

    def close_path(self, closed):
        path, self._path = self._path, []
        if len(path) < 2:
            return
        pts = self._to_pixels(path)
        if closed and self._fill is not None and len(pts) >= 3:
            self._draw.polygon(pts, fill=self._fill)
        if self._stroke is not None:
            if closed:
                pts = pts + [pts[0]]
            self._draw.line(pts, fill=self._stroke, width=self._pixel_width(), joint="curve")

    def line(self, x1, y1, x2, y2):
        if self._stroke is None:
            return
        pts = self._to_pixels([(x1, y1), (x2, y2)])
        self._draw.line(pts, fill=self._stroke, width=self._pixel_width())

    # output ----------------------------------------------------------------

    def to_image(self) -> Image.Image:
        if self.supersample == 1:
            return self.image
        return self.image.resize((self.width, self.height), Image.Resampling.LANCZOS)

    def save(self, out_path: str) -> str:
        self.to_image().save(out_path, format="PNG", optimize=True)
        logger.info("Wrote %dx%d PNG to %s", self.width, self.height, out_path)
        return out_path
