"""
Layer geometry engine.

For every layer the engine picks one of four drawing modes and pushes the
resulting geometry onto a ``DrawingSink``:

    concentric       one closed, morphed, modulated shape per repetition
    radiating lines  ``count`` open strokes running from start_r to end_r
    circular array   one sub-shape repeated around a ring, scaled per instance
    fibonacci        ``count`` logarithmic spiral arms

Each sampled point is passed through the erosion filter. A stroke segment is
drawn when either of its endpoints survives; filled shapes simply drop the
rejected vertices.

The engine is a pure function of (document, context): it never mutates the
layers and draws nothing but sink calls, so repeated renders are identical.
"""

import logging
import math
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from .model import DocumentState, Layer, RenderContext, max_layer_radius
from .noise import CoherentNoise
from .shapes import (
    HALF_PI, TWO_PI, ShapeKind, apply_distribution, base_radius, lerp,
    secondary_modulation, waveform,
)
from .sinks import DrawingSink

logger = logging.getLogger(__name__)

CURVE_STEP_ANGLE = 0.002
LINE_STEP_T = 0.002
SPIRAL_STEP_THETA = 0.02
SPIRAL_MIN_SAMPLES = 50
SPIRAL_GROWTH = 0.55
RADIAL_NUDGE = 0.2
EROSION_LINE_OFFSET = 103.764
MIN_STROKE = 0.1

# Shared by every target so preview and export sample the same angles.
ANGLES = np.arange(0.0, TWO_PI + 1e-9, CURVE_STEP_ANGLE)
LINE_TS = np.arange(0.0, 1.000001, LINE_STEP_T)


class DrawMode(str, Enum):
    CONCENTRIC = "concentric"
    RADIATING = "radiating"
    CIRCULAR_ARRAY = "circular-array"
    FIBONACCI = "fibonacci"


def select_mode(layer: Layer) -> DrawMode:
    """Fibonacci beats radiating lines, which beats the circular array."""
    kinds = (layer.start_shape, layer.end_shape)
    if ShapeKind.FIBONACCI_SPIRAL in kinds:
        return DrawMode.FIBONACCI
    if kinds == (ShapeKind.RADIATING_LINES, ShapeKind.RADIATING_LINES):
        return DrawMode.RADIATING
    if layer.circular_array:
        return DrawMode.CIRCULAR_ARRAY
    return DrawMode.CONCENTRIC


def uses_fill(layer: Layer, mode: Optional[DrawMode] = None) -> bool:
    """Line-based modes are always stroke-only."""
    mode = mode or select_mode(layer)
    return layer.solid_fill and mode not in (DrawMode.RADIATING, DrawMode.FIBONACCI)


def progression(i: int, n: int) -> float:
    return i / (n - 1) if n > 1 else 0.0


# ---------------------------- Erosion ---------------------------------------

class ErosionFilter:
    """Noise mask deciding which sampled points survive.

    The acceptance threshold rises from the layer's base threshold toward 1.0
    with distance from the centre, normalized by the largest radius of the
    whole composition.
    """

    def __init__(self, layers: Sequence[Layer], noise: CoherentNoise):
        self.layers = list(layers)
        self.noise = noise
        self.max_radius = max_layer_radius(self.layers)

    def _layer(self, layer_index: int) -> Layer:
        return self.layers[min(max(0, layer_index), len(self.layers) - 1)]

    def enabled(self, layer_index: int) -> bool:
        return self._layer(layer_index).erosion_enabled

    def mask(self, xs: np.ndarray, ys: np.ndarray, layer_index: int) -> np.ndarray:
        """Vectorized keep/reject for a batch of points."""
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        layer = self._layer(layer_index)
        if not layer.erosion_enabled:
            return np.ones(np.broadcast(xs, ys).shape, dtype=bool)

        offset = layer_index * EROSION_LINE_OFFSET
        scale = layer.erosion_scale
        n = self.noise((xs + offset) * scale, (ys + offset) * scale)
        r_norm = np.clip(np.hypot(xs, ys) / self.max_radius, 0.0, 1.0)
        threshold = lerp(layer.erosion_threshold, 1.0, layer.erosion_decay * r_norm)
        return np.asarray(n >= threshold)

    def test(self, x: float, y: float, layer_index: int) -> bool:
        return bool(self.mask(np.array([x]), np.array([y]), layer_index)[0])


# ---------------------------- Emission helpers ------------------------------

def emit_closed_shape(
    sink: DrawingSink,
    xs: np.ndarray,
    ys: np.ndarray,
    keep: np.ndarray,
    filled: bool = False,
) -> int:
    """Emit one swept outline; returns the number of paths started.

    Unbroken outlines become a single closed path. Otherwise a stroke runs
    across every segment with at least one surviving endpoint and the
    outline splits into open paths where both endpoints are rejected.
    Filled outlines keep one closed polygon made of the surviving vertices.
    """
    n = len(xs)
    if n == 0:
        return 0
    if filled or keep.all():
        idx = np.flatnonzero(keep)
        if len(idx) == 0:
            return 0
        sink.begin_path()
        for i in idx:
            sink.vertex(xs[i], ys[i])
        sink.close_path(True)
        return 1

    paths = 0
    emitting = False
    for i in range(1, n):
        if keep[i - 1] or keep[i]:
            if not emitting:
                sink.begin_path()
                sink.vertex(xs[i - 1], ys[i - 1])
                emitting = True
                paths += 1
            sink.vertex(xs[i], ys[i])
        elif emitting:
            sink.close_path(False)
            emitting = False
    if emitting:
        sink.close_path(False)
    return paths


def emit_stroked_polyline(
    sink: DrawingSink,
    xs: np.ndarray,
    ys: np.ndarray,
    ts: np.ndarray,
    keep: np.ndarray,
    width_start: float,
    width_end: float,
) -> int:
    """Open polyline as individual segments with per-segment stroke width.

    Width is interpolated at each segment's mid-progression. Returns the
    number of segments drawn.
    """
    drawn = 0
    last_width = None
    for i in range(1, len(xs)):
        if not (keep[i - 1] or keep[i]):
            continue
        w = max(MIN_STROKE, lerp(width_start, width_end, (ts[i - 1] + ts[i]) * 0.5))
        if w != last_width:
            sink.stroke_width(w)
            last_width = w
        sink.line(xs[i - 1], ys[i - 1], xs[i], ys[i])
        drawn += 1
    return drawn


# ---------------------------- Sampling --------------------------------------

def sample_outline(
    layer: Layer,
    radius: float,
    shift: float,
    amp: float,
    morph_t: float,
):
    """Sweep the morphed, modulated outline over ``ANGLES``.

    Returns (xs, ys) in the shape's local frame.
    """
    a = ANGLES
    count = max(1, int(layer.count))
    start = base_radius(layer.start_shape, radius, layer.sides_start, a, count)
    end = base_radius(layer.end_shape, radius, layer.sides_end, a, count)
    base = lerp(start, end, morph_t)

    mod = waveform(layer.wave, a * layer.freq + shift, layer.duty)
    sec = secondary_modulation(a / TWO_PI, layer)
    r = base + mod * amp + sec
    return r * np.cos(a + shift), r * np.sin(a + shift)


def spiral_radii(layer: Layer, u: np.ndarray, distribution: float) -> np.ndarray:
    """Exponential spiral growth, normalized to [0, 1] and lerped into start_r..end_r."""
    turns = max(1, int(layer.spiral_turns or 4))
    theta_max = TWO_PI * turns
    b = SPIRAL_GROWTH / turns
    re_min = 1.0
    re_max = math.exp(b * theta_max)
    re = np.exp(b * u * theta_max)
    re_norm = (re - re_min) / max(1e-12, re_max - re_min)
    return lerp(layer.start_r, layer.end_r, apply_distribution(re_norm, distribution))


def spiral_samples(turns: int) -> np.ndarray:
    theta_max = TWO_PI * max(1, int(turns))
    samples = max(math.ceil(theta_max / SPIRAL_STEP_THETA), SPIRAL_MIN_SAMPLES)
    return np.arange(samples + 1) / samples


# ---------------------------- Modes -----------------------------------------

def draw_concentric(sink: DrawingSink, layer: Layer, layer_index: int,
                    distribution: float, erosion: ErosionFilter) -> None:
    count = max(1, int(layer.count))
    filled = uses_fill(layer, DrawMode.CONCENTRIC)
    rot = math.radians(layer.rot_offset_deg)
    for i in range(count):
        t = progression(i, count)
        radius = lerp(layer.start_r, layer.end_r, apply_distribution(t, distribution))
        amp = lerp(layer.amp_start, layer.amp_end, t)
        shift = i * rot
        sink.stroke_width(max(MIN_STROKE, lerp(layer.line_w_start, layer.line_w_end, t)))
        xs, ys = sample_outline(layer, radius, shift, amp, t)
        emit_closed_shape(sink, xs, ys, erosion.mask(xs, ys, layer_index), filled)


def draw_circular_array(sink: DrawingSink, layer: Layer, layer_index: int,
                        distribution: float, erosion: ErosionFilter) -> None:
    count = max(1, int(layer.count))
    filled = uses_fill(layer, DrawMode.CIRCULAR_ARRAY)
    scale_start = (layer.array_scale_start or 100.0) / 100.0
    scale_end = (layer.array_scale_end or 100.0) / 100.0
    spread = layer.radial_spread or 0.0
    rot = math.radians(layer.rot_offset_deg)
    for j in range(count):
        t = progression(j, count)
        pos_r = lerp(layer.start_r, layer.end_r, spread * t)
        angle = j * TWO_PI / count
        inst_scale = lerp(scale_start, scale_end, t)
        radius = lerp(layer.start_r, layer.end_r, apply_distribution(t, distribution))

        sink.push()
        sink.translate(pos_r * math.cos(angle), pos_r * math.sin(angle))
        sink.rotate(angle + rot)
        sink.scale(inst_scale)
        # stroke scales with the instance; divide it back out
        lw = lerp(layer.line_w_start, layer.line_w_end, t) / max(0.0001, inst_scale)
        sink.stroke_width(max(MIN_STROKE, lw))
        xs, ys = sample_outline(layer, radius, 0.0, lerp(layer.amp_start, layer.amp_end, t), 0.0)
        emit_closed_shape(sink, xs, ys, erosion.mask(xs, ys, layer_index), filled)
        sink.pop()


def draw_radiating_lines(sink: DrawingSink, layer: Layer, layer_index: int,
                         distribution: float, erosion: ErosionFilter) -> None:
    count = max(1, int(layer.count))
    step = TWO_PI / count
    rot = math.radians(layer.rot_offset_deg)
    ts = LINE_TS
    amp = lerp(layer.amp_start, layer.amp_end, ts)
    r = lerp(layer.start_r, layer.end_r, apply_distribution(ts, distribution))
    offset = waveform(layer.wave, ts * layer.freq * TWO_PI, layer.duty) * amp + secondary_modulation(ts, layer)

    for i in range(count):
        base_angle = i * step + rot
        start = base_radius(layer.start_shape, r, layer.sides_start, base_angle, count)
        end = base_radius(layer.end_shape, r, layer.sides_end, base_angle, count)
        nudge = (lerp(start, end, ts) - r) * RADIAL_NUDGE
        tangent = base_angle + HALF_PI
        xs = (r + nudge) * math.cos(base_angle) + offset * math.cos(tangent)
        ys = (r + nudge) * math.sin(base_angle) + offset * math.sin(tangent)
        keep = erosion.mask(xs, ys, layer_index)
        emit_stroked_polyline(sink, xs, ys, ts, keep, layer.line_w_start, layer.line_w_end)


def draw_fibonacci(sink: DrawingSink, layer: Layer, layer_index: int,
                   distribution: float, erosion: ErosionFilter) -> None:
    turns = max(1, int(layer.spiral_turns or 4))
    theta_max = TWO_PI * turns
    count = max(1, int(layer.count))
    direction = -1.0 if layer.fibonacci_reversed else 1.0
    rot = math.radians(layer.rot_offset_deg)

    u = spiral_samples(turns)
    r = spiral_radii(layer, u, distribution)
    offset = (waveform(layer.wave, u * layer.freq * TWO_PI, layer.duty)
              * lerp(layer.amp_start, layer.amp_end, u)
              + secondary_modulation(u, layer))

    for i in range(count):
        base_angle = i * TWO_PI / count + rot
        angle = base_angle + direction * u * theta_max
        tangent = angle + HALF_PI
        xs = r * np.cos(angle) + offset * np.cos(tangent)
        ys = r * np.sin(angle) + offset * np.sin(tangent)
        keep = erosion.mask(xs, ys, layer_index)
        emit_stroked_polyline(sink, xs, ys, u, keep, layer.line_w_start, layer.line_w_end)


MODE_DRAWERS = {
    DrawMode.CONCENTRIC: draw_concentric,
    DrawMode.CIRCULAR_ARRAY: draw_circular_array,
    DrawMode.RADIATING: draw_radiating_lines,
    DrawMode.FIBONACCI: draw_fibonacci,
}


# ---------------------------- Document --------------------------------------

def draw_layer(sink: DrawingSink, layer: Layer, layer_index: int, doc: DocumentState,
               ctx: RenderContext, erosion: ErosionFilter) -> DrawMode:
    """Draw one layer centred on the canvas, wrapped in its own transform scope."""
    mode = select_mode(layer)
    cx, cy = ctx.center
    sink.push()
    sink.translate(cx, cy)
    sink.rotate(math.radians(layer.global_rot_deg))
    sink.stroke_color(layer.color)
    sink.fill_color(layer.fill_color if uses_fill(layer, mode) else None)
    MODE_DRAWERS[mode](sink, layer, layer_index, doc.distribution, erosion)
    sink.pop()
    return mode


def draw_document(sink: DrawingSink, doc: DocumentState, ctx: RenderContext) -> DrawingSink:
    """Background first, then every layer in order (later layers on top)."""
    erosion = ErosionFilter(doc.layers, ctx.noise)
    sink.background(doc.background)
    for index, layer in enumerate(doc.layers):
        mode = draw_layer(sink, layer, index, doc, ctx, erosion)
        logger.debug("Layer %d (%s) drawn as %s", index, layer.name, mode.value)
    return sink
