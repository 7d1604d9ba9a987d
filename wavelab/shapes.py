"""
Shape and modulation primitives.

Everything here is a pure function of its arguments and works on either
Python floats or NumPy arrays (the engine feeds whole angle sweeps at once):

- ``apply_distribution``  exponential skew of a normalized progression.
- ``waveform``            periodic modulators (sine, cosine, square, triangle,
                          sample & hold).
- ``secondary_modulation`` additive, non-negative sample & hold offset.
- ``base_radius``         undisturbed boundary radius of a shape kind.
"""

import math
from enum import Enum
from typing import TYPE_CHECKING, Union

import numpy as np

from .noise import pseudo_random_hash

if TYPE_CHECKING:  # pragma: no cover
    from .model import Layer

ArrayLike = Union[float, np.ndarray]

TWO_PI = 2 * math.pi
HALF_PI = math.pi / 2

SPIKE_AMPLITUDE = 0.45
SPIKE_EXPONENT = 6.0
MIN_SPIKES = 6


# ---------------------------- Kinds -----------------------------------------

class ShapeKind(str, Enum):
    CIRCLE = "circle"
    POLYGON = "polygon"
    RADIATING_LINES = "radiating-lines"
    FIBONACCI_SPIRAL = "fibonacci-spiral"

    @classmethod
    def parse(cls, value: Union[str, "ShapeKind"]) -> "ShapeKind":
        """Accept enum values, names, or the control-panel labels."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        kind = _SHAPE_ALIASES.get(key)
        if kind is None:
            raise ValueError(f"Unknown shape kind: {value!r}. Choose from {[k.value for k in cls]}")
        return kind

    @property
    def label(self) -> str:
        return _SHAPE_LABELS[self]


_SHAPE_LABELS = {
    ShapeKind.CIRCLE: "concentric circles",
    ShapeKind.POLYGON: "multi-sided shapes",
    ShapeKind.RADIATING_LINES: "radiating lines",
    ShapeKind.FIBONACCI_SPIRAL: "fibonacci spiral",
}

_SHAPE_ALIASES = {}
for _kind, _label in _SHAPE_LABELS.items():
    _SHAPE_ALIASES[_kind.value] = _kind
    _SHAPE_ALIASES[_kind.name.lower()] = _kind
    _SHAPE_ALIASES[_label] = _kind


class WaveKind(str, Enum):
    SINE = "sine"
    COSINE = "cosine"
    SQUARE = "square"
    TRIANGLE = "triangle"
    SAMPLE_HOLD = "sample-hold"

    @classmethod
    def parse(cls, value: Union[str, "WaveKind"]) -> "WaveKind":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in ("sample & hold", "sample_hold", "s&h"):
            return cls.SAMPLE_HOLD
        for kind in cls:
            if key == kind.value:
                return kind
        raise ValueError(f"Unknown waveform: {value!r}. Choose from {[k.value for k in cls]}")


# ---------------------------- Utilities -------------------------------------

def lerp(a: ArrayLike, b: ArrayLike, t: ArrayLike) -> ArrayLike:
    return a + (b - a) * t


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def wrap(x: ArrayLike, m: float) -> ArrayLike:
    """Modulo that always lands in [0, m), also for negative x."""
    return ((x % m) + m) % m


# ---------------------------- Distribution ----------------------------------

def apply_distribution(t: ArrayLike, k: float) -> ArrayLike:
    """Skew a progression t in [0, 1] exponentially.

    k > 0 packs samples toward t = 1, k < 0 toward t = 0, k ~ 0 is identity.
    Endpoints are fixed: f(0) = 0 and f(1) = 1 for every k.
    """
    k = float(k or 0.0)
    if abs(k) < 1e-6:
        return t
    if k > 0:
        num = np.exp(k * t) - 1.0
        den = math.exp(k) - 1.0
        return num / max(1e-12, den)
    kp = -k
    tt = 1.0 - t
    num = np.exp(kp * tt) - 1.0
    den = math.exp(kp) - 1.0
    return 1.0 - num / max(1e-12, den)


# ---------------------------- Waveforms -------------------------------------

def primary_sample_hold(phase: ArrayLike) -> ArrayLike:
    """Held random value in [-1, 1], constant over each full turn of phase."""
    idx = np.floor(phase / TWO_PI)
    return pseudo_random_hash(idx + 0.4321) * 2.0 - 1.0


def waveform(kind: Union[str, WaveKind], phase: ArrayLike, duty: float = 0.5) -> ArrayLike:
    kind = WaveKind.parse(kind)
    if kind is WaveKind.SINE:
        return np.sin(phase)
    if kind is WaveKind.COSINE:
        return np.cos(phase)
    if kind is WaveKind.TRIANGLE:
        # clip guards asin against sin() overshooting 1.0 by an ulp
        return (2.0 / math.pi) * np.arcsin(np.clip(np.sin(phase), -1.0, 1.0))
    if kind is WaveKind.SQUARE:
        f = wrap(phase, TWO_PI) / TWO_PI
        return np.where(f < duty, 1.0, -1.0) if isinstance(f, np.ndarray) else (1.0 if f < duty else -1.0)
    return primary_sample_hold(phase)


def secondary_modulation(t: ArrayLike, layer: "Layer") -> ArrayLike:
    """Non-negative stepwise offset; one held value per 1/sh2_freq of t."""
    if not layer.sh2_enabled:
        return 0.0
    idx = np.floor(t * layer.sh2_freq)
    return pseudo_random_hash(idx + 1.2345) * layer.sh2_amp


# ---------------------------- Radius sampler --------------------------------

def polygon_radius(radius: ArrayLike, sides: int, angle: ArrayLike) -> ArrayLike:
    """Straight-edged polygon in polar form; edge midpoints sit at multiples of 2*pi/sides."""
    n = max(1, int(sides))
    half = math.pi / n
    sector = TWO_PI / n
    phi = wrap(angle + half, sector) - half
    c = np.cos(phi)
    c = np.where(np.abs(c) < 1e-6, np.where(c < 0, -1e-6, 1e-6), c)
    apothem = radius * math.cos(half)
    out = apothem / c
    return out if isinstance(out, np.ndarray) and out.ndim else float(out)


def spike_radius(radius: ArrayLike, angle: ArrayLike, spike_count: int) -> ArrayLike:
    spikes = max(MIN_SPIKES, int(spike_count))
    spike = np.abs(np.sin(angle * spikes)) ** SPIKE_EXPONENT
    return radius + radius * SPIKE_AMPLITUDE * spike


def base_radius(
    kind: Union[str, ShapeKind],
    radius: ArrayLike,
    sides: int,
    angle: ArrayLike,
    spike_count: int = 60,
) -> ArrayLike:
    """Boundary radius of ``kind`` at ``angle`` before any modulation.

    Circles and spirals return ``radius`` unchanged; spiral geometry is laid
    out by the engine itself.
    """
    kind = ShapeKind.parse(kind)
    if kind is ShapeKind.POLYGON:
        return polygon_radius(radius, sides, angle)
    if kind is ShapeKind.RADIATING_LINES:
        return spike_radius(radius, angle, spike_count)
    return radius
