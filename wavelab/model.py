"""
Document model: layers, the document snapshot, and the render context.

A ``Layer`` is the unit of configuration. A ``DocumentState`` is an immutable
snapshot of the ordered layer list plus the document-wide settings; the
control panel produces new snapshots through the ``*_layer`` helpers below
and the engine only ever reads them.

Documents round-trip through JSON (``load_document`` / ``save_document``).
"""

import copy
import dataclasses
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .noise import DEFAULT_SEED, CoherentNoise
from .shapes import ShapeKind, WaveKind, clamp

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]
ColorLike = Union[str, Sequence[int]]

BASE_WIDTH = 700
BASE_HEIGHT = 830
DEFAULT_BACKGROUND: RGBA = (20, 20, 20, 255)
DISTRIBUTION_RANGE = (-3.0, 3.0)
CANVAS_SCALE_RANGE = (0.5, 1.5)


# ---------------------------- Colors ----------------------------------------

def hex_to_rgba(hex_color: str) -> RGBA:
    """Convert '#RRGGBB', '#RRGGBBAA' or shorthand '#RGB' to (r, g, b, a)."""
    h = hex_color.strip().lstrip("#")
    if len(h) == 3:
        h = "".join(c*2 for c in h)
    if len(h) == 6:
        h += "ff"
    if len(h) != 8:
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    try:
        return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), int(h[6:8], 16))
    except ValueError:
        raise ValueError(f"Invalid hex color: {hex_color!r}") from None


def parse_color(value: ColorLike) -> RGBA:
    """Hex string or [r, g, b(, a)] -> RGBA tuple with channels clamped to 0..255."""
    if isinstance(value, str):
        return hex_to_rgba(value)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Invalid color: {value!r}")
    try:
        channels = [int(c) for c in value]
    except (TypeError, ValueError):
        raise ValueError(f"Invalid color: {value!r}") from None
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4:
        raise ValueError(f"Color needs 3 or 4 channels, got {value!r}")
    r, g, b, a = (int(clamp(c, 0, 255)) for c in channels)
    return (r, g, b, a)


def rgba_to_hex(color: RGBA) -> str:
    r, g, b, a = color
    if a == 255:
        return f"#{r:02x}{g:02x}{b:02x}"
    return f"#{r:02x}{g:02x}{b:02x}{a:02x}"


# ---------------------------- Layer -----------------------------------------

@dataclass
class Layer:
    name: str = "Layer 1"

    # colors
    color: RGBA = (255, 255, 255, 255)       # stroke
    fill_color: RGBA = (255, 255, 255, 255)
    solid_fill: bool = False

    # geometry / morph
    start_r: float = 60.0
    end_r: float = 220.0
    start_shape: ShapeKind = ShapeKind.CIRCLE
    end_shape: ShapeKind = ShapeKind.CIRCLE
    sides_start: int = 6
    sides_end: int = 6

    # primary modulation
    freq: int = 8
    amp_start: float = 30.0
    amp_end: float = 0.0
    wave: WaveKind = WaveKind.SINE
    duty: float = 0.5

    # secondary sample & hold
    sh2_enabled: bool = False
    sh2_freq: float = 8.0
    sh2_amp: float = 20.0

    # repetition
    count: int = 12
    rot_offset_deg: float = 0.0
    global_rot_deg: float = 0.0

    line_w_start: float = 2.0
    line_w_end: float = 2.0

    # erosion (noise masking)
    erosion_enabled: bool = False
    erosion_scale: float = 2.0
    erosion_threshold: float = 0.5
    erosion_decay: float = 0.5

    # fibonacci
    fibonacci_reversed: bool = False
    spiral_turns: int = 4

    # circular array
    circular_array: bool = False
    array_scale_start: Optional[float] = 100.0
    array_scale_end: Optional[float] = 100.0
    radial_spread: float = 0.0

    def __post_init__(self):
        self.start_shape = ShapeKind.parse(self.start_shape)
        self.end_shape = ShapeKind.parse(self.end_shape)
        self.wave = WaveKind.parse(self.wave)
        self.color = parse_color(self.color)
        self.fill_color = parse_color(self.fill_color)

    def copy(self, **changes) -> "Layer":
        return dataclasses.replace(copy.deepcopy(self), **changes)

    def to_dict(self) -> Dict[str, Any]:
        d = dataclasses.asdict(self)
        d["color"] = rgba_to_hex(self.color)
        d["fill_color"] = rgba_to_hex(self.fill_color)
        d["start_shape"] = self.start_shape.value
        d["end_shape"] = self.end_shape.value
        d["wave"] = self.wave.value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Layer":
        if not isinstance(data, dict):
            raise ValueError(f"Layer entry must be an object, got {type(data).__name__}")
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown layer keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})


def max_layer_radius(layers: Sequence[Layer]) -> float:
    """Largest start/end radius across the composition (at least 1)."""
    m = 1.0
    for layer in layers:
        m = max(m, layer.start_r, layer.end_r)
    return m


# ---------------------------- Control-panel ranges --------------------------

def rotation_range(layer: Layer) -> Tuple[float, float]:
    """Allowed per-instance rotation offset (degrees) for the layer's shapes."""
    start_poly = layer.start_shape is ShapeKind.POLYGON
    end_poly = layer.end_shape is ShapeKind.POLYGON
    if start_poly and end_poly:
        n = max(1, min(layer.sides_start, layer.sides_end))
    elif end_poly:
        n = max(1, layer.sides_end)
    elif start_poly:
        n = max(1, layer.sides_start)
    else:
        return (-30.0, 30.0)
    return (0.0, 180.0 / n)


def effective_frequency(layer: Layer) -> int:
    """Visible lobes per turn; polygons repeat the waveform once per side."""
    if ShapeKind.POLYGON in (layer.start_shape, layer.end_shape):
        return layer.freq * max(layer.sides_start, layer.sides_end)
    return layer.freq


def clamp_layer(layer: Layer) -> Layer:
    """Return a copy with every parameter pulled into its control-panel range."""
    out = layer.copy(
        start_r=clamp(layer.start_r, 10, 300),
        end_r=clamp(layer.end_r, 10, 400),
        sides_start=int(clamp(int(layer.sides_start), 3, 48)),
        sides_end=int(clamp(int(layer.sides_end), 3, 48)),
        freq=int(clamp(round(layer.freq), 0, 96)),
        amp_start=clamp(layer.amp_start, 0, 240),
        amp_end=clamp(layer.amp_end, 0, 240),
        duty=clamp(layer.duty, 0.01, 0.99),
        sh2_freq=clamp(layer.sh2_freq, 0.1, 60),
        sh2_amp=clamp(layer.sh2_amp, 0, 200),
        count=int(clamp(int(layer.count), 1, 120)),
        global_rot_deg=clamp(layer.global_rot_deg, -180, 180),
        line_w_start=clamp(layer.line_w_start, 0.1, 100),
        line_w_end=clamp(layer.line_w_end, 0.1, 100),
        erosion_scale=clamp(layer.erosion_scale, 0.3, 10),
        erosion_threshold=clamp(layer.erosion_threshold, 0.36, 1),
        erosion_decay=clamp(layer.erosion_decay, 0, 1),
        spiral_turns=int(clamp(int(layer.spiral_turns), 1, 12)),
        array_scale_start=clamp(layer.array_scale_start or 100.0, 1, 400),
        array_scale_end=clamp(layer.array_scale_end or 100.0, 1, 400),
        radial_spread=clamp(layer.radial_spread, 0, 1),
    )
    lo, hi = rotation_range(out)
    out.rot_offset_deg = clamp(layer.rot_offset_deg, lo, hi)
    return out


# ---------------------------- Document --------------------------------------

@dataclass(frozen=True)
class DocumentState:
    """Immutable per-render snapshot of everything the engine reads."""
    layers: Tuple[Layer, ...] = field(default_factory=lambda: (Layer(),))
    distribution: float = 0.0
    canvas_scale_x: float = 1.0
    canvas_scale_y: float = 1.0
    background: RGBA = DEFAULT_BACKGROUND

    def __post_init__(self):
        layers = tuple(self.layers)
        if not layers:
            raise ValueError("A document needs at least one layer")
        object.__setattr__(self, "layers", layers)
        object.__setattr__(self, "distribution", clamp(float(self.distribution), *DISTRIBUTION_RANGE))
        object.__setattr__(self, "canvas_scale_x", clamp(float(self.canvas_scale_x), *CANVAS_SCALE_RANGE))
        object.__setattr__(self, "canvas_scale_y", clamp(float(self.canvas_scale_y), *CANVAS_SCALE_RANGE))
        object.__setattr__(self, "background", parse_color(self.background))

    @property
    def size(self) -> Tuple[int, int]:
        return (round(BASE_WIDTH * self.canvas_scale_x), round(BASE_HEIGHT * self.canvas_scale_y))

    def replace(self, **changes) -> "DocumentState":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distribution": self.distribution,
            "canvas_scale_x": self.canvas_scale_x,
            "canvas_scale_y": self.canvas_scale_y,
            "background": rgba_to_hex(self.background),
            "layers": [layer.to_dict() for layer in self.layers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentState":
        if not isinstance(data, dict):
            raise ValueError("Document JSON must be an object")
        raw_layers = data.get("layers", [{}])
        if not isinstance(raw_layers, list):
            raise ValueError("'layers' must be a list of layer objects")
        return cls(
            layers=tuple(Layer.from_dict(item) for item in raw_layers),
            distribution=data.get("distribution", 0.0),
            canvas_scale_x=data.get("canvas_scale_x", 1.0),
            canvas_scale_y=data.get("canvas_scale_y", 1.0),
            background=data.get("background", DEFAULT_BACKGROUND),
        )


def load_document(path: str) -> DocumentState:
    with open(path, "r", encoding="utf-8") as jf:
        data = json.load(jf)
    doc = DocumentState.from_dict(data)
    logger.info("Loaded %d layer(s) from %s", len(doc.layers), path)
    return doc


def save_document(doc: DocumentState, path: str) -> str:
    with open(path, "w", encoding="utf-8") as jf:
        json.dump(doc.to_dict(), jf, indent=2)
    logger.info("Saved document to %s", path)
    return path


# ---------------------------- Layer list operations -------------------------

def _check_index(doc: DocumentState, index: int) -> None:
    if not 0 <= index < len(doc.layers):
        raise IndexError(f"Layer index {index} out of range (0..{len(doc.layers) - 1})")


def add_layer(doc: DocumentState, template: Optional[Layer] = None) -> DocumentState:
    """Append a new layer named 'Layer N'. ``template`` seeds its parameters."""
    name = f"Layer {len(doc.layers) + 1}"
    new = template.copy(name=name) if template is not None else Layer(name=name)
    return doc.replace(layers=doc.layers + (new,))


def unique_copy_name(base: str, taken: Sequence[str]) -> str:
    name = base + " copy"
    i = 2
    while name in taken:
        name = f"{base} copy {i}"
        i += 1
    return name


def duplicate_layer(doc: DocumentState, index: int) -> DocumentState:
    _check_index(doc, index)
    src = doc.layers[index]
    clone = src.copy(name=unique_copy_name(src.name or "Layer", [l.name for l in doc.layers]))
    return doc.replace(layers=doc.layers + (clone,))


def delete_layer(doc: DocumentState, index: int) -> Tuple[DocumentState, int]:
    """Remove a layer; the last remaining layer is never deleted.

    Returns the new document and the index that should be selected next.
    """
    _check_index(doc, index)
    if len(doc.layers) <= 1:
        return doc, 0
    layers = doc.layers[:index] + doc.layers[index + 1:]
    selected = int(clamp(index - 1, 0, len(layers) - 1))
    return doc.replace(layers=layers), selected


def move_layer(doc: DocumentState, src: int, dst: int) -> DocumentState:
    _check_index(doc, src)
    layers: List[Layer] = list(doc.layers)
    layer = layers.pop(src)
    dst = int(clamp(dst, 0, len(layers)))
    layers.insert(dst, layer)
    return doc.replace(layers=tuple(layers))


def reset_layer(doc: DocumentState, index: int) -> DocumentState:
    """Restore defaults but keep the layer's name and both colors."""
    _check_index(doc, index)
    cur = doc.layers[index]
    fresh = Layer(name=cur.name, color=cur.color, fill_color=cur.fill_color)
    layers = doc.layers[:index] + (fresh,) + doc.layers[index + 1:]
    return doc.replace(layers=layers)


def update_layer(doc: DocumentState, index: int, **changes) -> DocumentState:
    """Snapshot with one layer's parameters changed (what a slider edit produces)."""
    _check_index(doc, index)
    layers = list(doc.layers)
    layers[index] = layers[index].copy(**changes)
    return doc.replace(layers=tuple(layers))


# ---------------------------- Render context --------------------------------

class RenderContext:
    """Noise generator and canvas size shared by one or more render passes."""

    def __init__(self, width: int = BASE_WIDTH, height: int = BASE_HEIGHT, seed: int = DEFAULT_SEED):
        self.width = int(width)
        self.height = int(height)
        self.noise = CoherentNoise(seed)

    @classmethod
    def for_document(cls, doc: DocumentState, seed: int = DEFAULT_SEED) -> "RenderContext":
        w, h = doc.size
        return cls(w, h, seed)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2, self.height / 2)

    def reseed(self, seed: int = DEFAULT_SEED) -> None:
        self.noise.reseed(seed)

    def __repr__(self) -> str:
        return f"RenderContext({self.width}x{self.height}, seed={self.noise.seed})"
