"""
wavelab
=======

Layered generative patterns built from morphing, wave-modulated shapes.

Each layer repeats a shape from ``start_r`` to ``end_r`` while morphing between
two shape kinds (circle, polygon, radiating lines, fibonacci spiral),
modulating the outline with a waveform plus optional sample & hold noise, and
optionally eroding it with coherent noise. Layers stack in order.

Quick start
-----------
>>> from wavelab import DocumentState, Layer, export
>>> doc = DocumentState(layers=(
...     Layer(start_shape="multi-sided shapes", end_shape="concentric circles",
...           sides_start=5, count=30, freq=10, amp_start=25, amp_end=5),
... ))
>>> export(doc, "pattern.svg")
'pattern.svg'

See ``wavelab.cli`` for the command line.
"""

from .engine import DrawMode, ErosionFilter, draw_document, select_mode
from .model import (
    DocumentState, Layer, RenderContext, add_layer, clamp_layer, delete_layer,
    duplicate_layer, load_document, move_layer, reset_layer, save_document,
    update_layer,
)
from .noise import CoherentNoise, pseudo_random_hash
from .render import build_commands, export, render_image, render_png, render_svg, render_to
from .shapes import ShapeKind, WaveKind, apply_distribution, base_radius, secondary_modulation, waveform

__version__ = "0.1.0"
