"""
High-level render API.

Geometry is computed once per render into a command list and replayed onto
each target, so the PNG preview and the SVG export can never drift apart.

>>> from wavelab import DocumentState, Layer, export
>>> doc = DocumentState(layers=(Layer(count=24, freq=12, amp_start=40),))
>>> export(doc, "pattern.svg")
'pattern.svg'
"""

import logging
import os
from typing import List, Optional, Sequence

from .engine import draw_document
from .model import DocumentState, RenderContext
from .raster import RasterSink
from .sinks import Command, CommandRecorder, DrawingSink, replay
from .vector import SvgSink

logger = logging.getLogger(__name__)

EXPORT_FORMATS = (".svg", ".png")


def build_commands(doc: DocumentState, ctx: Optional[RenderContext] = None) -> List[Command]:
    """Run the engine once and return the recorded command stream."""
    ctx = ctx or RenderContext.for_document(doc)
    recorder = CommandRecorder()
    draw_document(recorder, doc, ctx)
    logger.debug("Built %d commands for %d layer(s)", len(recorder.commands), len(doc.layers))
    return recorder.commands


def render_to(doc: DocumentState, sinks: Sequence[DrawingSink],
              ctx: Optional[RenderContext] = None) -> List[Command]:
    """Compute geometry once and drive every sink with the identical sequence."""
    commands = build_commands(doc, ctx)
    for sink in sinks:
        replay(commands, sink)
    return commands


def render_image(doc: DocumentState, supersample: int = 2, ctx: Optional[RenderContext] = None):
    """Rasterize to a ``PIL.Image`` (RGBA) at the document's canvas size."""
    ctx = ctx or RenderContext.for_document(doc)
    sink = RasterSink(ctx.width, ctx.height, supersample=supersample)
    render_to(doc, [sink], ctx)
    return sink.to_image()


def render_png(doc: DocumentState, out_path: str, supersample: int = 2,
               ctx: Optional[RenderContext] = None) -> str:
    ctx = ctx or RenderContext.for_document(doc)
    sink = RasterSink(ctx.width, ctx.height, supersample=supersample)
    render_to(doc, [sink], ctx)
    return sink.save(out_path)


def render_svg(doc: DocumentState, out_path: str, ctx: Optional[RenderContext] = None) -> str:
    ctx = ctx or RenderContext.for_document(doc)
    sink = SvgSink(ctx.width, ctx.height, filename=out_path)
    render_to(doc, [sink], ctx)
    return sink.save(out_path)


def export(doc: DocumentState, out_path: str, supersample: int = 2,
           ctx: Optional[RenderContext] = None) -> str:
    """Write ``out_path`` as SVG or PNG depending on its extension."""
    ext = os.path.splitext(out_path)[1].lower()
    if ext == ".svg":
        return render_svg(doc, out_path, ctx)
    if ext == ".png":
        return render_png(doc, out_path, supersample, ctx)
    raise ValueError(f"Unsupported output format {ext or out_path!r}. Choose from {list(EXPORT_FORMATS)}")
