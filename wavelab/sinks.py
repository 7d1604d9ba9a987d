"""
Drawing sinks and the recorded command stream.

The geometry engine draws onto a ``DrawingSink``. During a render it draws onto
a ``CommandRecorder``; the recorded list is then replayed onto any number of
concrete sinks (``RasterSink`` for PNG preview, ``SvgSink`` for vector export),
so every target receives exactly the same calls.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

RGBA = Tuple[int, int, int, int]


class DrawingSink(ABC):
    """Path-building primitives plus a push/pop affine transform stack.

    Transforms compose like a 2D canvas: each call post-multiplies the
    current matrix, so the last transform issued applies to points first.
    """

    @abstractmethod
    def background(self, color: RGBA) -> None: ...

    @abstractmethod
    def push(self) -> None: ...

    @abstractmethod
    def pop(self) -> None: ...

    @abstractmethod
    def translate(self, x: float, y: float) -> None: ...

    @abstractmethod
    def rotate(self, angle: float) -> None:
        """Rotate by ``angle`` radians."""

    @abstractmethod
    def scale(self, s: float) -> None: ...

    @abstractmethod
    def stroke_color(self, color: RGBA) -> None: ...

    @abstractmethod
    def fill_color(self, color: Optional[RGBA]) -> None:
        """``None`` disables filling."""

    @abstractmethod
    def stroke_width(self, w: float) -> None: ...

    @abstractmethod
    def begin_path(self) -> None: ...

    @abstractmethod
    def vertex(self, x: float, y: float) -> None: ...

    @abstractmethod
    def close_path(self, closed: bool) -> None:
        """End the current path; ``closed`` joins the last vertex to the first."""

    @abstractmethod
    def line(self, x1: float, y1: float, x2: float, y2: float) -> None: ...


# ---------------------------- Commands --------------------------------------

@dataclass(frozen=True, slots=True)
class Background:
    color: RGBA

    def apply(self, sink: DrawingSink) -> None:
        sink.background(self.color)


@dataclass(frozen=True, slots=True)
class Push:
    def apply(self, sink: DrawingSink) -> None:
        sink.push()


@dataclass(frozen=True, slots=True)
class Pop:
    def apply(self, sink: DrawingSink) -> None:
        sink.pop()


@dataclass(frozen=True, slots=True)
class Translate:
    x: float
    y: float

    def apply(self, sink: DrawingSink) -> None:
        sink.translate(self.x, self.y)


@dataclass(frozen=True, slots=True)
class Rotate:
    angle: float

    def apply(self, sink: DrawingSink) -> None:
        sink.rotate(self.angle)


@dataclass(frozen=True, slots=True)
class Scale:
    s: float

    def apply(self, sink: DrawingSink) -> None:
        sink.scale(self.s)


@dataclass(frozen=True, slots=True)
class StrokeColor:
    color: RGBA

    def apply(self, sink: DrawingSink) -> None:
        sink.stroke_color(self.color)


@dataclass(frozen=True, slots=True)
class FillColor:
    color: Optional[RGBA]

    def apply(self, sink: DrawingSink) -> None:
        sink.fill_color(self.color)


@dataclass(frozen=True, slots=True)
class StrokeWidth:
    w: float

    def apply(self, sink: DrawingSink) -> None:
        sink.stroke_width(self.w)


@dataclass(frozen=True, slots=True)
class BeginPath:
    def apply(self, sink: DrawingSink) -> None:
        sink.begin_path()


@dataclass(frozen=True, slots=True)
class Vertex:
    x: float
    y: float

    def apply(self, sink: DrawingSink) -> None:
        sink.vertex(self.x, self.y)


@dataclass(frozen=True, slots=True)
class ClosePath:
    closed: bool

    def apply(self, sink: DrawingSink) -> None:
        sink.close_path(self.closed)


@dataclass(frozen=True, slots=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float

    def apply(self, sink: DrawingSink) -> None:
        sink.line(self.x1, self.y1, self.x2, self.y2)


Command = Union[
    Background, Push, Pop, Translate, Rotate, Scale, StrokeColor, FillColor,
    StrokeWidth, BeginPath, Vertex, ClosePath, Line,
]


class CommandRecorder(DrawingSink):
    """Sink that stores every call as a ``Command`` for later replay."""

    def __init__(self):
        self.commands: List[Command] = []

    def background(self, color):
        self.commands.append(Background(tuple(color)))

    def push(self):
        self.commands.append(Push())

    def pop(self):
        self.commands.append(Pop())

    def translate(self, x, y):
        self.commands.append(Translate(float(x), float(y)))

    def rotate(self, angle):
        self.commands.append(Rotate(float(angle)))

    def scale(self, s):
        self.commands.append(Scale(float(s)))

    def stroke_color(self, color):
        self.commands.append(StrokeColor(tuple(color)))

    def fill_color(self, color):
        self.commands.append(FillColor(tuple(color) if color is not None else None))

    def stroke_width(self, w):
        self.commands.append(StrokeWidth(float(w)))

    def begin_path(self):
        self.commands.append(BeginPath())

    def vertex(self, x, y):
        self.commands.append(Vertex(float(x), float(y)))

    def close_path(self, closed):
        self.commands.append(ClosePath(bool(closed)))

    def line(self, x1, y1, x2, y2):
        self.commands.append(Line(float(x1), float(y1), float(x2), float(y2)))


def replay(commands: Iterable[Command], sink: DrawingSink) -> DrawingSink:
    for cmd in commands:
        cmd.apply(sink)
    return sink
