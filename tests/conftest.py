"""
Shared fixtures and helpers for the wavelab test suite.
"""

from typing import List, Tuple

import pytest

from wavelab.model import DocumentState, Layer, RenderContext
from wavelab.sinks import BeginPath, ClosePath, Vertex


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

@pytest.fixture
def default_layer():
    """Stock layer: 12 sine-modulated circles from r=60 to r=220."""
    return Layer()


@pytest.fixture
def default_doc(default_layer):
    return DocumentState(layers=(default_layer,))


@pytest.fixture
def ctx():
    return RenderContext()


# ---------------------------------------------------------------------------
# Command stream helpers
# ---------------------------------------------------------------------------

def of_type(commands, cls) -> list:
    return [c for c in commands if isinstance(c, cls)]


def split_paths(commands) -> List[Tuple[List[Tuple[float, float]], bool]]:
    """Group BeginPath ... ClosePath runs into (points, closed) pairs."""
    paths = []
    current = None
    for cmd in commands:
        if isinstance(cmd, BeginPath):
            current = []
        elif isinstance(cmd, Vertex):
            current.append((cmd.x, cmd.y))
        elif isinstance(cmd, ClosePath):
            paths.append((current, cmd.closed))
            current = None
    return paths
