"""
Deterministic noise sources.

Two generators drive everything "random" in a render:

- ``pseudo_random_hash`` - a stateless hash of a real-valued seed into [0, 1).
  Used for sample-and-hold modulation so that a bin index always maps to the
  same value, no matter which render target asks for it.
- ``CoherentNoise`` - smooth 2D value noise (the classic multi-octave lattice
  noise used by creative-coding toolkits). Seeded once with ``DEFAULT_SEED``;
  calling ``reseed`` with the same value reproduces identical output.

Both accept scalars or NumPy arrays.
"""

import logging
from typing import Union

import numpy as np

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]

DEFAULT_SEED = 42
HASH_CONST = 43758.5453

# Lattice layout: 4096 cells, y wraps every 16 cells, z every 256.
PERLIN_YWRAPB = 4
PERLIN_YWRAP = 1 << PERLIN_YWRAPB
PERLIN_ZWRAPB = 8
PERLIN_ZWRAP = 1 << PERLIN_ZWRAPB
PERLIN_SIZE = 4095

# Lattice fill: 32-bit linear congruential generator (Numerical Recipes constants).
LCG_M = 1 << 32
LCG_A = 1664525
LCG_C = 1013904223


def fract(x: ArrayLike) -> ArrayLike:
    return x - np.floor(x)


def pseudo_random_hash(seed: ArrayLike) -> ArrayLike:
    """fract(sin(seed) * 43758.5453). Pure; no hidden state."""
    return fract(np.sin(seed) * HASH_CONST)


def lcg_lattice(seed: int, size: int) -> np.ndarray:
    """``size`` values in [0, 1) from the LCG started at ``seed`` (taken mod 2**32)."""
    z = int(seed) % LCG_M
    values = np.empty(size)
    for i in range(size):
        z = (LCG_A * z + LCG_C) % LCG_M
        values[i] = z / LCG_M
    return values


def _scaled_cosine(i: np.ndarray) -> np.ndarray:
    return 0.5 * (1.0 - np.cos(i * np.pi))


class CoherentNoise:
    """Multi-octave 2D lattice noise with a reproducible seed.

    Output lies in [0, 1). Negative coordinates are mirrored, so
    ``noise2d(-x, y) == noise2d(x, y)``.
    """

    def __init__(self, seed: int = DEFAULT_SEED, octaves: int = 4, falloff: float = 0.5):
        self.octaves = max(1, int(octaves))
        self.falloff = float(falloff)
        self.seed = seed
        self._lattice = np.zeros(PERLIN_SIZE + 1)
        self.reseed(seed)

    def reseed(self, seed: int) -> None:
        """Rebuild the lattice. The same seed always yields the same lattice."""
        self.seed = int(seed)
        self._lattice = lcg_lattice(self.seed, PERLIN_SIZE + 1)
        logger.debug("Noise lattice seeded with %d", self.seed)

    def __call__(self, x: ArrayLike, y: ArrayLike) -> ArrayLike:
        return self.noise2d(x, y)

    def noise2d(self, x: ArrayLike, y: ArrayLike) -> ArrayLike:
        scalar = np.isscalar(x) and np.isscalar(y)
        x = np.abs(np.asarray(x, dtype=float))
        y = np.abs(np.asarray(y, dtype=float))
        x, y = np.broadcast_arrays(x, y)

        xi = np.floor(x).astype(np.int64)
        yi = np.floor(y).astype(np.int64)
        xf = x - xi
        yf = y - yi

        lattice = self._lattice
        r = np.zeros_like(xf)
        ampl = 0.5
        for _ in range(self.octaves):
            of = xi + (yi << PERLIN_YWRAPB)
            rxf = _scaled_cosine(xf)
            ryf = _scaled_cosine(yf)

            n1 = lattice[of & PERLIN_SIZE]
            n1 = n1 + rxf * (lattice[(of + 1) & PERLIN_SIZE] - n1)
            n2 = lattice[(of + PERLIN_YWRAP) & PERLIN_SIZE]
            n2 = n2 + rxf * (lattice[(of + PERLIN_YWRAP + 1) & PERLIN_SIZE] - n2)
            n1 = n1 + ryf * (n2 - n1)

            r = r + n1 * ampl
            ampl *= self.falloff

            xi = xi << 1
            xf = xf * 2
            yi = yi << 1
            yf = yf * 2
            # carry the fractional overflow into the integer lattice index
            x_over = xf >= 1.0
            xi = xi + x_over
            xf = xf - x_over
            y_over = yf >= 1.0
            yi = yi + y_over
            yf = yf - y_over

        if scalar:
            return float(r)
        return r
