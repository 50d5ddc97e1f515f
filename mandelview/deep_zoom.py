"""Reference orbit computation for deep zoom Mandelbrot rendering.

Uses mpmath for arbitrary precision to compute the reference orbit that the
renderer uses with perturbation theory for zooms beyond float limits.
"""

from dataclasses import dataclass
from functools import lru_cache
from itertools import islice
from typing import Iterable, Iterator
import logging
import math

import numpy as np

try:
    import mpmath
except ImportError:
    raise ImportError(
        "mpmath is required for deep zoom: pip install mpmath"
    )

from .config import ESCAPE_BOUND, ORBIT_CAPACITY, PRECISION_BITS

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Guard bits kept below the pixel spacing at any zoom level
GUARD_BITS = 64


@lru_cache(maxsize=None)
def mp_context(precision_bits: int) -> "mpmath.MPContext":
    """Private mpmath context per precision, so the global mpmath.mp is never touched."""
    if precision_bits <= 0:
        raise ValueError(f"precision_bits must be positive, got {precision_bits}")
    ctx = mpmath.MPContext()
    ctx.prec = precision_bits
    return ctx


def required_precision_bits(zoom: float) -> int:
    """Estimate the bits needed to resolve pixels at a given zoom scalar."""
    return int(math.ceil(math.log2(max(zoom, 1.0)))) + GUARD_BITS


@dataclass(frozen=True)
class DeepZoomPoint:
    """Centre of interest at full precision."""
    real: "mpmath.mpf"
    imag: "mpmath.mpf"
    precision_bits: int = PRECISION_BITS

    @classmethod
    def parse(cls, real: str, imag: str, precision_bits: int = PRECISION_BITS) -> "DeepZoomPoint":
        """Parse decimal strings (e.g. "-0.75") without going through floats."""
        ctx = mp_context(precision_bits)
        return cls(ctx.mpf(real), ctx.mpf(imag), precision_bits)

    def shifted(self, d_real: float, d_imag: float) -> "DeepZoomPoint":
        ctx = mp_context(self.precision_bits)
        return DeepZoomPoint(
            ctx.mpf(self.real) + ctx.mpf(d_real),
            ctx.mpf(self.imag) + ctx.mpf(d_imag),
            self.precision_bits,
        )

    def as_strings(self, digits: int = 30) -> tuple[str, str]:
        ctx = mp_context(self.precision_bits)
        return ctx.nstr(self.real, digits), ctx.nstr(self.imag, digits)

    def as_floats(self) -> tuple[float, float]:
        """Centre as float64 (loses precision at deep zooms)."""
        return float(self.real), float(self.imag)


class OrbitGenerator:
    """Computes arbitrary-precision reference orbits for perturbation rendering.

    The reference orbit Z_n is computed at a single point using arbitrary
    precision. The renderer then iterates per-pixel perturbations
    delta_n = z_n - Z_n, which stay small and representable in low precision.
    Points are emitted doubled (2 * Z_n) since the perturbation step only ever
    needs 2 * Z_n * delta_n.
    """

    def __init__(self, precision_bits: int = PRECISION_BITS, escape_bound: float = ESCAPE_BOUND):
        if escape_bound <= 0:
            raise ValueError(f"escape_bound must be positive, got {escape_bound}")
        self.precision_bits = precision_bits
        self.escape_bound = escape_bound
        self._ctx = mp_context(precision_bits)

    def has_escaped(self, point: tuple) -> bool:
        re, im = point
        if not (math.isfinite(re) and math.isfinite(im)):
            return True
        return abs(re) > self.escape_bound or abs(im) > self.escape_bound

    def generate(self, point: DeepZoomPoint, iteration_cap: int) -> Iterator[tuple[np.float32, np.float32]]:
        """Lazily yield the doubled orbit, narrowed to float32.

        Stops after the first escaped point (which is yielded) or after
        iteration_cap points.
        """
        ctx = self._ctx
        real0 = ctx.mpf(point.real)
        imag0 = ctx.mpf(point.imag)
        real, imag = real0, imag0

        for _ in range(max(iteration_cap, 0)):
            emitted = (np.float32(float(2 * real)), np.float32(float(2 * imag)))

            # Mandelbrot iteration: Z_{n+1} = Z_n^2 + C
            real, imag = real * real - imag * imag + real0, 2 * real * imag + imag0

            yield emitted
            if self.has_escaped(emitted):
                return


class OrbitBuffer:
    """Fixed-capacity float32 storage for an orbit plus its valid length.

    Entries past `length` are stale padding. The array is read-only: a new
    orbit always replaces the whole buffer.
    """

    def __init__(self, data: np.ndarray, length: int):
        data.setflags(write=False)
        self.data = data
        self.length = length

    @classmethod
    def empty(cls, capacity: int = ORBIT_CAPACITY) -> "OrbitBuffer":
        return cls(np.zeros((capacity, 2), dtype=np.float32), 0)

    @classmethod
    def from_orbit(cls, orbit: Iterable[tuple], capacity: int = ORBIT_CAPACITY) -> "OrbitBuffer":
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        data = np.zeros((capacity, 2), dtype=np.float32)
        length = 0
        for length, (re, im) in enumerate(islice(orbit, capacity), start=1):
            data[length - 1] = (re, im)
        return cls(data, length)

    @property
    def capacity(self) -> int:
        return self.data.shape[0]

    @property
    def points(self) -> np.ndarray:
        """The valid prefix of the buffer."""
        return self.data[:self.length]

    def __len__(self) -> int:
        return self.length
