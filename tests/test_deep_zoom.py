from itertools import islice
import math

import mpmath
import numpy as np
import pytest

from mandelview.config import ESCAPE_BOUND
from mandelview.deep_zoom import (
    DeepZoomPoint,
    OrbitBuffer,
    OrbitGenerator,
    mp_context,
    required_precision_bits,
)


@pytest.fixture
def generator():
    return OrbitGenerator(precision_bits=128)


def test_escaping_point_stops_early(generator):
    orbit = list(generator.generate(DeepZoomPoint.parse("2.0", "2.0", 128), 100))
    assert len(orbit) < 100
    re, im = orbit[-1]
    assert math.hypot(re, im) > ESCAPE_BOUND
    assert all(not generator.has_escaped(p) for p in orbit[:-1])


def test_escaping_orbit_values(generator):
    orbit = list(generator.generate(DeepZoomPoint.parse("2", "2", 128), 100))
    assert orbit[:3] == [(4.0, 4.0), (4.0, 20.0), (-188.0, 84.0)]
    assert len(orbit) == 4
    assert all(isinstance(v, np.float32) for p in orbit for v in p)


def test_bounded_point_runs_to_cap(generator):
    orbit = list(generator.generate(DeepZoomPoint.parse("0", "0", 128), 50))
    assert len(orbit) == 50
    assert all(p == (0.0, 0.0) for p in orbit)


def test_zero_cap_is_empty(generator):
    assert list(generator.generate(DeepZoomPoint.parse("2", "2", 128), 0)) == []


def test_generation_is_deterministic(generator):
    point = DeepZoomPoint.parse("-0.1", "0.65", 128)
    assert list(generator.generate(point, 200)) == list(generator.generate(point, 200))


def test_generation_is_lazy(generator):
    orbit = generator.generate(DeepZoomPoint.parse("0", "0", 128), 10**9)
    assert len(list(islice(orbit, 5))) == 5


def test_has_escaped_bound():
    generator = OrbitGenerator(escape_bound=10.0)
    assert not generator.has_escaped((10.0, -10.0))
    assert generator.has_escaped((0.0, -10.5))
    assert generator.has_escaped((float("inf"), 0.0))
    assert generator.has_escaped((float("nan"), 0.0))


def test_invalid_escape_bound():
    with pytest.raises(ValueError):
        OrbitGenerator(escape_bound=0)


def test_global_mpmath_precision_untouched():
    before = mpmath.mp.prec
    list(OrbitGenerator(precision_bits=256).generate(DeepZoomPoint.parse("-0.75", "0.1", 256), 10))
    assert mpmath.mp.prec == before


def test_parse_keeps_full_precision():
    point = DeepZoomPoint.parse("0.1", "0", 512)
    assert point.real != mp_context(512).mpf(0.1)
    assert point.as_floats() == (0.1, 0.0)


def test_shifted_keeps_tiny_offsets():
    point = DeepZoomPoint.parse("1", "0", 512).shifted(1e-100, 0.0)
    assert point.real - 1 != 0
    assert point.as_floats() == (1.0, 0.0)


def test_as_strings():
    re, im = DeepZoomPoint.parse("-0.75", "0.125", 128).as_strings(10)
    assert float(re) == -0.75
    assert float(im) == 0.125


def test_buffer_from_escaping_orbit(generator):
    orbit = generator.generate(DeepZoomPoint.parse("2", "2", 128), 100)
    buffer = OrbitBuffer.from_orbit(orbit, capacity=16)
    assert buffer.length == 4
    assert buffer.capacity == 16
    assert buffer.points.shape == (4, 2)
    assert buffer.points[1].tolist() == [4.0, 20.0]
    assert not buffer.data[4:].any()


def test_buffer_truncates_at_capacity(generator):
    orbit = generator.generate(DeepZoomPoint.parse("0", "0", 128), 100)
    buffer = OrbitBuffer.from_orbit(orbit, capacity=8)
    assert len(buffer) == 8


def test_buffer_is_read_only():
    buffer = OrbitBuffer.empty(4)
    assert buffer.length == 0
    with pytest.raises(ValueError):
        buffer.data[0] = (1.0, 1.0)


def test_required_precision_bits():
    assert required_precision_bits(1.0) == 64
    assert required_precision_bits(0.5) == 64
    assert required_precision_bits(2.0 ** 100) == 164
