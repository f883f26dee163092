"""
Unit tests for the Natural Earth projection and the sequential colour scale
"""

import math

import matplotlib
import numpy as np
import pytest

from precipwiz.colors import SequentialScale, clamped_domain, extent
from precipwiz.errors import DataLoadError
from precipwiz.projection import NaturalEarth


class TestNaturalEarth:
    """Geographic to screen coordinates on the 1300x700 page"""

    def test_origin_maps_to_centre(self):
        x, y = NaturalEarth.fit_default().project(0, 0)
        assert x == pytest.approx(650.0, abs=1e-6)
        assert y == pytest.approx(350.0, abs=1e-6)

    def test_equator_edge(self):
        """At the equator x is lon * 0.8707 scaled by width / 6.2"""
        x, y = NaturalEarth.fit_default().project(180, 0)
        assert x == pytest.approx(650 + 1300 / 6.2 * math.pi * 0.8707, abs=0.05)
        assert y == pytest.approx(350.0, abs=1e-6)

    def test_north_is_up_and_symmetric(self):
        p = NaturalEarth.fit_default()
        _, y_n = p(0, 45)
        _, y_s = p(0, -45)
        assert y_n < 350 < y_s
        assert y_n + y_s == pytest.approx(700.0, abs=1e-6)

    def test_out_of_range_latitude(self):
        assert NaturalEarth.fit_default().project(0, 95) is None

    def test_vectorized_nan(self):
        xs, ys = NaturalEarth.fit_default().project_many([0, np.nan], [0, 0])
        assert xs[0] == pytest.approx(650.0, abs=1e-6)
        assert np.isnan(xs[1]) and np.isnan(ys[1])


class TestDomain:
    """Colour domain from the data"""

    def test_extent_ignores_nan(self):
        assert extent([3, np.nan, 1, 7]) == (1.0, 7.0)

    def test_extent_empty(self):
        with pytest.raises(DataLoadError):
            extent([np.nan])

    def test_clamped_quantiles(self):
        values = np.arange(101, dtype=float)
        assert clamped_domain(values, (0.01, 0.99)) == pytest.approx((1.0, 99.0))

    def test_clamping_off(self):
        assert clamped_domain([5, 1, 1000], None) == (1.0, 1000.0)


class TestSequentialScale:
    """d3-style sequential mapping onto turbo"""

    def test_t_clamped(self):
        s = SequentialScale((0, 10))
        assert s.t([0, 5, 10, -5, 15]).tolist() == [0.0, 0.5, 1.0, 0.0, 1.0]

    def test_degenerate_domain(self):
        s = SequentialScale((4, 4))
        assert s.t([4, 100]).tolist() == [0.0, 0.0]

    def test_colours_match_turbo(self):
        turbo = matplotlib.colormaps["turbo"]
        s = SequentialScale((0, 10))
        lo = turbo(0.0, bytes=True)
        hi = turbo(1.0, bytes=True)
        assert s.hex(0) == "#{:02x}{:02x}{:02x}".format(*(int(v) for v in lo[:3]))
        assert s(10) == "#{:02x}{:02x}{:02x}".format(*(int(v) for v in hi[:3]))
        assert s.hex(0) != s.hex(10)

    def test_rgba_bytes(self):
        out = SequentialScale((0, 10)).rgba_bytes([0, 10])
        assert out.shape == (2, 4)
        assert out.dtype == np.uint8
        assert (out[:, 3] == 255).all()

    def test_stops(self):
        s = SequentialScale((0, 100))
        stops = s.stops(10)
        assert len(stops) == 11
        assert [off for off, _ in stops] == pytest.approx([i * 10.0 for i in range(11)])
        assert stops[0][1] == s.hex(0)
        assert stops[-1][1] == s.hex(100)
