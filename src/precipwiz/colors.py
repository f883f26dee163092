from __future__ import annotations

import matplotlib
import numpy as np

from .errors import DataLoadError


def extent(values) -> tuple[float, float]:
    v = np.asarray(values, dtype=float)
    v = v[np.isfinite(v)]
    if not v.size:
        raise DataLoadError(None, "no finite precipitation values")
    return float(v.min()), float(v.max())


def clamped_domain(values, quantiles: tuple[float, float] | None) -> tuple[float, float]:
    """Colour domain with outliers clamped to the given quantiles (None = full extent)."""
    if quantiles is None:
        return extent(values)
    v = np.asarray(values, dtype=float)
    v = v[np.isfinite(v)]
    if not v.size:
        raise DataLoadError(None, "no finite precipitation values")
    lo, hi = np.quantile(v, quantiles)
    return float(lo), float(hi)


def bytes_hex(rgba) -> str:
    return "#{:02x}{:02x}{:02x}".format(int(rgba[0]), int(rgba[1]), int(rgba[2]))


class SequentialScale:
    """Maps values onto a colormap like a d3 sequential scale: domain ends map to 0 and 1."""

    def __init__(self, domain: tuple[float, float], cmap: str = "turbo"):
        self.domain = (float(domain[0]), float(domain[1]))
        self.cmap = matplotlib.colormaps[cmap]

    def t(self, values):
        d0, d1 = self.domain
        k = 0.0 if d1 == d0 else 1.0 / (d1 - d0)
        return np.clip((np.asarray(values, dtype=float) - d0) * k, 0.0, 1.0)

    def rgba_bytes(self, values) -> np.ndarray:
        return self.cmap(self.t(values), bytes=True)

    def hex(self, value: float) -> str:
        return bytes_hex(self.rgba_bytes([value])[0])

    def __call__(self, value: float) -> str:
        return self.hex(value)

    def stops(self, n: int = 10) -> list[tuple[float, str]]:
        """n+1 evenly spaced (offset %, colour) pairs across the domain."""
        d0, d1 = self.domain
        return [(i / n * 100.0, self.hex(d0 + i / n * (d1 - d0))) for i in range(n + 1)]
