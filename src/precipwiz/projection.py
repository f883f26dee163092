from __future__ import annotations

import numpy as np
from pyproj import Transformer

from .config import HEIGHT, PROJECTION_SCALE, WIDTH

# Natural Earth I on the unit sphere; screen coordinates are scale * (x, -y) + translate.
_LONLAT = "+proj=longlat +R=1 +no_defs"
_NATEARTH = "+proj=natearth +R=1 +no_defs"


class NaturalEarth:
    def __init__(self, scale: float = PROJECTION_SCALE, translate: tuple[float, float] = (WIDTH / 2, HEIGHT / 2)):
        self.scale = float(scale)
        self.translate = (float(translate[0]), float(translate[1]))
        self._tr = Transformer.from_crs(_LONLAT, _NATEARTH, always_xy=True)

    @classmethod
    def fit_default(cls, width: int = WIDTH, height: int = HEIGHT) -> "NaturalEarth":
        return cls(scale=width / 6.2, translate=(width / 2, height / 2))

    def project_many(self, lons, lats) -> tuple[np.ndarray, np.ndarray]:
        """Vectorized projection; points that can't be projected come back as NaN."""
        lons = np.asarray(lons, dtype=float)
        lats = np.asarray(lats, dtype=float)
        x, y = self._tr.transform(lons, lats, errcheck=False)
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        bad = ~(np.isfinite(x) & np.isfinite(y)) | (np.abs(lats) > 90)
        sx = self.translate[0] + self.scale * x
        sy = self.translate[1] - self.scale * y
        sx[bad] = np.nan
        sy[bad] = np.nan
        return sx, sy

    def project(self, lon: float, lat: float) -> tuple[float, float] | None:
        x, y = self.project_many([lon], [lat])
        if not (np.isfinite(x[0]) and np.isfinite(y[0])):
            return None
        return float(x[0]), float(y[0])

    def __call__(self, lon: float, lat: float) -> tuple[float, float] | None:
        return self.project(lon, lat)
