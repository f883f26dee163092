from __future__ import annotations

import base64
import io
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
from PIL import Image

from .colors import SequentialScale, bytes_hex
from .config import CELL_SIZE, HEIGHT, WIDTH
from .data import Grid
from .projection import NaturalEarth

BACKGROUND = (255, 255, 255, 255)


@dataclass(frozen=True)
class Cell:
    x: int          # top-left corner, CSS px
    y: int
    size: int
    lat: float
    lon: float
    value: float
    color: str

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px < self.x + self.size and self.y <= py < self.y + self.size


@dataclass
class Raster:
    width: int
    height: int
    pixel_ratio: float
    rgba: np.ndarray                 # (round(height*ratio), round(width*ratio), 4) uint8
    cells: List[Cell] = field(default_factory=list)

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        Image.fromarray(self.rgba).save(buf, format="PNG", optimize=True)
        return buf.getvalue()

    def to_data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.to_png()).decode("ascii")


def rasterize(grid: Grid, projection: NaturalEarth, scale: SequentialScale,
              width: int = WIDTH, height: int = HEIGHT, pixel_ratio: float = 1.0,
              cell_size: int = CELL_SIZE) -> Raster:
    """
    Paint one square per present grid cell on a white canvas.

    Squares are anchored at the floored projected cell position and drawn north to
    south, west to east, so later cells cover earlier ones where they overlap.
    The backing array is ``pixel_ratio`` times larger for high-DPI screens; cell
    geometry stays in CSS pixels.
    """
    if pixel_ratio <= 0:
        raise ValueError(f"pixel_ratio must be positive, got {pixel_ratio}")
    dev_w, dev_h = int(round(width * pixel_ratio)), int(round(height * pixel_ratio))
    rgba = np.empty((dev_h, dev_w, 4), dtype=np.uint8)
    rgba[:] = BACKGROUND

    cells = list(grid.cells())
    raster = Raster(width=width, height=height, pixel_ratio=pixel_ratio, rgba=rgba)
    if not cells:
        return raster

    lats, lons, vals = np.asarray(cells, dtype=float).T
    xs, ys = projection.project_many(lons, lats)
    colors = scale.rgba_bytes(vals)

    for k in range(len(cells)):
        if not (math.isfinite(xs[k]) and math.isfinite(ys[k])):
            continue
        x0, y0 = math.floor(xs[k]), math.floor(ys[k])
        c = colors[k]
        raster.cells.append(Cell(x=x0, y=y0, size=cell_size, lat=lats[k], lon=lons[k], value=vals[k],
                                 color=bytes_hex(c)))
        r0, r1 = _span(y0, cell_size, pixel_ratio, dev_h)
        c0, c1 = _span(x0, cell_size, pixel_ratio, dev_w)
        if r0 < r1 and c0 < c1:
            rgba[r0:r1, c0:c1] = c
    return raster


def _span(start: int, size: int, ratio: float, limit: int) -> tuple[int, int]:
    a = int(round(start * ratio))
    b = int(round((start + size) * ratio))
    return max(a, 0), min(b, limit)


def probe(cells: Sequence[Cell], x: float, y: float) -> Optional[Cell]:
    """The visible (last painted) cell under screen point (x, y), if any."""
    for cell in reversed(cells):
        if cell.contains(x, y):
            return cell
    return None
