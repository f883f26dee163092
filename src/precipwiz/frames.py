from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from .colors import SequentialScale, clamped_domain, extent
from .config import Settings, check_year
from .data import Grid, build_grid, load_year
from .errors import DataLoadError, PrecipWizError
from .logging_setup import get_logger
from .projection import NaturalEarth
from .raster import Cell, rasterize
from .render import compose_svg, error_svg, page_html
from .world import geometry_path, load_world

log = get_logger(__name__)

_borders: Dict[tuple, str] = {}
_borders_lock = threading.Lock()


@dataclass
class Frame:
    year: int
    svg: str
    html: str
    ok: bool = True
    rows: int = 0
    domain: Optional[tuple[float, float]] = None
    cells: List[Cell] = field(default_factory=list)
    error: Optional[str] = None

    def payload(self) -> Dict[str, Any]:
        """Plain-data summary for the page (picklable, safe to cache)."""
        return {"year": self.year, "ok": self.ok, "html": self.html, "rows": self.rows,
                "cells": len(self.cells), "domain": self.domain, "error": self.error}


def borders_path(settings: Settings, features: Optional[List[Dict[str, Any]]] = None) -> str:
    """Projected border outline; computed once per world source and canvas size."""
    key = (settings.world_url, settings.width, settings.height)
    with _borders_lock:
        if key in _borders:
            return _borders[key]
    if features is None:
        features = load_world(settings.world_url, settings.http_timeout)
    d = geometry_path(features, NaturalEarth.fit_default(settings.width, settings.height))
    with _borders_lock:
        _borders.setdefault(key, d)
        return _borders[key]


def year_grid(year: int, settings: Settings) -> tuple[Grid, np.ndarray]:
    """The year's grid plus the values of every CSV row, duplicates included."""
    df = load_year(check_year(year), settings.data_dir)
    grid = build_grid(df)
    if not len(grid):
        raise DataLoadError(year, "no finite precipitation values")
    return grid, df["pr"].to_numpy(dtype=float)


def build_frame(year: int, settings: Optional[Settings] = None,
                features: Optional[List[Dict[str, Any]]] = None) -> Frame:
    """
    Load, grid, rasterize and compose one year.

    Any failure along the way is logged and turned into an error frame carrying the
    fixed error message; nothing is retried and no partial map is shown.
    """
    settings = settings or Settings.from_env()
    try:
        grid, values = year_grid(year, settings)
        rows = len(values)
        log.info(f"data loaded for {year}: {rows} rows, {len(grid)} cells", extra={"year": year})

        # colour domain spans every row, including duplicates the grid overwrote
        full = extent(values)
        domain = clamped_domain(values, settings.clip)
        scale = SequentialScale(domain)
        projection = NaturalEarth.fit_default(settings.width, settings.height)

        raster = rasterize(grid, projection, scale, settings.width, settings.height,
                           settings.pixel_ratio, settings.cell_size)
        borders = borders_path(settings, features)
        svg = compose_svg(year, raster.to_data_url(), borders, scale, settings.width, settings.height,
                          clamped=(domain[0] > full[0], domain[1] < full[1]))
    except (PrecipWizError, ValueError, OSError) as e:
        log.exception(f"error loading data for {year}", extra={"year": year})
        svg = error_svg(year, settings.width, settings.height)
        return Frame(year=year, svg=svg, html=page_html(svg, width=settings.width), ok=False, error=str(e))

    log.info(f"visualization complete for {year}", extra={"year": year})
    return Frame(year=year, svg=svg, html=page_html(svg, raster.cells, settings.width),
                 rows=rows, domain=domain, cells=raster.cells)
