from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import numpy as np
import pandas as pd

from .config import REQUIRED_COLUMNS, year_csv_path
from .errors import DataLoadError

VALUE_COLUMN = "pr_total_mm"


def normalize_lon(lon):
    """Wrap longitudes (0..360 grids included) into [-180, 180)."""
    return np.mod(np.asarray(lon, dtype=float) + 180.0, 360.0) - 180.0


def read_samples(path: Path, year: int | None = None) -> pd.DataFrame:
    if not path.exists():
        raise DataLoadError(year, f"file not found: {path}")
    try:
        df = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
        raise DataLoadError(year, f"unreadable CSV {path.name}: {e}") from e
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataLoadError(year, f"missing columns in {path.name}: {missing}")
    out = pd.DataFrame({
        "lat": pd.to_numeric(df["lat"], errors="coerce").astype(float),
        "lon": normalize_lon(pd.to_numeric(df["lon"], errors="coerce")),
        "pr": pd.to_numeric(df[VALUE_COLUMN], errors="coerce").astype(float),
    })
    return out


def load_year(year: int, data_dir: Path | str = ".") -> pd.DataFrame:
    return read_samples(year_csv_path(year, data_dir), year)


@dataclass
class Grid:
    lats: np.ndarray      # descending, north first
    lons: np.ndarray      # ascending
    values: np.ndarray    # (len(lats), len(lons)), NaN where no sample

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    def value_at(self, lat: float, lon: float) -> float:
        i = np.flatnonzero(self.lats == lat)
        j = np.flatnonzero(self.lons == normalize_lon(lon))
        if not len(i) or not len(j):
            return float("nan")
        return float(self.values[i[0], j[0]])

    def cells(self) -> Iterator[tuple[float, float, float]]:
        """Present cells as (lat, lon, value), row by row from the north."""
        rows, cols = np.nonzero(np.isfinite(self.values))
        for i, j in zip(rows, cols):
            yield float(self.lats[i]), float(self.lons[j]), float(self.values[i, j])

    def values_flat(self) -> np.ndarray:
        v = self.values.ravel()
        return v[np.isfinite(v)]

    def __len__(self) -> int:
        return int(np.isfinite(self.values).sum())


def build_grid(df: pd.DataFrame) -> Grid:
    # rows without usable coordinates can't be placed; rows without a value never become cells
    d = df[np.isfinite(df["lat"]) & np.isfinite(df["lon"])]
    # later duplicates win, same as a keyed map
    d = d.drop_duplicates(subset=["lat", "lon"], keep="last")
    lats = np.sort(d["lat"].unique())[::-1]
    lons = np.sort(d["lon"].unique())
    values = np.full((len(lats), len(lons)), np.nan)
    if len(d):
        lat_idx = pd.Index(lats).get_indexer(d["lat"])
        lon_idx = pd.Index(lons).get_indexer(d["lon"])
        values[lat_idx, lon_idx] = d["pr"].to_numpy(dtype=float)
    values[~np.isfinite(values)] = np.nan
    return Grid(lats=lats, lons=lons, values=values)
