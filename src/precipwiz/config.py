from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

YEAR_MIN, YEAR_MAX, YEAR_STEP = 1954, 2014, 1
WINDOW_YEARS = 5

WIDTH, HEIGHT = 1300, 700
PROJECTION_SCALE = WIDTH / 6.2
CELL_SIZE = 11

CLIP_QUANTILES = (0.01, 0.99)

WORLD_URL = "https://cdn.jsdelivr.net/npm/world-atlas@2/countries-110m.json"
WORLD_OBJECT = "countries"
HTTP_TIMEOUT = 30.0

PR_BY_YEAR_DIR = Path("processed/pr_by_year")
REQUIRED_COLUMNS = ("lat", "lon", "pr_total_mm")


def year_csv_path(year: int, data_dir: Path | str = ".") -> Path:
    return Path(data_dir) / PR_BY_YEAR_DIR / f"pr_{int(year)}_win{WINDOW_YEARS}.csv"


def check_year(year: int) -> int:
    y = int(year)
    if y < YEAR_MIN or y > YEAR_MAX:
        raise ValueError(f"year {y} outside {YEAR_MIN}-{YEAR_MAX}")
    return y


def parse_clip(raw: str | None) -> tuple[float, float] | None:
    """Parse ``"lo,hi"`` quantiles; ``off``/``none``/empty disables clamping."""
    if raw is None:
        return CLIP_QUANTILES
    raw = raw.strip().lower()
    if raw in ("", "off", "none", "0"):
        return None
    lo, hi = (float(p) for p in raw.split(","))
    if not (0.0 <= lo < hi <= 1.0):
        raise ValueError(f"clip quantiles must satisfy 0 <= lo < hi <= 1, got {raw!r}")
    return lo, hi


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path(".")
    world_url: str = WORLD_URL
    pixel_ratio: float = 1.0
    clip: tuple[float, float] | None = CLIP_QUANTILES
    http_timeout: float = HTTP_TIMEOUT
    width: int = WIDTH
    height: int = HEIGHT
    cell_size: int = CELL_SIZE

    @classmethod
    def from_env(cls, env: dict | None = None) -> "Settings":
        env = os.environ if env is None else env
        ratio = float(env.get("PRECIPWIZ_PIXEL_RATIO", "1") or 1)
        if ratio <= 0:
            raise ValueError(f"PRECIPWIZ_PIXEL_RATIO must be positive, got {ratio}")
        return cls(
            data_dir=Path(env.get("PRECIPWIZ_DATA_DIR", ".")),
            world_url=env.get("PRECIPWIZ_WORLD_URL", WORLD_URL),
            pixel_ratio=ratio,
            clip=parse_clip(env.get("PRECIPWIZ_CLIP")),
            http_timeout=float(env.get("PRECIPWIZ_HTTP_TIMEOUT", HTTP_TIMEOUT)),
        )
