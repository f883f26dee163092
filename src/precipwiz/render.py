from __future__ import annotations

import json
from html import escape
from typing import Sequence

from .colors import SequentialScale
from .config import HEIGHT, WIDTH
from .raster import Cell

LEGEND_W, LEGEND_H = 300, 15
LEGEND_STOPS = 10
BORDER_STROKE, BORDER_WIDTH = "#111", 0.4
TEXT_COLOR = "#333"


def title_text(year: int) -> str:
    return f"Global Precipitation - {year} (mm)"


def error_text(year: int) -> str:
    return f"Error loading data for {year}. Check the logs for details."


def legend_svg(scale: SequentialScale, width: int = WIDTH, height: int = HEIGHT,
               clamped: tuple[bool, bool] = (False, False)) -> str:
    lx, ly = width - LEGEND_W - 50, height - 30
    stops = "".join(f'<stop offset="{off:g}%" stop-color="{col}"/>' for off, col in scale.stops(LEGEND_STOPS))
    lo, hi = scale.domain
    lo_lbl = ("≤ " if clamped[0] else "") + f"{lo:.1f} mm"
    hi_lbl = ("≥ " if clamped[1] else "") + f"{hi:.1f} mm"
    return (
        f'<defs><linearGradient id="legend-gradient" x1="0%" x2="100%">{stops}</linearGradient></defs>'
        f'<rect x="{lx}" y="{ly}" width="{LEGEND_W}" height="{LEGEND_H}" '
        f'style="fill:url(#legend-gradient);stroke:{TEXT_COLOR};stroke-width:1"/>'
        f'<text x="{lx}" y="{ly - 5}" font-size="12px" fill="{TEXT_COLOR}">{escape(lo_lbl)}</text>'
        f'<text x="{lx + LEGEND_W}" y="{ly - 5}" text-anchor="end" font-size="12px" fill="{TEXT_COLOR}">{escape(hi_lbl)}</text>'
        f'<text x="{lx + LEGEND_W / 2:g}" y="{ly + LEGEND_H + 15}" text-anchor="middle" font-size="13px" '
        f'font-weight="bold" fill="{TEXT_COLOR}">Total Precipitation</text>'
    )


def compose_svg(year: int, image_href: str, borders_d: str, scale: SequentialScale,
                width: int = WIDTH, height: int = HEIGHT, clamped: tuple[bool, bool] = (False, False)) -> str:
    """Raster image, country borders, title and legend, back to front."""
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" id="map" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
        f'<image id="raster" href="{image_href}" x="0" y="0" width="{width}" height="{height}"/>'
        f'<path id="borders" d="{borders_d}" fill="none" stroke="{BORDER_STROKE}" stroke-width="{BORDER_WIDTH}"/>'
        f'<text id="title" x="{width / 2:g}" y="30" text-anchor="middle" font-size="24px" font-weight="bold" '
        f'fill="{TEXT_COLOR}">{escape(title_text(year))}</text>'
        f"{legend_svg(scale, width, height, clamped)}"
        "</svg>"
    )


def error_svg(year: int, width: int = WIDTH, height: int = HEIGHT) -> str:
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" id="map" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
        f'<text x="{width / 2:g}" y="{height / 2:g}" text-anchor="middle" style="fill:red;font-size:16px">'
        f"{escape(error_text(year))}</text>"
        "</svg>"
    )


def cells_payload(cells: Sequence[Cell]) -> list:
    return [[c.x, c.y, c.size, round(c.lat, 4), round(c.lon, 4), round(c.value, 2)] for c in cells]


PAGE = r"""<!doctype html>
<html>
<head>
<meta charset="utf-8"/>
<style>
  html,body{margin:0; padding:0; background:#fff;}
  #wrap{position:relative; width:__WIDTH__px; margin:0 auto;}
  #tip{
    position:absolute; pointer-events:none; display:none; z-index:10;
    background:rgba(0,0,0,.78); color:#fff; padding:6px 8px; border-radius:6px;
    font:12px/1.35 -apple-system,BlinkMacSystemFont,Segoe UI,Roboto,Helvetica,Arial,sans-serif;
    white-space:nowrap;
  }
</style>
</head>
<body>
<div id="wrap">
__SVG__
<div id="tip"></div>
</div>
<script>
  const CELLS = __CELLS__;
  const svg = document.getElementById('map');
  const tip = document.getElementById('tip');

  function fmtLat(v){ return Math.abs(v).toFixed(2) + (v >= 0 ? '°N' : '°S'); }
  function fmtLon(v){ return Math.abs(v).toFixed(2) + (v >= 0 ? '°E' : '°W'); }

  // last painted wins, same order the raster was drawn in
  function probe(x, y){
    for (let i = CELLS.length - 1; i >= 0; i--){
      const c = CELLS[i];
      if (x >= c[0] && x < c[0] + c[2] && y >= c[1] && y < c[1] + c[2]) return c;
    }
    return null;
  }

  if (svg && CELLS.length){
    svg.addEventListener('mousemove', (e) => {
      const r = svg.getBoundingClientRect();
      const x = (e.clientX - r.left) * (svg.viewBox.baseVal.width / r.width);
      const y = (e.clientY - r.top) * (svg.viewBox.baseVal.height / r.height);
      const c = probe(x, y);
      if (!c){ tip.style.display = 'none'; return; }
      tip.innerHTML = `<b>${c[5].toFixed(1)} mm</b><br>${fmtLat(c[3])}, ${fmtLon(c[4])}`;
      tip.style.left = (e.clientX - r.left + 14) + 'px';
      tip.style.top  = (e.clientY - r.top + 14) + 'px';
      tip.style.display = 'block';
    });
    svg.addEventListener('mouseleave', () => { tip.style.display = 'none'; });
  }
</script>
</body>
</html>
"""


def page_html(svg: str, cells: Sequence[Cell] = (), width: int = WIDTH) -> str:
    return (PAGE.replace("__WIDTH__", str(width))
                .replace("__CELLS__", json.dumps(cells_payload(cells), separators=(",", ":")))
                .replace("__SVG__", svg))
