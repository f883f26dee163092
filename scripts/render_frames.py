#!/usr/bin/env python
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse, json
from dataclasses import replace
from pathlib import Path

from precipwiz.config import YEAR_MAX, YEAR_MIN, Settings, parse_clip
from precipwiz.frames import build_frame
from precipwiz.world import load_world

def main():
    ap = argparse.ArgumentParser(description="Export one standalone HTML (and SVG) map per year.")
    ap.add_argument("--data_dir", default=".", help="Folder containing processed/pr_by_year/")
    ap.add_argument("--out_dir", required=True)
    ap.add_argument("--start", type=int, default=YEAR_MIN)
    ap.add_argument("--end", type=int, default=YEAR_MAX)
    ap.add_argument("--pixel_ratio", type=float, default=2.0)
    ap.add_argument("--clip", default=None, help='Quantiles "lo,hi" for outlier clamping, or "off".')
    ap.add_argument("--svg", action="store_true", help="Also write bare .svg files.")
    args = ap.parse_args()

    base = Settings.from_env()
    clip = parse_clip(args.clip) if args.clip is not None else base.clip
    settings = replace(base, data_dir=Path(args.data_dir), pixel_ratio=args.pixel_ratio, clip=clip)
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    features = load_world(settings.world_url, settings.http_timeout)

    ok, failed = 0, []
    for year in range(args.start, args.end + 1):
        frame = build_frame(year, settings, features)
        if not frame.ok:
            print(f"[WARN] {year}: {frame.error}")
            failed.append(year)
            continue
        (out_dir / f"precip_{year}.html").write_text(frame.html, encoding="utf-8")
        if args.svg:
            (out_dir / f"precip_{year}.svg").write_text(frame.svg, encoding="utf-8")
        ok += 1

    print(json.dumps({"out_dir": str(out_dir), "frames": ok, "failed_years": failed}, indent=2))

if __name__ == "__main__":
    main()
