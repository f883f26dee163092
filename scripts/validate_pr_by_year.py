#!/usr/bin/env python
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse, json, re
from pathlib import Path
import pandas as pd
import numpy as np
from datetime import datetime, timezone

NAME_RE = re.compile(r"^pr_(?P<year>\d{4})_win(?P<window>\d+)\.csv$")
REQUIRED = ["lat", "lon", "pr_total_mm"]

def check_file(path: Path) -> dict:
    row = {"file": path.name, "rows": 0, "cells": 0, "duplicate_coords": 0, "nan_share": np.nan,
           "lat_ok": False, "lon_ok": False, "negative_values": 0, "pr_min": np.nan, "pr_max": np.nan, "error": None}
    try:
        df = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        row["error"] = f"unreadable: {e}"
        return row
    missing = [c for c in REQUIRED if c not in df.columns]
    if missing:
        row["error"] = f"missing columns: {missing}"
        return row
    lat = pd.to_numeric(df["lat"], errors="coerce")
    lon = pd.to_numeric(df["lon"], errors="coerce")
    pr = pd.to_numeric(df["pr_total_mm"], errors="coerce")
    row["rows"] = int(len(df))
    row["duplicate_coords"] = int(pd.DataFrame({"lat": lat, "lon": lon}).duplicated().sum())
    row["cells"] = row["rows"] - row["duplicate_coords"]
    row["nan_share"] = float(pr.isna().mean()) if len(pr) else np.nan
    row["lat_ok"] = bool(lat.between(-90, 90).all())
    # 0..360 grids are fine, the loader wraps them
    row["lon_ok"] = bool(lon.between(-180, 360).all())
    row["negative_values"] = int((pr < 0).sum())
    if pr.notna().any():
        row["pr_min"], row["pr_max"] = float(pr.min()), float(pr.max())
    return row

def main():
    ap = argparse.ArgumentParser(description="Validate pr_<year>_win<N>.csv files: coverage, coordinates, values.")
    ap.add_argument("--dir", default="processed/pr_by_year", help="Folder with per-year files")
    ap.add_argument("--start", type=int, default=1954)
    ap.add_argument("--end", type=int, default=2014)
    ap.add_argument("--window", type=int, default=5)
    ap.add_argument("--report_csv", default=None, help="Optional per-year CSV report")
    ap.add_argument("--report_json", required=True, help="Output JSON with global summary")
    args = ap.parse_args()

    d = Path(args.dir)
    if not d.is_dir():
        raise SystemExit(f"Not a directory: {d}")

    found = {}
    for p in sorted(d.iterdir()):
        m = NAME_RE.match(p.name)
        if m and int(m.group("window")) == args.window:
            found[int(m.group("year"))] = p

    rows = []
    for year in range(args.start, args.end + 1):
        if year not in found:
            continue
        r = check_file(found[year])
        r["year"] = year
        rows.append(r)
        if r["error"]:
            print(f"[WARN] {found[year].name}: {r['error']}")

    per_year = pd.DataFrame(rows)
    expected = list(range(args.start, args.end + 1))
    missing_years = [y for y in expected if y not in found]

    if args.report_csv:
        out_csv = Path(args.report_csv)
        out_csv.parent.mkdir(parents=True, exist_ok=True)
        per_year.to_csv(out_csv, index=False)

    ok = per_year[per_year["error"].isna()] if len(per_year) else per_year
    meta = {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "dir": str(d),
        "window": args.window,
        "years_expected": len(expected),
        "years_found": len(rows),
        "missing_years": missing_years,
        "files_with_errors": int(per_year["error"].notna().sum()) if len(per_year) else 0,
        "files_with_duplicates": int((ok["duplicate_coords"] > 0).sum()) if len(ok) else 0,
        "files_with_bad_coords": int((~(ok["lat_ok"] & ok["lon_ok"])).sum()) if len(ok) else 0,
        "files_with_negative_values": int((ok["negative_values"] > 0).sum()) if len(ok) else 0,
        "mean_nan_share": float(ok["nan_share"].mean()) if len(ok) else None,
        "cells_min": int(ok["cells"].min()) if len(ok) else None,
        "cells_max": int(ok["cells"].max()) if len(ok) else None,
    }
    out_json = Path(args.report_json)
    out_json.parent.mkdir(parents=True, exist_ok=True)
    with open(out_json, "w", encoding="utf-8") as f:
        json.dump(meta, f, indent=2)

    print("[OK] validation written:", str(out_json))
    print(json.dumps(meta, indent=2))

if __name__ == "__main__":
    main()
