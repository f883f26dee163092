#!/usr/bin/env python
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse, json
from pathlib import Path
import pandas as pd
import numpy as np
from datetime import datetime, timezone

VALUE_ALIASES = ("pr", "pr_mm", "pr_total_mm", "precip_mm")

def load_any(path: Path) -> pd.DataFrame:
    sfx = path.suffix.lower()
    if sfx == ".csv":
        return pd.read_csv(path)
    if sfx == ".parquet":
        return pd.read_parquet(path)
    raise ValueError(f"Unsupported file: {path}")

def ensure_cols(df: pd.DataFrame, src: str = "input") -> pd.DataFrame:
    value_col = next((c for c in VALUE_ALIASES if c in df.columns), None)
    for req in ["lat","lon","year"]:
        if req not in df.columns:
            raise SystemExit(f"{src}: missing required column '{req}'")
    if value_col is None:
        raise SystemExit(f"{src}: no precipitation column (one of {list(VALUE_ALIASES)})")
    cols = ["lat","lon","year"] + (["month"] if "month" in df.columns else []) + [value_col]
    df = df[cols].rename(columns={value_col: "pr"}).copy()
    df["year"] = df["year"].astype(int)
    df["pr"] = pd.to_numeric(df["pr"], errors="coerce")
    return df

def to_annual(df: pd.DataFrame, min_months: int = 12) -> pd.DataFrame:
    # monthly input -> annual totals; years with too few valid months are dropped
    if "month" not in df.columns:
        return df.dropna(subset=["pr"])
    g = df.dropna(subset=["pr"]).groupby(["lat","lon","year"])
    ann = g["pr"].agg(pr="sum", n_months="count").reset_index()
    ann = ann[ann["n_months"] >= min_months]
    return ann[["lat","lon","year","pr"]]

def window_for_year(annual: pd.DataFrame, year: int, window: int = 5, agg: str = "mean",
                    min_years: int | None = None) -> pd.DataFrame:
    # trailing window: year-window+1 .. year, inclusive
    min_years = window if min_years is None else min_years
    sub = annual[(annual["year"] > year - window) & (annual["year"] <= year)]
    if sub.empty:
        return pd.DataFrame(columns=["lat","lon","pr_total_mm"])
    g = sub.groupby(["lat","lon"])["pr"].agg(pr_total_mm=agg, n_years="count").reset_index()
    g = g[g["n_years"] >= min_years].copy()
    g["pr_total_mm"] = g["pr_total_mm"].round(3)
    return g.sort_values(["lat","lon"], ascending=[False, True])[["lat","lon","pr_total_mm"]].reset_index(drop=True)

def main():
    ap = argparse.ArgumentParser(description="Build per-year trailing-window precipitation files (pr_<year>_win<N>.csv).")
    ap.add_argument("--input", required=True, help="Long table with lat, lon, year, pr (annual totals, or monthly with a month column).")
    ap.add_argument("--out_dir", default="processed/pr_by_year", help="Output folder.")
    ap.add_argument("--window", type=int, default=5, help="Trailing window length in years.")
    ap.add_argument("--agg", choices=["mean","sum"], default="mean", help="How to combine the annual totals in a window.")
    ap.add_argument("--min_years", type=int, default=None, help="Minimum annual values per cell in a window (default: the full window).")
    ap.add_argument("--start", type=int, default=1954)
    ap.add_argument("--end", type=int, default=2014)
    args = ap.parse_args()

    if args.window < 1:
        raise SystemExit("--window must be >= 1")
    if args.start > args.end:
        raise SystemExit("--start must not be after --end")

    src = Path(args.input)
    annual = to_annual(ensure_cols(load_any(src), src.name))
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written, empty = [], []
    for year in range(args.start, args.end + 1):
        w = window_for_year(annual, year, args.window, args.agg, args.min_years)
        if w.empty:
            print(f"[WARN] {year}: no cells with a full {args.window}-year window, skipped")
            empty.append(year)
            continue
        out = out_dir / f"pr_{year}_win{args.window}.csv"
        w.to_csv(out, index=False)
        written.append(year)
        if len(written) % 10 == 0:
            print(f"[OK] {len(written)} files written... (last: {out.name})")

    meta = {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "input": str(src),
        "out_dir": str(out_dir),
        "window": args.window,
        "agg": args.agg,
        "years_written": len(written),
        "years_skipped": empty,
        "cells": int(annual.groupby(["lat","lon"]).ngroups),
        "annual_rows": int(len(annual)),
        "pr_range": [float(np.nanmin(annual["pr"])), float(np.nanmax(annual["pr"]))] if len(annual) else None,
    }
    print(json.dumps(meta, indent=2))

if __name__ == "__main__":
    main()
