"""
World boundaries: fetch the TopoJSON once per process, decode it into GeoJSON-like
features and turn those into an SVG path for the border overlay.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import numpy as np
import requests

from .config import HTTP_TIMEOUT, WORLD_OBJECT, WORLD_URL
from .errors import TopologyError
from .logging_setup import get_logger
from .projection import NaturalEarth

log = get_logger(__name__)

_cache: Dict[str, List[Dict[str, Any]]] = {}
_cache_lock = threading.Lock()


def fetch_topology(url: str = WORLD_URL, timeout: float = HTTP_TIMEOUT) -> Dict[str, Any]:
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
        topo = r.json()
    except requests.RequestException as e:
        raise TopologyError(f"fetch failed for {url}: {e}") from e
    except ValueError as e:
        raise TopologyError(f"invalid JSON from {url}: {e}") from e
    if not isinstance(topo, dict) or topo.get("type") != "Topology":
        raise TopologyError(f"{url} is not a TopoJSON Topology")
    return topo


def load_world(url: str = WORLD_URL, timeout: float = HTTP_TIMEOUT,
               object_name: str = WORLD_OBJECT) -> List[Dict[str, Any]]:
    """Country features, fetched on first use and reused for the life of the process."""
    with _cache_lock:
        if url in _cache:
            return _cache[url]
    features = topology_features(fetch_topology(url, timeout), object_name)
    log.info(f"world boundaries loaded: {len(features)} features from {url}")
    with _cache_lock:
        _cache.setdefault(url, features)
        return _cache[url]


def clear_cache() -> None:
    with _cache_lock:
        _cache.clear()


# -------------------------
# TopoJSON decoding
# -------------------------
def _decode_arcs(topo: Dict[str, Any]) -> List[np.ndarray]:
    tf = topo.get("transform")
    arcs = []
    for arc in topo.get("arcs", []):
        a = np.asarray([p[:2] for p in arc], dtype=float).reshape(-1, 2)
        if tf is not None and len(a):
            # quantized arcs are delta-encoded
            a = np.cumsum(a, axis=0) * np.asarray(tf["scale"], dtype=float) + np.asarray(tf["translate"], dtype=float)
        arcs.append(a)
    return arcs


def _point(coords, tf) -> List[float]:
    if tf is None:
        return [float(coords[0]), float(coords[1])]
    return [coords[0] * tf["scale"][0] + tf["translate"][0], coords[1] * tf["scale"][1] + tf["translate"][1]]


def _line(indexes, arcs: List[np.ndarray]) -> List[List[float]]:
    pts: List[List[float]] = []
    for idx in indexes:
        try:
            a = arcs[idx] if idx >= 0 else arcs[~idx][::-1]
        except IndexError:
            raise TopologyError(f"arc index {idx} out of range") from None
        seg = a.tolist()
        # consecutive arcs share their joining vertex
        if pts and seg:
            seg = seg[1:]
        pts.extend(seg)
    return pts


def _ring(indexes, arcs):
    pts = _line(indexes, arcs)
    if pts and pts[0] != pts[-1]:
        pts.append(list(pts[0]))
    return pts


def _geometry(o: Dict[str, Any], arcs, tf) -> Optional[Dict[str, Any]]:
    t = o.get("type")
    if t is None:
        return None
    if t == "GeometryCollection":
        return {"type": t, "geometries": [g for g in (_geometry(x, arcs, tf) for x in o.get("geometries", [])) if g]}
    if t == "Point":
        return {"type": t, "coordinates": _point(o["coordinates"], tf)}
    if t == "MultiPoint":
        return {"type": t, "coordinates": [_point(c, tf) for c in o["coordinates"]]}
    if t == "LineString":
        return {"type": t, "coordinates": _line(o["arcs"], arcs)}
    if t == "MultiLineString":
        return {"type": t, "coordinates": [_line(a, arcs) for a in o["arcs"]]}
    if t == "Polygon":
        return {"type": t, "coordinates": [_ring(r, arcs) for r in o["arcs"]]}
    if t == "MultiPolygon":
        return {"type": t, "coordinates": [[_ring(r, arcs) for r in p] for p in o["arcs"]]}
    raise TopologyError(f"unsupported geometry type {t!r}")


def _feature(o: Dict[str, Any], arcs, tf) -> Dict[str, Any]:
    f = {"type": "Feature", "properties": o.get("properties", {}), "geometry": _geometry(o, arcs, tf)}
    if "id" in o:
        f["id"] = o["id"]
    return f


def topology_features(topo: Dict[str, Any], object_name: str = WORLD_OBJECT) -> List[Dict[str, Any]]:
    objects = topo.get("objects") or {}
    if object_name not in objects:
        raise TopologyError(f"topology has no object {object_name!r} (have {sorted(objects)})")
    try:
        arcs = _decode_arcs(topo)
        tf = topo.get("transform")
        o = objects[object_name]
        if o.get("type") == "GeometryCollection":
            return [_feature(g, arcs, tf) for g in o.get("geometries", [])]
        return [_feature(o, arcs, tf)]
    except (KeyError, TypeError, IndexError, ValueError, AttributeError) as e:
        raise TopologyError(f"malformed topology object {object_name!r}: {e!r}") from e


# -------------------------
# Path generation
# -------------------------
def _iter_lines(geom: Optional[Dict[str, Any]]):
    if not geom:
        return
    t = geom["type"]
    c = geom.get("coordinates")
    if t == "GeometryCollection":
        for g in geom["geometries"]:
            yield from _iter_lines(g)
    elif t == "LineString":
        yield c, False
    elif t == "MultiLineString":
        for line in c:
            yield line, False
    elif t == "Polygon":
        for ring in c:
            yield ring, True
    elif t == "MultiPolygon":
        for poly in c:
            for ring in poly:
                yield ring, True


def _fmt(v: float) -> str:
    return f"{v:.1f}".rstrip("0").rstrip(".")


def line_path(coords, projection: NaturalEarth, closed: bool = False) -> str:
    if len(coords) < 2:
        return ""
    a = np.asarray(coords, dtype=float)
    xs, ys = projection.project_many(a[:, 0], a[:, 1])
    # break the line where it wraps around the antimeridian or leaves the projection
    jump = np.abs(np.diff(a[:, 0])) > 180.0
    ok = np.isfinite(xs) & np.isfinite(ys)
    parts, cur = [], []
    for i in range(len(a)):
        if not ok[i] or (i > 0 and jump[i - 1]):
            if len(cur) > 1:
                parts.append(cur)
            cur = []
        if ok[i]:
            cur.append((xs[i], ys[i]))
    if len(cur) > 1:
        parts.append(cur)
    out = []
    whole = closed and len(parts) == 1 and len(parts[0]) == len(a)
    for part in parts:
        d = "M" + "L".join(f"{_fmt(x)},{_fmt(y)}" for x, y in part)
        out.append(d + ("Z" if whole else ""))
    return "".join(out)


def geometry_path(features, projection: NaturalEarth) -> str:
    """SVG path data for every line and ring in the features."""
    chunks = []
    for f in features:
        geom = f.get("geometry") if f.get("type") == "Feature" else f
        for coords, closed in _iter_lines(geom):
            d = line_path(coords, projection, closed)
            if d:
                chunks.append(d)
    return "".join(chunks)
