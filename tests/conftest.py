from pathlib import Path

import pytest

from precipwiz import frames, world


def write_year(data_dir: Path, year: int, text: str) -> Path:
    p = data_dir / "processed" / "pr_by_year" / f"pr_{year}_win5.csv"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


@pytest.fixture
def data_dir(tmp_path):
    write_year(tmp_path, 1954, "lat,lon,pr_total_mm\n10,0,5\n10,10,7\n0,0,3\n0,190,1\n")
    return tmp_path


@pytest.fixture
def square_topology():
    """Two unit squares sharing nothing, plain (non-quantized) coordinates."""
    return {
        "type": "Topology",
        "arcs": [
            [[0, 0], [10, 0], [10, 10]],
            [[10, 10], [0, 10], [0, 0]],
        ],
        "objects": {
            "countries": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "id": "001", "properties": {"name": "A"}, "arcs": [[0, 1]]},
                    {"type": "MultiPolygon", "properties": {"name": "B"}, "arcs": [[[-2, -1]]]},
                ],
            }
        },
    }


@pytest.fixture
def quantized_topology():
    return {
        "type": "Topology",
        "transform": {"scale": [0.5, 0.5], "translate": [-10, -20]},
        "arcs": [[[0, 0], [20, 0], [0, 20]]],
        "objects": {
            "countries": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "LineString", "arcs": [0]},
                    {"type": "Point", "coordinates": [4, 6]},
                ],
            }
        },
    }


@pytest.fixture(autouse=True)
def _fresh_caches():
    world.clear_cache()
    frames._borders.clear()
    yield
    world.clear_cache()
    frames._borders.clear()
