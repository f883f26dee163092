"""
Unit tests for world boundary loading, TopoJSON decoding and border paths
"""

from unittest.mock import Mock, patch

import pytest
import requests

from precipwiz import world
from precipwiz.errors import TopologyError
from precipwiz.projection import NaturalEarth
from precipwiz.world import geometry_path, line_path, load_world, topology_features


def _response(payload=None, status_error=None, json_error=None):
    r = Mock()
    r.raise_for_status.side_effect = status_error
    if json_error is not None:
        r.json.side_effect = json_error
    else:
        r.json.return_value = payload
    return r


class TestTopologyFeatures:
    """Arc stitching and geometry types"""

    def test_polygon_ring(self, square_topology):
        feats = topology_features(square_topology)
        assert len(feats) == 2
        a = feats[0]
        assert a["type"] == "Feature"
        assert a["id"] == "001"
        assert a["properties"] == {"name": "A"}
        assert a["geometry"]["type"] == "Polygon"
        assert a["geometry"]["coordinates"] == [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]]

    def test_reversed_arcs(self, square_topology):
        b = topology_features(square_topology)[1]
        assert "id" not in b
        assert b["geometry"]["type"] == "MultiPolygon"
        assert b["geometry"]["coordinates"] == [[[[0, 0], [0, 10], [10, 10], [10, 0], [0, 0]]]]

    def test_quantized_arcs_and_points(self, quantized_topology):
        line, point = topology_features(quantized_topology)
        assert line["geometry"]["coordinates"] == [[-10.0, -20.0], [0.0, -20.0], [0.0, -10.0]]
        assert point["geometry"] == {"type": "Point", "coordinates": [-8.0, -17.0]}

    def test_missing_object(self, square_topology):
        with pytest.raises(TopologyError, match="no object 'land'"):
            topology_features(square_topology, "land")

    def test_bad_arc_index(self, square_topology):
        square_topology["objects"]["countries"]["geometries"][0]["arcs"] = [[0, 7]]
        with pytest.raises(TopologyError, match="out of range"):
            topology_features(square_topology)

    def test_geometry_without_arcs(self, square_topology):
        del square_topology["objects"]["countries"]["geometries"][0]["arcs"]
        with pytest.raises(TopologyError, match="malformed topology"):
            topology_features(square_topology)

    def test_transform_without_scale(self, quantized_topology):
        del quantized_topology["transform"]["scale"]
        with pytest.raises(TopologyError, match="malformed topology"):
            topology_features(quantized_topology)

    def test_null_geometry(self, square_topology):
        square_topology["objects"]["countries"]["geometries"].append({"properties": {"name": "C"}})
        feats = topology_features(square_topology)
        assert feats[-1]["geometry"] is None
        assert geometry_path(feats[-1:], NaturalEarth.fit_default()) == ""


class TestLoadWorld:
    """Fetching and process-lifetime caching"""

    def test_fetched_once(self, square_topology):
        with patch("precipwiz.world.requests.get", return_value=_response(square_topology)) as get:
            first = load_world("http://example.test/world.json", timeout=3)
            second = load_world("http://example.test/world.json", timeout=3)
        assert first is second
        assert len(first) == 2
        get.assert_called_once_with("http://example.test/world.json", timeout=3)

    def test_http_error(self):
        err = requests.HTTPError("404 Client Error")
        with patch("precipwiz.world.requests.get", return_value=_response(status_error=err)):
            with pytest.raises(TopologyError, match="fetch failed"):
                load_world("http://example.test/missing.json")

    def test_connection_error(self):
        with patch("precipwiz.world.requests.get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(TopologyError):
                load_world("http://example.test/world.json")

    def test_invalid_json(self):
        with patch("precipwiz.world.requests.get", return_value=_response(json_error=ValueError("bad"))):
            with pytest.raises(TopologyError, match="invalid JSON"):
                load_world("http://example.test/world.json")

    def test_not_a_topology(self):
        with patch("precipwiz.world.requests.get", return_value=_response({"type": "FeatureCollection"})):
            with pytest.raises(TopologyError, match="not a TopoJSON"):
                load_world("http://example.test/world.json")

    def test_failure_not_cached(self, square_topology):
        with patch("precipwiz.world.requests.get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(TopologyError):
                load_world("http://example.test/world.json")
        with patch("precipwiz.world.requests.get", return_value=_response(square_topology)):
            assert len(load_world("http://example.test/world.json")) == 2


class TestPaths:
    """SVG path generation"""

    def test_line_starts_at_projected_point(self):
        d = line_path([[0, 0], [10, 0]], NaturalEarth.fit_default())
        assert d.startswith("M650,350L")
        assert not d.endswith("Z")

    def test_closed_ring(self, square_topology):
        d = geometry_path(topology_features(square_topology), NaturalEarth.fit_default())
        assert d.count("M") == 2
        assert d.count("Z") == 2

    def test_antimeridian_split(self):
        d = line_path([[160, 0], [170, 0], [-170, 0], [-160, 0]], NaturalEarth.fit_default(), closed=True)
        assert d.count("M") == 2
        assert "Z" not in d

    def test_degenerate_line(self):
        assert line_path([[0, 0]], NaturalEarth.fit_default()) == ""

    def test_module_cache_cleared(self, square_topology):
        world._cache["x"] = []
        world.clear_cache()
        assert world._cache == {}
