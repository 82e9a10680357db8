from __future__ import annotations

import pytest

from budgetmap.common.errors import FormatError, GeometryError
from budgetmap.pipeline.topology import ArcSet, decode


def _topology(geometries, arcs, transform=None, name="municipalities"):
    doc = {
        "type": "Topology",
        "objects": {name: {"type": "GeometryCollection", "geometries": geometries}},
        "arcs": arcs,
    }
    if transform is not None:
        doc["transform"] = transform
    return doc


@pytest.mark.parametrize(
    "document",
    [
        [],
        {"type": "FeatureCollection", "objects": {"a": {}}, "arcs": []},
        {"type": "Topology", "arcs": []},
        {"type": "Topology", "objects": {}, "arcs": []},
        {"type": "Topology", "objects": ["a"], "arcs": []},
        {"type": "Topology", "objects": {"a": {"type": "GeometryCollection", "geometries": []}}, "arcs": {}},
    ],
)
def test_decode_rejects_malformed_documents(document):
    with pytest.raises(FormatError):
        decode(document)


def test_decode_keeps_order_and_count_including_null_geometry(sample_topology):
    features = decode(sample_topology)

    assert [f.properties["muni_code"] for f in features] == ["5001", "9999", "1101", "2301"]
    assert features[1].geometry is None
    assert [f.geometry["type"] for f in features if f.geometry] == ["Polygon", "Polygon", "MultiPolygon"]


def test_decode_reprojects_polygons_to_degrees(sample_topology):
    chiang_mai = decode(sample_topology)[0]
    ring = chiang_mai.geometry["coordinates"][0]

    assert ring[0][0] == pytest.approx(98.95, abs=1e-4)
    assert ring[0][1] == pytest.approx(18.75, abs=1e-4)
    assert ring[2][0] == pytest.approx(99.02, abs=1e-4)
    assert ring[2][1] == pytest.approx(18.82, abs=1e-4)
    assert ring[0] == ring[-1]


def test_decode_keeps_holes_and_multipolygon_parts(sample_topology):
    features = decode(sample_topology)

    assert len(features[2].geometry["coordinates"]) == 2
    assert len(features[3].geometry["coordinates"]) == 2


def test_decode_uses_only_first_object():
    doc = _topology([{"type": "Point", "coordinates": [1, 2], "properties": {"n": 1}}], [])
    doc["objects"]["other"] = {
        "type": "GeometryCollection",
        "geometries": [{"type": "Point", "coordinates": [3, 4]}],
    }

    features = decode(doc, source_epsg=4326)

    assert len(features) == 1
    assert features[0].properties == {"n": 1}


def test_decode_single_geometry_object():
    doc = {
        "type": "Topology",
        "objects": {"only": {"type": "Polygon", "arcs": [[0]], "properties": {"n": 1}, "id": 7}},
        "arcs": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]],
    }

    features = decode(doc, source_epsg=4326)

    assert len(features) == 1
    assert features[0].feature_id == 7
    assert features[0].geometry["coordinates"][0][1] == [1.0, 0.0]


def test_shared_arcs_are_stitched_and_reversed():
    arcs = [
        [[0, 0], [1, 0], [1, 1]],
        [[1, 1], [0, 1], [0, 0]],
    ]
    doc = _topology(
        [
            {"type": "Polygon", "arcs": [[0, 1]], "properties": {"n": "a"}},
            {"type": "Polygon", "arcs": [[-1]], "properties": {"n": "b"}},
        ],
        arcs,
    )

    first, second = decode(doc, source_epsg=4326)

    assert first.geometry["coordinates"] == [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]
    # ~0 is arc 0 run backwards, then closed.
    assert second.geometry["coordinates"] == [[[1, 1], [1, 0], [0, 0], [1, 1]]]


def test_quantized_arcs_are_delta_decoded_and_transformed():
    doc = _topology(
        [{"type": "Polygon", "arcs": [[0]], "properties": {}}],
        [[[1, 1], [2, 0], [0, 3], [-2, 0], [0, -3]]],
        transform={"scale": [2, 3], "translate": [100, 200]},
    )

    ring = decode(doc, source_epsg=4326)[0].geometry["coordinates"][0]

    assert ring == [[102, 203], [106, 203], [106, 212], [102, 212], [102, 203]]


def test_short_open_ring_is_closed_and_padded():
    doc = _topology([{"type": "Polygon", "arcs": [[0]], "properties": {}}], [[[0, 0], [1, 1]]])

    ring = decode(doc, source_epsg=4326)[0].geometry["coordinates"][0]

    assert ring == [[0, 0], [1, 1], [0, 0], [0, 0]]


def test_bad_arc_reference_drops_only_that_geometry():
    doc = _topology(
        [
            {"type": "Polygon", "arcs": [[5]], "properties": {"n": "broken"}},
            {"type": "Polygon", "arcs": [[0]], "properties": {"n": "fine"}},
            {"type": "Circle", "properties": {"n": "unknown"}},
        ],
        [[[0, 0], [1, 0], [1, 1], [0, 0]]],
    )

    features = decode(doc, source_epsg=4326)

    assert len(features) == 3
    assert features[0].geometry is None
    assert features[0].properties == {"n": "broken"}
    assert features[1].geometry["type"] == "Polygon"
    assert features[2].geometry is None


def test_lines_and_points_are_not_reprojected():
    doc = _topology(
        [
            {"type": "LineString", "arcs": [0], "properties": {}},
            {"type": "Point", "coordinates": [10, 20], "properties": {}},
        ],
        [[[1000, 0], [-1000, 0]]],
        transform={"scale": [1, 1], "translate": [0, 0]},
    )

    line, point = decode(doc)

    assert line.geometry["coordinates"] == [[1000, 0], [0, 0]]
    assert point.geometry["coordinates"] == [10, 20]


def test_arc_set_rejects_out_of_range_index():
    arcs = ArcSet([[[0, 0], [1, 1]]], None)
    with pytest.raises(GeometryError):
        arcs.arc(3)
    with pytest.raises(GeometryError):
        arcs.arc(~3)


def test_arc_set_rejects_bad_transform():
    with pytest.raises(FormatError):
        ArcSet([], {"scale": [1], "translate": [0, 0]})


def test_ring_without_arcs_drops_the_geometry():
    doc = _topology(
        [
            {"type": "Polygon", "arcs": [[]], "properties": {"n": "empty"}},
            {"type": "MultiPolygon", "arcs": [[[0]], [[]]], "properties": {"n": "half"}},
            {"type": "Polygon", "arcs": [[0]], "properties": {"n": "fine"}},
        ],
        [[[0, 0], [1, 0], [1, 1], [0, 0]]],
    )

    features = decode(doc, source_epsg=4326)

    assert [f.geometry for f in features[:2]] == [None, None]
    assert all(len(ring) >= 4 and ring[0] == ring[-1] for ring in features[2].geometry["coordinates"])
