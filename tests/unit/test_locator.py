from __future__ import annotations

import pytest

from budgetmap.common.models import BoundaryFeature
from budgetmap.pipeline.locator import locate, locate_feature
from budgetmap.pipeline.topology import decode

UNIT_SQUARE = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]}


@pytest.fixture()
def features(sample_topology):
    return decode(sample_topology)


def test_point_inside_polygon(features):
    record = locate((18.78, 98.98), features)
    assert record is not None
    assert record.id == "5001"


def test_point_in_ring_outside_hole(features):
    assert locate((13.62, 100.42), features).id == "1101"


def test_point_in_hole_is_not_contained(features):
    assert locate((13.70, 100.50), features) is None


def test_point_outside_all_features(features):
    assert locate((0.0, 0.0), features) is None


def test_point_in_second_multipolygon_part(features):
    assert locate((12.02, 102.42), features).id == "2301"


def test_point_between_multipolygon_parts(features):
    assert locate((12.02, 102.38), features) is None


def test_point_on_boundary_is_covered():
    feature = BoundaryFeature(geometry=UNIT_SQUARE, properties={"name": "edge"})
    assert locate_feature((0.0, 0.5), [feature]) is feature


def test_malformed_geometry_is_skipped():
    broken = BoundaryFeature(geometry={"type": "Polygon"}, properties={"name": "broken"})
    good = BoundaryFeature(geometry=UNIT_SQUARE, properties={"name": "good"})

    assert locate_feature((0.5, 0.5), [broken, good]) is good


def test_first_match_wins_and_only_it_is_resolved(features):
    overlapping = BoundaryFeature(geometry=UNIT_SQUARE, properties={"name": "second"})
    first = BoundaryFeature(geometry=UNIT_SQUARE, properties={"name": "first"})
    seen = []

    def resolver(properties):
        seen.append(properties)
        return properties["name"]

    assert locate((0.5, 0.5), [*features, first, overlapping], resolver=resolver) == "first"
    assert seen == [{"name": "first"}]


def test_miss_does_not_resolve_anything(features):
    seen = []
    assert locate((50.0, 50.0), features, resolver=seen.append) is None
    assert seen == []
