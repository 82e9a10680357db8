from __future__ import annotations

import json
from pathlib import Path

import pytest

from budgetmap.common.models import BoundaryFeature
from budgetmap.pipeline.attributes import resolve
from budgetmap.pipeline.export import split_by_province, write_exports
from budgetmap.pipeline.search import find_feature, find_municipality, search_municipalities
from budgetmap.pipeline.topology import decode


@pytest.fixture()
def features(sample_topology):
    return decode(sample_topology)


@pytest.fixture()
def records(features):
    return [resolve(feature.properties) for feature in features]


def test_search_matches_name_province_and_district(records):
    assert [r.id for r in search_municipalities(records, "เชียงใหม่")] == ["5001"]
    assert [r.id for r in search_municipalities(records, "ตราด")] == ["2301"]
    assert [r.id for r in search_municipalities(records, "เกาะช้าง")] == ["2301"]
    assert [r.id for r in search_municipalities(records, "เทศบาล")] == ["5001", "9999", "1101", "2301"]


def test_search_is_case_insensitive(records):
    latin = resolve({"name": "Nakhon Ratchasima City", "type": "city"})
    assert search_municipalities([*records, latin], "ratchasima") == [latin]


def test_blank_search_returns_nothing(records):
    assert search_municipalities(records, "   ") == []


def test_find_municipality_by_id(records):
    assert find_municipality(records, "1101").name == "เทศบาลเมืองสมุทรปราการ"
    assert find_municipality(records, "missing") is None


def test_find_feature_by_code_then_name(features, records):
    assert find_feature(features, records[2]) is features[2]

    renamed = resolve({"name": "เทศบาลตำบลเกาะช้าง"})
    assert find_feature(features, renamed) is features[3]


def test_split_by_province_groups_and_sorts(features):
    groups = split_by_province(features)

    assert list(groups) == sorted(groups)
    assert set(groups) == {"เชียงใหม่", "สมุทรปราการ", "ตราด", "unknown"}
    assert groups["unknown"]["features"][0]["properties"]["muni_code"] == "9999"
    assert groups["ตราด"]["type"] == "FeatureCollection"


def test_write_exports(tmp_path: Path, features, records):
    counts = write_exports(tmp_path, features, records)

    assert counts == {"features": 4, "municipalities": 4, "provinces": 4}
    collection = json.loads((tmp_path / "municipalities.geojson").read_text(encoding="utf-8"))
    assert len(collection["features"]) == 4
    assert collection["features"][1]["geometry"] is None
    municipalities = json.loads((tmp_path / "municipalities.json").read_text(encoding="utf-8"))
    assert municipalities[0]["budget"] == 1_755_970_000
    assert (tmp_path / "provinces" / "ตราด.geojson").exists()


def test_split_by_province_prefers_source_format_key():
    feature = BoundaryFeature(geometry=None, properties={"province": "กรุงเทพมหานคร", "cwt_name": "นนทบุรี"})
    assert list(split_by_province([feature])) == ["นนทบุรี"]
