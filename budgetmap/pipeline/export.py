"""Write decoded features and resolved records to disk."""

from __future__ import annotations

import re
from collections import defaultdict
from pathlib import Path
from typing import Iterable

from budgetmap.common.fs import write_json
from budgetmap.common.models import BoundaryFeature, MunicipalityRecord

UNKNOWN_PROVINCE = "unknown"


def feature_collection(features: Iterable[BoundaryFeature]) -> dict:
    return {"type": "FeatureCollection", "features": [feature.to_geojson() for feature in features]}


def split_by_province(features: Iterable[BoundaryFeature]) -> dict[str, dict]:
    grouped: dict[str, list[BoundaryFeature]] = defaultdict(list)
    for feature in features:
        province = feature.properties.get("cwt_name") or feature.properties.get("province") or UNKNOWN_PROVINCE
        grouped[str(province).strip() or UNKNOWN_PROVINCE].append(feature)
    return {province: feature_collection(members) for province, members in sorted(grouped.items())}


def _slug(value: str) -> str:
    return re.sub(r"[\s/\\]+", "_", value.strip()) or UNKNOWN_PROVINCE


def write_feature_collection(path: Path, features: Iterable[BoundaryFeature]) -> None:
    write_json(path, feature_collection(features), indent=None)


def write_municipalities(path: Path, records: Iterable[MunicipalityRecord]) -> None:
    write_json(path, [record.to_dict() for record in records])


def write_exports(out_dir: Path, features: list[BoundaryFeature], records: list[MunicipalityRecord]) -> dict:
    write_feature_collection(out_dir / "municipalities.geojson", features)
    write_municipalities(out_dir / "municipalities.json", records)
    by_province = split_by_province(features)
    for province, collection in by_province.items():
        write_json(out_dir / "provinces" / f"{_slug(province)}.geojson", collection, indent=None)
    return {
        "features": len(features),
        "municipalities": len(records),
        "provinces": len(by_province),
    }
