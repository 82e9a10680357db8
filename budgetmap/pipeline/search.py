"""Search and lookup over resolved municipality records."""

from __future__ import annotations

from typing import Iterable

from budgetmap.common.models import BoundaryFeature, MunicipalityRecord


def search_municipalities(records: Iterable[MunicipalityRecord], query: str) -> list[MunicipalityRecord]:
    needle = query.strip().casefold()
    if not needle:
        return []
    return [
        record
        for record in records
        if needle in record.name.casefold()
        or needle in record.province.casefold()
        or needle in record.district.casefold()
    ]


def find_municipality(records: Iterable[MunicipalityRecord], municipality_id: str) -> MunicipalityRecord | None:
    return next((record for record in records if record.id == municipality_id), None)


def find_feature(features: Iterable[BoundaryFeature], record: MunicipalityRecord) -> BoundaryFeature | None:
    """Return the boundary backing ``record``, matched by code first and then by name."""
    by_name = None
    for feature in features:
        code = feature.properties.get("muni_code")
        if code is not None and str(code).strip() == record.id:
            return feature
        if by_name is None:
            name = feature.properties.get("name") or feature.properties.get("mun_name")
            if name is not None and str(name).strip() == record.name:
                by_name = feature
    return by_name
