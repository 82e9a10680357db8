"""Municipality search, lookup and locate endpoints backed by the feature store."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from budgetmap.common.errors import BudgetMapError
from budgetmap.common.models import BoundaryFeature, MunicipalityRecord
from budgetmap.pipeline.locator import locate
from budgetmap.pipeline.search import find_municipality, search_municipalities
from budgetmap.pipeline.store import FeatureStore

router = APIRouter(tags=["municipalities"])

MAP_DATA_UNAVAILABLE = "Could not load map data"


def get_feature_store(request: Request) -> FeatureStore:
    store = getattr(request.app.state, "feature_store", None)
    if store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=MAP_DATA_UNAVAILABLE)
    return store


def _records(store: FeatureStore) -> list[MunicipalityRecord]:
    try:
        return store.municipalities()
    except BudgetMapError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=MAP_DATA_UNAVAILABLE) from exc


def _features(store: FeatureStore) -> list[BoundaryFeature]:
    try:
        return store.features()
    except BudgetMapError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=MAP_DATA_UNAVAILABLE) from exc


@router.get("/municipalities", summary="List or search municipalities")
def list_municipalities(
    q: str | None = Query(None, description="Substring of name, province or district"),
    store: FeatureStore = Depends(get_feature_store),
) -> dict:
    records = _records(store)
    if q is not None:
        records = search_municipalities(records, q)
    return {"success": True, "count": len(records), "data": [record.to_dict() for record in records]}


@router.get("/municipalities/{municipality_id}", summary="Get one municipality")
def get_municipality(municipality_id: str, store: FeatureStore = Depends(get_feature_store)) -> dict:
    record = find_municipality(_records(store), municipality_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Municipality not found")
    return {"success": True, "data": record.to_dict()}


@router.get("/locate", summary="Find the municipality containing a point")
def locate_municipality(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    store: FeatureStore = Depends(get_feature_store),
) -> dict:
    features = _features(store)
    record = locate((lat, lon), features, resolver=store.resolve)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No municipality found at this location")
    return {"success": True, "data": record.to_dict()}
