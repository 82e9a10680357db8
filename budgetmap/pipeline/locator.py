"""Point-in-polygon lookup over decoded boundary features."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from shapely.errors import ShapelyError
from shapely.geometry import Point, shape

from budgetmap.common.errors import GeometryError
from budgetmap.common.logging import get_logger, log_event
from budgetmap.common.models import BoundaryFeature, MunicipalityRecord
from budgetmap.pipeline.attributes import resolve

logger = get_logger(__name__)

Resolver = Callable[[Mapping[str, Any]], MunicipalityRecord]


def _contains(feature: BoundaryFeature, point: Point) -> bool:
    try:
        geometry = shape(feature.geometry)
        minx, miny, maxx, maxy = geometry.bounds
        if not (minx <= point.x <= maxx and miny <= point.y <= maxy):
            return False
        # covers() keeps points on the boundary; holes are excluded by the polygon itself
        return bool(geometry.covers(point))
    except (ShapelyError, KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
        raise GeometryError(f"Unusable geometry: {exc}") from exc


def locate_feature(point: tuple[float, float], features: Iterable[BoundaryFeature]) -> BoundaryFeature | None:
    """Return the first feature containing ``point``, given as (lat, lon)."""
    lat, lon = point
    target = Point(lon, lat)
    for index, feature in enumerate(features):
        if not feature.geometry:
            continue
        try:
            if _contains(feature, target):
                return feature
        except GeometryError as exc:
            log_event(
                logger,
                f"feature {index} skipped during locate: {exc}",
                level=logging.WARNING,
                stage="locate",
                event="GEOMETRY_SKIPPED",
                status="warn",
                error_code=exc.error_code,
            )
    return None


def locate(
    point: tuple[float, float],
    features: Iterable[BoundaryFeature],
    *,
    resolver: Resolver = resolve,
) -> MunicipalityRecord | None:
    """Resolve the municipality whose boundary contains ``point`` (lat, lon)."""
    feature = locate_feature(point, features)
    if feature is None:
        log_event(logger, f"no municipality at {point[0]},{point[1]}", stage="locate", event="LOCATE_MISS", status="ok")
        return None
    return resolver(feature.properties)
