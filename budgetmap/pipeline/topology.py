"""Decode arc-encoded topology documents into geographic boundary features.

A topology document stores shared boundaries once, as arcs, and describes each
geometry as a list of arc indices. Decoding stitches those arcs back into
standalone rings, applies the quantization transform, and reprojects polygon
coordinates into longitude/latitude.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from budgetmap.common.constants import TOPOLOGY_TYPE, WEB_MERCATOR_EPSG
from budgetmap.common.errors import FormatError, GeometryError
from budgetmap.common.geometry import close_ring, map_polygon_positions
from budgetmap.common.logging import get_logger, log_event
from budgetmap.common.models import BoundaryFeature
from budgetmap.pipeline.reproject import Reprojector, reprojector_for

logger = get_logger(__name__)

POLYGONAL_TYPES = ("Polygon", "MultiPolygon")


class ArcSet:
    """Decoded, cached view over a topology's arc array."""

    def __init__(self, arcs: Sequence[Sequence[Sequence[float]]], transform: Mapping[str, Any] | None) -> None:
        self.arcs = arcs
        self.scale: tuple[float, float] | None = None
        self.translate: tuple[float, float] = (0.0, 0.0)
        if transform:
            try:
                self.scale = (float(transform["scale"][0]), float(transform["scale"][1]))
                self.translate = (float(transform["translate"][0]), float(transform["translate"][1]))
            except (KeyError, IndexError, TypeError, ValueError) as exc:
                raise FormatError("Topology transform must declare numeric scale and translate") from exc
        self._cache: dict[int, list[list[float]]] = {}

    def point(self, position: Sequence[float]) -> list[float]:
        """Dequantize a standalone (non delta-encoded) position."""
        if self.scale is None:
            return [float(v) for v in position]
        x = position[0] * self.scale[0] + self.translate[0]
        y = position[1] * self.scale[1] + self.translate[1]
        return [x, y, *position[2:]]

    def _decode_arc(self, index: int) -> list[list[float]]:
        raw = self.arcs[index]
        if self.scale is None:
            return [[float(v) for v in position] for position in raw]
        x = 0.0
        y = 0.0
        out = []
        for position in raw:
            x += position[0]
            y += position[1]
            out.append([x * self.scale[0] + self.translate[0], y * self.scale[1] + self.translate[1], *position[2:]])
        return out

    def arc(self, index: int) -> list[list[float]]:
        """Return arc ``index`` as absolute positions; negative indices run reversed."""
        actual = ~index if index < 0 else index
        if actual >= len(self.arcs):
            raise GeometryError(f"Arc index {index} out of range ({len(self.arcs)} arcs)")
        decoded = self._cache.get(actual)
        if decoded is None:
            decoded = self._decode_arc(actual)
            self._cache[actual] = decoded
        if index < 0:
            return [list(p) for p in reversed(decoded)]
        return [list(p) for p in decoded]

    def stitch(self, indices: Sequence[int]) -> list[list[float]]:
        points: list[list[float]] = []
        for index in indices:
            arc = self.arc(int(index))
            # Consecutive arcs share an endpoint.
            if points:
                points.pop()
            points.extend(arc)
        return points

    def line(self, indices: Sequence[int]) -> list[list[float]]:
        points = self.stitch(indices)
        if len(points) < 2 and points:
            points.append(list(points[0]))
        return points

    def ring(self, indices: Sequence[int]) -> list[list[float]]:
        points = self.stitch(indices)
        if not points:
            raise GeometryError("Ring references no arcs")
        return close_ring(points)


def _validate_document(topology: Any) -> Mapping[str, Any]:
    if not isinstance(topology, Mapping):
        raise FormatError("Topology document must be a JSON object")
    if topology.get("type") != TOPOLOGY_TYPE:
        raise FormatError(f"Unexpected document type: {topology.get('type')!r}")
    objects = topology.get("objects")
    if not isinstance(objects, Mapping) or not objects:
        raise FormatError("No objects found in topology document")
    if not isinstance(topology.get("arcs", []), list):
        raise FormatError("Topology arcs must be a list")
    return objects


def _decode_geometry(geometry: Mapping[str, Any], arcs: ArcSet) -> dict[str, Any] | None:
    gtype = geometry.get("type")
    if gtype is None:
        return None
    try:
        if gtype == "GeometryCollection":
            return {
                "type": "GeometryCollection",
                "geometries": [_decode_geometry(member, arcs) for member in geometry.get("geometries", [])],
            }
        if gtype == "Point":
            return {"type": gtype, "coordinates": arcs.point(geometry["coordinates"])}
        if gtype == "MultiPoint":
            return {"type": gtype, "coordinates": [arcs.point(p) for p in geometry["coordinates"]]}
        if gtype == "LineString":
            return {"type": gtype, "coordinates": arcs.line(geometry["arcs"])}
        if gtype == "MultiLineString":
            return {"type": gtype, "coordinates": [arcs.line(line) for line in geometry["arcs"]]}
        if gtype == "Polygon":
            return {"type": gtype, "coordinates": [arcs.ring(ring) for ring in geometry["arcs"]]}
        if gtype == "MultiPolygon":
            return {
                "type": gtype,
                "coordinates": [[arcs.ring(ring) for ring in polygon] for polygon in geometry["arcs"]],
            }
    except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
        raise GeometryError(f"Malformed {gtype} geometry: {exc}") from exc
    raise GeometryError(f"Unsupported geometry type: {gtype!r}")


def _to_geographic(geometry: dict[str, Any] | None, to_lon_lat: Reprojector) -> dict[str, Any] | None:
    if not geometry:
        return geometry
    if geometry.get("type") == "GeometryCollection":
        return {
            **geometry,
            "geometries": [_to_geographic(member, to_lon_lat) for member in geometry["geometries"]],
        }
    if geometry.get("type") in POLYGONAL_TYPES:
        return map_polygon_positions(geometry, to_lon_lat)
    return geometry


def _decode_feature(geometry: Any, arcs: ArcSet, to_lon_lat: Reprojector, index: int) -> BoundaryFeature:
    if not isinstance(geometry, Mapping):
        return BoundaryFeature(geometry=None, properties={})
    properties = geometry.get("properties") or {}
    feature_id = geometry.get("id")
    try:
        decoded = _to_geographic(_decode_geometry(geometry, arcs), to_lon_lat)
    except GeometryError as exc:
        log_event(
            logger,
            f"geometry {index} could not be decoded: {exc}",
            level=logging.WARNING,
            stage="decode",
            event="GEOMETRY_SKIPPED",
            status="warn",
            error_code=exc.error_code,
        )
        decoded = None
    return BoundaryFeature(geometry=decoded, properties=properties, feature_id=feature_id)


def decode(topology: Mapping[str, Any], *, source_epsg: int = WEB_MERCATOR_EPSG) -> list[BoundaryFeature]:
    """Convert a topology document into boundary features in source order.

    Only the first named object of the document is decoded. Features whose
    geometry is null, or cannot be stitched, are returned with ``geometry=None``.
    """
    objects = _validate_document(topology)
    object_name = next(iter(objects))
    collection = objects[object_name]
    if not isinstance(collection, Mapping):
        raise FormatError(f"Topology object {object_name!r} must be a JSON object")

    if collection.get("type") == "GeometryCollection":
        geometries = collection.get("geometries")
        if not isinstance(geometries, list):
            raise FormatError(f"Topology object {object_name!r} has no geometries list")
    else:
        geometries = [collection]

    arcs = ArcSet(topology.get("arcs", []), topology.get("transform"))
    to_lon_lat = reprojector_for(source_epsg)

    features = [_decode_feature(geometry, arcs, to_lon_lat, index) for index, geometry in enumerate(geometries)]

    log_event(
        logger,
        f"decoded topology object {object_name}",
        stage="decode",
        event="DECODE_END",
        status="ok",
        features_in=len(geometries),
        features_out=sum(1 for feature in features if feature.geometry is not None),
    )
    return features
