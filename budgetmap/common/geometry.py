"""Geometry helpers."""

from __future__ import annotations

from typing import Any, Callable, Sequence

Position = list[float]
Ring = list[Position]

MIN_RING_POSITIONS = 4


def close_ring(ring: Ring) -> Ring:
    if not ring:
        return ring
    if ring[0] != ring[-1]:
        ring.append(list(ring[0]))
    while len(ring) < MIN_RING_POSITIONS:
        ring.append(list(ring[0]))
    return ring


def map_polygon_positions(
    geometry: dict[str, Any] | None,
    fn: Callable[[float, float], tuple[float, float]],
) -> dict[str, Any] | None:
    """Return a copy of a Polygon/MultiPolygon with every position mapped by ``fn``."""
    if not geometry:
        return geometry
    gtype = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if gtype == "Polygon":
        mapped = [_map_ring(ring, fn) for ring in coordinates]
    elif gtype == "MultiPolygon":
        mapped = [[_map_ring(ring, fn) for ring in polygon] for polygon in coordinates]
    else:
        return geometry
    return {**geometry, "coordinates": mapped}


def _map_ring(ring: Sequence[Sequence[float]], fn: Callable[[float, float], tuple[float, float]]) -> Ring:
    return [list(fn(position[0], position[1])) for position in ring]

