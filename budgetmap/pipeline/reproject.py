"""Coordinate reprojection between Web Mercator metres and WGS84 degrees."""

from __future__ import annotations

import math
from typing import Callable

from pyproj import CRS, Transformer

from budgetmap.common.constants import WEB_MERCATOR_ALIASES, WEB_MERCATOR_BOUND, WGS84_EPSG

Reprojector = Callable[[float, float], tuple[float, float]]


def reproject(x: float, y: float) -> tuple[float, float]:
    """Inverse spherical Mercator: projected metres to (longitude, latitude)."""
    lon = x * 180 / WEB_MERCATOR_BOUND
    try:
        lat = math.atan(math.exp(y * math.pi / WEB_MERCATOR_BOUND)) * 360 / math.pi - 90
    except OverflowError:
        lat = 90.0
    return lon, lat


def project(lon: float, lat: float) -> tuple[float, float]:
    """Forward spherical Mercator: (longitude, latitude) to projected metres."""
    x = lon * WEB_MERCATOR_BOUND / 180
    y = math.log(math.tan((90 + lat) * math.pi / 360)) * WEB_MERCATOR_BOUND / math.pi
    return x, y


def _identity(x: float, y: float) -> tuple[float, float]:
    return x, y


def _pyproj_reprojector(source_epsg: int) -> Reprojector:
    transformer = Transformer.from_crs(CRS.from_epsg(source_epsg), CRS.from_epsg(WGS84_EPSG), always_xy=True)

    def _transform(x: float, y: float) -> tuple[float, float]:
        lon, lat = transformer.transform(x, y)
        return lon, lat

    return _transform


def reprojector_for(source_epsg: int) -> Reprojector:
    if source_epsg in WEB_MERCATOR_ALIASES:
        return reproject
    if source_epsg == WGS84_EPSG:
        return _identity
    return _pyproj_reprojector(source_epsg)
