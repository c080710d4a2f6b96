"""Mini README: Great-circle helpers for survey analytics.

Structure:
    * great_circle_distance_meters - haversine distance between two fixes.
    * bounding_box_area_hectares - rough monitored area from the fixes' extent.
    * average_pairwise_distance - mean spacing over every unordered pair.
    * planting_density - trees per hectare when an area is defined.

All functions are pure and accept any object exposing ``latitude`` and
``longitude`` in decimal degrees (normally ``GeoFix``). Results that do not
apply (too few points, zero area) are ``None`` rather than ``0.0`` so callers
render them as "not applicable".
"""

from __future__ import annotations

import math
from itertools import combinations
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from ..entries.model import GeoFix

EARTH_RADIUS_M = 6_371_000.0
SQUARE_METRES_PER_HECTARE = 10_000.0


def great_circle_distance_meters(a: "GeoFix", b: "GeoFix") -> float:
    """Return the haversine distance in metres on a spherical Earth."""

    return _haversine_meters(a.latitude, a.longitude, b.latitude, b.longitude)


def _haversine_meters(lat_a: float, lon_a: float, lat_b: float, lon_b: float) -> float:
    phi_a = math.radians(lat_a)
    phi_b = math.radians(lat_b)
    delta_phi = math.radians(lat_b - lat_a)
    delta_lambda = math.radians(lon_b - lon_a)

    haversine = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi_a) * math.cos(phi_b) * math.sin(delta_lambda / 2) ** 2
    )
    # Rounding can push the term a hair past 1 for antipodal points.
    haversine = min(1.0, haversine)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(haversine), math.sqrt(1 - haversine))


def _distinct(points: Sequence["GeoFix"]) -> set:
    return {(point.latitude, point.longitude) for point in points}


def bounding_box_area_hectares(points: Sequence["GeoFix"]) -> Optional[float]:
    """Estimate the monitored area from the west-east and south-north extent.

    Both legs are measured as great-circle distances anchored on the minimum
    latitude and minimum longitude respectively.
    """

    if len(_distinct(points)) < 2:
        return None

    lat_min = min(point.latitude for point in points)
    lat_max = max(point.latitude for point in points)
    lon_min = min(point.longitude for point in points)
    lon_max = max(point.longitude for point in points)

    width_m = _haversine_meters(lat_min, lon_min, lat_min, lon_max)
    height_m = _haversine_meters(lat_min, lon_min, lat_max, lon_min)
    area_ha = (width_m * height_m) / SQUARE_METRES_PER_HECTARE
    if area_ha == 0:
        return None
    return area_ha


def average_pairwise_distance(points: Sequence["GeoFix"]) -> Optional[float]:
    """Mean distance over all unordered pairs, ``None`` below two points."""

    if len(points) < 2:
        return None
    distances = [great_circle_distance_meters(a, b) for a, b in combinations(points, 2)]
    return sum(distances) / len(distances)


def planting_density(count: int, area_hectares: Optional[float]) -> Optional[float]:
    """Entries per hectare, only defined when the area is."""

    if area_hectares is None or area_hectares <= 0:
        return None
    return count / area_hectares
