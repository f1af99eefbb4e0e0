"""
Distance calculation using the Haversine formula.

Assumption
----------
We use great-circle (Haversine) distance instead of a real routing engine
(OSRM / Google Maps) to keep matching self-contained and deterministic.
Coordinates are not range-checked here; the API boundary validates them.

Complexity: O(1) per call.
"""

from __future__ import annotations

import math
from typing import Iterable

from .entities import Location

EARTH_RADIUS_KM = 6_371.0
DEFAULT_NEARBY_KM = 5.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    # out-of-range latitudes can push the term outside [0, 1]
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def distance_km(a: Location, b: Location) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def is_nearby(a: Location, b: Location, max_km: float = DEFAULT_NEARBY_KM) -> bool:
    return distance_km(a, b) <= max_km


def calculate_center(locations: Iterable[Location]) -> Location:
    """Arithmetic centroid of *locations*; the origin when there are none."""
    points = list(locations)
    if not points:
        return Location(0.0, 0.0)
    return Location(
        sum(p.lat for p in points) / len(points),
        sum(p.lng for p in points) / len(points),
    )


def format_distance(km: float) -> str:
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{km:.1f} km"
