"""
Filter-based Ride Matching
==========================

A rider's request and a driver's offered ride are compatible when ALL of
the following hold:

1. **Destination proximity** -- destinations within ``max_km``.
2. **Pickup proximity**      -- pickups within ``max_km``.
3. **Time window**           -- ``|preferred_time - departure_time| <= window``.
4. **Availability**          -- the ride has seats left and is still PENDING
                                (ride side) / the request is still PENDING
                                (request side).

The criteria are AND-combined filters, not a weighted score, so a decision
is always explainable by the one criterion that failed.  Results keep the
caller's candidate order; no ranking is applied.

Complexity
----------
O(N) per call for N candidates, two haversine evaluations each.  The store
narrows N with an H3 pickup index before calling in here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Sequence

import h3

from .distance import DEFAULT_NEARBY_KM, is_nearby
from .entities import OfferedRide, RideRequest, ensure_utc
from .enums import OfferedRideStatus, RequestStatus

DEFAULT_TIME_WINDOW = timedelta(minutes=30)


@dataclass(frozen=True)
class MatchingPolicy:
    max_distance_km: float = DEFAULT_NEARBY_KM
    time_window: timedelta = DEFAULT_TIME_WINDOW

    @classmethod
    def from_settings(cls, settings) -> MatchingPolicy:
        return cls(
            max_distance_km=settings.match_radius_km,
            time_window=timedelta(minutes=settings.match_time_window_minutes),
        )


def ride_h3_cell(lat: float, lng: float, resolution: int = 7) -> str:
    """Map a geo-point to an H3 hexagonal cell index.  O(1)."""
    return h3.latlng_to_cell(lat, lng, resolution)


def is_time_compatible(
    a: datetime, b: datetime, window: timedelta = DEFAULT_TIME_WINDOW
) -> bool:
    return abs(ensure_utc(a) - ensure_utc(b)) <= window


def _route_compatible(
    request: RideRequest,
    ride: OfferedRide,
    max_km: float,
    time_window: timedelta,
) -> bool:
    return (
        is_nearby(request.destination, ride.destination, max_km)
        and is_nearby(request.pickup, ride.pickup, max_km)
        and is_time_compatible(request.preferred_time, ride.departure_time, time_window)
    )


def find_matching_rides(
    request: RideRequest,
    candidates: Sequence[OfferedRide],
    max_km: float = DEFAULT_NEARBY_KM,
    time_window: timedelta = DEFAULT_TIME_WINDOW,
) -> list[OfferedRide]:
    """Offered rides a rider could join, in candidate order."""
    return [
        ride
        for ride in candidates
        if ride.available_seats > 0
        and ride.status == OfferedRideStatus.PENDING
        and _route_compatible(request, ride, max_km, time_window)
    ]


def find_matching_requests(
    ride: OfferedRide,
    candidates: Sequence[RideRequest],
    max_km: float = DEFAULT_NEARBY_KM,
    time_window: timedelta = DEFAULT_TIME_WINDOW,
) -> list[RideRequest]:
    """Pending requests a driver could pick up, in candidate order."""
    return [
        request
        for request in candidates
        if request.status == RequestStatus.PENDING
        and _route_compatible(request, ride, max_km, time_window)
    ]


def common_interests(interest_sets: Iterable[Iterable[str]]) -> list[str]:
    """Interests shared by every participant, in the first one's order."""
    sets = [list(s) for s in interest_sets]
    if not sets:
        return []
    common = sorted(sets[0])
    for other in sets[1:]:
        members = set(other)
        common = [interest for interest in common if interest in members]
    return common
