"""
Ride / Request / Match lifecycle store.

``RideStore`` exclusively owns the three collections.  Every mutation goes
through one of its methods and runs under a single re-entrant lock, so the
seat decrement in ``create_match`` is serialised even when the store is
shared by concurrent API workers.  Reads hand out deep copies; callers never
hold a reference into the store's own records.

Lifecycle
---------
* RideRequest: PENDING -> MATCHED (via ``create_match`` only) | CANCELLED
* OfferedRide: PENDING -> ACTIVE (no seats left) | CANCELLED
* RideMatch:   created CONFIRMED, snapshotting the offered ride
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, Optional

from .distance import calculate_center
from .entities import (
    Location,
    OfferedRide,
    RideEntity,
    RideMatch,
    RideRequest,
    UserRides,
    VehicleInfo,
    ensure_utc,
    utcnow,
)
from .enums import (
    TERMINAL_STATUSES,
    MatchStatus,
    OfferedRideStatus,
    RequestStatus,
)
from .errors import ExhaustedCapacity, InvalidState, NotFound
from .matching import (
    MatchingPolicy,
    common_interests,
    find_matching_requests,
    find_matching_rides,
)
from .pricing import PricingEngine
from .spatial_index import PickupCellIndex

logger = logging.getLogger(__name__)

MatchListener = Callable[[RideMatch], None]

REQUESTS = "ride_requests"
OFFERED_RIDES = "offered_rides"
MATCHES = "ride_matches"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class RideStore:
    def __init__(
        self,
        policy: MatchingPolicy | None = None,
        pricing: PricingEngine | None = None,
        h3_resolution: int = 7,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.policy = policy or MatchingPolicy()
        self.pricing = pricing or PricingEngine()
        self._clock = clock
        self._lock = threading.RLock()
        self._requests: dict[str, RideRequest] = {}
        self._offered: dict[str, OfferedRide] = {}
        self._matches: dict[str, RideMatch] = {}
        self._request_index = PickupCellIndex(h3_resolution)
        self._offered_index = PickupCellIndex(h3_resolution)
        self._listeners: list[MatchListener] = []

    @classmethod
    def from_settings(cls, settings) -> RideStore:
        return cls(
            policy=MatchingPolicy.from_settings(settings),
            pricing=PricingEngine(settings.base_fare, settings.rate_per_km),
            h3_resolution=settings.h3_resolution,
        )

    # ── Lookups ───────────────────────────────────────────────────

    def _request(self, request_id: str) -> RideRequest:
        try:
            return self._requests[request_id]
        except KeyError:
            raise NotFound("Ride request", request_id) from None

    def _ride(self, ride_id: str) -> OfferedRide:
        try:
            return self._offered[ride_id]
        except KeyError:
            raise NotFound("Offered ride", ride_id) from None

    def get_request(self, request_id: str) -> RideRequest:
        with self._lock:
            return copy.deepcopy(self._request(request_id))

    def get_offered_ride(self, ride_id: str) -> OfferedRide:
        with self._lock:
            return copy.deepcopy(self._ride(ride_id))

    def get_match(self, match_id: str) -> RideMatch:
        with self._lock:
            try:
                return copy.deepcopy(self._matches[match_id])
            except KeyError:
                raise NotFound("Ride match", match_id) from None

    # ── Ride requests ─────────────────────────────────────────────

    def create_request(
        self,
        user_id: str,
        pickup: Location,
        destination: Location,
        preferred_time: datetime,
        interests: Iterable[str] = (),
    ) -> RideRequest:
        request = RideRequest(
            id=_new_id("req"),
            user_id=user_id,
            pickup=pickup,
            destination=destination,
            preferred_time=ensure_utc(preferred_time),
            interests=frozenset(interests),
            created_at=self._clock(),
        )
        with self._lock:
            self._requests[request.id] = request
            self._request_index.add(request.id, pickup)
            return copy.deepcopy(request)

    def update_request(
        self,
        request_id: str,
        *,
        pickup: Optional[Location] = None,
        destination: Optional[Location] = None,
        preferred_time: Optional[datetime] = None,
        interests: Optional[Iterable[str]] = None,
    ) -> RideRequest:
        with self._lock:
            request = self._request(request_id)
            if request.status != RequestStatus.PENDING:
                raise InvalidState(
                    f"Ride request {request_id} is {request.status.value}; "
                    "only pending requests can be edited"
                )
            if pickup is not None:
                request.pickup = pickup
                self._request_index.add(request.id, pickup)
            if destination is not None:
                request.destination = destination
            if preferred_time is not None:
                request.preferred_time = ensure_utc(preferred_time)
            if interests is not None:
                request.interests = frozenset(interests)
            return copy.deepcopy(request)

    def cancel_request(self, request_id: str) -> RideRequest:
        with self._lock:
            request = self._request(request_id)
            request.transition_to(RequestStatus.CANCELLED)
            self._request_index.discard(request_id)
            logger.debug("Ride request %s cancelled", request_id)
            return copy.deepcopy(request)

    # ── Offered rides ─────────────────────────────────────────────

    def offer_ride(
        self,
        driver_id: str,
        pickup: Location,
        destination: Location,
        departure_time: datetime,
        vehicle_info: VehicleInfo,
        available_seats: int,
    ) -> OfferedRide:
        if available_seats < 0:
            raise ValueError("available_seats must be >= 0")
        ride = OfferedRide(
            id=_new_id("off"),
            driver_id=driver_id,
            pickup=pickup,
            destination=destination,
            departure_time=ensure_utc(departure_time),
            vehicle_info=vehicle_info,
            available_seats=available_seats,
            price=self.pricing.calculate_price(pickup, destination),
            created_at=self._clock(),
        )
        if available_seats == 0:
            ride.transition_to(OfferedRideStatus.ACTIVE)
        with self._lock:
            self._offered[ride.id] = ride
            if ride.status == OfferedRideStatus.PENDING:
                self._offered_index.add(ride.id, pickup)
            return copy.deepcopy(ride)

    def update_offered_ride(
        self,
        ride_id: str,
        *,
        pickup: Optional[Location] = None,
        destination: Optional[Location] = None,
        departure_time: Optional[datetime] = None,
        available_seats: Optional[int] = None,
    ) -> OfferedRide:
        if available_seats is not None and available_seats < 0:
            raise ValueError("available_seats must be >= 0")
        with self._lock:
            ride = self._ride(ride_id)
            if ride.status != OfferedRideStatus.PENDING:
                raise InvalidState(
                    f"Offered ride {ride_id} is {ride.status.value}; "
                    "only pending rides can be edited"
                )
            if pickup is not None:
                ride.pickup = pickup
                self._offered_index.add(ride.id, pickup)
            if destination is not None:
                ride.destination = destination
            if pickup is not None or destination is not None:
                ride.price = self.pricing.calculate_price(ride.pickup, ride.destination)
            if departure_time is not None:
                ride.departure_time = ensure_utc(departure_time)
            if available_seats is not None:
                ride.available_seats = available_seats
                if available_seats == 0:
                    ride.transition_to(OfferedRideStatus.ACTIVE)
                    self._offered_index.discard(ride.id)
            return copy.deepcopy(ride)

    def cancel_offered_ride(self, ride_id: str) -> OfferedRide:
        with self._lock:
            ride = self._ride(ride_id)
            ride.transition_to(OfferedRideStatus.CANCELLED)
            self._offered_index.discard(ride_id)
            logger.debug("Offered ride %s cancelled", ride_id)
            return copy.deepcopy(ride)

    # ── Matching ──────────────────────────────────────────────────

    def find_matches(self, request_id: str) -> list[OfferedRide]:
        """Offered rides compatible with a request, in offer order."""
        with self._lock:
            request = self._request(request_id)
            ids = self._offered_index.candidates(
                request.pickup, self.policy.max_distance_km
            )
            candidates = [
                r for r in self._offered.values() if ids is None or r.id in ids
            ]
            found = find_matching_rides(
                request,
                candidates,
                self.policy.max_distance_km,
                self.policy.time_window,
            )
            return copy.deepcopy(found)

    def find_riders(self, ride_id: str) -> list[RideRequest]:
        """Pending requests compatible with an offered ride, in request order."""
        with self._lock:
            ride = self._ride(ride_id)
            ids = self._request_index.candidates(
                ride.pickup, self.policy.max_distance_km
            )
            candidates = [
                r for r in self._requests.values() if ids is None or r.id in ids
            ]
            found = find_matching_requests(
                ride,
                candidates,
                self.policy.max_distance_km,
                self.policy.time_window,
            )
            return copy.deepcopy(found)

    def create_match(self, request_id: str, offered_ride_id: str) -> RideMatch:
        """
        Pair a request with an offered ride.

        The match snapshots the ride's pickup, destination, departure time
        and price, and records the riders' shared interests and a meeting
        point between the two pickups.  The request turns MATCHED and the
        ride gives up one seat, turning ACTIVE when none are left.  Either
        every change is applied or none is.
        """
        with self._lock:
            request = self._request(request_id)
            ride = self._ride(offered_ride_id)
            if ride.available_seats <= 0:
                raise ExhaustedCapacity(ride.id)
            if request.status != RequestStatus.PENDING:
                raise InvalidState(
                    f"Ride request {request_id} is {request.status.value}, not pending"
                )

            # take_seat validates capacity and status before mutating
            ride.take_seat()
            request.transition_to(RequestStatus.MATCHED)
            self._request_index.discard(request_id)
            if ride.status != OfferedRideStatus.PENDING:
                self._offered_index.discard(ride.id)

            match = RideMatch(
                id=_new_id("match"),
                riders=[request.user_id],
                driver_id=ride.driver_id,
                common_interests=common_interests([request.interests]),
                meeting_point=calculate_center([request.pickup, ride.pickup]),
                common_pickup=ride.pickup,
                destination=ride.destination,
                departure_time=ride.departure_time,
                price=ride.price,
                status=MatchStatus.CONFIRMED,
                created_at=self._clock(),
            )
            self._matches[match.id] = match
            logger.info(
                "Matched request %s with ride %s (%d seats left)",
                request_id,
                ride.id,
                ride.available_seats,
            )
            result = copy.deepcopy(match)

        self._notify(result)
        return result

    def subscribe(self, listener: MatchListener) -> None:
        """Register *listener* to receive every newly created match."""
        self._listeners.append(listener)

    def _notify(self, match: RideMatch) -> None:
        for listener in list(self._listeners):
            try:
                listener(copy.deepcopy(match))
            except Exception:
                logger.exception("Match listener %r failed", listener)

    # ── Projections ───────────────────────────────────────────────

    def get_user_rides(self, user_id: str) -> UserRides:
        with self._lock:
            return UserRides(
                requests=[
                    copy.deepcopy(r)
                    for r in self._requests.values()
                    if r.user_id == user_id
                ],
                offered=[
                    copy.deepcopy(r)
                    for r in self._offered.values()
                    if r.driver_id == user_id
                ],
                matches=[
                    copy.deepcopy(m)
                    for m in self._matches.values()
                    if user_id in m.riders or m.driver_id == user_id
                ],
            )

    def upcoming_rides(
        self, user_id: str, now: Optional[datetime] = None
    ) -> list[RideEntity]:
        """The user's live requests, offers and matches, soonest first."""
        now = ensure_utc(now) if now else self._clock()
        rides = self.get_user_rides(user_id)
        entities = [
            RideEntity.of(record)
            for record in (*rides.requests, *rides.offered, *rides.matches)
        ]
        return sorted(
            (
                e
                for e in entities
                if e.status not in TERMINAL_STATUSES and e.when >= now
            ),
            key=lambda e: e.when,
        )

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "requests": len(self._requests),
                "pending_requests": sum(
                    r.status == RequestStatus.PENDING for r in self._requests.values()
                ),
                "offered_rides": len(self._offered),
                "open_rides": sum(
                    r.status == OfferedRideStatus.PENDING and r.available_seats > 0
                    for r in self._offered.values()
                ),
                "matches": len(self._matches),
            }

    # ── Snapshots ─────────────────────────────────────────────────

    def dump(self) -> dict[str, list]:
        """Copy of every collection, keyed by collection name."""
        with self._lock:
            return {
                REQUESTS: copy.deepcopy(list(self._requests.values())),
                OFFERED_RIDES: copy.deepcopy(list(self._offered.values())),
                MATCHES: copy.deepcopy(list(self._matches.values())),
            }

    def load(self, collections: dict[str, list]) -> None:
        """Replace the named collections; absent names are left untouched."""
        with self._lock:
            if REQUESTS in collections:
                self._requests = {r.id: replace(r) for r in collections[REQUESTS]}
                self._request_index = PickupCellIndex(self._request_index.resolution)
                for r in self._requests.values():
                    if r.status == RequestStatus.PENDING:
                        self._request_index.add(r.id, r.pickup)
            if OFFERED_RIDES in collections:
                self._offered = {r.id: replace(r) for r in collections[OFFERED_RIDES]}
                self._offered_index = PickupCellIndex(self._offered_index.resolution)
                for r in self._offered.values():
                    if r.status == OfferedRideStatus.PENDING:
                        self._offered_index.add(r.id, r.pickup)
            if MATCHES in collections:
                self._matches = {
                    m.id: replace(m, riders=list(m.riders))
                    for m in collections[MATCHES]
                }
