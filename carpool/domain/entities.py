"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``RideRequest``, ``OfferedRide`` and ``RideMatch``:
  each entity enforces its own lifecycle transitions through
  ``transition_to`` and a per-kind transition table.
- ``OfferedRide.take_seat`` encapsulates the seat-capacity invariant.
- ``RideEntity`` is a tagged variant for mixed "upcoming rides" lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import enum
from typing import Mapping, NamedTuple, Optional, TypeVar, Union

from .enums import (
    MATCH_TRANSITIONS,
    OFFERED_RIDE_TRANSITIONS,
    REQUEST_TRANSITIONS,
    EntityKind,
    MatchStatus,
    OfferedRideStatus,
    RequestStatus,
)
from .errors import ExhaustedCapacity, InvalidState

StatusT = TypeVar("StatusT", bound=enum.Enum)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons never mix the two."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _transition(
    entity: RideRecord,
    table: Mapping[StatusT, set[StatusT]],
    new_status: StatusT,
) -> None:
    allowed = table.get(entity.status, set())
    if new_status not in allowed:
        raise InvalidState(
            f"Cannot transition {type(entity).__name__} {entity.id} "
            f"from {entity.status.value} to {new_status.value}"
        )
    entity.status = new_status


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    """A point compared by coordinates only; labels are informational."""

    lat: float
    lng: float
    name: Optional[str] = field(default=None, compare=False)
    address: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class VehicleInfo:
    model: str
    color: str
    license_plate: str
    seats: int
    license_url: Optional[str] = None
    govt_id_url: Optional[str] = None


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class RideRequest:
    id: str
    user_id: str
    pickup: Location
    destination: Location
    preferred_time: datetime
    interests: frozenset[str] = frozenset()
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)

    def transition_to(self, new_status: RequestStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        _transition(self, REQUEST_TRANSITIONS, new_status)


@dataclass
class OfferedRide:
    id: str
    driver_id: str
    pickup: Location
    destination: Location
    departure_time: datetime
    vehicle_info: VehicleInfo
    available_seats: int
    price: int
    status: OfferedRideStatus = OfferedRideStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)

    def transition_to(self, new_status: OfferedRideStatus) -> None:
        _transition(self, OFFERED_RIDE_TRANSITIONS, new_status)

    def take_seat(self) -> None:
        """Consume one seat; the ride turns ACTIVE once the last is gone."""
        if self.available_seats <= 0:
            raise ExhaustedCapacity(self.id)
        if self.status != OfferedRideStatus.PENDING:
            raise InvalidState(
                f"Offered ride {self.id} is {self.status.value}, not pending"
            )
        self.available_seats -= 1
        if self.available_seats == 0:
            self.transition_to(OfferedRideStatus.ACTIVE)


@dataclass
class RideMatch:
    id: str
    riders: list[str]
    common_pickup: Location
    destination: Location
    departure_time: datetime
    price: int
    driver_id: Optional[str] = None
    common_interests: list[str] = field(default_factory=list)
    # centroid of the riders' and driver's own pickup points
    meeting_point: Optional[Location] = None
    status: MatchStatus = MatchStatus.CONFIRMED
    created_at: datetime = field(default_factory=utcnow)

    def transition_to(self, new_status: MatchStatus) -> None:
        _transition(self, MATCH_TRANSITIONS, new_status)


# ── Projections ───────────────────────────────────────────────────────


RideRecord = Union[RideRequest, OfferedRide, RideMatch]


@dataclass(frozen=True)
class RideEntity:
    """One entry of a mixed list, discriminated by ``kind``."""

    kind: EntityKind
    id: str
    when: datetime
    status: str
    record: RideRecord

    @classmethod
    def of(cls, record: RideRecord) -> RideEntity:
        if isinstance(record, RideRequest):
            return cls(EntityKind.REQUEST, record.id, record.preferred_time,
                       record.status.value, record)
        if isinstance(record, OfferedRide):
            return cls(EntityKind.OFFERED_RIDE, record.id, record.departure_time,
                       record.status.value, record)
        return cls(EntityKind.MATCH, record.id, record.departure_time,
                   record.status.value, record)


class UserRides(NamedTuple):
    requests: list[RideRequest]
    offered: list[OfferedRide]
    matches: list[RideMatch]
