"""Domain enumerations and state-transition rules."""

import enum


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    MATCHED = "matched"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OfferedRideStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MatchStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EntityKind(str, enum.Enum):
    REQUEST = "request"
    OFFERED_RIDE = "offered_ride"
    MATCH = "match"


# State machines: map current status -> set of valid next statuses
REQUEST_TRANSITIONS: dict[RequestStatus, set[RequestStatus]] = {
    RequestStatus.PENDING: {RequestStatus.MATCHED, RequestStatus.CANCELLED},
    RequestStatus.MATCHED: {RequestStatus.COMPLETED},
    RequestStatus.COMPLETED: set(),
    RequestStatus.CANCELLED: set(),
}

OFFERED_RIDE_TRANSITIONS: dict[OfferedRideStatus, set[OfferedRideStatus]] = {
    OfferedRideStatus.PENDING: {OfferedRideStatus.ACTIVE, OfferedRideStatus.CANCELLED},
    OfferedRideStatus.ACTIVE: {OfferedRideStatus.COMPLETED},
    OfferedRideStatus.COMPLETED: set(),
    OfferedRideStatus.CANCELLED: set(),
}

MATCH_TRANSITIONS: dict[MatchStatus, set[MatchStatus]] = {
    MatchStatus.PENDING: {MatchStatus.CONFIRMED, MatchStatus.CANCELLED},
    MatchStatus.CONFIRMED: {MatchStatus.COMPLETED, MatchStatus.CANCELLED},
    MatchStatus.COMPLETED: set(),
    MatchStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = {"completed", "cancelled"}
