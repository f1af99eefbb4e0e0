"""Typed failures surfaced by the lifecycle store."""


class CarpoolError(Exception):
    """Base class for domain errors."""


class NotFound(CarpoolError):
    """A referenced request, offered ride or match does not exist."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id!r} not found")


class InvalidState(CarpoolError):
    """Raised when a status change violates an entity's state machine."""


class ExhaustedCapacity(CarpoolError):
    """Raised when matching against an offered ride with no seats left."""

    def __init__(self, ride_id: str):
        self.ride_id = ride_id
        super().__init__(f"Offered ride {ride_id!r} has no available seats")
