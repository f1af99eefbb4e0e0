"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from carpool.domain.entities import Location, VehicleInfo
from carpool.domain.enums import (
    EntityKind,
    MatchStatus,
    OfferedRideStatus,
    RequestStatus,
)


# ── Shared ────────────────────────────────────────────────────────────


class LocationSchema(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    name: Optional[str] = None
    address: Optional[str] = None

    model_config = {"from_attributes": True}

    def to_domain(self) -> Location:
        return Location(self.lat, self.lng, self.name, self.address)


class VehicleInfoSchema(BaseModel):
    model: str
    color: str
    license_plate: str
    seats: int = Field(..., ge=1, le=12)
    license_url: Optional[str] = None
    govt_id_url: Optional[str] = None

    model_config = {"from_attributes": True}

    def to_domain(self) -> VehicleInfo:
        return VehicleInfo(**self.model_dump())


# ── Requests ──────────────────────────────────────────────────────────


class RideRequestCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    pickup: LocationSchema
    destination: LocationSchema
    preferred_time: datetime
    interests: list[str] = []


class OfferedRideCreate(BaseModel):
    driver_id: str = Field(..., min_length=1)
    pickup: LocationSchema
    destination: LocationSchema
    departure_time: datetime
    vehicle_info: VehicleInfoSchema
    available_seats: int = Field(..., ge=1, le=12)


class MatchCreate(BaseModel):
    request_id: str
    offered_ride_id: str


# ── Responses ─────────────────────────────────────────────────────────


class RideRequestResponse(BaseModel):
    id: str
    user_id: str
    pickup: LocationSchema
    destination: LocationSchema
    preferred_time: datetime
    interests: list[str]
    status: RequestStatus
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("interests", mode="before")
    @classmethod
    def _sorted_interests(cls, value):
        return sorted(value)


class OfferedRideResponse(BaseModel):
    id: str
    driver_id: str
    pickup: LocationSchema
    destination: LocationSchema
    departure_time: datetime
    vehicle_info: VehicleInfoSchema
    available_seats: int
    price: int
    status: OfferedRideStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class RideMatchResponse(BaseModel):
    id: str
    riders: list[str]
    driver_id: Optional[str] = None
    common_interests: list[str] = []
    meeting_point: Optional[LocationSchema] = None
    common_pickup: LocationSchema
    destination: LocationSchema
    departure_time: datetime
    price: int
    status: MatchStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class UserRidesResponse(BaseModel):
    requests: list[RideRequestResponse]
    offered: list[OfferedRideResponse]
    matches: list[RideMatchResponse]

    model_config = {"from_attributes": True}


class RideEntityResponse(BaseModel):
    kind: EntityKind
    id: str
    when: datetime
    status: str


class QuoteResponse(BaseModel):
    distance_km: float
    distance_label: str
    price: int


class StatsResponse(BaseModel):
    requests: int
    pending_requests: int
    offered_rides: int
    open_rides: int
    matches: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
