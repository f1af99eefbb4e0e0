"""
Offered ride endpoints
======================

POST  /api/v1/offered-rides                 -- offer a ride (201, priced)
GET   /api/v1/offered-rides/{id}            -- fetch an offered ride
PATCH /api/v1/offered-rides/{id}/cancel     -- cancel a pending ride
GET   /api/v1/offered-rides/{id}/requests   -- pending requests it could serve
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from carpool.api.dependencies import get_store
from carpool.api.middleware import DEFAULT_LIMIT, limiter
from carpool.api.schemas import (
    ErrorResponse,
    OfferedRideCreate,
    OfferedRideResponse,
    RideRequestResponse,
)
from carpool.domain.store import RideStore

router = APIRouter(prefix="/offered-rides", tags=["offered-rides"])

NOT_FOUND = {404: {"model": ErrorResponse}}


@router.post(
    "",
    status_code=201,
    response_model=OfferedRideResponse,
    summary="Offer a ride",
    description="The fare is computed from the pickup-to-destination distance.",
)
@limiter.limit(DEFAULT_LIMIT)
async def offer_ride(
    request: Request,
    body: OfferedRideCreate,
    store: RideStore = Depends(get_store),
):
    return store.offer_ride(
        driver_id=body.driver_id,
        pickup=body.pickup.to_domain(),
        destination=body.destination.to_domain(),
        departure_time=body.departure_time,
        vehicle_info=body.vehicle_info.to_domain(),
        available_seats=body.available_seats,
    )


@router.get(
    "/{ride_id}",
    response_model=OfferedRideResponse,
    responses=NOT_FOUND,
    summary="Get an offered ride",
)
@limiter.limit(DEFAULT_LIMIT)
async def get_offered_ride(
    request: Request,
    ride_id: str,
    store: RideStore = Depends(get_store),
):
    return store.get_offered_ride(ride_id)


@router.patch(
    "/{ride_id}/cancel",
    response_model=OfferedRideResponse,
    responses={**NOT_FOUND, 409: {"model": ErrorResponse}},
    summary="Cancel an offered ride",
)
@limiter.limit(DEFAULT_LIMIT)
async def cancel_offered_ride(
    request: Request,
    ride_id: str,
    store: RideStore = Depends(get_store),
):
    return store.cancel_offered_ride(ride_id)


@router.get(
    "/{ride_id}/requests",
    response_model=list[RideRequestResponse],
    responses=NOT_FOUND,
    summary="Find pending requests compatible with an offered ride",
)
@limiter.limit(DEFAULT_LIMIT)
async def find_riders(
    request: Request,
    ride_id: str,
    store: RideStore = Depends(get_store),
):
    return store.find_riders(ride_id)
