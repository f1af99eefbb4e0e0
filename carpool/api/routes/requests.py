"""
Ride request endpoints
======================

POST  /api/v1/requests                -- create a ride request (201)
GET   /api/v1/requests/{id}           -- fetch a request
PATCH /api/v1/requests/{id}/cancel    -- cancel a pending request
GET   /api/v1/requests/{id}/matches   -- offered rides compatible with it
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from carpool.api.dependencies import get_store
from carpool.api.middleware import DEFAULT_LIMIT, limiter
from carpool.api.schemas import (
    ErrorResponse,
    OfferedRideResponse,
    RideRequestCreate,
    RideRequestResponse,
)
from carpool.domain.store import RideStore

router = APIRouter(prefix="/requests", tags=["requests"])

NOT_FOUND = {404: {"model": ErrorResponse}}


@router.post(
    "",
    status_code=201,
    response_model=RideRequestResponse,
    summary="Create a ride request",
)
@limiter.limit(DEFAULT_LIMIT)
async def create_request(
    request: Request,
    body: RideRequestCreate,
    store: RideStore = Depends(get_store),
):
    return store.create_request(
        user_id=body.user_id,
        pickup=body.pickup.to_domain(),
        destination=body.destination.to_domain(),
        preferred_time=body.preferred_time,
        interests=body.interests,
    )


@router.get(
    "/{request_id}",
    response_model=RideRequestResponse,
    responses=NOT_FOUND,
    summary="Get a ride request",
)
@limiter.limit(DEFAULT_LIMIT)
async def get_request(
    request: Request,
    request_id: str,
    store: RideStore = Depends(get_store),
):
    return store.get_request(request_id)


@router.patch(
    "/{request_id}/cancel",
    response_model=RideRequestResponse,
    responses={**NOT_FOUND, 409: {"model": ErrorResponse}},
    summary="Cancel a ride request",
    description="Only PENDING requests can be cancelled.",
)
@limiter.limit(DEFAULT_LIMIT)
async def cancel_request(
    request: Request,
    request_id: str,
    store: RideStore = Depends(get_store),
):
    return store.cancel_request(request_id)


@router.get(
    "/{request_id}/matches",
    response_model=list[OfferedRideResponse],
    responses=NOT_FOUND,
    summary="Find offered rides compatible with a request",
)
@limiter.limit(DEFAULT_LIMIT)
async def find_matches(
    request: Request,
    request_id: str,
    store: RideStore = Depends(get_store),
):
    return store.find_matches(request_id)
