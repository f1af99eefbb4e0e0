"""
Match and per-user endpoints
============================

POST /api/v1/matches                    -- pair a request with an offered ride
GET  /api/v1/matches/{id}               -- fetch a match
GET  /api/v1/users/{user_id}/rides      -- requests, offers and matches of a user
GET  /api/v1/users/{user_id}/upcoming   -- live entries of all three, soonest first
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from carpool.api.dependencies import get_store
from carpool.api.middleware import DEFAULT_LIMIT, limiter
from carpool.api.schemas import (
    ErrorResponse,
    MatchCreate,
    RideEntityResponse,
    RideMatchResponse,
    UserRidesResponse,
)
from carpool.domain.store import RideStore

router = APIRouter(tags=["matches"])


@router.post(
    "/matches",
    status_code=201,
    response_model=RideMatchResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Create a ride match",
    description=(
        "Marks the request MATCHED and takes one seat from the offered ride. "
        "Fails with 409 when the ride is full or the request is not pending."
    ),
)
@limiter.limit(DEFAULT_LIMIT)
async def create_match(
    request: Request,
    body: MatchCreate,
    store: RideStore = Depends(get_store),
):
    return store.create_match(body.request_id, body.offered_ride_id)


@router.get(
    "/matches/{match_id}",
    response_model=RideMatchResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a ride match",
)
@limiter.limit(DEFAULT_LIMIT)
async def get_match(
    request: Request,
    match_id: str,
    store: RideStore = Depends(get_store),
):
    return store.get_match(match_id)


@router.get(
    "/users/{user_id}/rides",
    response_model=UserRidesResponse,
    summary="All rides a user takes part in",
)
@limiter.limit(DEFAULT_LIMIT)
async def get_user_rides(
    request: Request,
    user_id: str,
    store: RideStore = Depends(get_store),
):
    return store.get_user_rides(user_id)._asdict()


@router.get(
    "/users/{user_id}/upcoming",
    response_model=list[RideEntityResponse],
    summary="Upcoming requests, offers and matches of a user",
)
@limiter.limit(DEFAULT_LIMIT)
async def get_upcoming(
    request: Request,
    user_id: str,
    store: RideStore = Depends(get_store),
):
    return [
        RideEntityResponse(kind=e.kind, id=e.id, when=e.when, status=e.status)
        for e in store.upcoming_rides(user_id)
    ]
