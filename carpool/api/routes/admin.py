"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health        -- simple health check
GET /api/v1/admin/stats         -- collection sizes and open capacity
GET /api/v1/pricing/quote       -- fare for a pickup / destination pair
"""

from fastapi import APIRouter, Depends, Query, Request

from carpool.api.dependencies import get_store
from carpool.api.middleware import DEFAULT_LIMIT, limiter
from carpool.api.schemas import HealthResponse, QuoteResponse, StatsResponse
from carpool.domain.distance import distance_km, format_distance
from carpool.domain.entities import Location
from carpool.domain.store import RideStore

router = APIRouter(prefix="/admin", tags=["admin"])
pricing_router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


@router.get("/stats", response_model=StatsResponse, summary="Store statistics")
@limiter.limit(DEFAULT_LIMIT)
async def stats(request: Request, store: RideStore = Depends(get_store)):
    return store.stats()


@pricing_router.get("/quote", response_model=QuoteResponse, summary="Quote a fare")
@limiter.limit(DEFAULT_LIMIT)
async def quote(
    request: Request,
    pickup_lat: float = Query(..., ge=-90, le=90),
    pickup_lng: float = Query(..., ge=-180, le=180),
    destination_lat: float = Query(..., ge=-90, le=90),
    destination_lng: float = Query(..., ge=-180, le=180),
    store: RideStore = Depends(get_store),
):
    pickup = Location(pickup_lat, pickup_lng)
    destination = Location(destination_lat, destination_lng)
    distance = distance_km(pickup, destination)
    return QuoteResponse(
        distance_km=round(distance, 3),
        distance_label=format_distance(distance),
        price=store.pricing.calculate_price(pickup, destination),
    )
