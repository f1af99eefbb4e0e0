"""
FastAPI application factory.

* Builds the process-wide ``RideStore`` and exposes it on ``app.state``.
* Registers routes for requests, offered rides, matches and admin.
* Loads / flushes store snapshots via the persistence worker's lifespan hooks.
* Maps domain errors to HTTP status codes and applies rate limiting.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from carpool.api.middleware import limiter
from carpool.api.routes import admin, matches, offered_rides, requests
from carpool.config import Settings, settings as default_settings
from carpool.domain.errors import ExhaustedCapacity, InvalidState, NotFound
from carpool.domain.store import RideStore
from carpool.infrastructure.redis_client import close_redis
from carpool.workers import persistence as _persistence

logger = logging.getLogger(__name__)


async def _not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _conflict_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Restore the store on startup; flush it on shutdown."""
    await _persistence.start_persistence_loop(app.state.store)
    yield
    await _persistence.stop_persistence_loop(app.state.store)
    await close_redis()


def create_app(
    settings: Settings | None = None, store: RideStore | None = None
) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="Carpool Matching API",
        description=(
            "Matches riders' ride requests with drivers' offered rides by "
            "pickup and destination proximity and departure time, prices "
            "each offered ride, and tracks seats as matches are made."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or RideStore.from_settings(settings)

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(NotFound, _not_found_handler)
    app.add_exception_handler(InvalidState, _conflict_handler)
    app.add_exception_handler(ExhaustedCapacity, _conflict_handler)

    # Routers
    app.include_router(requests.router, prefix="/api/v1")
    app.include_router(offered_rides.router, prefix="/api/v1")
    app.include_router(matches.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")
    app.include_router(admin.pricing_router, prefix="/api/v1")

    return app
