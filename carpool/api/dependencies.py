"""FastAPI dependency injection helpers."""

from fastapi import Request

from carpool.domain.store import RideStore


def get_store(request: Request) -> RideStore:
    """The process-wide store created by the app factory."""
    return request.app.state.store
