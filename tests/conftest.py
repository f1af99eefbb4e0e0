"""
Shared test fixtures.

Each test gets a fresh ``RideStore`` with a frozen clock.  Persistence tests
use an in-memory SQLite database (via aiosqlite) so they run without
Docker / PostgreSQL / Redis.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from carpool.domain.entities import Location, VehicleInfo
from carpool.domain.store import RideStore
from carpool.infrastructure.database import init_db

NOW = datetime(2026, 3, 14, 9, 0, tzinfo=timezone.utc)

NEHRU_PLACE = Location(28.5710, 77.2580, "Nehru Place")
INDIA_GATE = Location(28.6129, 77.2295, "India Gate")
SAKET_MALL = Location(28.5565, 77.1937, "Saket Mall")
CONNAUGHT_PLACE = Location(28.6304, 77.2177, "Connaught Place")
# ~100 m from the landmarks above
NEAR_NEHRU_PLACE = Location(28.5718, 77.2585)
NEAR_INDIA_GATE = Location(28.6135, 77.2300)

SWIFT = VehicleInfo("Maruti Swift", "Silver", "DL10AB1234", 4)


# ── Store ─────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> RideStore:
    return RideStore(clock=lambda: NOW)


@pytest.fixture
def offered_ride(store):
    """Three seats, Nehru Place -> India Gate, departing T+10 min."""
    return store.offer_ride(
        "driver-1",
        NEAR_NEHRU_PLACE,
        NEAR_INDIA_GATE,
        NOW + timedelta(minutes=10),
        SWIFT,
        3,
    )


@pytest.fixture
def ride_request(store):
    return store.create_request(
        "rider-1", NEHRU_PLACE, INDIA_GATE, NOW, interests=["music", "books"]
    )


# ── Test DB (SQLite in-memory) ────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables on a private engine, yield a session factory, dispose."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", poolclass=StaticPool
    )
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
