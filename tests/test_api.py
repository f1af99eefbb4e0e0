"""
Integration tests for the REST API endpoints.

The app is built around a fresh in-memory ``RideStore``; the persistence
worker is patched out so no database or Redis is needed.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from carpool.api.middleware import limiter
from carpool.domain.store import RideStore
from tests.conftest import NOW

T = NOW.isoformat()
T_PLUS_10 = (NOW + timedelta(minutes=10)).isoformat()

NEHRU_PLACE = {"lat": 28.5710, "lng": 77.2580, "name": "Nehru Place"}
INDIA_GATE = {"lat": 28.6129, "lng": 77.2295, "name": "India Gate"}
NEAR_NEHRU_PLACE = {"lat": 28.5718, "lng": 77.2585}
NEAR_INDIA_GATE = {"lat": 28.6135, "lng": 77.2300}

REQUEST_BODY = {
    "user_id": "rider-1",
    "pickup": NEHRU_PLACE,
    "destination": INDIA_GATE,
    "preferred_time": T,
    "interests": ["7", "1"],
}

RIDE_BODY = {
    "driver_id": "driver-1",
    "pickup": NEAR_NEHRU_PLACE,
    "destination": NEAR_INDIA_GATE,
    "departure_time": T_PLUS_10,
    "vehicle_info": {
        "model": "Maruti Swift",
        "color": "Silver",
        "license_plate": "DL10AB1234",
        "seats": 4,
    },
    "available_seats": 1,
}


# ── Fixture ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client():
    """AsyncClient backed by an in-memory store."""
    limiter.reset()
    with (
        patch(
            "carpool.workers.persistence.start_persistence_loop",
            new_callable=AsyncMock,
        ),
        patch(
            "carpool.workers.persistence.stop_persistence_loop",
            new_callable=AsyncMock,
        ),
    ):
        from carpool.api.app import create_app

        app = create_app(store=RideStore(clock=lambda: NOW))

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


async def _create(client: AsyncClient, path: str, body: dict) -> dict:
    resp = await client.post(path, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ── Tests ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_request_returns_201(client: AsyncClient):
    data = await _create(client, "/api/v1/requests", REQUEST_BODY)
    assert data["status"] == "pending"
    assert data["interests"] == ["1", "7"]
    assert data["pickup"]["name"] == "Nehru Place"


@pytest.mark.asyncio
async def test_invalid_coordinates_rejected(client: AsyncClient):
    body = {**REQUEST_BODY, "pickup": {"lat": 95.0, "lng": 77.0}}
    resp = await client.post("/api/v1/requests", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_request_not_found(client: AsyncClient):
    resp = await client.get("/api/v1/requests/req_missing")
    assert resp.status_code == 404
    assert "not found" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_offer_ride_is_priced(client: AsyncClient):
    data = await _create(client, "/api/v1/offered-rides", RIDE_BODY)
    assert data["status"] == "pending"
    assert 120 <= data["price"] <= 140
    resp = await client.get(f"/api/v1/offered-rides/{data['id']}")
    assert resp.json()["price"] == data["price"]


@pytest.mark.asyncio
async def test_zero_seat_offer_rejected(client: AsyncClient):
    resp = await client.post("/api/v1/offered-rides", json={**RIDE_BODY, "available_seats": 0})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_cancel_request_twice_conflicts(client: AsyncClient):
    req = await _create(client, "/api/v1/requests", REQUEST_BODY)
    first = await client.patch(f"/api/v1/requests/{req['id']}/cancel")
    assert first.status_code == 200
    assert first.json()["status"] == "cancelled"
    second = await client.patch(f"/api/v1/requests/{req['id']}/cancel")
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_cancel_offered_ride(client: AsyncClient):
    ride = await _create(client, "/api/v1/offered-rides", RIDE_BODY)
    resp = await client.patch(f"/api/v1/offered-rides/{ride['id']}/cancel")
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_find_and_create_match(client: AsyncClient):
    req = await _create(client, "/api/v1/requests", REQUEST_BODY)
    ride = await _create(client, "/api/v1/offered-rides", RIDE_BODY)

    found = (await client.get(f"/api/v1/requests/{req['id']}/matches")).json()
    assert [r["id"] for r in found] == [ride["id"]]
    riders = (await client.get(f"/api/v1/offered-rides/{ride['id']}/requests")).json()
    assert [r["id"] for r in riders] == [req["id"]]

    match = await _create(
        client, "/api/v1/matches", {"request_id": req["id"], "offered_ride_id": ride["id"]}
    )
    assert match["status"] == "confirmed"
    assert match["riders"] == ["rider-1"]
    assert match["common_interests"] == ["1", "7"]
    assert match["meeting_point"]["lat"] == pytest.approx((28.5710 + 28.5718) / 2)
    assert match["price"] == ride["price"]

    ride_after = (await client.get(f"/api/v1/offered-rides/{ride['id']}")).json()
    assert ride_after["available_seats"] == 0
    assert ride_after["status"] == "active"
    req_after = (await client.get(f"/api/v1/requests/{req['id']}")).json()
    assert req_after["status"] == "matched"
    assert (await client.get(f"/api/v1/matches/{match['id']}")).status_code == 200


@pytest.mark.asyncio
async def test_full_ride_conflicts(client: AsyncClient):
    ride = await _create(client, "/api/v1/offered-rides", RIDE_BODY)
    first = await _create(client, "/api/v1/requests", REQUEST_BODY)
    second = await _create(client, "/api/v1/requests", {**REQUEST_BODY, "user_id": "rider-2"})

    await _create(
        client, "/api/v1/matches", {"request_id": first["id"], "offered_ride_id": ride["id"]}
    )
    resp = await client.post(
        "/api/v1/matches", json={"request_id": second["id"], "offered_ride_id": ride["id"]}
    )
    assert resp.status_code == 409
    assert "no available seats" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_match_unknown_ride_not_found(client: AsyncClient):
    req = await _create(client, "/api/v1/requests", REQUEST_BODY)
    resp = await client.post(
        "/api/v1/matches", json={"request_id": req["id"], "offered_ride_id": "off_missing"}
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_user_rides_and_upcoming(client: AsyncClient):
    req = await _create(client, "/api/v1/requests", REQUEST_BODY)
    ride = await _create(client, "/api/v1/offered-rides", {**RIDE_BODY, "driver_id": "rider-1"})

    rides = (await client.get("/api/v1/users/rider-1/rides")).json()
    assert [r["id"] for r in rides["requests"]] == [req["id"]]
    assert [r["id"] for r in rides["offered"]] == [ride["id"]]
    assert rides["matches"] == []

    upcoming = (await client.get("/api/v1/users/rider-1/upcoming")).json()
    assert [(e["kind"], e["id"]) for e in upcoming] == [
        ("request", req["id"]),
        ("offered_ride", ride["id"]),
    ]


@pytest.mark.asyncio
async def test_quote(client: AsyncClient):
    resp = await client.get(
        "/api/v1/pricing/quote",
        params={
            "pickup_lat": 28.5710,
            "pickup_lng": 77.2580,
            "destination_lat": 28.6129,
            "destination_lng": 77.2295,
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["distance_label"] == "5.4 km"
    assert data["price"] == 131


@pytest.mark.asyncio
async def test_stats(client: AsyncClient):
    await _create(client, "/api/v1/requests", REQUEST_BODY)
    resp = await client.get("/api/v1/admin/stats")
    assert resp.status_code == 200
    assert resp.json()["pending_requests"] == 1
