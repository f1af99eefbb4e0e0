"""
Persistence tests: snapshot repository, serialisation and the flush worker.

Uses an in-memory SQLite database and a mocked Redis client.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from carpool.domain.enums import RequestStatus
from carpool.domain.store import MATCHES, OFFERED_RIDES, REQUESTS, RideStore
from carpool.infrastructure.repositories import SnapshotRepository
from carpool.infrastructure.serialization import (
    deserialize_collections,
    serialize_collections,
)
from carpool.workers.persistence import load_store, run_flush_cycle
from tests.conftest import NOW


def _redis(acquired: bool = True) -> AsyncMock:
    mock_redis = AsyncMock()
    mock_redis.set = AsyncMock(return_value=acquired)
    mock_redis.eval = AsyncMock(return_value=1)
    return mock_redis


class TestSerialization:
    def test_records_become_plain_json(self, store, ride_request, offered_ride):
        store.create_match(ride_request.id, offered_ride.id)
        payloads = serialize_collections(store.dump())

        req = payloads[REQUESTS][0]
        assert req["status"] == "matched"
        assert sorted(req["interests"]) == ["books", "music"]
        assert req["pickup"]["name"] == "Nehru Place"
        assert isinstance(req["preferred_time"], str)
        assert payloads[OFFERED_RIDES][0]["vehicle_info"]["license_plate"] == "DL10AB1234"
        assert payloads[MATCHES][0]["riders"] == ["rider-1"]

    def test_records_restore_equal(self, store, ride_request, offered_ride):
        match = store.create_match(ride_request.id, offered_ride.id)
        restored = deserialize_collections(serialize_collections(store.dump()))

        assert restored[MATCHES] == [match]
        assert restored[REQUESTS][0].status == RequestStatus.MATCHED
        assert restored[REQUESTS][0].interests == frozenset({"music", "books"})
        assert restored[OFFERED_RIDES][0].pickup.name is None

    def test_unknown_collections_ignored(self):
        assert deserialize_collections({"wallet": [{"id": 1}]}) == {}


class TestSnapshotRepository:
    @pytest.mark.asyncio
    async def test_missing_snapshot(self, session_factory):
        async with session_factory() as session:
            assert await SnapshotRepository(session).load(REQUESTS) is None

    @pytest.mark.asyncio
    async def test_save_then_overwrite(self, session_factory):
        async with session_factory() as session:
            repo = SnapshotRepository(session)
            await repo.save(REQUESTS, [{"id": "a"}])
            await repo.save(REQUESTS, [{"id": "b"}, {"id": "c"}])
            await session.commit()

        async with session_factory() as session:
            repo = SnapshotRepository(session)
            assert await repo.load(REQUESTS) == [{"id": "b"}, {"id": "c"}]
            assert await repo.names() == [REQUESTS]


class TestFlushCycle:
    @pytest.mark.asyncio
    async def test_flush_then_load_round_trip(self, store, ride_request, offered_ride, session_factory):
        match = store.create_match(ride_request.id, offered_ride.id)
        redis = _redis()

        written = await run_flush_cycle(store, session_factory=session_factory, redis=redis)
        assert written == 3
        redis.eval.assert_awaited_once()

        fresh = RideStore(clock=lambda: NOW)
        loaded = await load_store(fresh, session_factory=session_factory)
        assert loaded == 3
        assert fresh.get_match(match.id) == match
        assert fresh.get_offered_ride(offered_ride.id).available_seats == 2

    @pytest.mark.asyncio
    async def test_flush_skipped_when_lock_held(self, store, ride_request, session_factory):
        redis = _redis(acquired=False)

        assert await run_flush_cycle(store, session_factory=session_factory, redis=redis) == 0
        redis.eval.assert_not_awaited()
        async with session_factory() as session:
            assert await SnapshotRepository(session).names() == []

    @pytest.mark.asyncio
    async def test_load_from_empty_database(self, store, ride_request, session_factory):
        assert await load_store(store, session_factory=session_factory) == 0
        assert store.get_request(ride_request.id).id == ride_request.id
