"""
Seed script -- populates the snapshot tables with sample data for reviewers.

Run:
    python seed.py

Creates (around New Delhi, departures an hour or two from now):
  - 4 offered rides from different drivers
  - 4 ride requests, one of which is already matched
  - 1 ride match
"""

import asyncio
from datetime import timedelta

from carpool.config import settings
from carpool.domain.entities import Location, VehicleInfo, utcnow
from carpool.domain.store import RideStore
from carpool.infrastructure.database import async_session_factory, engine, init_db
from carpool.infrastructure.repositories import SnapshotRepository
from carpool.infrastructure.serialization import serialize_collections

PLACES = {
    "india_gate": Location(28.6129, 77.2295, "India Gate", "Rajpath, India Gate, New Delhi, Delhi 110001"),
    "connaught_place": Location(28.6304, 77.2177, "Connaught Place", "Connaught Place, New Delhi, Delhi 110001"),
    "qutub_minar": Location(28.5244, 77.1855, "Qutub Minar", "Mehrauli, New Delhi, Delhi 110030"),
    "lotus_temple": Location(28.5535, 77.2588, "Lotus Temple", "Lotus Temple Rd, Bahapur, New Delhi, Delhi 110019"),
    "nehru_place": Location(28.5710, 77.2580, "Nehru Place", "Nehru Place, New Delhi, Delhi 110019"),
    "saket_mall": Location(28.5565, 77.1937, "Saket Mall", "District Centre, Sector 6, Pushp Vihar, New Delhi, Delhi 110017"),
}

OFFERS = [
    ("user2", "nehru_place", "india_gate", 60, VehicleInfo("Maruti Swift", "Silver", "DL10AB1234", 4), 3),
    ("user4", "saket_mall", "connaught_place", 120, VehicleInfo("Hyundai Creta", "White", "DL02CD5678", 5), 4),
    ("user6", "lotus_temple", "qutub_minar", 90, VehicleInfo("Honda City", "Blue", "DL05EF9012", 4), 2),
    ("user8", "nehru_place", "connaught_place", 75, VehicleInfo("Tata Nexon", "Red", "DL08GH3456", 5), 1),
]

REQUESTS = [
    ("user1", "nehru_place", "india_gate", 60, ["1", "7"]),
    ("user3", "saket_mall", "connaught_place", 120, ["4", "9"]),
    ("user5", "lotus_temple", "qutub_minar", 100, ["2"]),
    ("user7", "nehru_place", "india_gate", 70, ["1", "3"]),
]


def build_demo_store(store: RideStore | None = None, now=None) -> RideStore:
    store = store or RideStore.from_settings(settings)
    now = now or utcnow()

    offers = [
        store.offer_ride(
            driver, PLACES[src], PLACES[dst], now + timedelta(minutes=mins), vehicle, seats
        )
        for driver, src, dst, mins, vehicle, seats in OFFERS
    ]
    requests = [
        store.create_request(
            user, PLACES[src], PLACES[dst], now + timedelta(minutes=mins), interests
        )
        for user, src, dst, mins, interests in REQUESTS
    ]
    store.create_match(requests[0].id, offers[0].id)
    return store


async def seed():
    await init_db()
    async with async_session_factory() as session:
        repo = SnapshotRepository(session)
        # Check if already seeded
        if await repo.names():
            print("Database already seeded. Skipping.")
            return

        store = build_demo_store()
        for name, records in serialize_collections(store.dump()).items():
            await repo.save(name, records)
            print(f"  Created {len(records)} {name.replace('_', ' ')}")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
