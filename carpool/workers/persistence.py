"""
Background Persistence Worker
=============================

The ride store lives in memory; this worker carries it across restarts.

* On startup ``load_store`` reads every collection snapshot and loads it
  into the store.
* Every ``PERSISTENCE_INTERVAL_SECONDS`` (default 30 s) ``run_flush_cycle``
  dumps the store and writes one snapshot row per collection.
* On shutdown a final flush runs after the loop stops.

Concurrency safety
------------------
A **Redis distributed lock** ensures only one instance writes snapshots at
a time across multiple API processes.  A cycle that cannot take the lock is
skipped, not retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carpool.config import settings
from carpool.domain.store import MATCHES, OFFERED_RIDES, REQUESTS, RideStore
from carpool.infrastructure.database import async_session_factory, init_db
from carpool.infrastructure.locks import DistributedLock
from carpool.infrastructure.redis_client import get_redis
from carpool.infrastructure.repositories import SnapshotRepository
from carpool.infrastructure.serialization import (
    deserialize_collections,
    serialize_collections,
)

logger = logging.getLogger(__name__)

COLLECTIONS = (REQUESTS, OFFERED_RIDES, MATCHES)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def load_store(
    store: RideStore,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> int:
    """Load persisted collections into *store*.  Returns the record count."""
    async with session_factory() as session:
        repo = SnapshotRepository(session)
        payloads = {}
        for name in COLLECTIONS:
            records = await repo.load(name)
            if records is not None:
                payloads[name] = records

    collections = deserialize_collections(payloads)
    store.load(collections)
    loaded = sum(len(records) for records in collections.values())
    logger.info("Loaded %d records from %d snapshots", loaded, len(collections))
    return loaded


async def run_flush_cycle(
    store: RideStore,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    redis=None,
) -> int:
    """Write one snapshot per collection.  Returns records written, 0 if skipped."""
    redis = redis or await get_redis()
    lock = DistributedLock(redis, "snapshot_flush", ttl_seconds=settings.lock_ttl_seconds)

    if not await lock.acquire():
        logger.debug("Lock held by another worker – skipping flush")
        return 0

    try:
        payloads = serialize_collections(store.dump())
        async with session_factory() as session:
            repo = SnapshotRepository(session)
            for name, records in payloads.items():
                await repo.save(name, records)
            await session.commit()
    finally:
        await lock.release()

    written = sum(len(records) for records in payloads.values())
    logger.info("Flushed %d records", written)
    return written


async def start_persistence_loop(store: RideStore) -> None:
    global _task, _stop_event
    await init_db()
    await load_store(store)
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop(store))
    logger.info(
        "Persistence worker started (interval=%ds)",
        settings.persistence_interval_seconds,
    )


async def stop_persistence_loop(store: Optional[RideStore] = None) -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    if store is not None:
        try:
            await run_flush_cycle(store)
        except Exception:
            logger.exception("Final flush failed")
    logger.info("Persistence worker stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop(store: RideStore) -> None:
    """Periodic loop: wait an interval then flush."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        # Wait for the interval or until stop is signalled
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.persistence_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass
        try:
            await run_flush_cycle(store)
        except Exception:
            logger.exception("Unhandled error in flush cycle")
