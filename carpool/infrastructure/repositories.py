"""
Repository Pattern -- abstracts DB access so the store stays DB-agnostic.

The repository receives an ``AsyncSession`` (unit-of-work) and exposes the
opaque load / save pair keyed by collection name.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CollectionSnapshotModel


class SnapshotRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self, name: str) -> Optional[list[dict]]:
        snapshot = await self.session.get(CollectionSnapshotModel, name)
        return None if snapshot is None else list(snapshot.payload)

    async def save(self, name: str, records: list[dict]) -> CollectionSnapshotModel:
        snapshot = await self.session.get(CollectionSnapshotModel, name)
        if snapshot is None:
            snapshot = CollectionSnapshotModel(name=name)
            self.session.add(snapshot)
        snapshot.payload = records
        snapshot.record_count = len(records)
        await self.session.flush()
        return snapshot

    async def names(self) -> list[str]:
        result = await self.session.execute(
            select(CollectionSnapshotModel.name).order_by(CollectionSnapshotModel.name)
        )
        return list(result.scalars().all())
