"""
SQLAlchemy ORM models.

Tables
------
* ``collection_snapshots`` -- one row per store collection
  (``ride_requests``, ``offered_rides``, ``ride_matches``) holding the
  whole collection as a JSON document.  The store is the source of truth
  while the process runs; this table only carries it across restarts.
"""

from sqlalchemy import JSON, Column, DateTime, Integer, String, func

from .database import Base


class CollectionSnapshotModel(Base):
    __tablename__ = "collection_snapshots"

    name = Column(String(64), primary_key=True)
    payload = Column(JSON, nullable=False)
    record_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
