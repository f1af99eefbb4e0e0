"""
H3 pickup-cell index.

Buckets record ids by the H3 cell of their pickup point so a radius search
only touches the hexagons around the query point instead of every record.
The result is a candidate *superset*; exact haversine filtering still runs
afterwards.

The search ring is sized from the resolution's average edge length with a
2x safety factor, which comfortably covers H3's cell-size variation across
the globe.  Rings bigger than ``max_ring`` fall back to a full scan.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Optional

import h3

from .entities import Location
from .matching import ride_h3_cell


class PickupCellIndex:
    def __init__(self, resolution: int = 7, max_ring: int = 40):
        self.resolution = resolution
        self.max_ring = max_ring
        self._edge_km = h3.average_hexagon_edge_length(resolution, unit="km")
        self._cells: dict[str, set[str]] = defaultdict(set)
        self._cell_of: dict[str, str] = {}
        # ids whose coordinates H3 rejects; always returned as candidates
        self._unindexed: set[str] = set()

    def __len__(self) -> int:
        return len(self._cell_of) + len(self._unindexed)

    def add(self, entity_id: str, location: Location) -> None:
        self.discard(entity_id)
        cell = self._cell(location)
        if cell is None:
            self._unindexed.add(entity_id)
            return
        self._cells[cell].add(entity_id)
        self._cell_of[entity_id] = cell

    def discard(self, entity_id: str) -> None:
        self._unindexed.discard(entity_id)
        cell = self._cell_of.pop(entity_id, None)
        if cell is None:
            return
        bucket = self._cells[cell]
        bucket.discard(entity_id)
        if not bucket:
            del self._cells[cell]

    def _cell(self, location: Location) -> Optional[str]:
        # H3 would wrap out-of-range coordinates; haversine does not
        if not (-90 <= location.lat <= 90 and -180 <= location.lng <= 180):
            return None
        try:
            return ride_h3_cell(location.lat, location.lng, self.resolution)
        except (ValueError, h3.H3BaseException):
            return None

    def ring_size(self, radius_km: float) -> int:
        return max(0, math.ceil(radius_km / (self._edge_km * 0.5)) + 1)

    def candidates(self, location: Location, radius_km: float) -> Optional[set[str]]:
        """Ids whose pickup may lie within *radius_km*, or None to scan all."""
        if not math.isfinite(radius_km):
            return None
        k = self.ring_size(radius_km)
        if k > self.max_ring:
            return None
        origin = self._cell(location)
        if origin is None:
            return None
        found = set(self._unindexed)
        for cell in h3.grid_disk(origin, k):
            found |= self._cells.get(cell, set())
        return found
