"""
Record <-> JSON conversion for store snapshots.

pydantic's ``TypeAdapter`` understands the domain dataclasses directly
(nested value objects, enums, aware datetimes, frozensets), so the domain
layer stays free of serialisation code.
"""

from __future__ import annotations

from pydantic import TypeAdapter

from carpool.domain.entities import OfferedRide, RideMatch, RideRequest
from carpool.domain.store import MATCHES, OFFERED_RIDES, REQUESTS

ADAPTERS: dict[str, TypeAdapter] = {
    REQUESTS: TypeAdapter(list[RideRequest]),
    OFFERED_RIDES: TypeAdapter(list[OfferedRide]),
    MATCHES: TypeAdapter(list[RideMatch]),
}


def serialize_collections(collections: dict[str, list]) -> dict[str, list[dict]]:
    return {
        name: ADAPTERS[name].dump_python(records, mode="json")
        for name, records in collections.items()
    }


def deserialize_collections(payloads: dict[str, list[dict]]) -> dict[str, list]:
    return {
        name: ADAPTERS[name].validate_python(records)
        for name, records in payloads.items()
        if name in ADAPTERS
    }
