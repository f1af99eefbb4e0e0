"""
Fare Engine  (Strategy Pattern)
===============================

Formula
-------
Price = round(Base_Fare + Distance x Rate_Per_KM)

Distance is the haversine distance between the offered ride's pickup and
destination.  The fare is fixed when the ride is offered; every match
against that ride reuses it.

Complexity: O(1) per price calculation.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from .distance import distance_km
from .entities import Location

BASE_FARE = 50.0  # INR
RATE_PER_KM = 15.0  # INR / km


# ── Strategy hierarchy ────────────────────────────────────────────────


class PricingStrategy(ABC):
    @abstractmethod
    def calculate(
        self, distance_km: float, base_fare: float, rate_per_km: float
    ) -> int: ...


class StandardPricing(PricingStrategy):
    def calculate(
        self, distance_km: float, base_fare: float, rate_per_km: float
    ) -> int:
        # half-up, so 136.5 bills as 137
        return math.floor(base_fare + distance_km * rate_per_km + 0.5)


def calculate_ride_price(
    pickup: Location,
    destination: Location,
    base_fare: float = BASE_FARE,
    rate_per_km: float = RATE_PER_KM,
) -> int:
    return StandardPricing().calculate(
        distance_km(pickup, destination), base_fare, rate_per_km
    )


# ── Engine facade ─────────────────────────────────────────────────────


class PricingEngine:
    """High-level API used by the ride store and the quote endpoint."""

    def __init__(
        self,
        base_fare: float = BASE_FARE,
        rate_per_km: float = RATE_PER_KM,
        strategy: PricingStrategy | None = None,
    ):
        self.base_fare = base_fare
        self.rate_per_km = rate_per_km
        self.strategy = strategy or StandardPricing()

    def calculate_price(self, pickup: Location, destination: Location) -> int:
        distance = distance_km(pickup, destination)
        return self.strategy.calculate(distance, self.base_fare, self.rate_per_km)
