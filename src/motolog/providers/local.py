from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from motolog.core.models import ExpenseEstimate, ExpenseRequest
from motolog.providers.base import ExpenseEstimator

# Assumed fuel efficiency, km per litre
FUEL_EFFICIENCY_KM_PER_L: Dict[str, float] = {
    "Commuter": 45.0,
    "Scooter": 38.0,
    "Sport": 22.0,
    "Cruiser": 18.0,
}

# Wear scaling on top of the base per-km maintenance cost
MAINTENANCE_MULTIPLIER: Dict[str, float] = {
    "Commuter": 1.0,
    "Scooter": 0.9,
    "Sport": 1.5,
    "Cruiser": 1.3,
}

DEFAULT_MAINTENANCE_COST_PER_KM = 0.02


def assumed_fuel_efficiency(vehicle_class: str) -> float:
    return FUEL_EFFICIENCY_KM_PER_L[vehicle_class]


def maintenance_rate(vehicle_class: str, base_per_km: float = DEFAULT_MAINTENANCE_COST_PER_KM) -> float:
    return base_per_km * MAINTENANCE_MULTIPLIER.get(vehicle_class, 1.0)


@dataclass
class LocalExpenseEstimator(ExpenseEstimator):
    """
    Deterministic cost formula, no network.

    Used offline and in tests. Never reports places visited.
    """

    maintenance_cost_per_km: float = DEFAULT_MAINTENANCE_COST_PER_KM
    efficiency_overrides: Optional[Dict[str, float]] = field(default=None)
    name: str = "local"

    def __post_init__(self) -> None:
        if self.maintenance_cost_per_km < 0:
            raise ValueError(f"maintenance_cost_per_km must be >= 0, got {self.maintenance_cost_per_km}")
        for vehicle_class, km_per_l in (self.efficiency_overrides or {}).items():
            if km_per_l <= 0:
                raise ValueError(f"fuel efficiency for {vehicle_class} must be > 0, got {km_per_l}")

    def _efficiency(self, vehicle_class: str) -> float:
        if self.efficiency_overrides and vehicle_class in self.efficiency_overrides:
            return self.efficiency_overrides[vehicle_class]
        return assumed_fuel_efficiency(vehicle_class)

    def estimate(self, request: ExpenseRequest) -> ExpenseEstimate:
        dist = request.distance_km
        fuel = (dist / self._efficiency(request.vehicle_class)) * request.fuel_price_per_liter
        maint = dist * maintenance_rate(request.vehicle_class, self.maintenance_cost_per_km)
        return ExpenseEstimate(
            estimated_fuel_cost=fuel,
            estimated_maintenance_cost=maint,
            places_visited=[],
        )
