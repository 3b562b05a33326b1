from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field

VehicleClass = Literal["Commuter", "Scooter", "Sport", "Cruiser"]
MaintenanceCategory = Literal["Oil Change", "Tires", "Brakes", "Service", "Other"]

VEHICLE_CLASSES: tuple[str, ...] = get_args(VehicleClass)
MAINTENANCE_CATEGORIES: tuple[str, ...] = get_args(MaintenanceCategory)

MS_PER_HOUR = 3_600_000


def new_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


class LocationPoint(BaseModel):
    """One GPS sample. ``timestamp`` is epoch milliseconds."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    timestamp: int
    speed: Optional[float] = None  # m/s as reported by the device, None when unknown


@dataclass(frozen=True)
class RideMetrics:
    start_time: int
    end_time: int
    duration_ms: int
    distance_km: float
    avg_speed_kmh: float


class ExpenseRequest(BaseModel):
    vehicle_class: VehicleClass
    distance_km: float = Field(ge=0.0)
    avg_speed_kmh: float = Field(ge=0.0)
    path: List[LocationPoint]
    fuel_price_per_liter: float = Field(ge=0.0)


class ExpenseEstimate(BaseModel):
    estimated_fuel_cost: float = Field(ge=0.0)
    estimated_maintenance_cost: float = Field(ge=0.0)
    places_visited: List[str] = Field(default_factory=list)


class Ride(BaseModel):
    id: str = Field(default_factory=new_id)
    start_time: int
    end_time: int
    duration_ms: int = Field(ge=0)
    distance_km: float = Field(ge=0.0)
    avg_speed_kmh: float = Field(ge=0.0)
    path: List[LocationPoint] = Field(default_factory=list)
    vehicle_class: VehicleClass = "Commuter"
    estimated_fuel_cost: float = Field(default=0.0, ge=0.0)
    estimated_maintenance_cost: float = Field(default=0.0, ge=0.0)
    places_visited: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @property
    def total_cost(self) -> float:
        return self.estimated_fuel_cost + self.estimated_maintenance_cost


class MaintenanceRecord(BaseModel):
    id: str = Field(default_factory=new_id)
    date: int = Field(default_factory=now_ms)
    category: MaintenanceCategory = "Oil Change"
    cost: float = Field(default=0.0, ge=0.0)
    description: str = ""


class UserPreferences(BaseModel):
    currency_code: str = "USD"
    fuel_price: float = Field(default=1.30, ge=0.0)
    vehicle_class: VehicleClass = "Commuter"


class ExpenseSummary(BaseModel):
    ride_count: int = 0
    total_distance_km: float = 0.0
    total_duration_ms: int = 0
    average_speed_kmh: float = 0.0
    total_fuel_cost: float = 0.0
    total_maintenance_estimated: float = 0.0
    total_maintenance_logged: float = 0.0
    total_cost: float = 0.0
