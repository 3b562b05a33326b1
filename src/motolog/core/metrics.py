from __future__ import annotations

from typing import Iterable, Sequence

from motolog.core.errors import InsufficientData
from motolog.core.geo import point_distance_km
from motolog.core.models import (
    MS_PER_HOUR,
    ExpenseSummary,
    LocationPoint,
    MaintenanceRecord,
    Ride,
    RideMetrics,
)


def path_distance_km(path: Sequence[LocationPoint]) -> float:
    """Sum of great-circle distances between consecutive samples.

    No jitter filtering: a stationary device still accrues whatever distance
    its noisy fixes describe.
    """
    total = 0.0
    for a, b in zip(path, path[1:]):
        total += point_distance_km(a, b)
    return total


def average_speed_kmh(distance_km: float, duration_ms: int) -> float:
    if duration_ms <= 0:
        return 0.0
    return distance_km / (duration_ms / MS_PER_HOUR)


def compute_metrics(path: Sequence[LocationPoint]) -> RideMetrics:
    """
    Derive distance, duration and average speed from a finished path.

    Callers must only pass paths with at least two samples; shorter paths
    are a caller error and raise ``InsufficientData``.
    """
    if len(path) < 2:
        raise InsufficientData(f"need at least 2 samples, got {len(path)}")

    first = path[0]
    last = path[-1]
    distance = path_distance_km(path)
    duration_ms = last.timestamp - first.timestamp

    return RideMetrics(
        start_time=first.timestamp,
        end_time=last.timestamp,
        duration_ms=duration_ms,
        distance_km=distance,
        avg_speed_kmh=average_speed_kmh(distance, duration_ms),
    )


def summarize(rides: Iterable[Ride], maintenance: Iterable[MaintenanceRecord] = ()) -> ExpenseSummary:
    """Aggregate the ride history and the maintenance log into running totals."""
    rides = list(rides)
    distance = sum(r.distance_km for r in rides)
    duration = sum(r.duration_ms for r in rides)
    fuel = sum(r.estimated_fuel_cost for r in rides)
    maint_est = sum(r.estimated_maintenance_cost for r in rides)
    maint_logged = sum(m.cost for m in maintenance)

    return ExpenseSummary(
        ride_count=len(rides),
        total_distance_km=distance,
        total_duration_ms=duration,
        average_speed_kmh=average_speed_kmh(distance, duration),
        total_fuel_cost=fuel,
        total_maintenance_estimated=maint_est,
        total_maintenance_logged=maint_logged,
        total_cost=fuel + maint_est + maint_logged,
    )
