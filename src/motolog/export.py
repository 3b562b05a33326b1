"""CSV export of the committed ride history."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from motolog.core.models import Ride
from motolog.formatting import format_duration, format_timestamp, get_currency


def export_fieldnames(currency_code: str = "USD") -> list[str]:
    sym = get_currency(currency_code).symbol
    return [
        "id",
        "date",
        "duration",
        "distance_km",
        "avg_speed_kmh",
        "vehicle_class",
        f"fuel_cost_{sym}",
        f"maintenance_cost_{sym}",
        f"total_cost_{sym}",
        "places_visited",
        "notes",
    ]


def write_rides_csv(out_path: str | Path, rides: Iterable[Ride], currency_code: str = "USD") -> int:
    """Write rides to CSV in history order; returns the number of rows written."""

    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fields = export_fieldnames(currency_code)
    count = 0
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(fields)
        for r in rides:
            w.writerow(
                [
                    r.id,
                    format_timestamp(r.start_time),
                    format_duration(r.duration_ms),
                    f"{r.distance_km:.2f}",
                    f"{r.avg_speed_kmh:.1f}",
                    r.vehicle_class,
                    f"{r.estimated_fuel_cost:.2f}",
                    f"{r.estimated_maintenance_cost:.2f}",
                    f"{r.total_cost:.2f}",
                    "; ".join(r.places_visited),
                    r.notes or "",
                ]
            )
            count += 1
    return count
