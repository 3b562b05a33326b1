"""Load recorded tracks (CSV or JSON) for replay."""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from motolog.core.models import LocationPoint

log = logging.getLogger(__name__)

# Accepted spellings per field, first match wins
_LAT_KEYS = ("lat", "latitude")
_LON_KEYS = ("lon", "lng", "longitude")
_TIME_KEYS = ("timestamp", "geoTime", "time_ms", "t")
_SPEED_KEYS = ("speed", "speed_mps")


@dataclass(frozen=True)
class TrackSummary:
    """Quick summary of track parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


def _pick(row: dict[str, Any], keys: Sequence[str]) -> Any:
    for k in keys:
        v = row.get(k)
        if v not in (None, ""):
            return v
    return None


def _to_point(row: dict[str, Any]) -> LocationPoint:
    lat = _pick(row, _LAT_KEYS)
    lon = _pick(row, _LON_KEYS)
    ts = _pick(row, _TIME_KEYS)
    if lat is None or lon is None or ts is None:
        raise KeyError("row needs lat, lon and timestamp")

    speed = _pick(row, _SPEED_KEYS)
    speed_f = float(speed) if speed is not None else None
    # Some exporters write -1 when speed is unknown
    if speed_f is not None and speed_f < 0:
        speed_f = None

    return LocationPoint(lat=float(lat), lon=float(lon), timestamp=int(float(ts)), speed=speed_f)


def _parse_rows(rows: Iterable[dict[str, Any]], fieldnames: Sequence[str]) -> tuple[list[LocationPoint], TrackSummary]:
    total = 0
    parsed: list[LocationPoint] = []
    for row in rows:
        total += 1
        try:
            parsed.append(_to_point(row))
        except (KeyError, ValueError, TypeError, ValidationError):
            continue

    summary = TrackSummary(
        rows_total=total,
        rows_parsed=len(parsed),
        rows_skipped=total - len(parsed),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        log.warning("Skipped %d unparseable track row(s)", summary.rows_skipped)
    return parsed, summary


def load_track(path: str | Path) -> tuple[list[LocationPoint], TrackSummary]:
    """Load a track file in file order.

    CSV files need a header row; JSON files hold a list of objects or an
    object with a ``path`` list (a ride exported by motolog).
    """

    p = Path(path)
    if p.suffix.lower() == ".json":
        data = json.loads(p.read_text(encoding="utf-8"))
        rows = data.get("path", []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise ValueError(f"{p}: expected a list of samples")
        rows = [r for r in rows if isinstance(r, dict)]
        fieldnames = sorted({k for r in rows for k in r})
        return _parse_rows(rows, fieldnames)

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return _parse_rows(reader, reader.fieldnames or ())
