"""Great-circle distance helpers."""
from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt

from motolog.core.models import LocationPoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two WGS-84 points."""
    lat1r, lon1r, lat2r, lon2r = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2r - lat1r
    dlon = lon2r - lon1r
    a = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * atan2(sqrt(a), sqrt(1 - a))


def point_distance_km(a: LocationPoint, b: LocationPoint) -> float:
    return haversine_km(a.lat, a.lon, b.lat, b.lon)
