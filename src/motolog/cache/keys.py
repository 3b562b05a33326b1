"""Redis key naming conventions for the motolog cache layer."""
from __future__ import annotations

_PREFIX = "ml"


def geocode(lat: float, lon: float) -> str:
    """Key for a reverse-geocoded place label (~11 m grid)."""
    return f"{_PREFIX}:geocode:{lat:.4f},{lon:.4f}"
