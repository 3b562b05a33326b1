"""Places-visited estimation via OpenStreetMap Nominatim reverse geocoding.

Costs come from the local formula; the remote part is naming the places the
ride passed through. Please respect the Nominatim usage policy: keep the
request interval at one second or more and set a descriptive User-Agent.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import requests

from motolog.cache import keys
from motolog.cache.redis_client import cache_get_json, cache_set_json
from motolog.core.errors import EstimationFailure
from motolog.core.models import ExpenseEstimate, ExpenseRequest, LocationPoint
from motolog.providers.base import ExpenseEstimator
from motolog.providers.http import HTTPClient
from motolog.providers.local import LocalExpenseEstimator

log = logging.getLogger(__name__)


def sample_indices(n: int, k: int) -> List[int]:
    """Pick up to *k* evenly spread indices in ``range(n)``, always first and last."""
    if n <= 0 or k <= 0:
        return []
    if k == 1:
        return [0]
    if n <= k:
        return list(range(n))
    step = (n - 1) / (k - 1)
    return sorted({round(i * step) for i in range(k)})


def place_label(raw: Dict[str, Any]) -> str:
    """Short human label from a Nominatim jsonv2 reply."""
    name = str(raw.get("name") or "").strip()
    addr = raw.get("address") or {}
    locality = ""
    for k in ("suburb", "neighbourhood", "village", "town", "city", "county"):
        if addr.get(k):
            locality = str(addr[k]).strip()
            break
    if name and locality and name != locality:
        return f"{name}, {locality}"
    if name or locality:
        return name or locality
    display = str(raw.get("display_name") or "")
    return ", ".join(part.strip() for part in display.split(",")[:2] if part.strip())


class NominatimExpenseEstimator(ExpenseEstimator):
    name = "nominatim"

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org/reverse",
        user_agent: str = "motolog/0.1.0 (places-visited; set your own UA)",
        accept_language: str = "en",
        max_lookups: int = 3,
        min_interval_s: float = 1.0,
        cache_ttl_s: int = 2592000,
        costs: Optional[LocalExpenseEstimator] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.accept_language = accept_language
        self.max_lookups = max_lookups
        self.min_interval_s = min_interval_s
        self.cache_ttl_s = cache_ttl_s
        self.costs = costs or LocalExpenseEstimator()
        self.http = HTTPClient(user_agent=user_agent, timeout_s=20, tries=1, session=session)
        self._last_request_at = 0.0

    def _sleep_if_needed(self) -> None:
        wait = self.min_interval_s - (time.time() - self._last_request_at)
        if wait > 0:
            time.sleep(wait)
        self._last_request_at = time.time()

    def _reverse(self, lat: float, lon: float) -> str:
        key = keys.geocode(lat, lon)
        cached = cache_get_json(key)
        if isinstance(cached, str) and cached:
            return cached

        params = {
            "format": "jsonv2",
            "lat": f"{lat:.6f}",
            "lon": f"{lon:.6f}",
            "zoom": "16",
            "addressdetails": "1",
            "accept-language": self.accept_language,
        }
        self._sleep_if_needed()
        raw = self.http.get_json(self.base_url, params=params)
        if not isinstance(raw, dict) or raw.get("error"):
            raise ValueError(f"reverse geocode failed for {lat:.4f},{lon:.4f}: {raw!r}"[:200])

        label = place_label(raw)
        if not label:
            raise ValueError(f"no place name for {lat:.4f},{lon:.4f}")
        cache_set_json(key, label, ttl=self.cache_ttl_s)
        return label

    def places_for(self, path: Sequence[LocationPoint]) -> List[str]:
        places: List[str] = []
        for i in sample_indices(len(path), self.max_lookups):
            label = self._reverse(path[i].lat, path[i].lon)
            if label not in places:
                places.append(label)
        return places

    def estimate(self, request: ExpenseRequest) -> ExpenseEstimate:
        base = self.costs.estimate(request)
        try:
            places = self.places_for(request.path)
        except (requests.RequestException, ValueError) as e:
            log.warning("Reverse geocoding failed: %s", e)
            raise EstimationFailure(f"places lookup failed: {e}") from e

        return ExpenseEstimate(
            estimated_fuel_cost=base.estimated_fuel_cost,
            estimated_maintenance_cost=base.estimated_maintenance_cost,
            places_visited=places,
        )
