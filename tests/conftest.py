from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import pytest
import requests

from motolog.cache import redis_client
from motolog.core import tracker as tracker_mod
from motolog.core.models import LocationPoint
from motolog.providers.local import LocalExpenseEstimator
from motolog.providers.location import PushLocationProvider
from motolog.store import LocalStore


@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """No leftover active session and no Redis between tests."""
    monkeypatch.setattr(tracker_mod, "_active_session", None)
    monkeypatch.setattr(redis_client, "_redis_client", None)
    monkeypatch.setattr(redis_client, "_redis_checked", True)


def pt(lat: float, lon: float, t: int, speed: Optional[float] = None) -> LocationPoint:
    return LocationPoint(lat=lat, lon=lon, timestamp=t, speed=speed)


@pytest.fixture
def store() -> LocalStore:
    return LocalStore(None)


@pytest.fixture
def provider() -> PushLocationProvider:
    return PushLocationProvider()


@pytest.fixture
def estimator() -> LocalExpenseEstimator:
    return LocalExpenseEstimator()


@pytest.fixture
def make_tracker(provider, estimator, store):
    def _make(**kw):
        return tracker_mod.RideTracker(
            provider=kw.get("provider", provider),
            estimator=kw.get("estimator", estimator),
            store=kw.get("store", store),
        )

    return _make


class FakeResponse:
    def __init__(self, payload: Any = None, status: int = 200, bad_json: bool = False):
        self.payload = payload
        self.status_code = status
        self.bad_json = bad_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=None)

    def json(self) -> Any:
        if self.bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    """Records calls and answers with a canned response (or raises)."""

    def __init__(self, respond: Callable[..., FakeResponse]):
        self.headers: Dict[str, str] = {}
        self.respond = respond
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"method": "POST", "url": url, "json": json, "timeout": timeout})
        return self.respond(url=url, json=json)

    def get(self, url, params=None, timeout=None):
        self.calls.append({"method": "GET", "url": url, "params": params, "timeout": timeout})
        return self.respond(url=url, params=params)
