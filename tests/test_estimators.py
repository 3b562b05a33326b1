"""
Expense Estimator Tests
=======================

Local formula, remote analysis service and reverse-geocoded places.
"""

import pytest
import requests
from pydantic import ValidationError

from conftest import FakeResponse, FakeSession, pt
from motolog.config import Settings
from motolog.core.errors import EstimationFailure
from motolog.core.models import ExpenseRequest
from motolog.providers.combined import build_estimator
from motolog.providers.local import LocalExpenseEstimator, maintenance_rate
from motolog.providers.nominatim import NominatimExpenseEstimator, place_label, sample_indices
from motolog.providers.remote import RemoteExpenseEstimator


def _request(vehicle="Commuter", km=45.0, price=1.30, path=None):
    return ExpenseRequest(
        vehicle_class=vehicle,
        distance_km=km,
        avg_speed_kmh=30.0,
        path=path or [pt(0, 0, 0), pt(0, 0.1, 600_000)],
        fuel_price_per_liter=price,
    )


class TestLocalEstimator:
    """Deterministic fallback formula."""

    def test_commuter(self):
        """45 km on a 45 km/L commuter at 1.30/L costs 1.30 in fuel."""
        est = LocalExpenseEstimator().estimate(_request())
        assert est.estimated_fuel_cost == pytest.approx(1.30)
        assert est.estimated_maintenance_cost == pytest.approx(0.90)
        assert est.places_visited == []

    def test_sport_costs_more(self):
        """Sport bikes burn more fuel and wear faster."""
        est = LocalExpenseEstimator().estimate(_request(vehicle="Sport", km=22.0, price=2.0))
        assert est.estimated_fuel_cost == pytest.approx(2.0)
        assert est.estimated_maintenance_cost == pytest.approx(22.0 * 0.03)

    def test_zero_distance(self):
        """No distance, no cost."""
        est = LocalExpenseEstimator().estimate(_request(km=0.0))
        assert est.estimated_fuel_cost == 0.0
        assert est.estimated_maintenance_cost == 0.0

    def test_custom_rate_and_efficiency(self):
        """Base maintenance rate and efficiency are adjustable."""
        est = LocalExpenseEstimator(maintenance_cost_per_km=0.1, efficiency_overrides={"Commuter": 50.0})
        out = est.estimate(_request(km=100.0, price=1.0))
        assert out.estimated_fuel_cost == pytest.approx(2.0)
        assert out.estimated_maintenance_cost == pytest.approx(10.0)

    def test_rejects_non_positive_efficiency(self):
        """A zero or negative km/L override is refused up front."""
        with pytest.raises(ValueError):
            LocalExpenseEstimator(efficiency_overrides={"Commuter": 0.0})
        with pytest.raises(ValueError):
            LocalExpenseEstimator(efficiency_overrides={"Sport": -3.0})
        with pytest.raises(ValueError):
            LocalExpenseEstimator(maintenance_cost_per_km=-0.01)

    def test_maintenance_rate_by_class(self):
        """Class multiplier scales the base rate."""
        assert maintenance_rate("Cruiser", 0.02) == pytest.approx(0.026)


class TestRemoteEstimator:
    """HTTP analysis service strategy."""

    def _est(self, respond):
        session = FakeSession(respond)
        return RemoteExpenseEstimator("https://analysis.test/estimate", api_key="k", session=session), session

    def test_success_camel_case(self):
        """camelCase replies are accepted and places are cleaned."""
        est, session = self._est(lambda **_: FakeResponse({
            "estimatedFuelCost": 2.5,
            "estimatedMaintenanceCost": 0.4,
            "placesVisited": ["Harbor Road", "  ", "Old Town "],
        }))
        out = est.estimate(_request())
        assert out.estimated_fuel_cost == 2.5
        assert out.estimated_maintenance_cost == 0.4
        assert out.places_visited == ["Harbor Road", "Old Town"]

        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["json"]["vehicle_class"] == "Commuter"
        assert len(call["json"]["path"]) == 2
        assert session.headers["Authorization"] == "Bearer k"

    def test_success_snake_case(self):
        """snake_case replies are accepted too."""
        est, _ = self._est(lambda **_: FakeResponse({
            "estimated_fuel_cost": 1.0,
            "estimated_maintenance_cost": 0.1,
        }))
        out = est.estimate(_request())
        assert out.places_visited == []

    def test_single_attempt_on_connection_error(self):
        """Transport failures are not retried and fail the estimate."""
        calls = []

        def respond(**_):
            calls.append(1)
            raise requests.ConnectionError("refused")

        est, _ = self._est(respond)
        with pytest.raises(EstimationFailure):
            est.estimate(_request())
        assert len(calls) == 1

    def test_http_error(self):
        """5xx answers fail the estimate."""
        est, _ = self._est(lambda **_: FakeResponse({}, status=503))
        with pytest.raises(EstimationFailure):
            est.estimate(_request())

    def test_bad_json(self):
        """Unparseable bodies fail the estimate."""
        est, _ = self._est(lambda **_: FakeResponse(bad_json=True))
        with pytest.raises(EstimationFailure):
            est.estimate(_request())

    def test_missing_fields(self):
        """A partial answer is a failure, never a partial estimate."""
        est, _ = self._est(lambda **_: FakeResponse({"estimatedFuelCost": 2.0}))
        with pytest.raises(EstimationFailure):
            est.estimate(_request())

    def test_negative_cost(self):
        """Negative costs are malformed."""
        est, _ = self._est(lambda **_: FakeResponse({"estimatedFuelCost": -1, "estimatedMaintenanceCost": 0}))
        with pytest.raises(EstimationFailure):
            est.estimate(_request())

    def test_non_object_reply(self):
        """A JSON list is not an estimate."""
        est, _ = self._est(lambda **_: FakeResponse([1, 2, 3]))
        with pytest.raises(EstimationFailure):
            est.estimate(_request())

    def test_requires_url(self):
        """No URL, no remote estimator."""
        with pytest.raises(ValueError):
            RemoteExpenseEstimator("")


class TestNominatimEstimator:
    """Local costs plus reverse-geocoded places."""

    def _est(self, respond, max_lookups=3):
        session = FakeSession(respond)
        est = NominatimExpenseEstimator(max_lookups=max_lookups, min_interval_s=0.0, session=session)
        return est, session

    def test_places_in_path_order(self):
        """Labels follow the path and duplicates collapse."""
        names = {"0.000000": "Depot", "0.050000": "Depot", "0.100000": "Beach"}

        def respond(params, **_):
            return FakeResponse({"name": names[params["lon"]], "address": {"city": "Town"}})

        path = [pt(0, 0, 0), pt(0, 0.05, 1000), pt(0, 0.1, 2000)]
        est, session = self._est(respond)
        out = est.estimate(_request(path=path))
        assert out.places_visited == ["Depot, Town", "Beach, Town"]
        assert len(session.calls) == 3
        # costs still come from the local formula
        assert out.estimated_fuel_cost == pytest.approx(1.30)

    def test_lookup_failure_fails_estimate(self):
        """One failed lookup fails the whole estimate."""
        def respond(**_):
            raise requests.Timeout("slow")

        est, _ = self._est(respond)
        with pytest.raises(EstimationFailure):
            est.estimate(_request())

    def test_error_reply_fails_estimate(self):
        """Nominatim error payloads are failures."""
        est, _ = self._est(lambda **_: FakeResponse({"error": "Unable to geocode"}))
        with pytest.raises(EstimationFailure):
            est.estimate(_request())

    def test_sample_indices(self):
        """Lookups are spread over the path, first and last included."""
        assert sample_indices(2, 3) == [0, 1]
        assert sample_indices(5, 3) == [0, 2, 4]
        assert sample_indices(100, 3)[0] == 0
        assert sample_indices(100, 3)[-1] == 99
        assert sample_indices(10, 1) == [0]
        assert sample_indices(0, 3) == []

    def test_place_label_fallbacks(self):
        """display_name is used when name and address are missing."""
        assert place_label({"display_name": "12, Main Street, Springfield, USA"}) == "12, Main Street"
        assert place_label({"address": {"town": "Ubud"}}) == "Ubud"
        assert place_label({"name": "Ubud", "address": {"town": "Ubud"}}) == "Ubud"


class TestBuildEstimator:
    """Strategy selection by name."""

    def test_local_default(self):
        est = build_estimator(None, Settings(estimator="local"))
        assert isinstance(est, LocalExpenseEstimator)

    def test_remote(self):
        est = build_estimator("remote", Settings(analysis_url="https://a.test/x"))
        assert isinstance(est, RemoteExpenseEstimator)

    def test_remote_without_url(self):
        with pytest.raises(ValueError):
            build_estimator("remote", Settings(analysis_url=""))

    def test_nominatim(self):
        est = build_estimator("nominatim", Settings(maintenance_cost_per_km=0.05))
        assert isinstance(est, NominatimExpenseEstimator)
        assert est.costs.maintenance_cost_per_km == 0.05

    def test_unknown_default_vehicle_class(self):
        """A bad default vehicle class fails when settings load."""
        with pytest.raises(ValidationError):
            Settings(default_vehicle_class="Tractor")

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_estimator("gemini", Settings())


class FakeRedis:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value


class BrokenRedis:
    def get(self, key):
        raise ConnectionError("redis gone")

    def set(self, key, value, ex=None):
        raise ConnectionError("redis gone")


class TestGeocodeCache:
    """Reverse-geocoding results are cached; a broken cache is a miss."""

    def test_cached_label_skips_request(self, monkeypatch):
        from motolog.cache import keys, redis_client

        fake = FakeRedis()
        monkeypatch.setattr(redis_client, "_redis_client", fake)
        fake.set(keys.geocode(0.0, 0.0), '"Cached Place"')

        session = FakeSession(lambda **_: FakeResponse({"name": "Fresh", "address": {}}))
        est = NominatimExpenseEstimator(max_lookups=2, min_interval_s=0.0, session=session)
        out = est.estimate(_request(path=[pt(0, 0, 0), pt(0, 0.2, 1000)]))

        assert out.places_visited == ["Cached Place", "Fresh"]
        assert len(session.calls) == 1
        assert fake.get(keys.geocode(0.0, 0.2)) == '"Fresh"'

    def test_broken_cache_is_ignored(self, monkeypatch):
        from motolog.cache import redis_client

        monkeypatch.setattr(redis_client, "_redis_client", BrokenRedis())
        session = FakeSession(lambda **_: FakeResponse({"name": "Fresh", "address": {}}))
        est = NominatimExpenseEstimator(max_lookups=1, min_interval_s=0.0, session=session)
        assert est.estimate(_request()).places_visited == ["Fresh"]
