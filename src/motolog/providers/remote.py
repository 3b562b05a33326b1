"""Remote ride analysis over HTTP/JSON.

The service receives the ride metrics and the raw path and answers with a
cost estimate plus any points of interest it inferred from the path. The
service is treated as unreliable: one attempt per ride, and anything other
than a well-formed answer fails the whole estimate.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from motolog.core.errors import EstimationFailure
from motolog.core.models import ExpenseEstimate, ExpenseRequest
from motolog.providers.base import ExpenseEstimator
from motolog.providers.http import HTTPClient

log = logging.getLogger(__name__)


class _AnalysisResponse(BaseModel):
    # Accept both snake_case and camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    estimated_fuel_cost: float = Field(ge=0.0)
    estimated_maintenance_cost: float = Field(ge=0.0)
    places_visited: List[str] = Field(default_factory=list)


def _payload(request: ExpenseRequest) -> Dict[str, Any]:
    return {
        "vehicle_class": request.vehicle_class,
        "distance_km": request.distance_km,
        "avg_speed_kmh": request.avg_speed_kmh,
        "fuel_price_per_liter": request.fuel_price_per_liter,
        "path": [p.model_dump() for p in request.path],
    }


class RemoteExpenseEstimator(ExpenseEstimator):
    name = "remote"

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout_s: int = 20,
        session: Optional[requests.Session] = None,
    ):
        if not url:
            raise ValueError("Remote estimator needs an analysis URL (MOTOLOG_ANALYSIS_URL)")
        self.url = url
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.http = HTTPClient(
            user_agent="motolog/0.1.0",
            timeout_s=timeout_s,
            tries=1,
            headers=headers,
            session=session,
        )

    def estimate(self, request: ExpenseRequest) -> ExpenseEstimate:
        try:
            raw = self.http.post_json(self.url, _payload(request))
        except (requests.RequestException, ValueError) as e:
            log.warning("Remote analysis request failed: %s", e)
            raise EstimationFailure(f"remote analysis failed: {type(e).__name__}: {e}") from e

        if not isinstance(raw, dict):
            raise EstimationFailure(f"remote analysis returned {type(raw).__name__}, expected object")

        try:
            parsed = _AnalysisResponse.model_validate(raw)
        except ValidationError as e:
            log.warning("Remote analysis returned malformed payload: %s", e)
            raise EstimationFailure("remote analysis returned a malformed response") from e

        places = [p.strip() for p in parsed.places_visited if p and p.strip()]
        return ExpenseEstimate(
            estimated_fuel_cost=parsed.estimated_fuel_cost,
            estimated_maintenance_cost=parsed.estimated_maintenance_cost,
            places_visited=places,
        )
