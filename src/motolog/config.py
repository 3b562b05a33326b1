"""Centralized settings for motolog."""
from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings

from motolog.core.models import VehicleClass


class Settings(BaseSettings):
    model_config = {"env_prefix": "MOTOLOG_"}

    # Local JSON store for rides, maintenance records and preferences
    data_path: Path = Path.home() / ".motolog" / "motolog.json"

    # Expense estimation strategy: "local" | "remote" | "nominatim"
    estimator: str = "local"

    # Remote analysis service; an empty URL means the remote strategy cannot be built
    analysis_url: str = ""
    analysis_api_key: str = ""
    analysis_timeout_s: int = 20

    # Reverse geocoding for places visited
    nominatim_url: str = "https://nominatim.openstreetmap.org/reverse"
    nominatim_user_agent: str = "motolog/0.1.0 (places-visited; set your own UA)"
    nominatim_accept_language: str = "en"
    nominatim_min_interval_s: float = 1.0
    nominatim_max_lookups: int = 3

    # Redis; an empty string means disabled (graceful fallback)
    redis_url: str = ""
    ttl_geocode: int = 2592000  # 30 d, place names along a route rarely change

    # Cost assumptions
    default_fuel_price: float = 1.30
    maintenance_cost_per_km: float = 0.02
    default_currency: str = "USD"
    default_vehicle_class: VehicleClass = "Commuter"

    # Location sampling
    high_accuracy: bool = True
    sample_timeout_ms: int = 5000
    max_sample_age_ms: int = 0

    log_level: str = "INFO"


settings = Settings()
