from __future__ import annotations

from typing import Optional

from motolog.config import Settings, settings as default_settings
from motolog.providers.base import ExpenseEstimator


def build_estimator(name: Optional[str] = None, cfg: Optional[Settings] = None) -> ExpenseEstimator:
    """
    Build an expense estimator from a name:
      "local"      deterministic formula, offline
      "remote"     HTTP analysis service (needs MOTOLOG_ANALYSIS_URL)
      "nominatim"  local formula + reverse-geocoded places visited

    There is no automatic fallback between strategies: pick "local" to run offline.
    """
    cfg = cfg or default_settings
    token = (name or cfg.estimator or "local").strip().lower()

    # Local imports to avoid pulling requests in for offline use
    from motolog.providers.local import LocalExpenseEstimator

    local = LocalExpenseEstimator(maintenance_cost_per_km=cfg.maintenance_cost_per_km)

    if token == "local":
        return local
    if token == "remote":
        from motolog.providers.remote import RemoteExpenseEstimator

        return RemoteExpenseEstimator(
            url=cfg.analysis_url,
            api_key=cfg.analysis_api_key,
            timeout_s=cfg.analysis_timeout_s,
        )
    if token == "nominatim":
        from motolog.providers.nominatim import NominatimExpenseEstimator

        return NominatimExpenseEstimator(
            base_url=cfg.nominatim_url,
            user_agent=cfg.nominatim_user_agent,
            accept_language=cfg.nominatim_accept_language,
            max_lookups=cfg.nominatim_max_lookups,
            min_interval_s=cfg.nominatim_min_interval_s,
            cache_ttl_s=cfg.ttl_geocode,
            costs=local,
        )
    raise ValueError(f"Unknown estimator: '{token}' (supported: local, remote, nominatim)")
