"""Process-wide singletons shared by the API routers."""
from __future__ import annotations

import logging
from typing import Optional

from motolog.config import settings
from motolog.core.models import UserPreferences
from motolog.core.tracker import RideTracker
from motolog.providers.combined import build_estimator
from motolog.providers.location import PushLocationProvider
from motolog.store import LocalStore

log = logging.getLogger(__name__)

_store: Optional[LocalStore] = None
_provider: Optional[PushLocationProvider] = None
_tracker: Optional[RideTracker] = None


def default_preferences() -> UserPreferences:
    return UserPreferences(
        currency_code=settings.default_currency,
        fuel_price=settings.default_fuel_price,
        vehicle_class=settings.default_vehicle_class,
    )


def get_store() -> LocalStore:
    global _store
    if _store is None:
        _store = LocalStore(settings.data_path, defaults=default_preferences())
        log.info("Using store %s", _store.path)
    return _store


def get_location_provider() -> PushLocationProvider:
    global _provider
    if _provider is None:
        _provider = PushLocationProvider()
    return _provider


def get_tracker() -> RideTracker:
    global _tracker
    if _tracker is None:
        _tracker = RideTracker(
            provider=get_location_provider(),
            estimator=build_estimator(settings.estimator),
            store=get_store(),
        )
    return _tracker
