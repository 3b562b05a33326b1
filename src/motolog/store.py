"""Local persistence for committed rides, the maintenance log and preferences.

Everything lives in one JSON document. With ``path=None`` the store is purely
in-memory. Lists are kept most-recent-first: inserts always go to the head.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from motolog.core.models import MaintenanceRecord, Ride, UserPreferences

log = logging.getLogger(__name__)


class _Document(BaseModel):
    rides: List[Ride] = Field(default_factory=list)
    maintenance: List[MaintenanceRecord] = Field(default_factory=list)
    preferences: Optional[UserPreferences] = None


class LocalStore:
    def __init__(self, path: str | Path | None = None, defaults: Optional[UserPreferences] = None) -> None:
        self._path = Path(path).expanduser() if path is not None else None
        self._defaults = defaults or UserPreferences()
        self._doc = _Document()
        self._lock = threading.RLock()
        self._load()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        text = self._path.read_text(encoding="utf-8").strip()
        if not text:
            return
        try:
            self._doc = _Document.model_validate_json(text)
        except ValidationError as exc:
            # Keep a backup of the unreadable file and start fresh
            backup = self._path.with_suffix(self._path.suffix + ".broken")
            backup.write_text(text, encoding="utf-8")
            log.warning("Store %s unreadable (%d errors), moved to %s", self._path, exc.error_count(), backup)
            self._doc = _Document()

    def _flush(self, doc: _Document) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(doc.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(self._path)

    def _apply(self, **changes) -> None:
        """Write the updated document, then make it current. A failed write changes nothing."""
        doc = self._doc.model_copy(update=changes)
        self._flush(doc)
        self._doc = doc

    # ---- rides ----

    def rides(self) -> List[Ride]:
        with self._lock:
            return list(self._doc.rides)

    def get_ride(self, ride_id: str) -> Optional[Ride]:
        with self._lock:
            return next((r for r in self._doc.rides if r.id == ride_id), None)

    def insert_ride(self, ride: Ride) -> None:
        with self._lock:
            if any(r.id == ride.id for r in self._doc.rides):
                raise ValueError(f"ride {ride.id} is already stored")
            self._apply(rides=[ride, *self._doc.rides])
        log.info("Stored ride %s (%.2f km)", ride.id, ride.distance_km)

    def delete_ride(self, ride_id: str) -> bool:
        with self._lock:
            kept = [r for r in self._doc.rides if r.id != ride_id]
            removed = len(kept) != len(self._doc.rides)
            if removed:
                self._apply(rides=kept)
            return removed

    # ---- maintenance ----

    def maintenance(self) -> List[MaintenanceRecord]:
        with self._lock:
            return list(self._doc.maintenance)

    def insert_maintenance(self, record: MaintenanceRecord) -> None:
        with self._lock:
            self._apply(maintenance=[record, *self._doc.maintenance])

    def delete_maintenance(self, record_id: str) -> bool:
        with self._lock:
            kept = [m for m in self._doc.maintenance if m.id != record_id]
            removed = len(kept) != len(self._doc.maintenance)
            if removed:
                self._apply(maintenance=kept)
            return removed

    # ---- preferences ----

    def preferences(self) -> UserPreferences:
        with self._lock:
            return self._doc.preferences or self._defaults

    def save_preferences(self, prefs: UserPreferences) -> None:
        # model_copy(update=...) skips validation
        prefs = UserPreferences.model_validate(prefs.model_dump())
        with self._lock:
            self._apply(preferences=prefs)

    def clear(self) -> None:
        """Drop all rides and maintenance records. Preferences are kept."""
        with self._lock:
            self._apply(rides=[], maintenance=[])
        log.info("Cleared ride history and maintenance log")
