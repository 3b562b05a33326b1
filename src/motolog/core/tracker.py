"""Ride lifecycle: one tracking session from start through commit or discard.

    Idle --start--> Tracking --stop--> Analyzing --ok--> PendingReview --commit--> Idle
                        |                  |                     `--discard--> Idle
                        |                  `--estimation failed--> Idle
                        `--stop, < 2 samples (aborted)--> Idle

At most one session is active per process. A session counts as active from
``start()`` until it is back in ``Idle``, so a new ride cannot be started
while the previous one is still being analyzed or awaits review.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel

from motolog.core.errors import (
    EstimationFailure,
    InvalidTransition,
    LocationError,
    LocationUnsupported,
    SessionBusy,
)
from motolog.core.metrics import compute_metrics
from motolog.core.models import ExpenseRequest, LocationPoint, Ride
from motolog.core.path import PathBuffer
from motolog.providers.base import ExpenseEstimator, LocationProvider, SampleOptions
from motolog.store import LocalStore

log = logging.getLogger(__name__)

MIN_PATH_POINTS = 2


class RideState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    ANALYZING = "analyzing"
    PENDING_REVIEW = "pending_review"
    COMMITTED = "committed"
    DISCARDED = "discarded"
    ABORTED = "aborted"


class SessionStatus(BaseModel):
    state: RideState
    buffered: int
    draft: Optional[Ride] = None
    last_outcome: Optional[RideState] = None
    last_error: Optional[str] = None


_registry_lock = threading.Lock()
_active_session: Optional["RideTracker"] = None


def active_session() -> Optional["RideTracker"]:
    return _active_session


def default_sample_options() -> SampleOptions:
    from motolog.config import settings

    return SampleOptions(
        high_accuracy=settings.high_accuracy,
        timeout_ms=settings.sample_timeout_ms,
        max_age_ms=settings.max_sample_age_ms,
    )


class RideTracker:
    """
    Session state machine. Owns the path buffer and the current draft.

    All transitions run under one re-entrant lock, so sample delivery, stop,
    commit and discard never interleave. ``stop()`` holds the lock for the
    whole estimation call: nothing else happens to the session until the
    estimate has succeeded or failed.
    """

    def __init__(
        self,
        provider: Optional[LocationProvider],
        estimator: ExpenseEstimator,
        store: LocalStore,
        options: Optional[SampleOptions] = None,
    ) -> None:
        self.provider = provider
        self.estimator = estimator
        self.store = store
        self.options = options or default_sample_options()

        self._state = RideState.IDLE
        self._buffer = PathBuffer()
        self._draft: Optional[Ride] = None
        self._handle: Any = None
        self._lock = threading.RLock()

        self.last_outcome: Optional[RideState] = None
        self.last_error: Optional[Exception] = None

    # ---- read-only views ----

    @property
    def state(self) -> RideState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state == RideState.TRACKING

    @property
    def draft(self) -> Optional[Ride]:
        return self._draft

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def status(self) -> SessionStatus:
        with self._lock:
            return SessionStatus(
                state=self._state,
                buffered=len(self._buffer),
                draft=self._draft,
                last_outcome=self.last_outcome,
                last_error=str(self.last_error) if self.last_error else None,
            )

    # ---- process-wide single session ----

    def _claim(self) -> None:
        global _active_session
        with _registry_lock:
            if _active_session is not None and _active_session is not self:
                raise SessionBusy("another ride session is already active")
            _active_session = self

    def _release(self) -> None:
        global _active_session
        with _registry_lock:
            if _active_session is self:
                _active_session = None

    # ---- transitions ----

    def start(self) -> RideState:
        with self._lock:
            if self._state == RideState.TRACKING:
                log.info("start() ignored: already tracking")
                return self._state
            if self._state != RideState.IDLE:
                raise SessionBusy(f"cannot start a ride while {self._state.value}")
            if self.provider is None or not self.provider.available():
                raise LocationUnsupported("no location provider available")

            self._claim()
            self._buffer.start()
            self._draft = None
            self.last_outcome = None
            self.last_error = None
            self._state = RideState.TRACKING
            try:
                self._handle = self.provider.subscribe(self.on_sample, self.on_location_error, self.options)
            except LocationError as e:
                self._reset()
                raise LocationUnsupported(str(e)) from e
            except Exception:
                self._reset()
                raise

            log.info("Tracking started (%s)", self.options)
            return self._state

    def on_sample(self, point: LocationPoint) -> bool:
        """Sample callback; samples outside ``Tracking`` are ignored."""
        with self._lock:
            if self._state != RideState.TRACKING:
                return False
            return self._buffer.append(point)

    def on_location_error(self, error: LocationError) -> None:
        """Provider failure: end the session with whatever was buffered."""
        with self._lock:
            if self._state != RideState.TRACKING:
                return
            log.warning("Location error while tracking: %s", error)
            # the provider already ended this subscription
            self._handle = None
            self.last_error = error
            try:
                self.stop()
            except EstimationFailure as e:
                self.last_error = e

    def stop(self) -> Optional[Ride]:
        """
        End sampling and derive the ride.

        Returns the draft awaiting review, or None when the session was not
        tracking or collected fewer than two samples. Raises
        ``EstimationFailure`` after resetting to ``Idle`` if the estimate failed.
        """
        with self._lock:
            if self._state != RideState.TRACKING:
                log.debug("stop() ignored in state %s", self._state.value)
                return None

            self._unsubscribe()
            path = self._buffer.drain()

            if len(path) < MIN_PATH_POINTS:
                log.info("Ride aborted: %d sample(s) is not enough data", len(path))
                self._finish(RideState.ABORTED)
                return None

            self._state = RideState.ANALYZING
            try:
                self._draft = self._analyze(path)
            except EstimationFailure as e:
                self._fail(e)
                raise
            except Exception as e:
                failure = EstimationFailure(f"estimation crashed: {type(e).__name__}: {e}")
                self._fail(failure)
                raise failure from e

            self._state = RideState.PENDING_REVIEW
            log.info(
                "Ride %s ready for review: %.2f km in %d ms",
                self._draft.id, self._draft.distance_km, self._draft.duration_ms,
            )
            return self._draft

    def commit(self, notes: Optional[str] = None) -> Ride:
        """Persist the pending draft at the head of the ride history."""
        with self._lock:
            draft = self._require_draft("commit")
            text = (notes or "").strip()
            ride = draft.model_copy(update={"notes": text or None})
            self.store.insert_ride(ride)
            self._finish(RideState.COMMITTED)
            return ride

    def discard(self) -> None:
        with self._lock:
            draft = self._require_draft("discard")
            log.info("Ride %s discarded", draft.id)
            self._finish(RideState.DISCARDED)

    # ---- internals ----

    def _analyze(self, path: List[LocationPoint]) -> Ride:
        metrics = compute_metrics(path)
        prefs = self.store.preferences()
        estimate = self.estimator.estimate(
            ExpenseRequest(
                vehicle_class=prefs.vehicle_class,
                distance_km=metrics.distance_km,
                avg_speed_kmh=metrics.avg_speed_kmh,
                path=path,
                fuel_price_per_liter=prefs.fuel_price,
            )
        )
        return Ride(
            start_time=metrics.start_time,
            end_time=metrics.end_time,
            duration_ms=metrics.duration_ms,
            distance_km=metrics.distance_km,
            avg_speed_kmh=metrics.avg_speed_kmh,
            path=path,
            vehicle_class=prefs.vehicle_class,
            estimated_fuel_cost=estimate.estimated_fuel_cost,
            estimated_maintenance_cost=estimate.estimated_maintenance_cost,
            places_visited=list(estimate.places_visited),
        )

    def _require_draft(self, op: str) -> Ride:
        if self._state != RideState.PENDING_REVIEW or self._draft is None:
            raise InvalidTransition(f"{op}() needs a ride pending review (state={self._state.value})")
        return self._draft

    def _unsubscribe(self) -> None:
        if self._handle is not None and self.provider is not None:
            self.provider.unsubscribe(self._handle)
        self._handle = None

    def _fail(self, error: EstimationFailure) -> None:
        log.warning("Ride estimation failed (%s): %s", self.estimator.name, error)
        self._reset()
        self.last_outcome = None
        self.last_error = error

    def _finish(self, outcome: RideState) -> None:
        self._reset()
        self.last_outcome = outcome
        log.info("Session ended: %s", outcome.value)

    def _reset(self) -> None:
        self._unsubscribe()
        self._buffer.clear()
        self._draft = None
        self._state = RideState.IDLE
        self._release()
