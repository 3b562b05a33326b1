from __future__ import annotations

import itertools
import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from motolog.core.errors import LocationError
from motolog.core.models import LocationPoint
from motolog.providers.base import ErrorCallback, LocationProvider, SampleCallback, SampleOptions

log = logging.getLogger(__name__)


class PushLocationProvider(LocationProvider):
    """
    Samples are pushed in from outside (a phone posting fixes to the API,
    a replayed track file, a test).

    Delivery is serialized: callbacks never run concurrently, so the
    subscriber sees one event at a time in arrival order. Callbacks run
    outside the subscription lock, so a subscriber may unsubscribe from
    inside its own callback or while another delivery is waiting.
    """

    def __init__(self) -> None:
        self._subs: Dict[int, Tuple[SampleCallback, ErrorCallback]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self._deliver = threading.RLock()
        self.last_options: Optional[SampleOptions] = None

    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback, options: SampleOptions) -> int:
        with self._lock:
            handle = next(self._ids)
            self._subs[handle] = (on_sample, on_error)
            self.last_options = options
            log.debug("Subscribed handle=%d options=%s", handle, options)
            return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            self._subs.pop(handle, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def push(self, point: LocationPoint) -> int:
        """Deliver *point* to every live subscription; returns how many received it."""
        with self._deliver:
            with self._lock:
                subs = list(self._subs.items())
            delivered = 0
            for handle, (on_sample, _) in subs:
                # skip subscriptions dropped by an earlier callback
                if handle not in self._subs:
                    continue
                on_sample(point)
                delivered += 1
            return delivered

    def fail(self, message: str = "location provider error") -> int:
        """Report a provider error. Errors end the subscription."""
        with self._deliver:
            with self._lock:
                subs = list(self._subs.items())
                self._subs.clear()
            for handle, (_, on_error) in subs:
                log.warning("Location error on handle=%d: %s", handle, message)
                on_error(LocationError(message))
            return len(subs)


class ReplayLocationProvider(PushLocationProvider):
    """Replay a recorded track through the normal subscription path."""

    def __init__(self, points: Iterable[LocationPoint], fail_after: Optional[int] = None) -> None:
        super().__init__()
        self.points: List[LocationPoint] = list(points)
        self.fail_after = fail_after

    def run(self) -> int:
        """Push every recorded sample; returns the number delivered."""
        sent = 0
        for i, p in enumerate(self.points):
            if self.fail_after is not None and i >= self.fail_after:
                self.fail(f"replay stopped after {i} samples")
                return sent
            if self.subscriber_count == 0:
                break
            self.push(p)
            sent += 1
        return sent


class UnavailableLocationProvider(LocationProvider):
    """Stand-in for hosts without any positioning support."""

    def available(self) -> bool:
        return False

    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback, options: SampleOptions) -> int:
        raise LocationError("location sampling is not supported on this host")

    def unsubscribe(self, handle: int) -> None:
        return None
