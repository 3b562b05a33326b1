"""Append-only sample buffer owned by one tracking session."""
from __future__ import annotations

import logging
import threading
from typing import List

from motolog.core.models import LocationPoint

log = logging.getLogger(__name__)


class PathBuffer:
    """
    Ordered collection of samples for a single session.

    Arrival order is authoritative: samples are never reordered. A sample whose
    timestamp is older than the last accepted one is dropped so that the path
    stays non-decreasing in time.

    Writers are serialized with an internal lock; there is still exactly one
    producer per session.
    """

    def __init__(self) -> None:
        self._points: List[LocationPoint] = []
        self._accepting = False
        self._lock = threading.Lock()
        self.rejected = 0

    def start(self) -> None:
        with self._lock:
            self._points = []
            self._accepting = True
            self.rejected = 0

    def append(self, point: LocationPoint) -> bool:
        """Add *point*; returns False when it was not accepted."""
        with self._lock:
            if not self._accepting:
                return False
            if self._points and point.timestamp < self._points[-1].timestamp:
                self.rejected += 1
                log.warning(
                    "Dropping out-of-order sample t=%d (last t=%d)",
                    point.timestamp, self._points[-1].timestamp,
                )
                return False
            self._points.append(point)
            return True

    def drain(self) -> List[LocationPoint]:
        """Return every buffered sample in order and empty the buffer."""
        with self._lock:
            out = self._points
            self._points = []
            self._accepting = False
            return out

    def clear(self) -> None:
        self.drain()

    @property
    def accepting(self) -> bool:
        return self._accepting

    def __len__(self) -> int:
        return len(self._points)
