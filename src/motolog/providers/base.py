from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from motolog.core.errors import LocationError
from motolog.core.models import ExpenseEstimate, ExpenseRequest, LocationPoint

SampleCallback = Callable[[LocationPoint], None]
ErrorCallback = Callable[[LocationError], None]


@dataclass(frozen=True)
class SampleOptions:
    high_accuracy: bool = True
    timeout_ms: int = 5000
    max_age_ms: int = 0


class LocationProvider(ABC):
    """Deliver location samples to one subscriber per session."""

    def available(self) -> bool:
        return True

    @abstractmethod
    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback, options: SampleOptions) -> Any:
        raise NotImplementedError

    @abstractmethod
    def unsubscribe(self, handle: Any) -> None:
        raise NotImplementedError


class ExpenseEstimator(ABC):
    """Turn ride metrics plus the vehicle class into a cost estimate."""

    name: str = "base"

    @abstractmethod
    def estimate(self, request: ExpenseRequest) -> ExpenseEstimate:
        """Return an estimate or raise ``EstimationFailure``."""
        raise NotImplementedError
