"""Errors raised by the ride-tracking core.

None of these are fatal: the tracker handles them locally and resets itself
before anything is surfaced to the caller.
"""
from __future__ import annotations


class RideError(Exception):
    """Base class for ride-tracking errors."""


class LocationUnsupported(RideError):
    """No location provider is available; no session was created."""


class LocationError(RideError):
    """The location provider failed in the middle of a session."""


class InsufficientData(RideError):
    """Fewer than two samples were collected, so no ride can be derived."""


class EstimationFailure(RideError):
    """The expense estimation attempt failed; the draft ride was dropped."""


class SessionBusy(RideError):
    """Another tracking session is already tracking, analyzing or awaiting review."""


class InvalidTransition(RideError):
    """The requested operation is not allowed in the current session state."""
