"""Tracking session endpoints: start, push samples, stop, review."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from motolog.core.errors import EstimationFailure, InvalidTransition, LocationUnsupported, SessionBusy
from motolog.core.models import LocationPoint, Ride
from motolog.core.tracker import RideTracker, SessionStatus
from motolog.providers.location import PushLocationProvider
from motolog.services import get_location_provider, get_tracker

router = APIRouter(prefix="/session", tags=["session"])


class SampleIn(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)
    timestamp: int
    speed: Optional[float] = None


class SampleOut(BaseModel):
    accepted: bool
    buffered: int


class LocationErrorIn(BaseModel):
    message: str = "location provider error"


class CommitIn(BaseModel):
    notes: Optional[str] = None


@router.get("", response_model=SessionStatus)
def session_status(tracker: RideTracker = Depends(get_tracker)):
    return tracker.status()


@router.post("/start", response_model=SessionStatus)
def start_session(tracker: RideTracker = Depends(get_tracker)):
    try:
        tracker.start()
    except LocationUnsupported as e:
        raise HTTPException(status_code=503, detail=str(e))
    except SessionBusy as e:
        raise HTTPException(status_code=409, detail=str(e))
    return tracker.status()


@router.post("/samples", response_model=SampleOut)
def push_sample(
    body: SampleIn,
    tracker: RideTracker = Depends(get_tracker),
    provider: PushLocationProvider = Depends(get_location_provider),
):
    if not tracker.is_tracking:
        raise HTTPException(status_code=409, detail=f"not tracking (state={tracker.state.value})")

    before = tracker.buffered
    provider.push(LocationPoint(**body.model_dump()))
    return SampleOut(accepted=tracker.buffered > before, buffered=tracker.buffered)


@router.post("/location-error", response_model=SessionStatus)
def report_location_error(
    body: LocationErrorIn,
    tracker: RideTracker = Depends(get_tracker),
    provider: PushLocationProvider = Depends(get_location_provider),
):
    provider.fail(body.message)
    return tracker.status()


@router.post("/stop", response_model=SessionStatus)
def stop_session(tracker: RideTracker = Depends(get_tracker)):
    try:
        tracker.stop()
    except EstimationFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    return tracker.status()


@router.post("/commit", response_model=Ride)
def commit_ride(body: CommitIn, tracker: RideTracker = Depends(get_tracker)):
    try:
        return tracker.commit(body.notes)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/discard", response_model=SessionStatus)
def discard_ride(tracker: RideTracker = Depends(get_tracker)):
    try:
        tracker.discard()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return tracker.status()
