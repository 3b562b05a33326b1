"""Committed ride history: list, fetch, delete, clear."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from motolog.core.models import Ride
from motolog.store import LocalStore
from motolog.services import get_store

router = APIRouter(prefix="/rides", tags=["rides"])


@router.get("", response_model=List[Ride])
def list_rides(store: LocalStore = Depends(get_store)):
    return store.rides()


@router.get("/{ride_id}", response_model=Ride)
def get_ride(ride_id: str, store: LocalStore = Depends(get_store)):
    ride = store.get_ride(ride_id)
    if ride is None:
        raise HTTPException(status_code=404, detail="Ride not found")
    return ride


@router.delete("/{ride_id}", status_code=204)
def delete_ride(ride_id: str, store: LocalStore = Depends(get_store)):
    if not store.delete_ride(ride_id):
        raise HTTPException(status_code=404, detail="Ride not found")
    return None


@router.delete("", status_code=204)
def clear_all(store: LocalStore = Depends(get_store)):
    """Remove every ride and maintenance record."""
    store.clear()
    return None
