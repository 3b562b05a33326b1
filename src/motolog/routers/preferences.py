"""Rider preferences: currency, fuel price, vehicle class."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from motolog.core.models import UserPreferences, VehicleClass
from motolog.formatting import CURRENCIES
from motolog.store import LocalStore
from motolog.services import get_store

router = APIRouter(prefix="/preferences", tags=["preferences"])


class PreferencesUpdate(BaseModel):
    currency_code: Optional[str] = None
    fuel_price: Optional[float] = Field(default=None, ge=0.0)
    vehicle_class: Optional[VehicleClass] = None


@router.get("", response_model=UserPreferences)
def get_preferences(store: LocalStore = Depends(get_store)):
    return store.preferences()


@router.put("", response_model=UserPreferences)
def update_preferences(body: PreferencesUpdate, store: LocalStore = Depends(get_store)):
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "currency_code" in updates:
        code = updates["currency_code"].upper()
        if code not in CURRENCIES:
            raise HTTPException(status_code=400, detail=f"Unsupported currency: {code}")
        updates["currency_code"] = code

    prefs = UserPreferences.model_validate({**store.preferences().model_dump(), **updates})
    store.save_preferences(prefs)
    return prefs
