"""Maintenance log: list, add, delete."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from motolog.core.models import MaintenanceCategory, MaintenanceRecord, now_ms
from motolog.store import LocalStore
from motolog.services import get_store

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


class MaintenanceCreate(BaseModel):
    date: Optional[int] = None
    category: MaintenanceCategory = "Oil Change"
    cost: float = Field(default=0.0, ge=0.0)
    description: str = ""


@router.get("", response_model=List[MaintenanceRecord])
def list_maintenance(store: LocalStore = Depends(get_store)):
    return store.maintenance()


@router.post("", response_model=MaintenanceRecord, status_code=201)
def add_maintenance(body: MaintenanceCreate, store: LocalStore = Depends(get_store)):
    record = MaintenanceRecord(
        date=body.date if body.date is not None else now_ms(),
        category=body.category,
        cost=body.cost,
        description=body.description.strip(),
    )
    store.insert_maintenance(record)
    return record


@router.delete("/{record_id}", status_code=204)
def delete_maintenance(record_id: str, store: LocalStore = Depends(get_store)):
    if not store.delete_maintenance(record_id):
        raise HTTPException(status_code=404, detail="Maintenance record not found")
    return None
