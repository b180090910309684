"""Job calendar — deadlines by day."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from fieldflow.db.store import WorkOrderStore
from fieldflow.dependencies import get_store
from fieldflow.schemas import WorkOrder

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get("/event-days", response_model=list[date])
async def list_event_days(store: WorkOrderStore = Depends(get_store)):
    """Days with at least one deadline, for calendar markers."""
    return sorted(store.event_days())


@router.get("/{day}", response_model=list[WorkOrder], response_model_exclude_none=True)
async def orders_due_on(day: date, store: WorkOrderStore = Depends(get_store)):
    return store.find_by_deadline_day(day)
