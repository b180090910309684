"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from fieldflow.api.work_orders import router as work_orders_router
from fieldflow.api.intake import router as intake_router
from fieldflow.api.invoices import router as invoices_router
from fieldflow.api.calendar import router as calendar_router
from fieldflow.api.coordinator import router as coordinator_router
from fieldflow.api.storage import router as storage_router

api_router = APIRouter()
api_router.include_router(work_orders_router)
api_router.include_router(intake_router)
api_router.include_router(invoices_router)
api_router.include_router(calendar_router)
api_router.include_router(coordinator_router)
api_router.include_router(storage_router)
