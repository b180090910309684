"""Work order API — create, edit, analyze, invoice."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response

from fieldflow.agents.gateway import AIGateway
from fieldflow.config import Settings
from fieldflow.db.store import WorkOrderStore
from fieldflow.dependencies import get_ai_gateway, get_settings_dep, get_store, get_tracker
from fieldflow.schemas import InvoiceRequest, WorkOrder, WorkOrderForm, WorkOrderInvoiced
from fieldflow.services import lifecycle
from fieldflow.services.requests import RequestTracker

router = APIRouter(prefix="/api/work-orders", tags=["work_orders"])


@router.post("", response_model=WorkOrder, response_model_exclude_none=True, status_code=201)
async def create_work_order(body: WorkOrderForm, store: WorkOrderStore = Depends(get_store)):
    return await lifecycle.create_work_order(store, body)


@router.get("", response_model=list[WorkOrder], response_model_exclude_none=True)
async def list_work_orders(
    status: str | None = Query(default=None),
    store: WorkOrderStore = Depends(get_store),
):
    """Newest first."""
    orders = store.list()
    if status:
        orders = [o for o in orders if o.status.lower() == status.lower()]
    return sorted(reversed(orders), key=lambda o: o.created_at, reverse=True)


@router.get("/{order_id}", response_model=WorkOrder, response_model_exclude_none=True)
async def get_work_order(order_id: str, store: WorkOrderStore = Depends(get_store)):
    return store.get(order_id)


@router.put("/{order_id}", response_model=WorkOrder, response_model_exclude_none=True)
async def edit_work_order(
    order_id: str,
    body: WorkOrderForm,
    store: WorkOrderStore = Depends(get_store),
    tracker: RequestTracker = Depends(get_tracker),
):
    return await lifecycle.edit_work_order(store, tracker, order_id, body)


@router.patch("/{order_id}", response_model=WorkOrder, response_model_exclude_none=True)
async def patch_work_order(
    order_id: str,
    body: dict[str, Any] = Body(...),
    store: WorkOrderStore = Depends(get_store),
    tracker: RequestTracker = Depends(get_tracker),
):
    """Partial update, e.g. ``{"status": "Scheduled"}``. Untouched fields are kept."""
    return await lifecycle.patch_work_order(store, tracker, order_id, body)


@router.delete("/{order_id}", status_code=204)
async def delete_work_order(
    order_id: str,
    store: WorkOrderStore = Depends(get_store),
    tracker: RequestTracker = Depends(get_tracker),
):
    await lifecycle.remove_work_order(store, tracker, order_id)
    return Response(status_code=204)


@router.post("/{order_id}/analyze", response_model=WorkOrder, response_model_exclude_none=True)
async def analyze_work_order(
    order_id: str,
    store: WorkOrderStore = Depends(get_store),
    gateway: AIGateway = Depends(get_ai_gateway),
    tracker: RequestTracker = Depends(get_tracker),
):
    return await lifecycle.analyze_work_order(store, gateway, tracker, order_id)


@router.post("/{order_id}/invoice", response_model=WorkOrderInvoiced, response_model_exclude_none=True)
async def invoice_work_order(
    order_id: str,
    body: InvoiceRequest,
    store: WorkOrderStore = Depends(get_store),
    gateway: AIGateway = Depends(get_ai_gateway),
    tracker: RequestTracker = Depends(get_tracker),
    settings: Settings = Depends(get_settings_dep),
):
    order, warnings = await lifecycle.invoice_work_order(
        store, gateway, tracker, order_id, body,
        default_tax_rate=settings.invoice.default_tax_rate,
        mismatch_tolerance=settings.invoice.mismatch_tolerance,
    )
    return WorkOrderInvoiced(work_order=order, warnings=warnings)


@router.get("/{order_id}/invoice.pdf")
async def invoice_pdf(order_id: str, store: WorkOrderStore = Depends(get_store)):
    from fieldflow.services.pdf_generator import generate_invoice_pdf

    pdf_bytes = generate_invoice_pdf(store.get(order_id))
    filename = f"invoice_{order_id[:8]}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
