"""Invoice totals and hand-entered invoice drafts (no stored work order)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fieldflow.agents.gateway import AIGateway
from fieldflow.config import Settings
from fieldflow.dependencies import get_ai_gateway, get_settings_dep
from fieldflow.schemas import InvoiceOutcome, InvoiceTotals, InvoiceTotalsRequest, ManualInvoiceRequest
from fieldflow.services import lifecycle
from fieldflow.services.invoice import compute_invoice_total, compute_subtotal, format_currency

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.post("/preview", response_model=InvoiceTotals)
async def preview_totals(body: InvoiceTotalsRequest):
    total = compute_invoice_total(body.part_costs, body.labor_estimate, body.tax_rate)
    return InvoiceTotals(
        subtotal=compute_subtotal(body.part_costs, body.labor_estimate),
        total=total,
        display_total=format_currency(total),
    )


@router.post("/draft", response_model=InvoiceOutcome)
async def draft_invoice(
    body: ManualInvoiceRequest,
    gateway: AIGateway = Depends(get_ai_gateway),
    settings: Settings = Depends(get_settings_dep),
):
    return await lifecycle.draft_invoice(
        gateway, body, mismatch_tolerance=settings.invoice.mismatch_tolerance,
    )
