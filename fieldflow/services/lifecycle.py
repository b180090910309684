"""Work-order lifecycle: create → edit → analyze → invoice.

Status is a free-form label; these operations set the conventional values
(New, Analyzed, Invoiced) but nothing forbids other transitions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from fieldflow.agents.gateway import AIGateway
from fieldflow.agents.invoicing.graph import run_invoicing
from fieldflow.db.store import WorkOrderStore
from fieldflow.errors import FieldError, ValidationError
from fieldflow.models.base import new_id
from fieldflow.schemas.gateway import TranscriptionResult, UNKNOWN
from fieldflow.schemas.invoice import InvoiceOutcome, InvoiceRequest, ManualInvoiceRequest
from fieldflow.schemas.work_order import (
    InvoiceRecord, JobAnalysis, WorkOrder, WorkOrderDraft, WorkOrderForm,
    STATUS_ANALYZED, STATUS_INVOICED, STATUS_NEW, URGENCIES,
)
from fieldflow.services.requests import RequestTracker
from fieldflow.services.validation import validate_customer, validate_work_order_form

logger = logging.getLogger(__name__)

# Form fields an edit may replace. Everything else on the order is preserved.
_BASE_FIELDS = ("customer_details", "job_description", "location", "urgency", "deadline", "voice_notes")


def _check_form(form: WorkOrderForm) -> None:
    errors = validate_work_order_form(form)
    if errors:
        raise ValidationError(errors)


async def create_work_order(store: WorkOrderStore, form: WorkOrderForm) -> WorkOrder:
    _check_form(form)
    order = WorkOrder(
        id=new_id(),
        created_at=datetime.now(timezone.utc),
        status=STATUS_NEW,
        **{name: getattr(form, name) for name in _BASE_FIELDS},
    )
    await store.create(order)
    logger.info(f"Created work order {order.id}")
    return order


async def edit_work_order(
    store: WorkOrderStore, tracker: RequestTracker, order_id: str, form: WorkOrderForm,
) -> WorkOrder:
    """Replace the base fields. Outstanding AI responses for the order become stale."""
    store.get(order_id)
    _check_form(form)
    order = await store.update(order_id, {name: getattr(form, name) for name in _BASE_FIELDS})
    tracker.invalidate(order_id)
    return order


# Patch keys that do not touch what an AI request was computed from.
_BOOKKEEPING_FIELDS = frozenset({"status", "voice_notes", "voiceNotes"})


async def patch_work_order(
    store: WorkOrderStore, tracker: RequestTracker, order_id: str, patch: Mapping[str, Any],
) -> WorkOrder:
    """Partial update. Anything beyond a status or notes change makes outstanding AI responses stale."""
    order = await store.update(order_id, patch)
    if set(patch) - _BOOKKEEPING_FIELDS:
        tracker.invalidate(order_id)
    return order


async def remove_work_order(store: WorkOrderStore, tracker: RequestTracker, order_id: str) -> WorkOrder:
    order = await store.remove(order_id)
    tracker.forget(order_id)
    logger.info(f"Removed work order {order_id}")
    return order


def describe_customer(order: WorkOrder) -> str:
    c = order.customer_details
    return f"{c.name}, {c.address}"


async def analyze_work_order(
    store: WorkOrderStore, gateway: AIGateway, tracker: RequestTracker, order_id: str,
) -> WorkOrder:
    """Attach an AI job analysis and mark the order Analyzed.

    A failed or superseded call leaves the order untouched.
    """
    order = store.get(order_id)
    with tracker.track(order_id, "analyze") as tok:
        result = await gateway.analyze(
            job_description=order.job_description,
            customer_details=describe_customer(order),
            urgency=order.urgency,
            location=order.location,
        )
        tracker.ensure_current(tok)
        analysis = JobAnalysis(
            part_list=result.part_list,
            job_duration=result.job_duration_estimate,
            tools_needed=result.tools_needed,
            man_hours=result.man_hours_needed,
            urgency_level=result.urgency_level,
            analyzed_at=datetime.now(timezone.utc),
        )
        return await store.update(order_id, {"analysis": analysis, "status": STATUS_ANALYZED})


async def invoice_work_order(
    store: WorkOrderStore,
    gateway: AIGateway,
    tracker: RequestTracker,
    order_id: str,
    request: InvoiceRequest,
    default_tax_rate: float = 0.08,
    mismatch_tolerance: float = 0.01,
) -> tuple[WorkOrder, list[str]]:
    """Draft an invoice for a stored order, record it, and mark the order Invoiced.

    Values missing from ``request`` come from the order, then from defaults.
    Returns the updated order and any cross-check warnings.
    """
    order = store.get(order_id)
    part_costs = request.part_costs if request.part_costs is not None else (order.part_costs or [])
    labor_estimate = request.labor_estimate if request.labor_estimate is not None else (order.labor_estimate or 0.0)
    tax_rate = request.tax_rate if request.tax_rate is not None else (
        order.tax_rate if order.tax_rate is not None else default_tax_rate
    )
    job_summary = request.job_summary or order.job_description

    with tracker.track(order_id, "invoice") as tok:
        outcome = await run_invoicing(
            gateway, order.customer_details, job_summary, part_costs,
            labor_estimate, tax_rate, mismatch_tolerance,
        )
        tracker.ensure_current(tok)
        invoice = InvoiceRecord(
            invoice_text=outcome.invoice_text,
            total_amount=outcome.total_amount,
            computed_total=outcome.computed_total,
            total_mismatch=outcome.total_mismatch,
            generated_at=datetime.now(timezone.utc),
        )
        updated = await store.update(order_id, {
            "part_costs": list(part_costs),
            "labor_estimate": labor_estimate,
            "tax_rate": tax_rate,
            "invoice": invoice,
            "status": STATUS_INVOICED,
        })
    return updated, outcome.warnings


async def draft_invoice(
    gateway: AIGateway, request: ManualInvoiceRequest, mismatch_tolerance: float = 0.01,
) -> InvoiceOutcome:
    """Invoice typed in by hand, not tied to a stored work order."""
    errors = validate_customer(request.customer_info, prefix="customer_info")
    if not request.job_summary.strip():
        errors.append(FieldError("job_summary", "Job summary is required"))
    if errors:
        raise ValidationError(errors)
    return await run_invoicing(
        gateway, request.customer_info, request.job_summary, request.part_costs,
        request.labor_estimate, request.tax_rate, mismatch_tolerance,
    )


def _known(value: str) -> bool:
    return bool(value.strip()) and value.strip().lower() != UNKNOWN


def normalize_urgency(value: str) -> str | None:
    """Map free-form urgency ("high", "HIGH ") onto Low/Medium/High, or None."""
    v = value.strip().capitalize()
    return v if v in URGENCIES else None


def draft_from_transcription(
    result: TranscriptionResult, current: WorkOrderDraft | None = None,
) -> WorkOrderDraft:
    """Merge a voice transcription into a form draft.

    Known values replace what is in the draft; ``unknown`` leaves it alone.
    Urgency is only taken when it maps onto Low/Medium/High. Customer details
    from the recording are kept as voice notes.
    """
    current = current or WorkOrderDraft()
    changes = {}
    if _known(result.job_description):
        changes["job_description"] = result.job_description.strip()
    if _known(result.location):
        changes["location"] = result.location.strip()
    urgency = normalize_urgency(result.urgency)
    if urgency:
        changes["urgency"] = urgency
    if _known(result.customer_details):
        changes["voice_notes"] = result.customer_details.strip()
    return current.model_copy(update=changes)
