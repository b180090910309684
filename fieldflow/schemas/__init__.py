"""Pydantic entity and request/response schemas."""

from fieldflow.schemas.work_order import (
    CustomerInfo, PartCost, JobAnalysis, InvoiceRecord, WorkOrder,
    WorkOrderForm, WorkOrderDraft, Urgency, URGENCIES,
)
from fieldflow.schemas.gateway import (
    TranscriptionResult, AnalysisResult, InvoiceDraftResult,
    CoordinatorInput, CoordinatorAdvice, AudioIntakeRequest, IntakeResult, UNKNOWN,
)
from fieldflow.schemas.invoice import (
    InvoiceTotalsRequest, InvoiceTotals, InvoiceRequest, ManualInvoiceRequest,
    InvoiceOutcome, WorkOrderInvoiced,
)

__all__ = [
    "CustomerInfo", "PartCost", "JobAnalysis", "InvoiceRecord", "WorkOrder",
    "WorkOrderForm", "WorkOrderDraft", "Urgency", "URGENCIES",
    "TranscriptionResult", "AnalysisResult", "InvoiceDraftResult",
    "CoordinatorInput", "CoordinatorAdvice", "AudioIntakeRequest", "IntakeResult", "UNKNOWN",
    "InvoiceTotalsRequest", "InvoiceTotals", "InvoiceRequest", "ManualInvoiceRequest",
    "InvoiceOutcome", "WorkOrderInvoiced",
]
