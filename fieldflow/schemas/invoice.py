from __future__ import annotations

from pydantic import Field

from fieldflow.schemas.work_order import CamelModel, CustomerInfo, PartCost, WorkOrder


class InvoiceTotalsRequest(CamelModel):
    part_costs: list[PartCost] = Field(default_factory=list)
    labor_estimate: float = 0.0
    tax_rate: float = 0.0


class InvoiceTotals(CamelModel):
    subtotal: float
    total: float
    display_total: str


class InvoiceRequest(CamelModel):
    """Invoice an existing work order. Missing values fall back to what the order holds."""

    part_costs: list[PartCost] | None = None
    labor_estimate: float | None = None
    tax_rate: float | None = None
    job_summary: str | None = None


class ManualInvoiceRequest(CamelModel):
    customer_info: CustomerInfo
    job_summary: str
    part_costs: list[PartCost]
    labor_estimate: float = 0.0
    tax_rate: float = 0.0


class InvoiceOutcome(CamelModel):
    invoice_text: str
    total_amount: float
    computed_total: float
    display_total: str
    total_mismatch: bool = False
    warnings: list[str] = Field(default_factory=list)


class WorkOrderInvoiced(CamelModel):
    work_order: WorkOrder
    warnings: list[str] = Field(default_factory=list)
