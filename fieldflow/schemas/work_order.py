"""Work order entity model.

Attributes are snake_case in Python and camelCase on the wire and in the
persisted JSON (``customerDetails``, ``createdAt``...). AI-derived data lives in
the optional ``analysis`` and ``invoice`` sub-records so "not analyzed yet" is
``analysis is None`` rather than a handful of blank strings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Urgency = Literal["Low", "Medium", "High"]
URGENCIES: tuple[str, ...] = ("Low", "Medium", "High")

STATUS_NEW = "New"
STATUS_ANALYZED = "Analyzed"
STATUS_INVOICED = "Invoiced"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class CustomerInfo(CamelModel):
    name: str
    email: str
    phone: str
    address: str


class PartCost(CamelModel):
    part_name: str
    cost: float
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return self.cost * self.quantity


class JobAnalysis(CamelModel):
    part_list: str
    job_duration: str
    tools_needed: str
    man_hours: str
    urgency_level: str | None = None
    analyzed_at: datetime


class InvoiceRecord(CamelModel):
    invoice_text: str
    total_amount: float  # as drafted by the AI gateway, shown to the customer
    computed_total: float  # local calculator, full precision
    total_mismatch: bool = False
    generated_at: datetime


class WorkOrder(CamelModel):
    id: str
    customer_details: CustomerInfo
    job_description: str
    location: str
    urgency: Urgency
    status: str = STATUS_NEW
    created_at: datetime
    deadline: datetime | None = None
    voice_notes: str | None = None
    analysis: JobAnalysis | None = None
    part_costs: list[PartCost] | None = None
    labor_estimate: float | None = None
    tax_rate: float | None = None
    invoice: InvoiceRecord | None = None


# Fields an update may never change.
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


class WorkOrderForm(CamelModel):
    """Base fields a user enters when creating or editing a work order."""

    customer_details: CustomerInfo
    job_description: str
    location: str
    urgency: Urgency = "Medium"
    deadline: datetime | None = None
    voice_notes: str | None = None


class WorkOrderDraft(CamelModel):
    """Partially filled form, e.g. pre-populated from a voice recording."""

    job_description: str = ""
    location: str = ""
    urgency: Urgency = "Medium"
    voice_notes: str | None = None
