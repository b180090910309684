"""LangGraph TypedDict states."""

from __future__ import annotations

from typing import TypedDict


class InvoiceState(TypedDict):
    customer: dict  # CustomerInfo fields
    job_summary: str
    part_costs: list[dict]  # [{part_name, cost, quantity}]
    labor_estimate: float
    tax_rate: float
    computed_total: float
    invoice_text: str
    reported_total: float
    total_mismatch: bool
    warnings: list[str]
    config: dict  # {mismatch_tolerance}
