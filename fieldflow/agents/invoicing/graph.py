"""Invoicing flow — LangGraph StateGraph implementation.

Graph: compute_total → draft → cross_check → (flag_mismatch | END)
The local calculator runs first, so invalid costs are rejected before any
AI call is made.
"""

from __future__ import annotations

import logging
from typing import Literal, Sequence

from langgraph.graph import StateGraph, END

from fieldflow.agents.gateway import AIGateway
from fieldflow.agents.state import InvoiceState
from fieldflow.schemas.invoice import InvoiceOutcome
from fieldflow.schemas.work_order import CustomerInfo, PartCost
from fieldflow.services.invoice import compute_invoice_total, format_currency, totals_agree

logger = logging.getLogger(__name__)


def _parts(state: InvoiceState) -> list[PartCost]:
    return [PartCost.model_validate(p) for p in state["part_costs"]]


# ── Node functions ────────────────────────────────────────

def compute_total_node(state: InvoiceState) -> dict:
    """Authoritative total from the local calculator (raises ValidationError)."""
    total = compute_invoice_total(_parts(state), state["labor_estimate"], state["tax_rate"])
    return {"computed_total": total}


def make_draft_node(gateway: AIGateway):
    async def draft_node(state: InvoiceState) -> dict:
        """Ask the AI gateway for invoice text and its own total."""
        draft = await gateway.draft_invoice(
            CustomerInfo.model_validate(state["customer"]),
            state["job_summary"],
            _parts(state),
            state["labor_estimate"],
            state["tax_rate"],
        )
        return {"invoice_text": draft.invoice_text, "reported_total": draft.total_amount}

    return draft_node


def cross_check_node(state: InvoiceState) -> dict:
    tolerance = state["config"].get("mismatch_tolerance", 0.01)
    agree = totals_agree(state["reported_total"], state["computed_total"], tolerance)
    return {"total_mismatch": not agree}


def should_flag(state: InvoiceState) -> Literal["flag_mismatch", "done"]:
    return "flag_mismatch" if state["total_mismatch"] else "done"


def flag_mismatch_node(state: InvoiceState) -> dict:
    reported = format_currency(state["reported_total"])
    computed = format_currency(state["computed_total"])
    message = f"Drafted invoice total {reported} does not match calculated total {computed}"
    logger.warning(message)
    return {"warnings": [*state["warnings"], message]}


# ── Build graph ───────────────────────────────────────────

def build_invoice_graph(gateway: AIGateway):
    graph = StateGraph(InvoiceState)

    graph.add_node("compute_total", compute_total_node)
    graph.add_node("draft", make_draft_node(gateway))
    graph.add_node("cross_check", cross_check_node)
    graph.add_node("flag_mismatch", flag_mismatch_node)

    graph.set_entry_point("compute_total")
    graph.add_edge("compute_total", "draft")
    graph.add_edge("draft", "cross_check")
    graph.add_conditional_edges("cross_check", should_flag, {
        "flag_mismatch": "flag_mismatch",
        "done": END,
    })
    graph.add_edge("flag_mismatch", END)

    return graph.compile()


# ── Public API ────────────────────────────────────────────

async def run_invoicing(
    gateway: AIGateway,
    customer: CustomerInfo,
    job_summary: str,
    part_costs: Sequence[PartCost],
    labor_estimate: float,
    tax_rate: float,
    mismatch_tolerance: float = 0.01,
) -> InvoiceOutcome:
    """Compute, draft, and cross-check an invoice. Touches no stored state."""
    initial_state: InvoiceState = {
        "customer": customer.model_dump(),
        "job_summary": job_summary,
        "part_costs": [p.model_dump() for p in part_costs],
        "labor_estimate": labor_estimate,
        "tax_rate": tax_rate,
        "computed_total": 0.0,
        "invoice_text": "",
        "reported_total": 0.0,
        "total_mismatch": False,
        "warnings": [],
        "config": {"mismatch_tolerance": mismatch_tolerance},
    }

    graph = build_invoice_graph(gateway)
    result = await graph.ainvoke(initial_state)

    return InvoiceOutcome(
        invoice_text=result["invoice_text"],
        total_amount=result["reported_total"],
        computed_total=result["computed_total"],
        display_total=format_currency(result["reported_total"]),
        total_mismatch=result["total_mismatch"],
        warnings=result["warnings"],
    )
