"""Invoice PDF generation using Jinja2 + xhtml2pdf."""

from __future__ import annotations

import io
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from fieldflow.errors import FieldError, ValidationError
from fieldflow.schemas.work_order import WorkOrder
from fieldflow.services.invoice import format_currency

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)


def render_invoice_html(order: WorkOrder) -> str:
    """HTML invoice for an invoiced work order."""
    if order.invoice is None:
        raise ValidationError([FieldError("invoice", "Work order has not been invoiced yet")])

    lines = [
        {
            "name": p.part_name,
            "quantity": p.quantity,
            "unit": format_currency(p.cost),
            "total": format_currency(p.line_total),
        }
        for p in (order.part_costs or [])
    ]
    template = _env.get_template("invoice.html.j2")
    return template.render(
        order=order,
        customer=order.customer_details,
        invoice=order.invoice,
        lines=lines,
        labor=format_currency(order.labor_estimate or 0.0),
        tax_rate_pct=f"{(order.tax_rate or 0.0) * 100:g}",
        total_due=format_currency(order.invoice.total_amount),
        computed_total=format_currency(order.invoice.computed_total),
        invoice_date=order.invoice.generated_at.strftime("%B %d, %Y"),
    )


def generate_invoice_pdf(order: WorkOrder) -> bytes:
    """Render the invoice to PDF bytes."""
    from xhtml2pdf import pisa

    html = render_invoice_html(order)
    pdf_buffer = io.BytesIO()
    pisa_status = pisa.CreatePDF(io.StringIO(html), dest=pdf_buffer)
    if pisa_status.err:
        raise RuntimeError(f"Invoice PDF generation failed with {pisa_status.err} errors")
    return pdf_buffer.getvalue()
