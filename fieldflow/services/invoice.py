"""Invoice calculator: itemized parts + labor, taxed.

Totals are kept at full precision; round only when presenting
(``format_currency``) so recomputing from stored values never compounds
rounding error.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from fieldflow.errors import ValidationError
from fieldflow.schemas.work_order import PartCost
from fieldflow.services.validation import (
    validate_part_cost, validate_labor_estimate, validate_tax_rate,
)


CENT = Decimal("0.01")


def _check(part_costs: Sequence[PartCost], labor_estimate: float, tax_rate: float) -> None:
    errors = []
    for i, part in enumerate(part_costs):
        errors.extend(validate_part_cost(part, prefix=f"part_costs[{i}]"))
    errors.extend(validate_labor_estimate(labor_estimate))
    errors.extend(validate_tax_rate(tax_rate))
    if errors:
        raise ValidationError(errors)


def compute_subtotal(part_costs: Sequence[PartCost], labor_estimate: float) -> float:
    return sum(p.cost * p.quantity for p in part_costs) + labor_estimate


def compute_invoice_total(
    part_costs: Sequence[PartCost], labor_estimate: float, tax_rate: float,
) -> float:
    """Return (sum(cost * quantity) + labor) * (1 + tax_rate).

    Raises ValidationError naming every invalid field.
    """
    _check(part_costs, labor_estimate, tax_rate)
    return compute_subtotal(part_costs, labor_estimate) * (1 + tax_rate)


def round_currency(amount: float) -> Decimal:
    return Decimal(repr(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: float) -> str:
    """Two-decimal display string, e.g. ``75.60``."""
    rounded = round_currency(amount)
    if rounded == 0:
        rounded = abs(rounded)
    return f"{rounded:.2f}"


def totals_agree(reported: float, computed: float, tolerance: float = 0.01) -> bool:
    """True when the two totals differ by no more than ``tolerance`` after rounding to cents."""
    diff = abs(round_currency(reported) - round_currency(computed))
    return diff <= Decimal(repr(tolerance))
