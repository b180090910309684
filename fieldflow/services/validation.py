"""Field-level validation predicates.

These return a list of FieldError (empty when valid) instead of raising, so a
form boundary can show every problem at once.
"""

from __future__ import annotations

import math

from email_validator import EmailNotValidError, validate_email

from fieldflow.errors import FieldError
from fieldflow.schemas.work_order import CustomerInfo, PartCost, WorkOrder, WorkOrderForm, URGENCIES


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_customer(customer: CustomerInfo, prefix: str = "customer_details") -> list[FieldError]:
    errors = []
    for name in ("name", "phone", "address"):
        if _blank(getattr(customer, name)):
            errors.append(FieldError(f"{prefix}.{name}", f"Customer {name} is required"))
    if _blank(customer.email):
        errors.append(FieldError(f"{prefix}.email", "Customer email is required"))
    else:
        try:
            validate_email(customer.email.strip(), check_deliverability=False)
        except EmailNotValidError as e:
            errors.append(FieldError(f"{prefix}.email", f"Invalid email address: {e}"))
    return errors


def validate_part_cost(part: PartCost, prefix: str = "part_cost") -> list[FieldError]:
    errors = []
    if _blank(part.part_name):
        errors.append(FieldError(f"{prefix}.part_name", "Part name is required"))
    if not _is_number(part.cost) or part.cost < 0:
        errors.append(FieldError(f"{prefix}.cost", "Cost must be non-negative"))
    if not isinstance(part.quantity, int) or isinstance(part.quantity, bool) or part.quantity < 1:
        errors.append(FieldError(f"{prefix}.quantity", "Quantity must be an integer of at least 1"))
    return errors


def validate_labor_estimate(labor_estimate: float) -> list[FieldError]:
    if not _is_number(labor_estimate) or labor_estimate < 0:
        return [FieldError("labor_estimate", "Labor estimate must be non-negative")]
    return []


def validate_tax_rate(tax_rate: float) -> list[FieldError]:
    if not _is_number(tax_rate) or not 0 <= tax_rate <= 1:
        return [FieldError("tax_rate", "Tax rate must be between 0 and 1 (e.g. 0.08 for 8%)")]
    return []


def _validate_base_fields(order: WorkOrder | WorkOrderForm) -> list[FieldError]:
    errors = validate_customer(order.customer_details)
    if _blank(order.job_description):
        errors.append(FieldError("job_description", "Job description is required"))
    if _blank(order.location):
        errors.append(FieldError("location", "Location is required"))
    if order.urgency not in URGENCIES:
        errors.append(FieldError("urgency", "Urgency must be Low, Medium, or High"))
    return errors


def validate_work_order_form(form: WorkOrderForm) -> list[FieldError]:
    return _validate_base_fields(form)


def validate_work_order(order: WorkOrder) -> list[FieldError]:
    """Every invariant a stored work order must hold, including invoicing inputs."""
    errors = _validate_base_fields(order)
    if _blank(order.status):
        errors.append(FieldError("status", "Status is required"))
    for i, part in enumerate(order.part_costs or []):
        errors.extend(validate_part_cost(part, prefix=f"part_costs[{i}]"))
    if order.labor_estimate is not None:
        errors.extend(validate_labor_estimate(order.labor_estimate))
    if order.tax_rate is not None:
        errors.extend(validate_tax_rate(order.tax_rate))
    return errors
