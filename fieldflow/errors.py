"""Error taxonomy shared by the store, the calculator, and the AI gateway."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class FieldFlowError(Exception):
    """Base class for all domain errors."""


class ValidationError(FieldFlowError):
    """One or more field values are invalid. Carries every offending field."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(e.field for e in self.errors)
        super().__init__(f"Invalid fields: {fields}")

    def as_dicts(self) -> list[dict]:
        return [{"field": e.field, "message": e.message} for e in self.errors]


class NotFoundError(FieldFlowError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Work order not found: {order_id}")


class DuplicateIdError(FieldFlowError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Work order already exists: {order_id}")


class GatewayError(FieldFlowError):
    """AI call failed, returned garbage, or did not match its schema."""


class GatewayTimeoutError(GatewayError):
    pass


class PersistenceError(FieldFlowError):
    """Stored work orders could not be read or written."""


class RequestInFlightError(FieldFlowError):
    def __init__(self, order_id: str, kind: str):
        self.order_id = order_id
        self.kind = kind
        super().__init__(f"A {kind} request is already running for work order {order_id}")


class StaleRequestError(FieldFlowError):
    def __init__(self, order_id: str, kind: str):
        self.order_id = order_id
        self.kind = kind
        super().__init__(f"Discarded stale {kind} response for work order {order_id}")
