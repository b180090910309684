"""In-memory work-order collection persisted whole through a StorageBackend.

Every mutation re-serializes the full collection and saves it. If the save
fails the in-memory change is rolled back, so the store and its backend never
disagree about what exists.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Iterable, Literal, Mapping

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from fieldflow.db.backends import StorageBackend
from fieldflow.errors import (
    DuplicateIdError, FieldError, NotFoundError, PersistenceError, ValidationError,
)
from fieldflow.schemas.work_order import IMMUTABLE_FIELDS, WorkOrder
from fieldflow.services import calendar
from fieldflow.services.validation import validate_work_order

logger = logging.getLogger(__name__)

_orders_adapter = TypeAdapter(list[WorkOrder])

# camelCase alias -> attribute name
_FIELD_NAMES = {
    **{name: name for name in WorkOrder.model_fields},
    **{f.alias: name for name, f in WorkOrder.model_fields.items() if f.alias},
}


def serialize_orders(orders: Iterable[WorkOrder]) -> str:
    """JSON array of camelCase records. Absent optional fields are omitted, not null."""
    return _orders_adapter.dump_json(list(orders), by_alias=True, exclude_none=True).decode("utf-8")


def deserialize_orders(text: str) -> list[WorkOrder]:
    """Parse a serialized collection. Raises PersistenceError on anything malformed."""
    try:
        orders = _orders_adapter.validate_json(text)
    except PydanticValidationError as e:
        raise PersistenceError(f"Stored work orders are corrupt ({e.error_count()} problem(s))") from e

    seen = set()
    for order in orders:
        if order.id in seen:
            raise PersistenceError(f"Stored work orders contain duplicate id {order.id}")
        seen.add(order.id)
    return orders


def _pydantic_field_errors(e: PydanticValidationError) -> list[FieldError]:
    return [
        FieldError(".".join(str(p) for p in err["loc"]) or "__root__", err["msg"])
        for err in e.errors()
    ]


def _check_invariants(order: WorkOrder) -> None:
    errors = validate_work_order(order)
    if errors:
        logger.error(f"Rejecting invalid work order {order.id}: {', '.join(e.field for e in errors)}")
        raise ValidationError(errors)


class WorkOrderStore:
    def __init__(self, backend: StorageBackend, tz: tzinfo | None = None):
        self._backend = backend
        self._orders: dict[str, WorkOrder] = {}
        self.tz = tz

    @classmethod
    async def open(
        cls, backend: StorageBackend, tz: tzinfo | None = None,
        on_corrupt: Literal["error", "reset"] = "error",
    ) -> WorkOrderStore:
        store = cls(backend, tz=tz)
        await store.load(on_corrupt=on_corrupt)
        return store

    # ── Persistence ───────────────────────────────────────

    def serialize(self) -> str:
        return serialize_orders(self._orders.values())

    @staticmethod
    def deserialize(text: str) -> list[WorkOrder]:
        return deserialize_orders(text)

    async def load(self, on_corrupt: Literal["error", "reset"] = "error") -> int:
        """Replace the in-memory collection with what the backend holds."""
        payload = await self._backend.load()
        if payload is None:
            self._orders = {}
            return 0
        try:
            orders = deserialize_orders(payload)
        except PersistenceError as e:
            if on_corrupt != "reset":
                raise
            logger.warning(f"Discarding corrupt stored work orders: {e}")
            self._orders = {}
            return 0
        self._orders = {o.id: o for o in orders}
        logger.info(f"Loaded {len(self._orders)} work order(s)")
        return len(self._orders)

    async def reset(self) -> None:
        """Drop every work order, in memory and in the backend."""
        await self._backend.clear()
        self._orders = {}

    async def _commit(self, previous: dict[str, WorkOrder]) -> None:
        try:
            await self._backend.save(self.serialize())
        except Exception:
            self._orders = previous
            raise

    # ── Queries ───────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._orders

    def get(self, order_id: str) -> WorkOrder:
        try:
            return self._orders[order_id]
        except KeyError:
            raise NotFoundError(order_id) from None

    def list(self) -> list[WorkOrder]:
        """All orders in insertion order."""
        return list(self._orders.values())

    def find_by_deadline_day(self, day: date | datetime) -> list[WorkOrder]:
        return calendar.find_by_deadline_day(self._orders.values(), day, self.tz)

    def event_days(self) -> set[date]:
        return calendar.event_days(self._orders.values(), self.tz)

    # ── Mutations ─────────────────────────────────────────

    async def create(self, order: WorkOrder) -> None:
        if order.id in self._orders:
            logger.error(f"Refusing to overwrite existing work order {order.id}")
            raise DuplicateIdError(order.id)
        _check_invariants(order)
        previous = dict(self._orders)
        self._orders[order.id] = order
        await self._commit(previous)

    async def update(self, order_id: str, patch: Mapping[str, Any] | None = None) -> WorkOrder:
        """Merge ``patch`` into an existing order and return the result.

        Keys may be attribute names or their camelCase aliases. Fields not in
        the patch keep their values; ``id`` and ``created_at`` cannot change.
        The merged order must pass the same checks as a newly created one.
        """
        current = self.get(order_id)

        changes: dict[str, Any] = {}
        errors = []
        for key, value in (patch or {}).items():
            name = _FIELD_NAMES.get(key)
            if name is None:
                errors.append(FieldError(key, "Unknown work order field"))
            elif name in IMMUTABLE_FIELDS and value != getattr(current, name):
                errors.append(FieldError(name, "Field cannot be changed after creation"))
            else:
                changes[name] = value
        if errors:
            raise ValidationError(errors)

        if not changes:
            return current

        data = {name: getattr(current, name) for name in WorkOrder.model_fields}
        data.update(changes)
        try:
            merged = WorkOrder.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(_pydantic_field_errors(e)) from e
        _check_invariants(merged)

        previous = dict(self._orders)
        self._orders[order_id] = merged
        await self._commit(previous)
        return merged

    async def remove(self, order_id: str) -> WorkOrder:
        order = self.get(order_id)
        previous = dict(self._orders)
        del self._orders[order_id]
        await self._commit(previous)
        return order
