"""Tests for the work-order store and its persistence contract."""

from datetime import datetime, timezone

import pytest

from fieldflow.db.backends import MemoryBackend
from fieldflow.db.store import WorkOrderStore, deserialize_orders, serialize_orders
from fieldflow.errors import DuplicateIdError, NotFoundError, PersistenceError, ValidationError
from fieldflow.schemas import InvoiceRecord, JobAnalysis, PartCost, WorkOrder


def _order(order_id="01HX0000000000000000000001", **overrides):
    data = dict(
        id=order_id,
        customer_details={"name": "Ann Lee", "email": "ann@example.com", "phone": "555-0100", "address": "1 Main St"},
        job_description="Leaking tap",
        location="Kitchen",
        urgency="Medium",
        created_at=datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return WorkOrder(**data)


class FailingBackend(MemoryBackend):
    """Saves succeed until ``fail`` is switched on."""

    def __init__(self):
        super().__init__()
        self.fail = False

    async def save(self, payload):
        if self.fail:
            raise PersistenceError("disk full")
        await super().save(payload)


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return WorkOrderStore(backend)


async def test_create_persists_whole_collection(store, backend):
    await store.create(_order())
    assert backend.saves == 1
    assert deserialize_orders(backend.payload) == [_order()]


async def test_get_unknown_id_raises(store):
    with pytest.raises(NotFoundError):
        store.get("missing")


async def test_duplicate_create_leaves_store_unchanged(store, backend):
    await store.create(_order(job_description="First"))
    with pytest.raises(DuplicateIdError):
        await store.create(_order(job_description="Second"))
    assert len(store) == 1
    assert store.get(_order().id).job_description == "First"
    assert backend.saves == 1


async def test_update_merges_patch(store):
    await store.create(_order())
    updated = await store.update(_order().id, {"status": "Scheduled"})
    assert updated.status == "Scheduled"
    assert updated.job_description == "Leaking tap"
    assert store.get(_order().id).status == "Scheduled"


async def test_update_accepts_camel_case_keys(store):
    await store.create(_order())
    updated = await store.update(_order().id, {"jobDescription": "Burst pipe"})
    assert updated.job_description == "Burst pipe"


async def test_empty_patch_is_a_no_op(store, backend):
    await store.create(_order())
    before = store.get(_order().id)
    assert await store.update(_order().id, {}) == before
    assert backend.saves == 1


async def test_update_rejects_immutable_fields(store):
    await store.create(_order())
    with pytest.raises(ValidationError) as exc_info:
        await store.update(_order().id, {"id": "other", "created_at": datetime(2020, 1, 1, tzinfo=timezone.utc)})
    assert {e.field for e in exc_info.value.errors} == {"id", "created_at"}


async def test_update_rejects_unknown_fields_and_bad_values(store):
    await store.create(_order())
    with pytest.raises(ValidationError):
        await store.update(_order().id, {"colour": "red"})
    with pytest.raises(ValidationError):
        await store.update(_order().id, {"urgency": "Whenever"})
    assert store.get(_order().id) == _order()


async def test_failed_save_rolls_back():
    backend = FailingBackend()
    store = WorkOrderStore(backend)
    await store.create(_order())

    backend.fail = True
    with pytest.raises(PersistenceError):
        await store.update(_order().id, {"status": "Done"})
    with pytest.raises(PersistenceError):
        await store.create(_order("01HX0000000000000000000002"))
    with pytest.raises(PersistenceError):
        await store.remove(_order().id)

    assert store.list() == [_order()]


async def test_remove(store):
    await store.create(_order())
    removed = await store.remove(_order().id)
    assert removed.id == _order().id
    assert len(store) == 0
    with pytest.raises(NotFoundError):
        await store.remove(_order().id)


async def test_round_trip_preserves_nested_records(store, backend):
    analysis = JobAnalysis(
        part_list="valve", job_duration="1h", tools_needed="wrench", man_hours="1",
        analyzed_at=datetime(2024, 5, 2, tzinfo=timezone.utc),
    )
    await store.create(_order(deadline=datetime(2024, 5, 3, 17, 0, tzinfo=timezone.utc), analysis=analysis))
    await store.create(_order("01HX0000000000000000000002", voice_notes="Call after 5"))
    await store.create(_order(
        "01HX0000000000000000000003",
        status="Invoiced",
        part_costs=[PartCost(part_name="Valve", cost=10.0, quantity=2), PartCost(part_name="Tape", cost=0.1)],
        labor_estimate=50.0,
        tax_rate=0.08,
        invoice=InvoiceRecord(
            invoice_text="INVOICE\nValve x2",
            total_amount=80.0,
            computed_total=75.60000000000001,
            total_mismatch=True,
            generated_at=datetime(2024, 5, 4, 12, 30, 15, 123456, tzinfo=timezone.utc),
        ),
    ))

    reloaded = await WorkOrderStore.open(MemoryBackend(backend.payload))
    assert reloaded.list() == store.list()


def test_serialized_form_is_camel_case_without_nulls():
    text = serialize_orders([_order()])
    assert '"customerDetails"' in text
    assert '"createdAt"' in text
    assert "null" not in text
    assert "deadline" not in text


def test_deserialize_rejects_garbage():
    with pytest.raises(PersistenceError):
        deserialize_orders("{not json")
    with pytest.raises(PersistenceError):
        deserialize_orders('{"id": "x"}')
    with pytest.raises(PersistenceError):
        deserialize_orders('[{"id": "x"}]')


def test_deserialize_rejects_duplicate_ids():
    text = serialize_orders([_order(), _order()])
    with pytest.raises(PersistenceError):
        deserialize_orders(text)


def test_deserialize_empty_collection():
    assert deserialize_orders("[]") == []


async def test_load_empty_backend():
    store = await WorkOrderStore.open(MemoryBackend())
    assert store.list() == []


async def test_load_corrupt_raises_by_default():
    with pytest.raises(PersistenceError):
        await WorkOrderStore.open(MemoryBackend("[{broken"))


async def test_load_corrupt_with_reset_policy_starts_empty():
    store = await WorkOrderStore.open(MemoryBackend("[{broken"), on_corrupt="reset")
    assert len(store) == 0


async def test_reset_clears_backend(store, backend):
    await store.create(_order())
    await store.reset()
    assert len(store) == 0
    assert backend.payload is None


async def test_update_enforces_entity_invariants(store, backend):
    await store.create(_order())
    with pytest.raises(ValidationError) as exc_info:
        await store.update(_order().id, {
            "taxRate": 5,
            "jobDescription": "",
            "partCosts": [{"partName": "", "cost": -3, "quantity": 0}],
            "customerDetails": {"name": "", "email": "nope", "phone": "555-0100", "address": "1 Main St"},
        })
    assert {e.field for e in exc_info.value.errors} == {
        "tax_rate",
        "job_description",
        "part_costs[0].part_name",
        "part_costs[0].cost",
        "part_costs[0].quantity",
        "customer_details.name",
        "customer_details.email",
    }
    assert store.get(_order().id) == _order()
    assert backend.saves == 1


async def test_create_rejects_invalid_order(store, backend):
    with pytest.raises(ValidationError):
        await store.create(_order(location=" "))
    assert len(store) == 0
    assert backend.saves == 0
