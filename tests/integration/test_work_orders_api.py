"""Integration tests for the HTTP API.

The app runs against an in-memory store and a mocked AI gateway; lifespan is
not started, so app state is set up by the fixture.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fieldflow.agents.gateway import AIGateway
from fieldflow.db.backends import MemoryBackend
from fieldflow.db.store import WorkOrderStore
from fieldflow.dependencies import get_ai_gateway
from fieldflow.errors import GatewayError, GatewayTimeoutError
from fieldflow.main import app
from fieldflow.schemas import (
    AnalysisResult, CoordinatorAdvice, InvoiceDraftResult, TranscriptionResult,
)
from fieldflow.services.requests import RequestTracker

NEW_ORDER = {
    "customerDetails": {
        "name": "Ann Lee", "email": "ann@example.com", "phone": "555-0100", "address": "1 Main St",
    },
    "jobDescription": "Leaking tap",
    "location": "Kitchen",
    "urgency": "High",
    "deadline": "2024-05-10T23:59:00Z",
}


@pytest.fixture
def gateway():
    gw = MagicMock(spec=AIGateway)
    gw.analyze = AsyncMock(return_value=AnalysisResult(
        part_list="Cartridge valve",
        job_duration_estimate="1-2 hours",
        urgency_level="High",
        tools_needed="Basin wrench",
        man_hours_needed="2",
    ))
    gw.draft_invoice = AsyncMock(return_value=InvoiceDraftResult(invoice_text="INVOICE #1", total_amount=75.6))
    gw.transcribe = AsyncMock(return_value=TranscriptionResult(
        customer_details="Ann Lee", job_description="Fix leaking tap", urgency="high", location="unknown",
    ))
    gw.coordinate = AsyncMock(return_value=CoordinatorAdvice(action_taken="Order parts", reason="Parts pending"))
    return gw


@pytest_asyncio.fixture
async def client(gateway):
    backend = MemoryBackend()
    app.state.store = WorkOrderStore(backend)
    app.state.tracker = RequestTracker()
    app.state.storage_error = None
    app.dependency_overrides[get_ai_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create(client, **overrides) -> dict:
    r = await client.post("/api/work-orders", json={**NEW_ORDER, **overrides})
    assert r.status_code == 201, r.text
    return r.json()


# ── CRUD ────────────────────────────────────────────────────────────


async def test_create_and_get_work_order(client):
    data = await _create(client)
    assert data["status"] == "New"
    assert data["customerDetails"]["name"] == "Ann Lee"
    assert "analysis" not in data

    r = await client.get(f"/api/work-orders/{data['id']}")
    assert r.status_code == 200
    assert r.json()["jobDescription"] == "Leaking tap"


async def test_create_invalid_lists_every_field(client):
    r = await client.post("/api/work-orders", json={
        **NEW_ORDER,
        "customerDetails": {**NEW_ORDER["customerDetails"], "email": "nope"},
        "location": "",
    })
    assert r.status_code == 422
    fields = {e["field"] for e in r.json()["errors"]}
    assert fields == {"customer_details.email", "location"}


async def test_list_newest_first_and_filter(client):
    first = await _create(client, jobDescription="First")
    second = await _create(client, jobDescription="Second")
    await client.patch(f"/api/work-orders/{first['id']}", json={"status": "Scheduled"})

    r = await client.get("/api/work-orders")
    assert [o["id"] for o in r.json()] == [second["id"], first["id"]]

    r = await client.get("/api/work-orders", params={"status": "scheduled"})
    assert [o["id"] for o in r.json()] == [first["id"]]


async def test_get_missing_is_404(client):
    r = await client.get("/api/work-orders/does-not-exist")
    assert r.status_code == 404


async def test_put_replaces_base_fields(client):
    data = await _create(client)
    r = await client.put(f"/api/work-orders/{data['id']}", json={**NEW_ORDER, "location": "Bathroom"})
    assert r.status_code == 200
    assert r.json()["location"] == "Bathroom"
    assert r.json()["createdAt"] == data["createdAt"]


async def test_patch_rejects_immutable_and_unknown_fields(client):
    data = await _create(client)
    r = await client.patch(f"/api/work-orders/{data['id']}", json={"id": "other", "colour": "red"})
    assert r.status_code == 422
    assert {e["field"] for e in r.json()["errors"]} == {"id", "colour"}


async def test_patch_rejects_invalid_values(client):
    data = await _create(client)
    r = await client.patch(f"/api/work-orders/{data['id']}", json={
        "taxRate": 5,
        "jobDescription": "",
        "partCosts": [{"partName": "", "cost": -3, "quantity": 0}],
        "customerDetails": {**NEW_ORDER["customerDetails"], "name": "", "email": "nope"},
    })
    assert r.status_code == 422
    assert {e["field"] for e in r.json()["errors"]} == {
        "tax_rate",
        "job_description",
        "part_costs[0].part_name",
        "part_costs[0].cost",
        "part_costs[0].quantity",
        "customer_details.name",
        "customer_details.email",
    }

    r = await client.get(f"/api/work-orders/{data['id']}")
    assert r.json() == data


async def test_patch_during_analysis_makes_it_stale(client, gateway):
    data = await _create(client)
    analysis = gateway.analyze.return_value
    release = asyncio.Event()

    async def slow_analyze(**kwargs):
        await release.wait()
        return analysis

    gateway.analyze = slow_analyze
    pending = asyncio.create_task(client.post(f"/api/work-orders/{data['id']}/analyze"))
    for _ in range(100):
        if app.state.tracker.in_flight(data["id"]):
            break
        await asyncio.sleep(0.01)
    assert app.state.tracker.in_flight(data["id"]) == ["analyze"]

    r = await client.patch(f"/api/work-orders/{data['id']}", json={"jobDescription": "Replace water heater"})
    assert r.status_code == 200
    release.set()

    r = await pending
    assert r.status_code == 409
    r = await client.get(f"/api/work-orders/{data['id']}")
    assert r.json()["jobDescription"] == "Replace water heater"
    assert "analysis" not in r.json()
    assert r.json()["status"] == "New"


async def test_delete(client):
    data = await _create(client)
    r = await client.delete(f"/api/work-orders/{data['id']}")
    assert r.status_code == 204
    r = await client.get(f"/api/work-orders/{data['id']}")
    assert r.status_code == 404


# ── AI operations ───────────────────────────────────────────────────


async def test_analyze(client):
    data = await _create(client)
    r = await client.post(f"/api/work-orders/{data['id']}/analyze")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "Analyzed"
    assert body["analysis"]["partList"] == "Cartridge valve"


async def test_analyze_gateway_failure_is_502(client, gateway):
    data = await _create(client)
    gateway.analyze = AsyncMock(side_effect=GatewayError("Model response is not valid JSON"))
    r = await client.post(f"/api/work-orders/{data['id']}/analyze")
    assert r.status_code == 502

    r = await client.get(f"/api/work-orders/{data['id']}")
    assert r.json()["status"] == "New"
    assert "analysis" not in r.json()


async def test_analyze_timeout_is_504(client, gateway):
    data = await _create(client)
    gateway.analyze = AsyncMock(side_effect=GatewayTimeoutError("Job analysis timed out after 30s"))
    r = await client.post(f"/api/work-orders/{data['id']}/analyze")
    assert r.status_code == 504


async def test_invoice_work_order(client):
    data = await _create(client)
    r = await client.post(f"/api/work-orders/{data['id']}/invoice", json={
        "partCosts": [{"partName": "Valve", "cost": 10, "quantity": 2}],
        "laborEstimate": 50,
        "taxRate": 0.08,
    })
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["warnings"] == []
    assert body["workOrder"]["status"] == "Invoiced"
    assert body["workOrder"]["invoice"]["totalAmount"] == 75.6
    assert body["workOrder"]["invoice"]["totalMismatch"] is False


async def test_invoice_invalid_costs_is_422(client, gateway):
    data = await _create(client)
    r = await client.post(f"/api/work-orders/{data['id']}/invoice", json={
        "partCosts": [{"partName": "Valve", "cost": -10, "quantity": 0}],
        "laborEstimate": 50,
        "taxRate": 0.08,
    })
    assert r.status_code == 422
    assert {e["field"] for e in r.json()["errors"]} == {"part_costs[0].cost", "part_costs[0].quantity"}
    gateway.draft_invoice.assert_not_awaited()


async def test_invoice_pdf_requires_invoice(client):
    data = await _create(client)
    r = await client.get(f"/api/work-orders/{data['id']}/invoice.pdf")
    assert r.status_code == 422


async def test_invoice_pdf(client):
    data = await _create(client)
    await client.post(f"/api/work-orders/{data['id']}/invoice", json={
        "partCosts": [{"partName": "Valve", "cost": 10, "quantity": 2}],
        "laborEstimate": 50,
        "taxRate": 0.08,
    })
    r = await client.get(f"/api/work-orders/{data['id']}/invoice.pdf")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")


# ── Intake, invoices, calendar, coordinator ─────────────────────────


async def test_transcribe_upload(client, gateway):
    r = await client.post(
        "/api/intake/transcribe",
        files={"file": ("request.mp3", b"ID3fake-audio", "audio/mpeg")},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["transcription"]["location"] == "unknown"
    assert body["draft"]["jobDescription"] == "Fix leaking tap"
    assert body["draft"]["urgency"] == "High"
    assert gateway.transcribe.await_args.args[0].startswith("data:audio/mpeg;base64,")


async def test_transcribe_rejects_non_audio(client):
    r = await client.post(
        "/api/intake/transcribe",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 400


async def test_preview_totals(client):
    r = await client.post("/api/invoices/preview", json={
        "partCosts": [{"partName": "Valve", "cost": 10, "quantity": 2}],
        "laborEstimate": 50,
        "taxRate": 0.08,
    })
    assert r.status_code == 200
    assert r.json()["displayTotal"] == "75.60"
    assert r.json()["subtotal"] == 70


async def test_manual_invoice_draft_mismatch_warning(client, gateway):
    gateway.draft_invoice = AsyncMock(return_value=InvoiceDraftResult(invoice_text="INVOICE", total_amount=70.0))
    r = await client.post("/api/invoices/draft", json={
        "customerInfo": NEW_ORDER["customerDetails"],
        "jobSummary": "Replaced valve",
        "partCosts": [{"partName": "Valve", "cost": 10, "quantity": 2}],
        "laborEstimate": 50,
        "taxRate": 0.08,
    })
    assert r.status_code == 200
    body = r.json()
    assert body["totalMismatch"] is True
    assert body["displayTotal"] == "70.00"
    assert len(body["warnings"]) == 1


async def test_calendar(client):
    late = await _create(client, deadline="2024-05-10T23:59:00Z")
    await _create(client, deadline="2024-05-11T00:01:00Z")
    await _create(client, deadline=None)

    r = await client.get("/api/calendar/event-days")
    assert r.json() == ["2024-05-10", "2024-05-11"]

    r = await client.get("/api/calendar/2024-05-10")
    assert [o["id"] for o in r.json()] == [late["id"]]


async def test_coordinator(client):
    r = await client.post("/api/coordinator", json={
        "jobStatus": "Completed",
        "partsOrderStatus": "Pending",
        "emailStatus": "Sent",
        "paymentStatus": "Paid",
        "deadlineStatus": "On track",
    })
    assert r.status_code == 200
    assert r.json() == {"actionTaken": "Order parts", "reason": "Parts pending"}


# ── Corrupt storage ─────────────────────────────────────────────────


async def test_corrupt_storage_blocks_until_reset(client):
    app.state.storage_error = "Stored work orders are corrupt (1 problem(s))"
    r = await client.get("/api/work-orders")
    assert r.status_code == 503

    r = await client.post("/api/storage/reset")
    assert r.status_code == 200
    assert r.json()["ok"] is True

    r = await client.get("/api/work-orders")
    assert r.status_code == 200
    assert r.json() == []
