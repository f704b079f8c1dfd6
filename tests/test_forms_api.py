"""Integration tests for the form endpoints.

Builds the /api router on a bare FastAPI app with InMemoryFormRepository,
the in-memory CRM and a mocked mailer on app.state; no database is used.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.leadcapture.api.errors import register_exception_handlers
from src.leadcapture.api.v1.router import router
from src.leadcapture.crm.errors import ClientError, TransientRemoteError
from src.leadcapture.forms.service import FormSubmissionService

BOOKING = {
    "name": "Anna Muster",
    "email": "anna@example.com",
    "phone": "+49 30 1234",
    "service": "Heizung",
    "message": "Bitte vormittags anrufen",
    "consentGiven": True,
    "packageType": "Premium",
}

PARTNER = {
    "companyName": "Muster Bau GmbH",
    "contactPerson": "Max Muster",
    "email": "max@musterbau.de",
    "phone": "030 123456",
    "address": "Hauptstr. 1, Berlin",
    "website": "musterbau.de",
    "trades": ["heizung"],
    "employees": "5-10",
    "experience": "Seit 1990 im Handwerk tätig",
    "motivation": "Wir möchten nachhaltige Projekte umsetzen.",
    "consentGiven": True,
}


def _make_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router)
    return app


@pytest_asyncio.fixture
async def client(repository, crm_sync):
    app = _make_app()
    app.state.form_repository = repository
    app.state.form_service = FormSubmissionService(repository, crm_sync=crm_sync, mailer=AsyncMock())

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Booking ─────────────────────────────────────────────────────────────────


async def test_booking_created(client, repository, crm):
    response = await client.post("/api/anfrage", json=BOOKING)

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Anfrage erfolgreich gesendet"
    assert data["booking_id"] == data["id"] == repository.bookings[0].id
    assert repository.bookings[0].consent_given is True
    assert crm.contacts_with_email("anna@example.com")


async def test_booking_alias_route(client, repository):
    response = await client.post("/api/booking", json=BOOKING)
    assert response.status_code == 201
    assert len(repository.bookings) == 1


async def test_booking_validation_error(client, repository):
    response = await client.post("/api/anfrage", json={"name": "Anna", "service": "PV"})

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Ungültige Anfrage"
    assert any(detail["loc"][-1] == "email" for detail in data["details"])
    assert {"loc", "msg", "type"} <= set(data["details"][0])
    assert repository.bookings == []


async def test_booking_invalid_email(client):
    response = await client.post("/api/anfrage", json={**BOOKING, "email": "not-an-email"})
    assert response.status_code == 400


async def test_booking_persistence_failure(client, repository, crm):
    repository.fail_writes = True

    response = await client.post("/api/anfrage", json=BOOKING)

    assert response.status_code == 500
    assert response.json() == {"error": "Interner Serverfehler"}
    assert crm.calls == []


async def test_booking_crm_failure_still_created(client, repository, crm):
    crm.break_operation("create_contact", ClientError("invalid property"))

    response = await client.post("/api/anfrage", json=BOOKING)

    assert response.status_code == 201
    assert len(repository.bookings) == 1


async def test_list_bookings_camel_case(client):
    await client.post("/api/anfrage", json=BOOKING)

    response = await client.get("/api/anfrage")

    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["email"] == "anna@example.com"
    assert rows[0]["consentGiven"] is True
    assert "createdAt" in rows[0]


# ── Calculator ──────────────────────────────────────────────────────────────


CALCULATION = {
    "email": "anna@example.com",
    "calculatorType": "heizung",
    "results": [{"label": "Ersparnis", "value": "800 €/Jahr"}],
    "inputs": [{"label": "Wohnfläche", "value": "120 m²"}],
}


async def test_calculator_results_saved(client, repository):
    response = await client.post("/api/calculator/send-results", json=CALCULATION)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Ergebnisse gespeichert"}
    assert repository.calculations[0].calculator_type == "heizung"


async def test_calculator_persistence_failure(client, repository):
    repository.fail_writes = True

    response = await client.post("/api/calculator/send-results", json=CALCULATION)

    assert response.status_code == 500
    assert response.json() == {"error": "Speichern fehlgeschlagen"}


# ── Partner ─────────────────────────────────────────────────────────────────


async def test_partner_created_despite_company_failure(client, repository, crm):
    crm.break_operation("create_company", TransientRemoteError(500, "companies down"))

    response = await client.post("/api/partner", json=PARTNER)

    assert response.status_code == 201
    data = response.json()
    assert data == {"success": True, "message": "Registrierung erfolgreich gesendet", "id": 1}
    assert crm.contacts_with_email("max@musterbau.de")[0]["partner_confirmed"] == "true"
    assert crm.companies == []


async def test_partner_minimum_lengths(client, repository):
    response = await client.post("/api/partner", json={**PARTNER, "motivation": "zu kurz", "trades": []})

    assert response.status_code == 400
    fields = {detail["loc"][-1] for detail in response.json()["details"]}
    assert {"motivation", "trades"} <= fields
    assert repository.partners == []


# ── Career ──────────────────────────────────────────────────────────────────


async def test_career_application(client, repository, crm):
    response = await client.post(
        "/api/karriere",
        json={"name": "Jan de Vries", "email": "jan@b.de", "position": "Monteur", "resumeUrl": "https://cv.example/jan.pdf"},
    )

    assert response.status_code == 201
    assert response.json()["message"] == "Bewerbung erfolgreich gesendet"
    assert repository.careers[0].resume_url == "https://cv.example/jan.pdf"

    listing = await client.get("/api/karriere")
    assert listing.json()[0]["resumeUrl"] == "https://cv.example/jan.pdf"
    assert listing.json()[0]["status"] == "new"


# ── Health & wiring ─────────────────────────────────────────────────────────


async def test_health_connected(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert "timestamp" in data
    assert "database_url_preview" in data
    assert "error_message" not in data


async def test_health_database_error(client, repository):
    repository.connected = False

    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["database"] == "error"
    assert data["error_message"] == "connection refused"


async def test_503_when_not_initialized():
    app = _make_app()
    app.state.form_repository = None
    app.state.form_service = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/anfrage", json=BOOKING)
        assert response.status_code == 503
        assert "not initialized" in response.json()["detail"]
