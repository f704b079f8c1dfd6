"""Shared test doubles and fixtures.

Provides:
- InMemoryCRMClient: CRMClient double with scripted per-operation failures
- InMemoryFormRepository: FormRepository double, optionally failing writes
- RecordingSleep: sleep replacement that records requested delays
- crm / crm_sync / repository fixtures wired from the doubles

No database, CRM or email API is contacted by the test suite.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

import pytest

from src.leadcapture.crm.adapter import CRMClient
from src.leadcapture.crm.sync import CRMSyncService
from src.leadcapture.forms.schemas import (
    BookingRequestCreate,
    BookingRequestRead,
    CalculatorSubmissionCreate,
    CalculatorSubmissionRead,
    CareerApplicationCreate,
    CareerApplicationRead,
    PartnerRegistrationCreate,
    PartnerRegistrationRead,
)


# ── CRM Double ──────────────────────────────────────────────────────────────


class InMemoryCRMClient(CRMClient):
    """CRMClient keeping contacts, notes and companies in dicts.

    ``fail(operation, *errors)`` queues exceptions raised by the next calls
    to ``operation``; ``break_operation(operation, error)`` makes every call
    raise.
    """

    def __init__(self) -> None:
        self.contacts: dict[str, dict[str, str]] = {}
        self.notes: list[tuple[str, str]] = []
        self.companies: list[dict[str, str]] = []
        self.calls: list[str] = []
        self.closed = 0
        self._queued: dict[str, list[BaseException]] = defaultdict(list)
        self._broken: dict[str, BaseException] = {}
        self._next_id = 100

    def fail(self, operation: str, *errors: BaseException) -> None:
        self._queued[operation].extend(errors)

    def break_operation(self, operation: str, error: BaseException) -> None:
        self._broken[operation] = error

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self._broken:
            raise self._broken[operation]
        if self._queued[operation]:
            raise self._queued[operation].pop(0)

    def _new_id(self) -> str:
        self._next_id += 1
        return str(self._next_id)

    def contacts_with_email(self, email: str) -> list[dict[str, str]]:
        return [props for props in self.contacts.values() if props.get("email") == email]

    async def search_contact_by_email(self, email: str) -> dict[str, Any] | None:
        self._enter("search_contact_by_email")
        for contact_id, props in self.contacts.items():
            if props.get("email") == email:
                return {"id": contact_id, "properties": dict(props)}
        return None

    async def create_contact(self, properties: dict[str, str]) -> str:
        self._enter("create_contact")
        contact_id = self._new_id()
        self.contacts[contact_id] = dict(properties)
        return contact_id

    async def update_contact(self, contact_id: str, properties: dict[str, str]) -> None:
        self._enter("update_contact")
        self.contacts[contact_id].update(properties)

    async def create_note(self, contact_id: str, body: str) -> str:
        self._enter("create_note")
        self.notes.append((contact_id, body))
        return self._new_id()

    async def create_company(self, properties: dict[str, str]) -> str:
        self._enter("create_company")
        self.companies.append(dict(properties))
        return self._new_id()

    async def aclose(self) -> None:
        self.closed += 1


class RecordingSleep:
    """Replacement for asyncio.sleep that returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# ── Repository Double ───────────────────────────────────────────────────────


class InMemoryFormRepository:
    """FormRepository double; set ``fail_writes`` to simulate a database outage."""

    def __init__(self) -> None:
        self.bookings: list[BookingRequestRead] = []
        self.partners: list[PartnerRegistrationRead] = []
        self.calculations: list[CalculatorSubmissionRead] = []
        self.careers: list[CareerApplicationRead] = []
        self.fail_writes = False
        self.connected = True
        self._next_partner_id = 0

    def _check(self) -> None:
        if self.fail_writes:
            raise RuntimeError("database unavailable")

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    async def create_booking_request(self, data: BookingRequestCreate) -> BookingRequestRead:
        self._check()
        record = BookingRequestRead(id=str(uuid.uuid4()), created_at=self._now(), **data.model_dump())
        self.bookings.append(record)
        return record

    async def list_booking_requests(self) -> list[BookingRequestRead]:
        return list(reversed(self.bookings))

    async def create_partner_registration(
        self, data: PartnerRegistrationCreate
    ) -> PartnerRegistrationRead:
        self._check()
        self._next_partner_id += 1
        record = PartnerRegistrationRead(
            id=self._next_partner_id, status="pending", created_at=self._now(), **data.model_dump()
        )
        self.partners.append(record)
        return record

    async def list_partner_registrations(self) -> list[PartnerRegistrationRead]:
        return list(reversed(self.partners))

    async def create_calculator_submission(
        self, data: CalculatorSubmissionCreate
    ) -> CalculatorSubmissionRead:
        self._check()
        record = CalculatorSubmissionRead(
            id=str(uuid.uuid4()), created_at=self._now(), **data.model_dump()
        )
        self.calculations.append(record)
        return record

    async def list_calculator_submissions(self) -> list[CalculatorSubmissionRead]:
        return list(reversed(self.calculations))

    async def create_career_application(self, data: CareerApplicationCreate) -> CareerApplicationRead:
        self._check()
        record = CareerApplicationRead(
            id=str(uuid.uuid4()), status="new", created_at=self._now(), **data.model_dump()
        )
        self.careers.append(record)
        return record

    async def list_career_applications(self) -> list[CareerApplicationRead]:
        return list(reversed(self.careers))

    async def connection_status(self) -> tuple[bool, str | None]:
        if self.connected:
            return True, None
        return False, "connection refused"


# ── Fixtures ────────────────────────────────────────────────────────────────


@pytest.fixture
def crm() -> InMemoryCRMClient:
    return InMemoryCRMClient()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def crm_sync(crm: InMemoryCRMClient, recording_sleep: RecordingSleep) -> CRMSyncService:
    """CRMSyncService over the in-memory CRM, without real backoff delays."""

    async def factory() -> CRMClient:
        return crm

    return CRMSyncService(factory, max_attempts=3, base_delay=1.0, sleep=recording_sleep)


@pytest.fixture
def repository() -> InMemoryFormRepository:
    return InMemoryFormRepository()
