"""Form submission repository -- async inserts and listings for all four forms.

Provides FormRepository with the session_factory callable pattern: the
factory is an async generator yielding AsyncSession instances
(core.database.get_session in production). Models are converted to the
Read schemas before leaving the repository.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

import structlog
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.leadcapture.forms.models import (
    BookingRequestModel,
    CalculatorSubmissionModel,
    CareerApplicationModel,
    PartnerRegistrationModel,
)
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

logger = structlog.get_logger(__name__)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_booking(model: BookingRequestModel) -> BookingRequestRead:
    return BookingRequestRead(
        id=str(model.id),
        name=model.name,
        email=model.email,
        phone=model.phone,
        service=model.service,
        message=model.message,
        consent_given=model.consent_given,
        consent_timestamp=model.consent_timestamp,
        marketing_consent=bool(model.marketing_consent),
        created_at=model.created_at,
    )


def _model_to_partner(model: PartnerRegistrationModel) -> PartnerRegistrationRead:
    return PartnerRegistrationRead(
        id=model.id,
        company_name=model.company_name,
        contact_person=model.contact_person,
        email=model.email,
        phone=model.phone,
        address=model.address,
        website=model.website,
        trades=list(model.trades or []),
        employees=model.employees,
        experience=model.experience,
        motivation=model.motivation,
        certifications=model.certifications,
        consent_given=model.consent_given,
        consent_timestamp=model.consent_timestamp,
        status=model.status,
        created_at=model.created_at,
    )


def _model_to_calculator(model: CalculatorSubmissionModel) -> CalculatorSubmissionRead:
    return CalculatorSubmissionRead(
        id=str(model.id),
        email=model.email,
        name=model.name,
        calculator_type=model.calculator_type,
        inputs=model.inputs or [],
        results=model.results or [],
        consent_given=model.consent_given,
        consent_timestamp=model.consent_timestamp,
        created_at=model.created_at,
    )


def _model_to_career(model: CareerApplicationModel) -> CareerApplicationRead:
    return CareerApplicationRead(
        id=str(model.id),
        name=model.name,
        email=model.email,
        phone=model.phone,
        position=model.position,
        experience=model.experience,
        motivation=model.motivation,
        resume_url=model.resume_url,
        consent_given=model.consent_given,
        consent_timestamp=model.consent_timestamp,
        status=model.status,
        created_at=model.created_at,
    )


# ── Repository ──────────────────────────────────────────────────────────────


class FormRepository:
    """Append-only storage for form submissions.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    # ── Booking requests ────────────────────────────────────────────────────

    async def create_booking_request(self, data: BookingRequestCreate) -> BookingRequestRead:
        """Insert a booking request and return it with id and created_at."""
        async for session in self._session_factory():
            model = BookingRequestModel(
                name=data.name,
                email=str(data.email),
                phone=data.phone,
                service=data.service,
                message=data.message,
                consent_given=data.consent_given,
                consent_timestamp=data.consent_timestamp,
                marketing_consent=data.marketing_consent,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return _model_to_booking(model)

    async def list_booking_requests(self) -> list[BookingRequestRead]:
        """All booking requests, newest first."""
        async for session in self._session_factory():
            stmt = select(BookingRequestModel).order_by(BookingRequestModel.created_at.desc())
            result = await session.execute(stmt)
            return [_model_to_booking(m) for m in result.scalars().all()]
        return []

    # ── Partner registrations ───────────────────────────────────────────────

    async def create_partner_registration(
        self, data: PartnerRegistrationCreate
    ) -> PartnerRegistrationRead:
        async for session in self._session_factory():
            model = PartnerRegistrationModel(
                company_name=data.company_name,
                contact_person=data.contact_person,
                email=str(data.email),
                phone=data.phone,
                address=data.address,
                website=data.website,
                trades=list(data.trades),
                employees=data.employees,
                experience=data.experience,
                motivation=data.motivation,
                certifications=data.certifications,
                consent_given=data.consent_given,
                consent_timestamp=data.consent_timestamp,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return _model_to_partner(model)

    async def list_partner_registrations(self) -> list[PartnerRegistrationRead]:
        async for session in self._session_factory():
            stmt = select(PartnerRegistrationModel).order_by(
                PartnerRegistrationModel.created_at.desc()
            )
            result = await session.execute(stmt)
            return [_model_to_partner(m) for m in result.scalars().all()]
        return []

    # ── Calculator submissions ──────────────────────────────────────────────

    async def create_calculator_submission(
        self, data: CalculatorSubmissionCreate
    ) -> CalculatorSubmissionRead:
        """Insert a calculator submission; inputs/results stored as JSON lists."""
        async for session in self._session_factory():
            model = CalculatorSubmissionModel(
                email=str(data.email),
                name=data.name or None,
                calculator_type=data.calculator_type,
                inputs=[entry.model_dump() for entry in data.inputs],
                results=[entry.model_dump() for entry in data.results],
                consent_given=data.consent_given,
                consent_timestamp=data.consent_timestamp,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return _model_to_calculator(model)

    async def list_calculator_submissions(self) -> list[CalculatorSubmissionRead]:
        async for session in self._session_factory():
            stmt = select(CalculatorSubmissionModel).order_by(
                CalculatorSubmissionModel.created_at.desc()
            )
            result = await session.execute(stmt)
            return [_model_to_calculator(m) for m in result.scalars().all()]
        return []

    # ── Career applications ─────────────────────────────────────────────────

    async def create_career_application(
        self, data: CareerApplicationCreate
    ) -> CareerApplicationRead:
        async for session in self._session_factory():
            model = CareerApplicationModel(
                name=data.name,
                email=str(data.email),
                phone=data.phone,
                position=data.position,
                experience=data.experience,
                motivation=data.motivation,
                resume_url=data.resume_url,
                consent_given=data.consent_given,
                consent_timestamp=data.consent_timestamp,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return _model_to_career(model)

    async def list_career_applications(self) -> list[CareerApplicationRead]:
        """All career applications, newest first."""
        async for session in self._session_factory():
            stmt = select(CareerApplicationModel).order_by(CareerApplicationModel.created_at.desc())
            result = await session.execute(stmt)
            return [_model_to_career(m) for m in result.scalars().all()]
        return []

    # ── Health ──────────────────────────────────────────────────────────────

    async def connection_status(self) -> tuple[bool, str | None]:
        """Run SELECT 1 and return (connected, error message)."""
        try:
            async for session in self._session_factory():
                await session.execute(text("SELECT 1"))
                return True, None
        except Exception as exc:
            logger.error("database.connection_test_failed", error=str(exc))
            return False, str(exc)
        return False, "no session available"
