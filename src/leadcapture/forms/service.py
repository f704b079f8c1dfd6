"""Form submission pipeline: persist, then mirror to the CRM, then email.

Persistence is the only step allowed to fail a submission. CRM sync and
email run afterwards; their failures are logged once and returned as
SideEffectResult values in the SubmissionOutcome. A failed CRM sync is not
re-queued.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

from src.leadcapture.core.monitoring import form_submissions_total
from src.leadcapture.crm.property_map import FormType
from src.leadcapture.crm.results import SideEffectResult
from src.leadcapture.crm.sync import CRMSyncService
from src.leadcapture.forms.repository import FormRepository
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
from src.leadcapture.notifications.mailer import BookingEmailResult, Mailer

logger = structlog.get_logger(__name__)

R = TypeVar("R")

# Booking form without a package selection
DEFAULT_PACKAGE_NAME = "Individuelle Beratung"


@dataclass(frozen=True)
class SubmissionOutcome(Generic[R]):
    """Persisted record plus the outcome of each best-effort step."""

    record: R
    crm: SideEffectResult[Any]
    email: SideEffectResult[Any]


class FormSubmissionService:
    """Runs the submit pipeline for the four form types.

    Args:
        repository: FormRepository used for persistence.
        crm_sync: Optional CRMSyncService; None disables CRM mirroring.
        mailer: Optional Mailer; None disables email.
    """

    def __init__(
        self,
        repository: FormRepository,
        crm_sync: CRMSyncService | None = None,
        mailer: Mailer | None = None,
    ) -> None:
        self._repository = repository
        self._crm_sync = crm_sync
        self._mailer = mailer

    async def _persist(self, form_type: FormType, operation: Awaitable[R]) -> R:
        try:
            record = await operation
        except Exception as exc:
            form_submissions_total.labels(form_type=form_type.value, status="error").inc()
            logger.error("forms.persist_failed", form_type=form_type.value, error=str(exc))
            raise
        form_submissions_total.labels(form_type=form_type.value, status="saved").inc()
        return record

    @staticmethod
    async def _best_effort(
        step: str,
        form_type: FormType,
        operation: Awaitable[Any] | None,
    ) -> SideEffectResult[Any]:
        if operation is None:
            return SideEffectResult.skipped()
        try:
            value = await operation
        except Exception as exc:
            logger.error(f"forms.{step}_failed", form_type=form_type.value, error=str(exc))
            return SideEffectResult.failure(step, exc)
        return SideEffectResult.success(value)

    # ── Booking ─────────────────────────────────────────────────────────────

    async def submit_booking(
        self, data: BookingRequestCreate
    ) -> SubmissionOutcome[BookingRequestRead]:
        form = FormType.BOOKING
        record = await self._persist(form, self._repository.create_booking_request(data))
        logger.info(
            "forms.booking_saved",
            booking_id=record.id,
            email=record.email,
            service=record.service,
        )

        crm = await self._best_effort(
            "crm_sync",
            form,
            self._crm_sync.sync_booking(
                name=record.name,
                email=record.email,
                phone=record.phone or None,
                service=record.service,
                message=record.message or None,
                package_type=data.package_type,
                building_type=data.building_type,
            )
            if self._crm_sync
            else None,
        )

        email = await self._best_effort(
            "email",
            form,
            self._mailer.send_booking_emails(
                name=record.name,
                email=record.email,
                service_category=record.service,
                package_name=data.package_type or DEFAULT_PACKAGE_NAME,
                phone=record.phone or None,
                message=record.message or None,
                building_type=data.building_type,
            )
            if self._mailer
            else None,
        )
        if isinstance(email.value, BookingEmailResult) and not email.value.ok:
            # Keep the per-message detail but report the step as failed
            email = SideEffectResult(ok=False, value=email.value, error=email.value.error)
        return SubmissionOutcome(record=record, crm=crm, email=email)

    # ── Calculator ──────────────────────────────────────────────────────────

    async def submit_calculator(
        self, data: CalculatorSubmissionCreate
    ) -> SubmissionOutcome[CalculatorSubmissionRead]:
        form = FormType.CALCULATOR
        record = await self._persist(form, self._repository.create_calculator_submission(data))
        logger.info(
            "forms.calculator_saved",
            submission_id=record.id,
            email=record.email,
            calculator_type=record.calculator_type,
        )

        crm = await self._best_effort(
            "crm_sync",
            form,
            self._crm_sync.sync_calculator(
                email=record.email,
                name=data.name or None,
                calculator_type=record.calculator_type,
            )
            if self._crm_sync
            else None,
        )

        email = await self._best_effort(
            "email",
            form,
            self._mailer.send_calculator_results_email(
                email=record.email,
                name=data.name or None,
                calculator_type=record.calculator_type,
                results=[entry.model_dump() for entry in data.results],
                inputs=[entry.model_dump() for entry in data.inputs],
            )
            if self._mailer
            else None,
        )
        return SubmissionOutcome(record=record, crm=crm, email=email)

    # ── Partner ─────────────────────────────────────────────────────────────

    async def submit_partner(
        self, data: PartnerRegistrationCreate
    ) -> SubmissionOutcome[PartnerRegistrationRead]:
        form = FormType.PARTNER
        record = await self._persist(form, self._repository.create_partner_registration(data))
        logger.info(
            "forms.partner_saved",
            registration_id=record.id,
            company_name=record.company_name,
            email=record.email,
        )

        crm = await self._best_effort(
            "crm_sync",
            form,
            self._crm_sync.sync_partner(
                company_name=data.company_name,
                contact_person=data.contact_person,
                email=str(data.email),
                phone=data.phone,
                address=data.address,
                website=data.website,
                trades=data.trades,
            )
            if self._crm_sync
            else None,
        )

        email = await self._best_effort(
            "email",
            form,
            self._mailer.send_partner_registration_email(
                company_name=data.company_name,
                contact_person=data.contact_person,
                email=str(data.email),
                phone=data.phone,
                address=data.address,
                trades=data.trades,
                employees=data.employees,
                experience=data.experience,
                motivation=data.motivation,
                website=data.website,
                certifications=data.certifications,
            )
            if self._mailer
            else None,
        )
        return SubmissionOutcome(record=record, crm=crm, email=email)

    # ── Career ──────────────────────────────────────────────────────────────

    async def submit_career(
        self, data: CareerApplicationCreate
    ) -> SubmissionOutcome[CareerApplicationRead]:
        form = FormType.CAREER
        record = await self._persist(form, self._repository.create_career_application(data))
        logger.info(
            "forms.career_saved",
            application_id=record.id,
            email=record.email,
            position=record.position,
        )

        crm = await self._best_effort(
            "crm_sync",
            form,
            self._crm_sync.sync_career(
                name=record.name,
                email=record.email,
                phone=record.phone or None,
                position=record.position,
            )
            if self._crm_sync
            else None,
        )
        # No email for career applications
        return SubmissionOutcome(record=record, crm=crm, email=SideEffectResult.skipped())
