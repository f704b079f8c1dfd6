"""REST endpoints for the public website forms.

Each POST validates the camelCase body, persists it and then runs the
best-effort CRM sync and email steps through FormSubmissionService. Only a
persistence failure changes the response (500 with a German message);
validation failures are answered with 400 by the app's exception handler.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.leadcapture.api.deps import get_form_repository, get_form_service
from src.leadcapture.api.errors import error_response
from src.leadcapture.forms.repository import FormRepository
from src.leadcapture.forms.schemas import (
    BookingRequestCreate,
    BookingRequestRead,
    BookingSubmissionResponse,
    CalculatorSubmissionCreate,
    CalculatorSubmissionResponse,
    CareerApplicationCreate,
    CareerApplicationRead,
    ErrorResponse,
    PartnerRegistrationCreate,
    SubmissionResponse,
)
from src.leadcapture.forms.service import FormSubmissionService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["forms"])

INTERNAL_ERROR_MESSAGE = "Interner Serverfehler"
CALCULATOR_ERROR_MESSAGE = "Speichern fehlgeschlagen"

_error_responses = {500: {"model": ErrorResponse}, 400: {"model": ErrorResponse}}


# ── Booking ──────────────────────────────────────────────────────────────────


@router.post(
    "/anfrage",
    response_model=BookingSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_error_responses,
)
@router.post(
    "/booking",
    response_model=BookingSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_error_responses,
)
async def submit_booking(
    body: BookingRequestCreate,
    service: FormSubmissionService = Depends(get_form_service),
) -> BookingSubmissionResponse | JSONResponse:
    """Store a booking request, mirror it to the CRM and send the emails."""
    try:
        outcome = await service.submit_booking(body)
    except Exception:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    return BookingSubmissionResponse(
        message="Anfrage erfolgreich gesendet",
        booking_id=outcome.record.id,
        id=outcome.record.id,
    )


@router.get("/anfrage", response_model=list[BookingRequestRead])
async def list_booking_requests(
    repository: FormRepository = Depends(get_form_repository),
) -> list[BookingRequestRead] | JSONResponse:
    try:
        return await repository.list_booking_requests()
    except Exception as exc:
        logger.error("forms.list_failed", form_type="booking", error=str(exc))
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


# ── Calculator ───────────────────────────────────────────────────────────────


@router.post(
    "/calculator/send-results",
    response_model=CalculatorSubmissionResponse,
    responses=_error_responses,
)
async def send_calculator_results(
    body: CalculatorSubmissionCreate,
    service: FormSubmissionService = Depends(get_form_service),
) -> CalculatorSubmissionResponse | JSONResponse:
    """Store calculator results and email them to the visitor."""
    try:
        await service.submit_calculator(body)
    except Exception:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, CALCULATOR_ERROR_MESSAGE)
    return CalculatorSubmissionResponse(message="Ergebnisse gespeichert")


# ── Partner ──────────────────────────────────────────────────────────────────


@router.post(
    "/partner",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_error_responses,
)
async def register_partner(
    body: PartnerRegistrationCreate,
    service: FormSubmissionService = Depends(get_form_service),
) -> SubmissionResponse | JSONResponse:
    """Store a craftsman partner registration and notify the admin."""
    try:
        outcome = await service.submit_partner(body)
    except Exception:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)
    return SubmissionResponse(message="Registrierung erfolgreich gesendet", id=outcome.record.id)


# ── Career ───────────────────────────────────────────────────────────────────


@router.post(
    "/karriere",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_error_responses,
)
async def submit_career_application(
    body: CareerApplicationCreate,
    service: FormSubmissionService = Depends(get_form_service),
) -> SubmissionResponse | JSONResponse:
    try:
        outcome = await service.submit_career(body)
    except Exception:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)
    return SubmissionResponse(message="Bewerbung erfolgreich gesendet", id=outcome.record.id)


@router.get("/karriere", response_model=list[CareerApplicationRead])
async def list_career_applications(
    repository: FormRepository = Depends(get_form_repository),
) -> list[CareerApplicationRead] | JSONResponse:
    try:
        return await repository.list_career_applications()
    except Exception as exc:
        logger.error("forms.list_failed", form_type="career", error=str(exc))
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)
