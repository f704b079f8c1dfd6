"""Pydantic schemas for form submissions.

Request bodies arrive as camelCase JSON; models use snake_case attributes
with camelCase aliases (populate_by_name, so both spellings validate).
Read models serialize back to camelCase via FastAPI's by_alias default.

- Create payloads: BookingRequestCreate, CalculatorSubmissionCreate,
  PartnerRegistrationCreate, CareerApplicationCreate
- Read models: BookingRequestRead, CalculatorSubmissionRead,
  PartnerRegistrationRead, CareerApplicationRead
- Endpoint responses: SubmissionResponse, BookingSubmissionResponse,
  CalculatorSubmissionResponse, ErrorResponse
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for camelCase-aliased payloads; unknown keys are ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ConsentFields(CamelModel):
    consent_given: bool = False
    consent_timestamp: datetime | None = None


# ── Create payloads ─────────────────────────────────────────────────────────


class BookingRequestCreate(ConsentFields):
    """Booking form body. package_type/building_type feed the CRM note only."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = None
    service: str = Field(..., min_length=1)
    message: str | None = None
    marketing_consent: bool = False
    package_type: str | None = None
    building_type: str | None = None


class CalculatorEntry(BaseModel):
    """One labelled row of calculator inputs or results."""

    label: str
    value: str


class CalculatorSubmissionCreate(ConsentFields):
    email: EmailStr
    name: str | None = None
    calculator_type: str
    results: list[CalculatorEntry]
    inputs: list[CalculatorEntry]


class PartnerRegistrationCreate(ConsentFields):
    company_name: str = Field(..., min_length=2)
    contact_person: str = Field(..., min_length=2)
    email: EmailStr
    phone: str = Field(..., min_length=6)
    address: str = Field(..., min_length=5)
    website: str | None = None
    trades: list[str] = Field(..., min_length=1)
    employees: str = Field(..., min_length=1)
    experience: str = Field(..., min_length=10)
    motivation: str = Field(..., min_length=20)
    certifications: str | None = None


class CareerApplicationCreate(ConsentFields):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = None
    position: str = Field(..., min_length=1)
    experience: str | None = None
    motivation: str | None = None
    resume_url: str | None = None


# ── Read models ─────────────────────────────────────────────────────────────


class ReadModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BookingRequestRead(ReadModel):
    id: str
    name: str
    email: str
    phone: str | None = None
    service: str
    message: str | None = None
    consent_given: bool = False
    consent_timestamp: datetime | None = None
    marketing_consent: bool = False
    created_at: datetime | None = None


class PartnerRegistrationRead(ReadModel):
    id: int
    company_name: str
    contact_person: str
    email: str
    phone: str
    address: str
    website: str | None = None
    trades: list[str] = Field(default_factory=list)
    employees: str
    experience: str
    motivation: str
    certifications: str | None = None
    consent_given: bool = False
    consent_timestamp: datetime | None = None
    status: str | None = None
    created_at: datetime | None = None


class CalculatorSubmissionRead(ReadModel):
    id: str
    email: str
    name: str | None = None
    calculator_type: str
    inputs: list[CalculatorEntry] = Field(default_factory=list)
    results: list[CalculatorEntry] = Field(default_factory=list)
    consent_given: bool = False
    consent_timestamp: datetime | None = None
    created_at: datetime | None = None


class CareerApplicationRead(ReadModel):
    id: str
    name: str
    email: str
    phone: str | None = None
    position: str
    experience: str | None = None
    motivation: str | None = None
    resume_url: str | None = None
    consent_given: bool = False
    consent_timestamp: datetime | None = None
    status: str | None = None
    created_at: datetime | None = None


# ── Endpoint responses ──────────────────────────────────────────────────────


class SubmissionResponse(BaseModel):
    success: bool = True
    message: str
    id: str | int


class BookingSubmissionResponse(SubmissionResponse):
    booking_id: str


class CalculatorSubmissionResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    error: str
    details: list[dict] | None = None
