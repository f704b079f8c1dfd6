"""FastAPI dependencies resolving services stored on ``app.state``.

The lifespan (or a test) places the FormRepository and FormSubmissionService
on app.state; endpoints receive them through these functions and get a 503
when they were never initialized.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from src.leadcapture.forms.repository import FormRepository
from src.leadcapture.forms.service import FormSubmissionService


def get_form_repository(request: Request) -> FormRepository:
    """Retrieve FormRepository from app.state, 503 if not available."""
    repository = getattr(request.app.state, "form_repository", None)
    if repository is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Form storage not initialized",
        )
    return repository


def get_form_service(request: Request) -> FormSubmissionService:
    """Retrieve FormSubmissionService from app.state, 503 if not available."""
    service = getattr(request.app.state, "form_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Form submission not initialized",
        )
    return service
