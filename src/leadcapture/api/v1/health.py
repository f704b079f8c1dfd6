"""Health check endpoint.

Always answers 200; the body reports whether the database answered SELECT 1.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from src.leadcapture.api.deps import get_form_repository
from src.leadcapture.config import get_settings
from src.leadcapture.forms.repository import FormRepository

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(repository: FormRepository = Depends(get_form_repository)) -> dict:
    settings = get_settings()
    connected, error = await repository.connection_status()

    body: dict = {
        "status": "ok",
        "database": "connected" if connected else "error",
        "database_url_set": bool(settings.DATABASE_URL),
        "database_url_preview": settings.database_url_preview(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if error:
        body["error_message"] = error
    return body
