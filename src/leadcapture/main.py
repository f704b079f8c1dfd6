"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
lifespan events for database and service initialization, the /api router,
and (when STATIC_DIR exists) the built frontend with SPA fallback.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import FileResponse, Response

from src.leadcapture.api.errors import register_exception_handlers
from src.leadcapture.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.leadcapture.api.v1.router import router as api_router
from src.leadcapture.config import Settings, get_settings
from src.leadcapture.core.database import close_db, get_session, init_db
from src.leadcapture.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.leadcapture.crm.hubspot import hubspot_client_factory
from src.leadcapture.crm.sync import CRMSyncService
from src.leadcapture.forms.repository import FormRepository
from src.leadcapture.forms.service import FormSubmissionService
from src.leadcapture.notifications.mailer import Mailer


def build_form_service(settings: Settings, repository: FormRepository) -> FormSubmissionService:
    """Wire the submission pipeline; CRM and email are optional per settings."""
    crm_sync = None
    if settings.CRM_SYNC_ENABLED:
        crm_sync = CRMSyncService(
            hubspot_client_factory(settings),
            max_attempts=settings.CRM_MAX_ATTEMPTS,
            base_delay=settings.CRM_RETRY_BASE_DELAY,
        )
    mailer = Mailer.from_settings(settings) if settings.EMAIL_NOTIFICATIONS_ENABLED else None
    return FormSubmissionService(repository, crm_sync=crm_sync, mailer=mailer)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB, Sentry and services on startup, close on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    # The server stays up without a database; /api/health reports the error.
    try:
        await init_db()
        log.info("database.initialized", database_url=settings.database_url_preview())
    except Exception as exc:
        log.error("database.init_failed", error=str(exc))

    repository = FormRepository(session_factory=get_session)
    app.state.form_repository = repository
    app.state.form_service = build_form_service(settings, repository)
    log.info(
        "app.started",
        environment=settings.ENVIRONMENT.value,
        crm_sync=settings.CRM_SYNC_ENABLED,
        email=settings.EMAIL_NOTIFICATIONS_ENABLED,
    )

    yield

    await close_db()


def mount_frontend(app: FastAPI, static_dir: Path) -> None:
    """Serve files from static_dir; unknown non-API GET paths get index.html."""
    root = static_dir.resolve()
    index = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def frontend(full_path: str) -> FileResponse:
        if full_path == "api" or full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)
        return FileResponse(index)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Lead Capture API",
        version="0.1.0",
        description="Website form intake with HubSpot sync and transactional email",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(MetricsMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    # Registered last so the catch-all never shadows API routes
    if settings.STATIC_DIR and Path(settings.STATIC_DIR).is_dir():
        mount_frontend(app, Path(settings.STATIC_DIR))

    return app


# Module-level app for uvicorn
app = create_app()


def run() -> None:
    """Console entry point: serve the app on HOST:PORT."""
    settings = get_settings()
    uvicorn.run(
        "src.leadcapture.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
