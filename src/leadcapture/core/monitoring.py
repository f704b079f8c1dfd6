"""Prometheus metrics and Sentry integration.

Provides:
- MetricsMiddleware: ASGI middleware for HTTP request metrics
- Form, CRM sync, CRM retry and email counters used by the service layer
- init_sentry(): Initialize Sentry when a DSN is configured
- get_metrics_response(): FastAPI route handler body for /metrics
"""

from __future__ import annotations

import time

import sentry_sdk
import structlog
from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

# ── HTTP Metrics ─────────────────────────────────────────────────────────────

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── Lead Capture Metrics ─────────────────────────────────────────────────────

form_submissions_total = Counter(
    "form_submissions_total",
    "Form submissions by form type and persistence outcome",
    ["form_type", "status"],
)

crm_sync_total = Counter(
    "crm_sync_total",
    "Outbound CRM syncs by form type and outcome",
    ["form_type", "status"],
)

crm_retries_total = Counter(
    "crm_retries_total",
    "CRM operation attempts that failed and were retried",
)

emails_sent_total = Counter(
    "emails_sent_total",
    "Transactional emails by template and outcome",
    ["template", "status"],
)


# ── Metrics Middleware ───────────────────────────────────────────────────────


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts requests and observes latency per method and route template.

    /metrics itself is not recorded.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        # Route path pattern keeps label cardinality bounded; raw path otherwise
        route = request.scope.get("route")
        endpoint = getattr(route, "path", None) or request.url.path

        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=str(response.status_code),
        ).inc()

        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response


# ── Sentry Integration ───────────────────────────────────────────────────────


def _strip_form_payload(event: dict, hint: dict) -> dict:
    # Submissions carry names, emails and phone numbers
    request = event.get("request")
    if isinstance(request, dict):
        request.pop("data", None)
        request.pop("cookies", None)
    return event


def init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry when a DSN is configured; no-op otherwise.

    Request bodies are removed from events before they leave the process.
    """
    if not dsn:
        logger.debug("sentry.disabled")
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=0.1 if environment == "production" else 1.0,
        send_default_pii=False,
        before_send=_strip_form_payload,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
        ],
    )
    logger.info("sentry.initialized", environment=environment)


# ── Metrics Endpoint ─────────────────────────────────────────────────────────


def get_metrics_response() -> Response:
    """Generate Prometheus exposition format response."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
