"""Async HTTP client for the Resend transactional email API.

POST /emails with from/to/subject/html and optional reply_to and base64
attachments. Connection failures are retried (tenacity, 3 attempts,
exponential backoff 1-10s); any non-2xx response raises EmailDeliveryError
without retrying, since the message may already have been accepted.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.resend.com"

_resend_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
    reraise=True,
)


class EmailDeliveryError(Exception):
    """Resend rejected or failed to accept a message."""

    def __init__(self, message: str, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    def to_payload(self) -> dict[str, str]:
        return {
            "filename": self.filename,
            "content": base64.b64encode(self.content).decode("ascii"),
            "content_type": self.content_type,
        }


class ResendClient:
    """Sends one email per call.

    Args:
        api_key: Resend API key.
        base_url: API root (default https://api.resend.com).
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._transport = transport

    @_resend_retry
    async def send(
        self,
        *,
        sender: str,
        to: str | list[str],
        subject: str,
        html: str,
        reply_to: str | None = None,
        attachments: list[EmailAttachment] | None = None,
    ) -> str:
        """Send an email and return the Resend message ID."""
        payload: dict[str, Any] = {
            "from": sender,
            "to": [to] if isinstance(to, str) else list(to),
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to
        if attachments:
            payload["attachments"] = [a.to_payload() for a in attachments]

        async with httpx.AsyncClient(
            headers=self._headers, timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.post(f"{self._base_url}/emails", json=payload)

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            message = body.get("message") if isinstance(body, dict) else None
            raise EmailDeliveryError(
                message or f"Resend returned {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        message_id = str(response.json().get("id", ""))
        logger.info("resend.email_sent", message_id=message_id, subject=subject)
        return message_id
