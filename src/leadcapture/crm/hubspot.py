"""Async HubSpot CRM v3 client.

Thin wrapper over httpx.AsyncClient covering the contact, note and company
endpoints used by the form sync. Retrying is left to crm.retry.with_retry so
the caller chooses the policy; this client only classifies failures:

- 409 -> ConflictError
- 400 -> ClientError
- 429 / 5xx / transport errors -> TransientRemoteError
- any other 4xx -> CRMApiError
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx
import structlog

from src.leadcapture.config import Settings
from src.leadcapture.core.connectors import ConnectorCredentialProvider, StaticTokenProvider
from src.leadcapture.crm.adapter import CRMClient
from src.leadcapture.crm.errors import (
    ClientError,
    ConflictError,
    CRMApiError,
    TransientRemoteError,
)

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.hubapi.com"

# HubSpot-defined association type: note -> contact
NOTE_TO_CONTACT_ASSOCIATION_TYPE_ID = 202


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"]), body
    return response.reason_phrase or "HubSpot API error", body


def raise_for_hubspot_status(response: httpx.Response) -> None:
    """Raise the matching CRMApiError subclass for a non-2xx response."""
    status = response.status_code
    if status < 400:
        return

    message, body = _error_message(response)
    if status == 409:
        raise ConflictError(message, body)
    if status == 400:
        raise ClientError(message, body)
    if status == 429 or status >= 500:
        raise TransientRemoteError(status, message, body)
    raise CRMApiError(status, message, body)


class HubSpotClient(CRMClient):
    """HubSpot implementation of CRMClient.

    Args:
        access_token: Private-app or OAuth bearer token.
        base_url: API root (default https://api.hubapi.com).
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as exc:
            raise TransientRemoteError(None, f"{type(exc).__name__}: {exc}") from exc

        raise_for_hubspot_status(response)
        if not response.content:
            return {}
        return response.json()

    async def search_contact_by_email(self, email: str) -> dict[str, Any] | None:
        data = await self._request(
            "POST",
            "/crm/v3/objects/contacts/search",
            {
                "filterGroups": [
                    {"filters": [{"propertyName": "email", "operator": "EQ", "value": email}]}
                ],
                "properties": ["email"],
                "limit": 1,
            },
        )
        results = data.get("results") or []
        return results[0] if results else None

    async def create_contact(self, properties: dict[str, str]) -> str:
        data = await self._request(
            "POST",
            "/crm/v3/objects/contacts",
            {"properties": properties, "associations": []},
        )
        contact_id = str(data["id"])
        logger.debug("hubspot.contact_created", contact_id=contact_id)
        return contact_id

    async def update_contact(self, contact_id: str, properties: dict[str, str]) -> None:
        await self._request(
            "PATCH",
            f"/crm/v3/objects/contacts/{contact_id}",
            {"properties": properties},
        )
        logger.debug("hubspot.contact_updated", contact_id=contact_id)

    async def create_note(self, contact_id: str, body: str) -> str:
        data = await self._request(
            "POST",
            "/crm/v3/objects/notes",
            {
                "properties": {
                    "hs_note_body": body,
                    "hs_timestamp": datetime.now(timezone.utc).isoformat(),
                },
                "associations": [
                    {
                        "to": {"id": contact_id},
                        "types": [
                            {
                                "associationCategory": "HUBSPOT_DEFINED",
                                "associationTypeId": NOTE_TO_CONTACT_ASSOCIATION_TYPE_ID,
                            }
                        ],
                    }
                ],
            },
        )
        return str(data["id"])

    async def create_company(self, properties: dict[str, str]) -> str:
        data = await self._request(
            "POST",
            "/crm/v3/objects/companies",
            {"properties": properties},
        )
        company_id = str(data["id"])
        logger.debug("hubspot.company_created", company_id=company_id)
        return company_id


class AccessTokenProvider(Protocol):
    async def get_access_token(self) -> str: ...


def hubspot_client_factory(
    settings: Settings,
    token_provider: AccessTokenProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Callable[[], Awaitable[CRMClient]]:
    """Build the per-attempt client factory used by CRMSyncService.

    A static HUBSPOT_ACCESS_TOKEN wins; otherwise the token comes from the
    hubspot connector and is re-resolved (cache permitting) on every call.
    """
    if token_provider is None:
        if settings.HUBSPOT_ACCESS_TOKEN:
            token_provider = StaticTokenProvider(settings.HUBSPOT_ACCESS_TOKEN)
        else:
            token_provider = ConnectorCredentialProvider.from_settings(settings, "hubspot")

    async def factory() -> CRMClient:
        token = await token_provider.get_access_token()
        return HubSpotClient(
            token,
            base_url=settings.HUBSPOT_BASE_URL,
            timeout=settings.HUBSPOT_TIMEOUT,
            transport=transport,
        )

    return factory
