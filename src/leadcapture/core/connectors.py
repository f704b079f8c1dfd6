"""Credential providers for third-party integrations.

The hosting platform's connector service issues HubSpot OAuth tokens and
Resend API keys. ConnectorCredentialProvider is constructed once per
connector with explicit hostname/identity and keeps the last connection
while its ``expires_at`` lies in the future. Connections without an expiry
(Resend) are fetched fresh on every call.

StaticTokenProvider serves a fixed token from settings
(HUBSPOT_ACCESS_TOKEN) and never touches the network.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from src.leadcapture.config import Settings

logger = structlog.get_logger(__name__)


class ConnectorError(Exception):
    """Base class for connector credential failures."""


class ConnectorNotConfiguredError(ConnectorError):
    """No connector hostname or identity token is available."""


class ConnectorNotConnectedError(ConnectorError):
    """The connector answered but holds no usable credentials."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_expires_at(value: Any) -> datetime | None:
    """Parse an ``expires_at`` value (ISO-8601 string or epoch milliseconds)."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class StaticTokenProvider:
    """Serves a fixed access token."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_access_token(self) -> str:
        return self._token


class ConnectorCredentialProvider:
    """Fetches and caches one connector's settings from the connector service.

    Args:
        hostname: Connector service host (REPLIT_CONNECTORS_HOSTNAME).
        identity: X_REPLIT_TOKEN header value ("repl ..." or "depl ...").
        connector_name: Connector to query, e.g. "hubspot" or "resend".
        timeout: Request timeout in seconds.
        transport: Optional httpx transport for tests.
        clock: Returns the current aware datetime; injected in tests.
    """

    def __init__(
        self,
        hostname: str,
        identity: str | None,
        connector_name: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._hostname = hostname
        self._identity = identity
        self._connector_name = connector_name
        self._timeout = timeout
        self._transport = transport
        self._clock = clock
        self._cached: dict[str, Any] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        connector_name: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ConnectorCredentialProvider:
        return cls(
            hostname=settings.REPLIT_CONNECTORS_HOSTNAME,
            identity=settings.connector_identity(),
            connector_name=connector_name,
            timeout=settings.CONNECTOR_TIMEOUT,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._hostname and self._identity)

    def _cache_valid(self) -> bool:
        if self._cached is None:
            return False
        expires_at = parse_expires_at(self._cached.get("expires_at"))
        return expires_at is not None and expires_at > self._clock()

    async def get_settings(self) -> dict[str, Any]:
        """Return the connector's ``settings`` object, refetching when expired.

        Raises:
            ConnectorNotConfiguredError: hostname or identity missing.
            ConnectorNotConnectedError: the service returned no connection.
        """
        if self._cache_valid():
            return self._cached  # type: ignore[return-value]

        if not self.is_configured:
            raise ConnectorNotConfiguredError(
                f"Connector '{self._connector_name}' unavailable: no hostname or identity token"
            )

        url = f"https://{self._hostname}/api/v2/connection"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.get(
                    url,
                    params={"include_secrets": "true", "connector_names": self._connector_name},
                    headers={"Accept": "application/json", "X_REPLIT_TOKEN": self._identity or ""},
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise ConnectorNotConnectedError(
                    f"Connector '{self._connector_name}' lookup failed: {exc}"
                ) from exc

        items = response.json().get("items") or []
        if not items or not isinstance(items[0].get("settings"), dict):
            raise ConnectorNotConnectedError(f"Connector '{self._connector_name}' not connected")

        # Overlapping refreshes: last writer wins
        self._cached = items[0]["settings"]
        logger.debug(
            "connector.settings_refreshed",
            connector=self._connector_name,
            expires_at=self._cached.get("expires_at"),
        )
        return self._cached

    async def get_access_token(self) -> str:
        """Return the OAuth access token for this connector."""
        settings = await self.get_settings()
        token = settings.get("access_token") or (
            ((settings.get("oauth") or {}).get("credentials") or {}).get("access_token")
        )
        if not token:
            raise ConnectorNotConnectedError(f"Connector '{self._connector_name}' has no access token")
        return token

    async def get_api_key(self) -> tuple[str, str | None]:
        """Return ``(api_key, from_email)`` for API-key connectors such as Resend."""
        settings = await self.get_settings()
        api_key = settings.get("api_key")
        if not api_key:
            raise ConnectorNotConnectedError(f"Connector '{self._connector_name}' has no API key")
        return api_key, settings.get("from_email")
