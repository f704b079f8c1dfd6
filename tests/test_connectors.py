"""Tests for connector credential resolution and expiry-checked caching."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from src.leadcapture.config import Settings
from src.leadcapture.core.connectors import (
    ConnectorCredentialProvider,
    ConnectorNotConfiguredError,
    ConnectorNotConnectedError,
    parse_expires_at,
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class ConnectorService:
    """MockTransport handler answering /api/v2/connection with queued settings."""

    def __init__(self, *settings: dict) -> None:
        self.settings = list(settings)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        current = self.settings.pop(0) if len(self.settings) > 1 else self.settings[0]
        items = [{"settings": current}] if current is not None else []
        return httpx.Response(200, json={"items": items})


def _provider(service, clock=None, identity="repl abc", name="hubspot") -> ConnectorCredentialProvider:
    return ConnectorCredentialProvider(
        hostname="connectors.example.com",
        identity=identity,
        connector_name=name,
        transport=httpx.MockTransport(service),
        clock=clock or Clock(NOW),
    )


class TestParseExpiresAt:
    def test_iso_string(self):
        assert parse_expires_at("2026-03-02T10:00:00Z") == datetime(2026, 3, 2, 10, tzinfo=timezone.utc)

    def test_epoch_millis(self):
        millis = int(NOW.timestamp() * 1000)
        assert parse_expires_at(millis) == NOW

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_missing_or_invalid(self, value):
        assert parse_expires_at(value) is None


class TestAccessToken:
    async def test_request_shape(self):
        service = ConnectorService({"access_token": "tok-1", "expires_at": "2026-03-02T10:00:00Z"})
        provider = _provider(service)

        assert await provider.get_access_token() == "tok-1"

        request = service.requests[0]
        assert request.url.host == "connectors.example.com"
        assert request.url.path == "/api/v2/connection"
        assert request.url.params["include_secrets"] == "true"
        assert request.url.params["connector_names"] == "hubspot"
        assert request.headers["X_REPLIT_TOKEN"] == "repl abc"
        assert request.headers["Accept"] == "application/json"

    async def test_oauth_credentials_fallback(self):
        service = ConnectorService(
            {"oauth": {"credentials": {"access_token": "tok-oauth"}}, "expires_at": None}
        )
        assert await _provider(service).get_access_token() == "tok-oauth"

    async def test_cached_until_expiry(self):
        clock = Clock(NOW)
        service = ConnectorService(
            {"access_token": "tok-1", "expires_at": "2026-03-02T10:00:00Z"},
            {"access_token": "tok-2", "expires_at": "2026-03-02T11:00:00Z"},
        )
        provider = _provider(service, clock)

        assert await provider.get_access_token() == "tok-1"
        assert await provider.get_access_token() == "tok-1"
        assert len(service.requests) == 1

        clock.now = NOW + timedelta(hours=1, seconds=1)
        assert await provider.get_access_token() == "tok-2"
        assert len(service.requests) == 2

    async def test_no_expiry_is_refetched(self):
        service = ConnectorService({"access_token": "tok-1"})
        provider = _provider(service)

        await provider.get_access_token()
        await provider.get_access_token()

        assert len(service.requests) == 2

    async def test_not_connected(self):
        provider = _provider(ConnectorService(None))
        with pytest.raises(ConnectorNotConnectedError):
            await provider.get_access_token()

    async def test_missing_token(self):
        provider = _provider(ConnectorService({"expires_at": "2026-03-02T10:00:00Z"}))
        with pytest.raises(ConnectorNotConnectedError, match="no access token"):
            await provider.get_access_token()

    async def test_http_failure(self):
        provider = ConnectorCredentialProvider(
            hostname="connectors.example.com",
            identity="repl abc",
            connector_name="hubspot",
            transport=httpx.MockTransport(lambda r: httpx.Response(401, json={})),
        )
        with pytest.raises(ConnectorNotConnectedError, match="lookup failed"):
            await provider.get_settings()

    async def test_missing_identity(self):
        service = ConnectorService({"access_token": "tok"})
        provider = _provider(service, identity=None)

        assert not provider.is_configured
        with pytest.raises(ConnectorNotConfiguredError):
            await provider.get_access_token()
        assert service.requests == []


class TestApiKey:
    async def test_resend_api_key(self):
        service = ConnectorService({"api_key": "re_123", "from_email": "info@palvar.de"})
        provider = _provider(service, name="resend")
        assert await provider.get_api_key() == ("re_123", "info@palvar.de")

    async def test_missing_api_key(self):
        provider = _provider(ConnectorService({"from_email": "info@palvar.de"}), name="resend")
        with pytest.raises(ConnectorNotConnectedError):
            await provider.get_api_key()


class TestIdentityFromSettings:
    def test_repl_identity_preferred(self):
        settings = Settings(REPL_IDENTITY="r1", WEB_REPL_RENEWAL="d1", _env_file=None)
        assert settings.connector_identity() == "repl r1"

    def test_deployment_renewal(self):
        settings = Settings(REPL_IDENTITY="", WEB_REPL_RENEWAL="d1", _env_file=None)
        assert settings.connector_identity() == "depl d1"

    def test_none(self):
        settings = Settings(REPL_IDENTITY="", WEB_REPL_RENEWAL="", _env_file=None)
        assert settings.connector_identity() is None
