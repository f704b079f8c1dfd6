"""Tests for LoggingMiddleware request-id handling."""

from __future__ import annotations

import pytest_asyncio
import structlog
from fastapi import FastAPI, HTTPException, Request
from httpx import ASGITransport, AsyncClient

from src.leadcapture.api.middleware import LoggingMiddleware


def _make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict:
        bound = structlog.contextvars.get_contextvars()
        return {"state": request.state.request_id, "bound": bound.get("request_id")}

    @app.get("/missing")
    async def missing() -> dict:
        raise HTTPException(status_code=404, detail="nope")

    return app


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=_make_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def test_generates_request_id(client):
    response = await client.get("/echo")

    request_id = response.headers["X-Request-ID"]
    assert len(request_id) == 36
    assert response.json() == {"state": request_id, "bound": request_id}


async def test_reuses_incoming_request_id(client):
    response = await client.get("/echo", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
    assert response.json()["bound"] == "abc-123"


async def test_oversized_incoming_id_replaced(client):
    response = await client.get("/echo", headers={"X-Request-ID": "x" * 500})
    assert response.headers["X-Request-ID"] != "x" * 500


async def test_error_responses_keep_header(client):
    response = await client.get("/missing")

    assert response.status_code == 404
    assert "X-Request-ID" in response.headers
