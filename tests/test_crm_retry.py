"""Unit tests for with_retry and the retryability classification."""

from __future__ import annotations

import httpx
import pytest

from src.leadcapture.crm.errors import (
    ClientError,
    ConflictError,
    CRMApiError,
    TransientRemoteError,
    is_non_retryable,
)
from src.leadcapture.crm.retry import with_retry


class FlakyOperation:
    """Raises the queued errors in order, then returns ``value``."""

    def __init__(self, errors: list[BaseException], value: str = "ok") -> None:
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


# ── Classification ──────────────────────────────────────────────────────────


class TestIsNonRetryable:
    def test_own_error_classes(self):
        assert is_non_retryable(ConflictError())
        assert is_non_retryable(ClientError())
        assert not is_non_retryable(TransientRemoteError(503, "unavailable"))
        assert not is_non_retryable(CRMApiError(404, "not found"))

    def test_foreign_exception_with_code_attribute(self):
        exc = RuntimeError("conflict")
        exc.code = 409
        assert is_non_retryable(exc)

    def test_httpx_status_error_400(self):
        request = httpx.Request("POST", "https://api.example.com")
        response = httpx.Response(400, request=request)
        exc = httpx.HTTPStatusError("bad request", request=request, response=response)
        assert is_non_retryable(exc)

    def test_plain_exception_is_retryable(self):
        assert not is_non_retryable(ConnectionError("reset"))


# ── with_retry ──────────────────────────────────────────────────────────────


class TestWithRetry:
    async def test_success_first_try(self, recording_sleep):
        operation = FlakyOperation([])
        assert await with_retry(operation, sleep=recording_sleep) == "ok"
        assert operation.calls == 1
        assert recording_sleep.delays == []

    async def test_fails_twice_then_succeeds(self, recording_sleep):
        """Three attempts, sleeping base*1 then base*2 between them."""
        operation = FlakyOperation(
            [TransientRemoteError(503, "unavailable"), TransientRemoteError(None, "reset")],
            value="contact-1",
        )

        result = await with_retry(operation, max_attempts=3, base_delay=1.0, sleep=recording_sleep)

        assert result == "contact-1"
        assert operation.calls == 3
        assert recording_sleep.delays == [pytest.approx(1.0), pytest.approx(2.0)]

    async def test_conflict_is_not_retried(self, recording_sleep):
        operation = FlakyOperation([ConflictError("Contact already exists")])

        with pytest.raises(ConflictError):
            await with_retry(operation, sleep=recording_sleep)

        assert operation.calls == 1
        assert recording_sleep.delays == []

    async def test_bad_request_is_not_retried(self, recording_sleep):
        operation = FlakyOperation([ClientError("Property does not exist")])

        with pytest.raises(ClientError):
            await with_retry(operation, sleep=recording_sleep)

        assert operation.calls == 1

    async def test_exhaustion_surfaces_last_error(self, recording_sleep):
        last = TransientRemoteError(502, "third")
        operation = FlakyOperation(
            [TransientRemoteError(500, "first"), TransientRemoteError(500, "second"), last]
        )

        with pytest.raises(TransientRemoteError) as exc_info:
            await with_retry(operation, max_attempts=3, sleep=recording_sleep)

        assert exc_info.value is last
        assert operation.calls == 3
        # No sleep after the final attempt
        assert len(recording_sleep.delays) == 2

    async def test_custom_base_delay(self, recording_sleep):
        operation = FlakyOperation([RuntimeError(n) for n in "abcd"])

        with pytest.raises(RuntimeError):
            await with_retry(operation, max_attempts=4, base_delay=0.5, sleep=recording_sleep)

        assert operation.calls == 4
        assert recording_sleep.delays == [
            pytest.approx(0.5),
            pytest.approx(1.0),
            pytest.approx(2.0),
        ]

    async def test_single_attempt_never_sleeps(self, recording_sleep):
        operation = FlakyOperation([RuntimeError("down")])

        with pytest.raises(RuntimeError):
            await with_retry(operation, max_attempts=1, sleep=recording_sleep)

        assert operation.calls == 1
        assert recording_sleep.delays == []
