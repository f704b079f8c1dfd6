"""Error taxonomy for outbound CRM calls.

- CRMApiError: any non-2xx response from the CRM API.
- ConflictError (409): record already exists; callers upsert instead of retrying.
- ClientError (400): malformed request; retrying cannot help.
- TransientRemoteError: 429, 5xx and transport failures; retried with backoff.
- OptionalSideEffectError: failure of a best-effort step (note, company,
  confirmation flag). Never raised to request handlers, only carried inside
  a SideEffectResult.
"""

from __future__ import annotations

from typing import Any

NON_RETRYABLE_STATUS_CODES = frozenset({400, 409})


class CRMError(Exception):
    """Base class for all CRM integration errors."""


class CRMApiError(CRMError):
    """Non-success response from the CRM API."""

    def __init__(self, status_code: int | None, message: str, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.body = body

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


class ConflictError(CRMApiError):
    """409 -- the record already exists."""

    def __init__(self, message: str = "Conflict", body: Any = None) -> None:
        super().__init__(409, message, body)


class ClientError(CRMApiError):
    """400 -- the CRM rejected the request payload."""

    def __init__(self, message: str = "Bad request", body: Any = None) -> None:
        super().__init__(400, message, body)


class TransientRemoteError(CRMApiError):
    """Rate limiting, server errors and network failures."""


class OptionalSideEffectError(CRMError):
    """A best-effort step failed; the primary operation is unaffected."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


def is_non_retryable(exc: BaseException) -> bool:
    """Return True for conflict (409) and bad-request (400) failures.

    Recognises our own error classes as well as foreign exceptions that carry
    a ``status_code``/``code`` attribute or an HTTP ``response`` (for example
    ``httpx.HTTPStatusError``).
    """
    if isinstance(exc, (ConflictError, ClientError)):
        return True
    for attr in ("status_code", "code"):
        if getattr(exc, attr, None) in NON_RETRYABLE_STATUS_CODES:
            return True
    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) == 400:
        return True
    return False
