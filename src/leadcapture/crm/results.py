"""Result types returned by the CRM sync layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from src.leadcapture.crm.errors import OptionalSideEffectError

T = TypeVar("T")


@dataclass(frozen=True)
class SideEffectResult(Generic[T]):
    """Outcome of a best-effort operation.

    The error variant may be discarded by the caller; it exists so the
    best-effort contract shows up in signatures instead of hiding in an
    except block.
    """

    ok: bool
    value: T | None = None
    error: OptionalSideEffectError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> SideEffectResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, operation: str, cause: BaseException) -> SideEffectResult[T]:
        return cls(ok=False, error=OptionalSideEffectError(operation, cause))

    @classmethod
    def skipped(cls) -> SideEffectResult[T]:
        """Nothing was attempted (feature disabled or not configured)."""
        return cls(ok=True)


class UpsertResult(BaseModel):
    """Contact upsert outcome."""

    contact_id: str
    created: bool


class FormSyncResult(BaseModel):
    """Tagged result of the generic form sync; never raised as an exception."""

    success: bool
    contact_id: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
