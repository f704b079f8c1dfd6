"""CRM client abstract base class -- the outbound operations the sync layer needs.

HubSpotClient is the production implementation; tests use an in-memory
double. Every method raises a CRMApiError subclass on failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any


class CRMClient(ABC):
    """Abstract interface for contact-centric CRM operations.

    Methods:
        search_contact_by_email: Exact-match email lookup, first hit only.
        create_contact: Create a contact, return its ID.
        update_contact: Patch contact properties by ID.
        create_note: Create a note associated to a contact, return its ID.
        create_company: Create a company record, return its ID.
    """

    @abstractmethod
    async def search_contact_by_email(self, email: str) -> dict[str, Any] | None:
        """Return the first contact whose email equals ``email``, or None."""
        ...

    @abstractmethod
    async def create_contact(self, properties: dict[str, str]) -> str:
        """Create contact, return external ID."""
        ...

    @abstractmethod
    async def update_contact(self, contact_id: str, properties: dict[str, str]) -> None:
        """Update contact properties by external ID."""
        ...

    @abstractmethod
    async def create_note(self, contact_id: str, body: str) -> str:
        """Attach a free-text note to a contact, return the note ID."""
        ...

    @abstractmethod
    async def create_company(self, properties: dict[str, str]) -> str:
        """Create company, return external ID."""
        ...

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""

    async def __aenter__(self) -> CRMClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
