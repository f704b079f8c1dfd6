"""Per-form outbound CRM sync.

Each sync runs one retried unit of work:

    open client -> map properties -> upsert contact -> optional side effects

Side effects (notes, partner company record) are best-effort and return a
SideEffectResult; only the contact upsert can fail a sync. The per-form
methods raise on failure; sync_form() converts failures into a
FormSyncResult instead.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

import structlog
from pydantic.alias_generators import to_snake

from src.leadcapture.core.monitoring import crm_sync_total
from src.leadcapture.crm.adapter import CRMClient
from src.leadcapture.crm.contacts import add_note_to_contact, upsert_contact
from src.leadcapture.crm.property_map import (
    BOOKING_PROPERTY_MAP,
    CALCULATOR_PROPERTY_MAP,
    CAREER_PROPERTY_MAP,
    PARTNER_PROPERTY_MAP,
    PROPERTY_MAPS,
    FormType,
    PropertyMapping,
    map_to_crm_properties,
)
from src.leadcapture.crm.results import FormSyncResult, SideEffectResult, UpsertResult
from src.leadcapture.crm.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS, with_retry

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[], Awaitable[CRMClient]]


# ── Note / company payloads ─────────────────────────────────────────────────


def booking_note(
    service: str,
    package_type: str | None = None,
    building_type: str | None = None,
    message: str | None = None,
) -> str:
    lines = [
        f"Anfrage: {service}",
        f"Paket: {package_type}" if package_type else "",
        f"Gebäudetyp: {building_type}" if building_type else "",
        f"Nachricht: {message}" if message else "",
    ]
    return "\n".join(line for line in lines if line)


def partner_note(company_name: str, trades: Sequence[str]) -> str:
    return f"Partner-Registrierung: {company_name}\nGewerke: {', '.join(trades)}"


def partner_company_properties(
    company_name: str,
    phone: str,
    address: str,
    trades: Sequence[str],
    website: str | None = None,
) -> dict[str, str]:
    return {
        "name": company_name,
        "phone": phone,
        "website": website or "",
        "address": address,
        "description": f"Handwerkspartner - Gewerke: {', '.join(trades)}",
    }


# ── Sync service ────────────────────────────────────────────────────────────


class CRMSyncService:
    """Runs the booking, calculator, career and partner syncs.

    Args:
        client_factory: Coroutine returning a fresh CRMClient; called once per
            attempt so every attempt resolves a current access token.
        max_attempts: Retry bound per sync.
        base_delay: Backoff base in seconds.
        sleep: Awaitable sleep, injected in tests to skip real delays.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client_factory = client_factory
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep = sleep

    async def _run(
        self,
        form_type: FormType,
        work: Callable[[CRMClient], Awaitable[UpsertResult]],
    ) -> UpsertResult:
        async def attempt() -> UpsertResult:
            async with await self._client_factory() as client:
                return await work(client)

        try:
            result = await with_retry(
                attempt,
                self._max_attempts,
                self._base_delay,
                sleep=self._sleep,
                operation_name=f"sync_{form_type.value}",
            )
        except Exception:
            crm_sync_total.labels(form_type=form_type.value, status="error").inc()
            raise

        crm_sync_total.labels(form_type=form_type.value, status="success").inc()
        logger.info(
            "crm.sync_complete",
            form_type=form_type.value,
            contact_id=result.contact_id,
            created=result.created,
        )
        return result

    @staticmethod
    def _map(
        form_type: FormType,
        data: Mapping[str, Any],
        property_map: Mapping[str, PropertyMapping],
    ) -> dict[str, str]:
        properties, unmapped = map_to_crm_properties(data, property_map)
        if unmapped:
            logger.info("crm.unmapped_fields", form_type=form_type.value, fields=unmapped)
        return properties

    async def sync_booking(
        self,
        *,
        name: str,
        email: str,
        service: str,
        phone: str | None = None,
        message: str | None = None,
        package_type: str | None = None,
        building_type: str | None = None,
    ) -> UpsertResult:
        data = {
            "name": name,
            "email": email,
            "phone": phone,
            "service": service,
            "message": message,
            "package_type": package_type,
            "building_type": building_type,
        }

        async def work(client: CRMClient) -> UpsertResult:
            properties = self._map(FormType.BOOKING, data, BOOKING_PROPERTY_MAP)
            result = await upsert_contact(client, email, properties, FormType.BOOKING)
            await add_note_to_contact(
                client,
                result.contact_id,
                booking_note(service, package_type, building_type, message),
            )
            return result

        return await self._run(FormType.BOOKING, work)

    async def sync_calculator(
        self,
        *,
        email: str,
        calculator_type: str,
        name: str | None = None,
    ) -> UpsertResult:
        data = {"email": email, "name": name, "calculator_type": calculator_type}

        async def work(client: CRMClient) -> UpsertResult:
            properties = self._map(FormType.CALCULATOR, data, CALCULATOR_PROPERTY_MAP)
            result = await upsert_contact(client, email, properties, FormType.CALCULATOR)
            await add_note_to_contact(client, result.contact_id, f"Rechner-Anfrage: {calculator_type}")
            return result

        return await self._run(FormType.CALCULATOR, work)

    async def sync_career(
        self,
        *,
        name: str,
        email: str,
        position: str,
        phone: str | None = None,
    ) -> UpsertResult:
        data = {"name": name, "email": email, "phone": phone, "position": position}

        async def work(client: CRMClient) -> UpsertResult:
            properties = self._map(FormType.CAREER, data, CAREER_PROPERTY_MAP)
            result = await upsert_contact(client, email, properties, FormType.CAREER)
            await add_note_to_contact(client, result.contact_id, f"Karriere-Bewerbung: {position}")
            return result

        return await self._run(FormType.CAREER, work)

    async def sync_partner(
        self,
        *,
        company_name: str,
        contact_person: str,
        email: str,
        phone: str,
        address: str,
        trades: Sequence[str],
        website: str | None = None,
    ) -> UpsertResult:
        data = {
            "company_name": company_name,
            "contact_person": contact_person,
            "email": email,
            "phone": phone,
            "address": address,
            "website": website,
            "trades": list(trades),
        }

        async def work(client: CRMClient) -> UpsertResult:
            properties = self._map(FormType.PARTNER, data, PARTNER_PROPERTY_MAP)
            result = await upsert_contact(client, email, properties, FormType.PARTNER)
            await self._create_partner_company(
                client,
                partner_company_properties(company_name, phone, address, trades, website),
            )
            await add_note_to_contact(client, result.contact_id, partner_note(company_name, trades))
            return result

        return await self._run(FormType.PARTNER, work)

    @staticmethod
    async def _create_partner_company(
        client: CRMClient,
        properties: dict[str, str],
    ) -> SideEffectResult[str]:
        try:
            company_id = await client.create_company(properties)
        except Exception as exc:
            logger.warning("crm.company_skipped", company=properties.get("name"), error=str(exc))
            return SideEffectResult.failure("create_company", exc)
        logger.info("crm.company_created", company_id=company_id)
        return SideEffectResult.success(company_id)

    async def sync_form(
        self,
        form_type: FormType | str,
        data: Mapping[str, Any],
        property_map: Mapping[str, PropertyMapping] | None = None,
    ) -> FormSyncResult:
        """Sync an arbitrary payload; never raises.

        camelCase keys are normalised to snake_case before mapping. Without an
        explicit ``property_map`` the table registered for ``form_type`` is used.
        """
        try:
            form = FormType(form_type)
            table = property_map if property_map is not None else PROPERTY_MAPS[form]
        except (ValueError, KeyError) as exc:
            logger.error("crm.sync_rejected", form_type=str(form_type), error=str(exc))
            return FormSyncResult(success=False, error=f"Unknown form type: {form_type}")
        normalised = {to_snake(key): value for key, value in data.items()}

        email = normalised.get("email")
        if not email:
            logger.error("crm.sync_rejected", form_type=form.value, error="Email is required")
            return FormSyncResult(success=False, error="Email is required")

        async def work(client: CRMClient) -> UpsertResult:
            properties = self._map(form, normalised, table)
            return await upsert_contact(client, str(email), properties, form)

        try:
            result = await self._run(form, work)
        except Exception as exc:
            logger.error("crm.sync_failed", form_type=form.value, error=str(exc))
            return FormSyncResult(success=False, error=str(exc))

        return FormSyncResult(success=True, contact_id=result.contact_id)
