"""Contact lookup, upsert and note attachment on top of a CRMClient.

Upsert state machine over one external record keyed by email:

    lookup -> Found    -> update(properties + confirmation flag)   created=False
           -> NotFound -> create(properties + lead defaults)
                          -> update(confirmation flag), best-effort created=True

A failed lookup counts as NotFound. The confirmation flag is a custom
property provisioned by hand in the CRM schema, so setting it after a
create must not fail the upsert when the property is missing.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.leadcapture.crm.adapter import CRMClient
from src.leadcapture.crm.property_map import FormType, confirmation_property
from src.leadcapture.crm.results import SideEffectResult, UpsertResult

logger = structlog.get_logger(__name__)

NEW_CONTACT_DEFAULTS: dict[str, str] = {
    "hs_lead_status": "NEW",
    "lifecyclestage": "lead",
}


async def find_contact_by_email(client: CRMClient, email: str) -> dict[str, Any] | None:
    """Return the first contact matching ``email``, or None on miss or lookup failure."""
    try:
        return await client.search_contact_by_email(email)
    except Exception as exc:
        logger.warning("crm.contact_lookup_failed", email=email, error=str(exc))
        return None


async def upsert_contact(
    client: CRMClient,
    email: str,
    properties: dict[str, str],
    form_type: FormType | str,
) -> UpsertResult:
    """Create or update the contact for ``email`` and stamp the confirmation flag.

    Properties omitted from ``properties`` are left untouched on an existing
    contact. Errors from the create/update of the contact itself propagate.
    """
    flag = confirmation_property(form_type)
    existing = await find_contact_by_email(client, email)

    if existing is not None:
        contact_id = str(existing["id"])
        await client.update_contact(contact_id, {**properties, **flag})
        logger.info("crm.contact_updated", contact_id=contact_id, form_type=FormType(form_type).value)
        return UpsertResult(contact_id=contact_id, created=False)

    create_properties = {**properties, **NEW_CONTACT_DEFAULTS}
    create_properties.setdefault("email", email)
    contact_id = await client.create_contact(create_properties)
    logger.info("crm.contact_created", contact_id=contact_id, form_type=FormType(form_type).value)

    try:
        await client.update_contact(contact_id, flag)
    except Exception as exc:
        logger.warning(
            "crm.confirmation_flag_failed",
            contact_id=contact_id,
            properties=list(flag),
            error=str(exc),
        )

    return UpsertResult(contact_id=contact_id, created=True)


async def add_note_to_contact(client: CRMClient, contact_id: str, body: str) -> SideEffectResult[str]:
    """Attach a note to a contact. Never raises."""
    try:
        note_id = await client.create_note(contact_id, body)
    except Exception as exc:
        logger.warning("crm.note_failed", contact_id=contact_id, error=str(exc))
        return SideEffectResult.failure("create_note", exc)
    logger.debug("crm.note_created", contact_id=contact_id, note_id=note_id)
    return SideEffectResult.success(note_id)
