"""CRM property mapping tables and the form-to-CRM property mapper.

Defines:
- EXCLUDED_FIELDS: internal fields that are never sent to the CRM.
- BOOKING/CALCULATOR/CAREER/PARTNER_PROPERTY_MAP: per-form field tables.
- CONFIRMATION_PROPERTIES: workflow-trigger flag written after each upsert.
- map_to_crm_properties(): converts a raw form payload to flat CRM properties.
- get_required_custom_properties(): custom properties that must be created in
  the CRM schema before syncing (Settings > Properties > Contact Properties).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic.alias_generators import to_camel


class FormType(str, Enum):
    """Form types; each one owns a confirmation flag in the CRM."""

    BOOKING = "booking"
    CALCULATOR = "calculator"
    PARTNER = "partner"
    CAREER = "career"


# Sentinel remote name: value is split into firstname / lastname
SPLIT_NAME = "_split_name"

STANDARD_PROPERTIES = frozenset(
    {"email", "phone", "company", "website", "address", "firstname", "lastname"}
)

_INTERNAL_FIELDS = (
    "id",
    "created_at",
    "updated_at",
    "consent_given",
    "consent_timestamp",
    "marketing_consent",
    "status",
    "internal_notes",
    "db_id",
)

# Both spellings: payloads may arrive as model dumps or as raw camelCase JSON
EXCLUDED_FIELDS = frozenset(_INTERNAL_FIELDS) | frozenset(to_camel(f) for f in _INTERNAL_FIELDS)


@dataclass(frozen=True)
class PropertyMapping:
    """Target property for one form field."""

    crm_name: str
    kind: str = "string"  # string | number | date | enumeration | bool
    description: str | None = None


# ── Per-form mapping tables ────────────────────────────────────────────────

BOOKING_PROPERTY_MAP: dict[str, PropertyMapping] = {
    "name": PropertyMapping(SPLIT_NAME, description="Split into firstname/lastname"),
    "email": PropertyMapping("email"),
    "phone": PropertyMapping("phone"),
    "service": PropertyMapping("booking_type", description="Service type requested"),
    "message": PropertyMapping("booking_message", description="Customer message"),
    "package_type": PropertyMapping("booking_package", description="Selected package"),
}

CALCULATOR_PROPERTY_MAP: dict[str, PropertyMapping] = {
    "name": PropertyMapping(SPLIT_NAME),
    "email": PropertyMapping("email"),
}

CAREER_PROPERTY_MAP: dict[str, PropertyMapping] = {
    "name": PropertyMapping(SPLIT_NAME),
    "email": PropertyMapping("email"),
    "phone": PropertyMapping("phone"),
}

PARTNER_PROPERTY_MAP: dict[str, PropertyMapping] = {
    "contact_person": PropertyMapping(SPLIT_NAME),
    "email": PropertyMapping("email"),
    "phone": PropertyMapping("phone"),
    "company_name": PropertyMapping("company"),
    "website": PropertyMapping("website"),
    "address": PropertyMapping("address"),
}

PROPERTY_MAPS: dict[FormType, dict[str, PropertyMapping]] = {
    FormType.BOOKING: BOOKING_PROPERTY_MAP,
    FormType.CALCULATOR: CALCULATOR_PROPERTY_MAP,
    FormType.CAREER: CAREER_PROPERTY_MAP,
    FormType.PARTNER: PARTNER_PROPERTY_MAP,
}

CONFIRMATION_VALUE = "true"

CONFIRMATION_PROPERTIES: dict[FormType, str] = {
    FormType.BOOKING: "booking_confirmed",
    FormType.CALCULATOR: "calculator_confirmed",
    FormType.CAREER: "career_confirmed",
    FormType.PARTNER: "partner_confirmed",
}


def confirmation_property(form_type: FormType | str) -> dict[str, str]:
    """Return the confirmation flag payload for a form type."""
    return {CONFIRMATION_PROPERTIES[FormType(form_type)]: CONFIRMATION_VALUE}


# ── Mapper ─────────────────────────────────────────────────────────────────


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def map_to_crm_properties(
    data: Mapping[str, Any],
    property_map: Mapping[str, PropertyMapping],
) -> tuple[dict[str, str], list[str]]:
    """Translate a raw form payload into flat CRM contact properties.

    Excluded and empty fields are dropped silently. Fields without a table
    entry are dropped and reported. Pure and total: malformed input degrades
    to omission, never to an exception.

    Args:
        data: Raw form payload (field name -> value).
        property_map: Field table for the form type.

    Returns:
        Tuple of (properties, unmapped_fields).
    """
    properties: dict[str, str] = {}
    unmapped: list[str] = []

    for field_name, value in data.items():
        if field_name in EXCLUDED_FIELDS:
            continue
        if value is None or value == "":
            continue

        mapping = property_map.get(field_name)
        if mapping is None:
            unmapped.append(field_name)
            continue

        if mapping.crm_name == SPLIT_NAME:
            parts = str(value).split()
            properties["firstname"] = parts[0] if parts else ""
            properties["lastname"] = " ".join(parts[1:])
            continue

        if isinstance(value, (list, tuple, set, frozenset)):
            properties[mapping.crm_name] = ", ".join(_stringify(v) for v in value)
            continue

        properties[mapping.crm_name] = _stringify(value)

    return properties, unmapped


def get_required_custom_properties() -> list[dict[str, str]]:
    """List custom CRM properties that must exist before syncing.

    Every non-standard target property across all tables (first occurrence
    wins) followed by the four confirmation flags.
    """
    custom: list[dict[str, str]] = []
    seen: set[str] = set()

    for form_type, table in PROPERTY_MAPS.items():
        label = form_type.value.capitalize()
        for mapping in table.values():
            name = mapping.crm_name
            if name == SPLIT_NAME or name in STANDARD_PROPERTIES or name in seen:
                continue
            seen.add(name)
            custom.append(
                {
                    "name": name,
                    "type": mapping.kind,
                    "description": mapping.description or f"Property for {label} form",
                    "form_type": label,
                }
            )

    for form_type, flag in CONFIRMATION_PROPERTIES.items():
        custom.append(
            {
                "name": flag,
                "type": "string",
                "description": f'Set to "true" after {form_type.value} sync for workflow trigger',
                "form_type": form_type.value.capitalize(),
            }
        )

    return custom
