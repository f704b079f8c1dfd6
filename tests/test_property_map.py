"""Unit tests for the CRM property mapper and mapping tables."""

from __future__ import annotations

from datetime import date
from enum import Enum

import pytest

from src.leadcapture.crm.property_map import (
    BOOKING_PROPERTY_MAP,
    CALCULATOR_PROPERTY_MAP,
    CONFIRMATION_PROPERTIES,
    EXCLUDED_FIELDS,
    PARTNER_PROPERTY_MAP,
    PROPERTY_MAPS,
    SPLIT_NAME,
    FormType,
    PropertyMapping,
    confirmation_property,
    get_required_custom_properties,
    map_to_crm_properties,
)


# ── Exclusion & unmapped fields ─────────────────────────────────────────────


class TestExclusion:
    @pytest.mark.parametrize("form_type", list(FormType))
    def test_excluded_fields_never_sent_even_when_mapped(self, form_type):
        """An excluded field stays out even if a table maps it."""
        table = {**PROPERTY_MAPS[form_type]}
        table.update({name: PropertyMapping(f"remote_{name}") for name in EXCLUDED_FIELDS})
        data = {name: "x" for name in EXCLUDED_FIELDS}
        data["email"] = "anna@example.com"

        properties, unmapped = map_to_crm_properties(data, table)

        assert properties == {"email": "anna@example.com"}
        assert unmapped == []

    def test_camel_case_internal_fields_are_excluded(self):
        data = {"consentGiven": True, "createdAt": "2026-01-01", "marketingConsent": False}
        properties, unmapped = map_to_crm_properties(data, BOOKING_PROPERTY_MAP)
        assert properties == {}
        assert unmapped == []

    def test_unknown_field_reported_and_not_sent(self):
        properties, unmapped = map_to_crm_properties(
            {"email": "a@b.de", "building_type": "Altbau"}, BOOKING_PROPERTY_MAP
        )
        assert properties == {"email": "a@b.de"}
        assert unmapped == ["building_type"]

    @pytest.mark.parametrize("empty", [None, ""])
    def test_empty_values_dropped_without_report(self, empty):
        properties, unmapped = map_to_crm_properties(
            {"email": "a@b.de", "phone": empty, "unknown": empty}, BOOKING_PROPERTY_MAP
        )
        assert properties == {"email": "a@b.de"}
        assert unmapped == []


# ── Value conversion ────────────────────────────────────────────────────────


class TestValues:
    def test_mapped_fields_produce_one_key_each(self):
        data = {
            "email": "anna@example.com",
            "phone": "+49 30 1234",
            "service": "Heizung",
            "message": "Bitte zurückrufen",
            "package_type": "Premium",
        }
        properties, unmapped = map_to_crm_properties(data, BOOKING_PROPERTY_MAP)
        assert properties == {
            "email": "anna@example.com",
            "phone": "+49 30 1234",
            "booking_type": "Heizung",
            "booking_message": "Bitte zurückrufen",
            "booking_package": "Premium",
        }
        assert unmapped == []

    def test_split_name_multiple_tokens(self):
        properties, _ = map_to_crm_properties({"name": "Anna Maria Muster"}, CALCULATOR_PROPERTY_MAP)
        assert properties == {"firstname": "Anna", "lastname": "Maria Muster"}

    def test_split_name_single_token(self):
        properties, _ = map_to_crm_properties({"name": "Madonna"}, CALCULATOR_PROPERTY_MAP)
        assert properties == {"firstname": "Madonna", "lastname": ""}

    def test_split_name_collapses_whitespace(self):
        properties, _ = map_to_crm_properties({"name": "  Jan   de  Vries "}, CALCULATOR_PROPERTY_MAP)
        assert properties == {"firstname": "Jan", "lastname": "de Vries"}

    def test_whitespace_only_name_degrades_to_empty(self):
        properties, _ = map_to_crm_properties({"name": "   "}, CALCULATOR_PROPERTY_MAP)
        assert properties == {"firstname": "", "lastname": ""}

    def test_list_values_joined(self):
        table = {"trades": PropertyMapping("partner_trades")}
        properties, _ = map_to_crm_properties({"trades": ["heizung", "sanitaer"]}, table)
        assert properties == {"partner_trades": "heizung, sanitaer"}

    def test_scalar_values_stringified(self):
        class Size(Enum):
            SMALL = "small"

        table = {
            "count": PropertyMapping("count", "number"),
            "opt_in": PropertyMapping("opt_in", "bool"),
            "start": PropertyMapping("start", "date"),
            "size": PropertyMapping("size", "enumeration"),
        }
        data = {"count": 3, "opt_in": True, "start": date(2026, 3, 1), "size": Size.SMALL}
        properties, _ = map_to_crm_properties(data, table)
        assert properties == {
            "count": "3",
            "opt_in": "true",
            "start": "2026-03-01",
            "size": "small",
        }

    def test_partner_table(self):
        data = {
            "company_name": "Muster Bau GmbH",
            "contact_person": "Max Muster",
            "email": "max@musterbau.de",
            "website": "musterbau.de",
            "trades": ["heizung"],
        }
        properties, unmapped = map_to_crm_properties(data, PARTNER_PROPERTY_MAP)
        assert properties == {
            "company": "Muster Bau GmbH",
            "firstname": "Max",
            "lastname": "Muster",
            "email": "max@musterbau.de",
            "website": "musterbau.de",
        }
        assert unmapped == ["trades"]

    def test_malformed_input_does_not_raise(self):
        properties, unmapped = map_to_crm_properties(
            {"name": 12345, "email": object(), "": "x"}, CALCULATOR_PROPERTY_MAP
        )
        assert properties["firstname"] == "12345"
        assert "email" in properties
        assert unmapped == [""]


# ── Confirmation flags & provisioning list ──────────────────────────────────


class TestConfirmationAndProvisioning:
    def test_confirmation_property_per_form(self):
        assert confirmation_property(FormType.BOOKING) == {"booking_confirmed": "true"}
        assert confirmation_property("partner") == {"partner_confirmed": "true"}

    def test_required_properties_skip_standard_and_split(self):
        names = [p["name"] for p in get_required_custom_properties()]
        assert "email" not in names
        assert "firstname" not in names
        assert SPLIT_NAME not in names
        assert {"booking_type", "booking_message", "booking_package"} <= set(names)

    def test_required_properties_include_flags_once(self):
        names = [p["name"] for p in get_required_custom_properties()]
        for flag in CONFIRMATION_PROPERTIES.values():
            assert names.count(flag) == 1
        assert len(names) == len(set(names))
