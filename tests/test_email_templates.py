"""Tests for the HTML email templates."""

from __future__ import annotations

from datetime import datetime

from src.leadcapture.notifications.templates import (
    Branding,
    admin_notification_email,
    calculator_display_name,
    calculator_results_email,
    calculator_subject_name,
    customer_confirmation_email,
    format_submitted_at,
    format_trades,
    normalize_website,
    partner_registration_email,
)

HOSTILE = '<script>alert("x")</script>'


class TestHelpers:
    def test_submitted_at_german(self):
        assert format_submitted_at(datetime(2026, 10, 19, 14, 30)) == "Montag, 19. Oktober 2026 um 14:30"

    def test_calculator_names(self):
        assert calculator_display_name("pv") == "Photovoltaik-Rechner"
        assert calculator_display_name("unbekannt") == "Wirtschaftlichkeitsrechner"
        assert calculator_subject_name("daemmung") == "Dämmung"
        assert calculator_subject_name("unbekannt") == "Wirtschaftlichkeit"

    def test_trades_labels(self):
        assert format_trades(["heizung", "custom"]) == "Heizung / Sanitär, custom"

    def test_normalize_website(self):
        assert normalize_website("musterbau.de") == "https://musterbau.de"
        assert normalize_website("http://musterbau.de") == "http://musterbau.de"
        assert normalize_website("httpbin.org") == "https://httpbin.org"


class TestEscaping:
    def test_customer_confirmation_escapes_input(self):
        html = customer_confirmation_email(HOSTILE, "Heizung", "Premium", message=HOSTILE)
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "Vielen Dank für Ihre Anfrage!" in html

    def test_admin_notification_escapes_input(self):
        html = admin_notification_email(
            name=HOSTILE,
            email='a@b.de"><img src=x>',
            service_category="PV",
            package_name="Basis",
            submitted_at="Montag, 19. Oktober 2026 um 14:30",
            phone="030 1234",
            message=HOSTILE,
            building_type="Altbau",
            units="4",
        )
        assert "<script>" not in html
        assert "<img src=x>" not in html
        assert "tel:030 1234" in html
        assert "Gebäudetyp" in html
        assert "Wohneinheiten" in html

    def test_calculator_results_escape_rows(self):
        html = calculator_results_email(
            "heizung",
            results=[{"label": "Ersparnis", "value": HOSTILE}],
            inputs=[{"label": HOSTILE, "value": "120 m²"}],
            name="Anna",
        )
        assert "<script>" not in html
        assert "Heizungstausch-Rechners" in html
        assert "120 m²" in html
        assert "Guten Tag Anna," in html

    def test_partner_email(self):
        html = partner_registration_email(
            company_name="Muster & Söhne",
            contact_person="Max Muster",
            email="max@muster.de",
            phone="030 123456",
            address="Hauptstr. 1",
            trades=["heizung", "solar"],
            employees="5-10",
            experience="Seit 1990 im Handwerk tätig",
            motivation=HOSTILE,
            submitted_at="Montag, 19. Oktober 2026 um 14:30",
            website="muster.de",
        )
        assert "Muster &amp; Söhne" in html
        assert "https://muster.de" in html
        assert "Heizung / Sanitär, Photovoltaik / Solar" in html
        assert "<script>" not in html
        assert "Zertifizierungen" not in html


class TestBranding:
    def test_brand_in_layout(self):
        brand = Branding(name="ACME", support_email="hilfe@acme.example", site_url="https://acme.example/")
        html = calculator_results_email("pv", [], [], brand=brand)
        assert "ACME" in html
        assert "mailto:hilfe@acme.example" in html
        assert "https://acme.example/booking" in html
