"""HTML email templates for booking, calculator and partner notifications.

Plain f-string templates. Every user-supplied value passes through _e()
(html.escape) before interpolation; brand values come from settings.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Any

# ── Brand ────────────────────────────────────────────────────────────────────

COLORS = {
    "primary": "#2e7d5e",
    "primary_dark": "#1a4d3a",
    "primary_deep": "#0f3528",
    "background": "#fdfcfa",
    "summary_box": "#f5f3f0",
    "text": "#1f2d25",
    "text_muted": "#5a6b5f",
    "border": "#e5e0da",
    "white": "#ffffff",
}


@dataclass(frozen=True)
class Branding:
    name: str = "PALVAR"
    support_email: str = "service@palvar.de"
    site_url: str = "https://palvar.de"
    tagline: str = "Energieberatung | Projektmanagement | Gebäudeservices"


CALCULATOR_TYPE_NAMES = {
    "heizung": "Heizungstausch-Rechner",
    "pv": "Photovoltaik-Rechner",
    "daemmung": "Dämmungs-Rechner",
    "komplett": "Komplettsanierungs-Rechner",
}
DEFAULT_CALCULATOR_NAME = "Wirtschaftlichkeitsrechner"

# Short names for subject lines
CALCULATOR_SUBJECT_NAMES = {
    "heizung": "Heizungstausch",
    "pv": "Photovoltaik",
    "daemmung": "Dämmung",
    "komplett": "Komplettsanierung",
}
DEFAULT_CALCULATOR_SUBJECT_NAME = "Wirtschaftlichkeit"

TRADE_LABELS = {
    "heizung": "Heizung / Sanitär",
    "elektro": "Elektroinstallation",
    "daemmung": "Wärmedämmung / WDVS",
    "dach": "Dachdeckerei",
    "fenster": "Fenster / Türen",
    "solar": "Photovoltaik / Solar",
    "lueftung": "Lüftungstechnik",
    "maler": "Maler / Stuckateur",
    "maurer": "Maurer / Trockenbau",
    "zimmerei": "Zimmerei / Holzbau",
}

_WEEKDAYS = ("Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag")
_MONTHS = (
    "Januar", "Februar", "März", "April", "Mai", "Juni",
    "Juli", "August", "September", "Oktober", "November", "Dezember",
)


def _e(value: Any) -> str:
    return escape("" if value is None else str(value), quote=True)


def format_submitted_at(moment: datetime) -> str:
    """German long date, e.g. 'Montag, 19. Oktober 2026 um 14:30'."""
    return (
        f"{_WEEKDAYS[moment.weekday()]}, {moment.day}. {_MONTHS[moment.month - 1]} "
        f"{moment.year} um {moment:%H:%M}"
    )


def calculator_display_name(calculator_type: str) -> str:
    return CALCULATOR_TYPE_NAMES.get(calculator_type, DEFAULT_CALCULATOR_NAME)


def calculator_subject_name(calculator_type: str) -> str:
    return CALCULATOR_SUBJECT_NAMES.get(calculator_type, DEFAULT_CALCULATOR_SUBJECT_NAME)


def format_trades(trades: Sequence[str]) -> str:
    return ", ".join(TRADE_LABELS.get(t, t) for t in trades)


def normalize_website(url: str) -> str:
    return url if url.startswith(("http://", "https://")) else f"https://{url}"


# ── Building blocks ──────────────────────────────────────────────────────────


def base_template(content: str, preheader: str = "", brand: Branding | None = None) -> str:
    """Wrap content in the branded header/footer layout."""
    brand = brand or Branding()
    c = COLORS
    preheader_html = (
        f'<div style="display:none;max-height:0;overflow:hidden;">{_e(preheader)}</div>'
        if preheader
        else ""
    )
    return f"""<!DOCTYPE html>
<html lang="de">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{_e(brand.name)}</title>
  <style type="text/css">
    @media only screen and (max-width: 620px) {{
      .email-container {{ width: 100% !important; max-width: 100% !important; }}
      .content-padding {{ padding: 24px 16px !important; }}
    }}
  </style>
</head>
<body style="margin:0;padding:0;background-color:{c['background']};font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Arial,sans-serif;">
  {preheader_html}
  <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color:{c['background']};">
    <tr><td align="center" style="padding:24px 16px;">
      <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" class="email-container" style="max-width:600px;margin:0 auto;">
        <tr>
          <td align="center" style="background:linear-gradient(135deg,{c['primary_deep']} 0%,{c['primary_dark']} 50%,{c['primary']} 100%);padding:40px 32px;border-radius:12px 12px 0 0;">
            <span style="font-size:28px;font-weight:700;color:#ffffff;letter-spacing:3px;">{_e(brand.name)}</span><br>
            <span style="font-size:13px;color:rgba(255,255,255,0.85);letter-spacing:1px;">{_e(brand.tagline)}</span>
          </td>
        </tr>
        <tr>
          <td class="content-padding" style="background-color:{c['white']};padding:32px;">
            {content}
          </td>
        </tr>
        <tr>
          <td align="center" style="background:linear-gradient(135deg,{c['primary_dark']} 0%,{c['primary_deep']} 100%);padding:28px 32px;border-radius:0 0 12px 12px;color:rgba(255,255,255,0.75);font-size:13px;line-height:1.7;">
            <p style="margin:0 0 8px 0;"><strong style="color:{c['white']};font-size:15px;letter-spacing:1px;">{_e(brand.name)}</strong></p>
            <p style="margin:0 0 16px 0;">Ihr Partner für nachhaltige Gebäudelösungen</p>
            <p style="margin:0 0 8px 0;"><a href="mailto:{_e(brand.support_email)}" style="color:rgba(255,255,255,0.9);text-decoration:none;">{_e(brand.support_email)}</a></p>
            <p style="margin:20px 0 0 0;padding-top:16px;border-top:1px solid rgba(255,255,255,0.15);font-size:11px;color:rgba(255,255,255,0.5);">Diese E-Mail wurde automatisch generiert.</p>
          </td>
        </tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def _box(title: str, rows_html: str, margin: str = "0 0 24px 0") -> str:
    c = COLORS
    return f"""<table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color:{c['summary_box']};border-radius:12px;margin:{margin};">
  <tr><td style="padding:24px;">
    <h2 style="margin:0 0 16px 0;font-size:16px;font-weight:600;color:{c['primary']};">{title}</h2>
    {rows_html}
  </td></tr>
</table>"""


def _row(label: str, value_html: str) -> str:
    c = COLORS
    return (
        f'<tr><td style="padding:8px 0;border-bottom:1px solid {c["border"]};width:140px;'
        f'color:{c["text_muted"]};font-size:14px;">{label}</td>'
        f'<td style="padding:8px 0;border-bottom:1px solid {c["border"]};color:{c["text"]};'
        f'font-size:14px;">{value_html}</td></tr>'
    )


def _rows_table(rows: Sequence[str]) -> str:
    return (
        '<table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">'
        + "".join(rows)
        + "</table>"
    )


def _link(href: str, text: str) -> str:
    return f'<a href="{_e(href)}" style="color:{COLORS["primary"]};text-decoration:none;">{_e(text)}</a>'


def _paragraph(html_text: str, muted: bool = False) -> str:
    color = COLORS["text_muted"] if muted else COLORS["text"]
    return f'<p style="margin:0 0 24px 0;font-size:16px;line-height:1.7;color:{color};">{html_text}</p>'


def _signature(brand: Branding) -> str:
    return _paragraph(f"Mit freundlichen Grüßen,<br><strong>Ihr {_e(brand.name)}-Team</strong>")


# ── Booking ──────────────────────────────────────────────────────────────────


def customer_confirmation_email(
    name: str,
    service_category: str,
    package_name: str,
    message: str | None = None,
    brand: Branding | None = None,
) -> str:
    """Confirmation sent to the person who submitted a booking request."""
    brand = brand or Branding()
    c = COLORS
    rows = [
        _row("Leistungsbereich", _e(service_category)),
        _row("Gewähltes Paket", _e(package_name)),
    ]
    if message:
        rows.append(_row("Ihre Nachricht", f"<em>&quot;{_e(message)}&quot;</em>"))

    steps = "".join(
        f'<li style="padding:6px 0;color:{c["text"]};font-size:15px;">{step}</li>'
        for step in (
            "Wir prüfen Ihre Anfrage und Ihre Anforderungen",
            "Ein Experte kontaktiert Sie für ein Erstgespräch",
            "Gemeinsam planen wir die nächsten Schritte",
        )
    )

    support_link = _link(f"mailto:{brand.support_email}", brand.support_email)

    content = f"""
<h1 style="margin:0 0 24px 0;font-size:28px;font-weight:700;color:{c['primary_dark']};">Vielen Dank für Ihre Anfrage!</h1>
{_paragraph(f"Guten Tag {_e(name)},")}
{_paragraph("wir haben Ihre Beratungsanfrage erhalten und freuen uns über Ihr Interesse an unseren Dienstleistungen. Unser Team wird sich innerhalb von <strong>24 Stunden</strong> bei Ihnen melden.")}
{_box("Ihre Anfrage im Überblick", _rows_table(rows), margin="32px 0")}
<h3 style="margin:32px 0 16px 0;font-size:18px;font-weight:600;color:{c['primary_dark']};">Nächste Schritte</h3>
<ol style="margin:0 0 24px 0;padding-left:20px;">{steps}</ol>
{_paragraph(f"Bei dringenden Fragen erreichen Sie uns unter {support_link}.")}
{_signature(brand)}"""

    return base_template(
        content,
        f"Vielen Dank für Ihre Anfrage bei {brand.name} - wir melden uns innerhalb von 24 Stunden.",
        brand,
    )


def admin_notification_email(
    name: str,
    email: str,
    service_category: str,
    package_name: str,
    submitted_at: str,
    phone: str | None = None,
    message: str | None = None,
    building_type: str | None = None,
    units: str | None = None,
    brand: Branding | None = None,
) -> str:
    """Internal notification about a new booking request."""
    brand = brand or Branding()
    c = COLORS

    customer_rows = [
        _row("Name", _e(name)),
        _row("E-Mail", _link(f"mailto:{email}", email)),
    ]
    if phone:
        customer_rows.append(_row("Telefon", _link(f"tel:{phone}", phone)))

    service_rows = [
        _row("Bereich", _e(service_category)),
        _row("Paket", _e(package_name)),
    ]
    if building_type:
        service_rows.append(_row("Gebäudetyp", _e(building_type)))
    if units:
        service_rows.append(_row("Wohneinheiten", _e(units)))

    message_html = ""
    if message:
        message_html = _box(
            "Nachricht des Kunden",
            f'<p style="margin:0;font-size:14px;line-height:1.6;color:{c["text"]};white-space:pre-wrap;">{_e(message)}</p>',
        )

    content = f"""
<h1 style="margin:0 0 24px 0;font-size:24px;font-weight:700;color:{c['primary_dark']};">Neue Beratungsanfrage</h1>
{_paragraph(f"Eingegangen am {_e(submitted_at)}", muted=True)}
{_box("Kundendaten", _rows_table(customer_rows))}
{_box("Angefragte Leistung", _rows_table(service_rows))}
{message_html}
<p style="margin:32px 0 0 0;padding:16px;background-color:#fef3c7;border-radius:8px;font-size:14px;color:#92400e;">
  <strong>Aktion erforderlich:</strong> Bitte kontaktieren Sie den Kunden innerhalb von 24 Stunden.
</p>"""

    return base_template(
        content,
        f"Neue Anfrage von {name} - {service_category} / {package_name}",
        brand,
    )


# ── Calculator ───────────────────────────────────────────────────────────────


def calculator_results_email(
    calculator_type: str,
    results: Sequence[dict[str, str]],
    inputs: Sequence[dict[str, str]],
    name: str | None = None,
    brand: Branding | None = None,
) -> str:
    """Calculator results sent to the visitor who ran the calculator."""
    brand = brand or Branding()
    c = COLORS
    type_name = calculator_display_name(calculator_type)
    greeting = f"Guten Tag {_e(name)}," if name else "Guten Tag,"

    result_rows = "".join(
        f'<tr><td style="padding:12px 0;">'
        f'<span style="color:rgba(255,255,255,0.8);font-size:14px;display:block;">{_e(r.get("label"))}</span>'
        f'<span style="color:{c["white"]};font-size:24px;font-weight:700;">{_e(r.get("value"))}</span>'
        f"</td></tr>"
        for r in results
    )
    input_rows = [
        _row(_e(i.get("label")), f'<strong>{_e(i.get("value"))}</strong>') for i in inputs
    ]

    content = f"""
<h1 style="margin:0 0 24px 0;font-size:28px;font-weight:700;color:{c['primary_dark']};">Ihre Berechnungsergebnisse</h1>
{_paragraph(greeting)}
{_paragraph(f"vielen Dank für die Nutzung unseres <strong>{_e(type_name)}s</strong>. Hier sind Ihre personalisierten Ergebnisse:")}
<table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background:linear-gradient(135deg,{c['primary_dark']} 0%,{c['primary']} 100%);border-radius:12px;margin:32px 0;">
  <tr><td style="padding:32px;">
    <h2 style="margin:0 0 24px 0;font-size:20px;font-weight:600;color:{c['white']};">Ergebnisse</h2>
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">{result_rows}</table>
  </td></tr>
</table>
{_box("Ihre Eingaben", _rows_table(input_rows), margin="0 0 32px 0")}
<p style="margin:0 0 16px 0;font-size:14px;color:{c['text_muted']};font-style:italic;">* Diese Berechnung dient als erste Orientierung. Die tatsächlichen Werte können je nach individueller Situation abweichen.</p>
<p style="margin:32px 0;text-align:center;">
  <a href="{_e(brand.site_url.rstrip('/') + '/booking')}" style="display:inline-block;background-color:{c['primary']};color:{c['white']};padding:14px 32px;border-radius:8px;text-decoration:none;font-weight:600;font-size:16px;">Kostenlose Beratung anfragen</a>
</p>
{_signature(brand)}"""

    return base_template(content, f"Ihre {type_name}-Ergebnisse von {brand.name}", brand)


# ── Partner ──────────────────────────────────────────────────────────────────


def partner_registration_email(
    company_name: str,
    contact_person: str,
    email: str,
    phone: str,
    address: str,
    trades: Sequence[str],
    employees: str,
    experience: str,
    motivation: str,
    submitted_at: str,
    website: str | None = None,
    certifications: str | None = None,
    brand: Branding | None = None,
) -> str:
    """Internal notification about a new trade partner registration."""
    brand = brand or Branding()
    c = COLORS
    trades_formatted = format_trades(trades)

    rows = [
        _row("Firma", f"<strong>{_e(company_name)}</strong>"),
        _row("Ansprechpartner", _e(contact_person)),
        _row("E-Mail", _link(f"mailto:{email}", email)),
        _row("Telefon", _link(f"tel:{phone}", phone)),
        _row("Adresse", _e(address)),
    ]
    if website:
        rows.append(_row("Website", _link(normalize_website(website), website)))
    rows.append(_row("Mitarbeiter", _e(employees)))

    def _text_block(text: str) -> str:
        return f'<p style="margin:0 0 24px 0;font-size:14px;line-height:1.6;color:{c["text"]};white-space:pre-wrap;">{_e(text)}</p>'

    trades_html = f'<p style="margin:0;font-size:14px;color:{c["text"]};">{_e(trades_formatted)}</p>'
    certifications_html = _box("Zertifizierungen", _text_block(certifications)) if certifications else ""

    content = f"""
<h1 style="margin:0 0 24px 0;font-size:24px;font-weight:700;color:{c['primary_dark']};">Neue Handwerkspartner-Bewerbung</h1>
{_paragraph(f"Eingegangen am {_e(submitted_at)}", muted=True)}
{_box("Unternehmensdaten", _rows_table(rows))}
{_box("Gewerke", trades_html)}
{_box("Erfahrung", _text_block(experience))}
{_box("Motivation", _text_block(motivation))}
{certifications_html}
<p style="margin:32px 0 0 0;padding:16px;background-color:#dbeafe;border-radius:8px;font-size:14px;color:#1e40af;">
  <strong>Aktion erforderlich:</strong> Bitte prüfen Sie die Bewerbung und kontaktieren Sie den Interessenten innerhalb von 5 Werktagen.
</p>"""

    return base_template(
        content,
        f"Neue Handwerkspartner-Bewerbung von {company_name} - {trades_formatted}",
        brand,
    )
