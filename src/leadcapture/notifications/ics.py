"""iCalendar (RFC 5545) invite for the booking callback appointment.

The callback is proposed for the next business day at 10:00 local time,
30 minutes long, with a display alarm 15 minutes before.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from src.leadcapture.notifications.templates import Branding

CALLBACK_HOUR = 10
CALLBACK_DURATION = timedelta(minutes=30)
ALARM_TRIGGER = "-PT15M"


def next_business_day(day: date) -> date:
    """Day after ``day``, rolled forward past Saturday/Sunday."""
    candidate = day + timedelta(days=1)
    if candidate.weekday() == 5:
        candidate += timedelta(days=2)
    elif candidate.weekday() == 6:
        candidate += timedelta(days=1)
    return candidate


def callback_window(now: datetime, tz: str = "Europe/Berlin") -> tuple[datetime, datetime]:
    """Return (start, end) of the proposed callback as aware UTC datetimes."""
    zone = ZoneInfo(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_day = now.astimezone(zone).date()
    start = datetime.combine(next_business_day(local_day), time(CALLBACK_HOUR), tzinfo=zone)
    end = start + CALLBACK_DURATION
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def format_ics_datetime(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def escape_ics_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _param_value(value: str) -> str:
    cleaned = value.replace('"', "").replace("\r", " ").replace("\n", " ")
    return f'"{cleaned}"'


def build_callback_invite(
    name: str,
    email: str,
    service_category: str,
    package_name: str,
    now: datetime | None = None,
    tz: str = "Europe/Berlin",
    brand: Branding | None = None,
) -> str:
    """Render the VCALENDAR text (CRLF line endings)."""
    brand = brand or Branding()
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start, end = callback_window(now, tz)

    domain = brand.support_email.split("@")[-1]
    uid = f"{brand.name.lower()}-{int(now.timestamp() * 1000)}@{domain}"
    description = (
        f"Sie haben eine {service_category}-Beratung ({package_name}) bei {brand.name} angefragt. "
        f"Ein Experte wird Sie zu diesem Zeitpunkt kontaktieren.\n\n"
        f"Bei Fragen: {brand.support_email}"
    )

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{brand.name}//Booking//DE",
        "CALSCALE:GREGORIAN",
        "METHOD:REQUEST",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{format_ics_datetime(now)}",
        f"DTSTART:{format_ics_datetime(start)}",
        f"DTEND:{format_ics_datetime(end)}",
        f"SUMMARY:{escape_ics_text(f'{brand.name} Beratung - Rückruf erwartet')}",
        f"DESCRIPTION:{escape_ics_text(description)}",
        "LOCATION:Telefonische Beratung",
        f"ORGANIZER;CN={_param_value(brand.name)}:mailto:{brand.support_email}",
        f"ATTENDEE;CN={_param_value(name)};RSVP=TRUE:mailto:{email}",
        "STATUS:TENTATIVE",
        "TRANSP:OPAQUE",
        "BEGIN:VALARM",
        "ACTION:DISPLAY",
        f"DESCRIPTION:{escape_ics_text(f'{brand.name} Beratungsgespräch in 15 Minuten')}",
        f"TRIGGER:{ALARM_TRIGGER}",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"
