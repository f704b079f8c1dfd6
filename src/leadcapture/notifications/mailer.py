"""Transactional email for form submissions.

Mailer renders the templates and sends through Resend:
- send_booking_emails: customer confirmation (with .ics callback invite)
  and admin notification; each captured separately
- send_partner_registration_email: admin notification
- send_calculator_results_email: results to the visitor

Credentials are resolved on every send (static RESEND_API_KEY or the
resend connector, which carries no expiry).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import httpx
import structlog

from src.leadcapture.config import Settings
from src.leadcapture.core.connectors import ConnectorCredentialProvider
from src.leadcapture.core.monitoring import emails_sent_total
from src.leadcapture.crm.errors import OptionalSideEffectError
from src.leadcapture.crm.results import SideEffectResult
from src.leadcapture.notifications.ics import build_callback_invite
from src.leadcapture.notifications.resend_client import EmailAttachment, ResendClient
from src.leadcapture.notifications.templates import (
    Branding,
    admin_notification_email,
    calculator_results_email,
    calculator_subject_name,
    customer_confirmation_email,
    format_submitted_at,
    partner_registration_email,
)

logger = structlog.get_logger(__name__)

CredentialSource = Callable[[], Awaitable[tuple[str, str | None]]]

INVITE_FILENAME_TEMPLATE = "{brand}-Beratungstermin.ics"


@dataclass(frozen=True)
class BookingEmailResult:
    customer: SideEffectResult[str]
    admin: SideEffectResult[str]

    @property
    def ok(self) -> bool:
        return self.customer.ok and self.admin.ok

    @property
    def error(self) -> OptionalSideEffectError | None:
        """First failure, customer mail before admin mail."""
        return self.customer.error or self.admin.error


def static_credentials(api_key: str, from_email: str | None) -> CredentialSource:
    async def source() -> tuple[str, str | None]:
        return api_key, from_email

    return source


class Mailer:
    """Renders and sends the lead-capture emails.

    Args:
        credentials: Coroutine returning (api_key, from_email or None).
        admin_email: Recipient of internal notifications.
        default_from_email: Sender address when the credentials carry none.
        brand: Branding used by templates and sender names.
        callback_timezone: IANA zone for the callback invite.
        base_url: Resend API root.
        timeout: Resend request timeout in seconds.
        transport: Optional httpx transport for tests.
        clock: Returns the current aware datetime; injected in tests.
    """

    def __init__(
        self,
        credentials: CredentialSource,
        admin_email: str,
        default_from_email: str = "onboarding@resend.dev",
        brand: Branding | None = None,
        callback_timezone: str = "Europe/Berlin",
        base_url: str = "https://api.resend.com",
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._credentials = credentials
        self._admin_email = admin_email
        self._default_from_email = default_from_email
        self._brand = brand or Branding()
        self._tz = callback_timezone
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls, settings: Settings) -> Mailer:
        if settings.RESEND_API_KEY:
            credentials = static_credentials(settings.RESEND_API_KEY, settings.RESEND_FROM_EMAIL or None)
        else:
            credentials = ConnectorCredentialProvider.from_settings(settings, "resend").get_api_key
        return cls(
            credentials=credentials,
            admin_email=settings.ADMIN_EMAIL,
            default_from_email=settings.DEFAULT_FROM_EMAIL,
            brand=Branding(
                name=settings.BRAND_NAME,
                support_email=settings.SUPPORT_EMAIL,
                site_url=settings.SITE_URL,
            ),
            callback_timezone=settings.CALLBACK_TIMEZONE,
            base_url=settings.RESEND_BASE_URL,
            timeout=settings.RESEND_TIMEOUT,
        )

    async def _client(self) -> tuple[ResendClient, str]:
        api_key, from_email = await self._credentials()
        client = ResendClient(api_key, self._base_url, self._timeout, self._transport)
        return client, from_email or self._default_from_email

    def _submitted_at(self) -> str:
        return format_submitted_at(self._clock().astimezone(ZoneInfo(self._tz)))

    async def _send(self, template: str, client: ResendClient, **kwargs) -> str:
        try:
            message_id = await client.send(**kwargs)
        except Exception:
            emails_sent_total.labels(template=template, status="error").inc()
            raise
        emails_sent_total.labels(template=template, status="success").inc()
        return message_id

    # ── Booking ─────────────────────────────────────────────────────────────

    async def send_booking_emails(
        self,
        *,
        name: str,
        email: str,
        service_category: str,
        package_name: str,
        phone: str | None = None,
        message: str | None = None,
        building_type: str | None = None,
        units: str | None = None,
    ) -> BookingEmailResult:
        """Send the customer confirmation and the admin notification.

        A failure of one message does not prevent the other. Credential
        failures raise, since neither message can be sent.
        """
        client, sender = await self._client()
        brand = self._brand

        invite = build_callback_invite(
            name=name,
            email=email,
            service_category=service_category,
            package_name=package_name,
            now=self._clock(),
            tz=self._tz,
            brand=brand,
        )

        try:
            customer_id = await self._send(
                "booking_confirmation",
                client,
                sender=f"{brand.name} <{sender}>",
                to=email,
                subject=f"Ihre Beratungsanfrage bei {brand.name} - Bestätigung",
                html=customer_confirmation_email(name, service_category, package_name, message, brand),
                attachments=[
                    EmailAttachment(
                        filename=INVITE_FILENAME_TEMPLATE.format(brand=brand.name),
                        content=invite.encode("utf-8"),
                        content_type="text/calendar",
                    )
                ],
            )
            customer: SideEffectResult[str] = SideEffectResult.success(customer_id)
        except Exception as exc:
            logger.error("email.customer_confirmation_failed", to=email, error=str(exc))
            customer = SideEffectResult.failure("customer_confirmation_email", exc)

        try:
            admin_id = await self._send(
                "booking_admin",
                client,
                sender=f"{brand.name} Buchung <{sender}>",
                to=self._admin_email,
                reply_to=email,
                subject=f"Neue Anfrage: {name} - {service_category}/{package_name}",
                html=admin_notification_email(
                    name=name,
                    email=email,
                    service_category=service_category,
                    package_name=package_name,
                    submitted_at=self._submitted_at(),
                    phone=phone,
                    message=message,
                    building_type=building_type,
                    units=units,
                    brand=brand,
                ),
            )
            admin: SideEffectResult[str] = SideEffectResult.success(admin_id)
        except Exception as exc:
            logger.error("email.admin_notification_failed", to=self._admin_email, error=str(exc))
            admin = SideEffectResult.failure("admin_notification_email", exc)

        return BookingEmailResult(customer=customer, admin=admin)

    # ── Partner ─────────────────────────────────────────────────────────────

    async def send_partner_registration_email(
        self,
        *,
        company_name: str,
        contact_person: str,
        email: str,
        phone: str,
        address: str,
        trades: Sequence[str],
        employees: str,
        experience: str,
        motivation: str,
        website: str | None = None,
        certifications: str | None = None,
    ) -> str:
        """Notify the admin about a partner registration; returns the message ID."""
        client, sender = await self._client()
        html = partner_registration_email(
            company_name=company_name,
            contact_person=contact_person,
            email=email,
            phone=phone,
            address=address,
            trades=trades,
            employees=employees,
            experience=experience,
            motivation=motivation,
            submitted_at=self._submitted_at(),
            website=website,
            certifications=certifications,
            brand=self._brand,
        )
        message_id = await self._send(
            "partner_admin",
            client,
            sender=f"{self._brand.name} Buchung <{sender}>",
            to=self._admin_email,
            reply_to=email,
            subject=f"Neue Handwerkspartner-Bewerbung: {company_name}",
            html=html,
        )
        logger.info("email.partner_notification_sent", to=self._admin_email, message_id=message_id)
        return message_id

    # ── Calculator ──────────────────────────────────────────────────────────

    async def send_calculator_results_email(
        self,
        *,
        email: str,
        calculator_type: str,
        results: Sequence[dict[str, str]],
        inputs: Sequence[dict[str, str]],
        name: str | None = None,
    ) -> str:
        """Send calculator results to the visitor; returns the message ID."""
        client, sender = await self._client()
        return await self._send(
            "calculator_results",
            client,
            sender=f"{self._brand.name} <{sender}>",
            to=email,
            subject=f"Ihre {calculator_subject_name(calculator_type)}-Berechnung von {self._brand.name}",
            html=calculator_results_email(calculator_type, results, inputs, name, self._brand),
        )
