"""Outbound email delivery.

Two providers behind one ``Mailer`` protocol:
- ``resend``: HTTP POST to the Resend API (production)
- ``console``: logs recipient and subject (local development). With
  ``EMAIL_CONSOLE_SHOW_BODY=true`` it also logs the text body, so a
  developer can read the code; the setting is rejected in production.

Only these two providers exist; an AWS SES transport would be another
``Mailer`` implementation selected in ``get_mailer``.

Delivery failures raise DeliveryError. Whether a failure is swallowed is
decided by the caller (initial signup logs it, resend surfaces it).

Security: message bodies carry plaintext passcodes and are never logged
outside the development opt-in above.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from signup_api.core.config import settings
from signup_api.core.errors import DeliveryError

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class EmailMessage:
    """A rendered email ready for delivery.

    Attributes:
        to: Recipient email address.
        subject: Subject line.
        text: Plain-text body.
        html: HTML body.
    """

    to: str
    subject: str
    text: str
    html: str


class Mailer(Protocol):
    """Delivery collaborator: accepts a rendered message or raises."""

    async def send(self, message: EmailMessage) -> None: ...


class ResendMailer:
    """Send email through the Resend transactional API."""

    def __init__(
        self,
        *,
        api_key: str,
        from_address: str,
        timeout: float,
        api_url: str = _RESEND_API_URL,
    ) -> None:
        self._api_key = api_key
        self._from_address = from_address
        self._timeout = timeout
        self._api_url = api_url

    async def send(self, message: EmailMessage) -> None:
        """Deliver a message via Resend.

        Args:
            message: Rendered email.

        Raises:
            DeliveryError: If the API key is missing, the request fails,
                or Resend answers with a non-2xx status.
        """
        if not self._api_key:
            raise DeliveryError("Email provider is not configured")

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self._api_url,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    json={
                        "from": self._from_address,
                        "to": message.to,
                        "subject": message.subject,
                        "text": message.text,
                        "html": message.html,
                    },
                    timeout=self._timeout,
                )
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Resend rejected email (status %s)", exc.response.status_code
            )
            raise DeliveryError() from exc
        except httpx.HTTPError as exc:
            logger.warning("Resend request failed: %s", type(exc).__name__)
            raise DeliveryError() from exc


class ConsoleMailer:
    """Development mailer that records deliveries in the log.

    Args:
        show_body: Also log the plain-text body, which contains the code.
    """

    def __init__(self, *, show_body: bool = False) -> None:
        self._show_body = show_body

    async def send(self, message: EmailMessage) -> None:
        """Log the delivery; the body only when show_body is set.

        Args:
            message: Rendered email.
        """
        logger.info("Email to %s: %s", message.to, message.subject)
        if self._show_body:
            logger.info("Email body for %s:\n%s", message.to, message.text)


def get_mailer() -> Mailer:
    """Build the mailer for the configured provider.

    Reads settings at call time so tests and operators can switch
    providers without restarting.

    Returns:
        Mailer for ``settings.email_provider``.

    Raises:
        ValueError: If the configured provider is unknown.
    """
    if settings.email_provider == "resend":
        return ResendMailer(
            api_key=settings.resend_api_key.get_secret_value(),
            from_address=settings.email_from,
            timeout=settings.email_timeout_seconds,
        )
    if settings.email_provider == "console":
        return ConsoleMailer(show_body=settings.email_console_show_body)
    raise ValueError(f"Unknown email provider: {settings.email_provider}")
