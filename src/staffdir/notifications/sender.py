"""Outbound email over the Brevo, SendGrid or Resend HTTP APIs."""

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    async def send(self, to: str, subject: str, html: str, text: str) -> bool:
        ...


class EmailSender:
    """Sends transactional email.

    Falls back to logging if no provider is configured. ``send`` never
    raises: a failed delivery is reported as ``False``.
    """

    def __init__(
        self,
        provider: str = "",
        api_key: str = "",
        from_email: str = "no-reply@staff-directory.local",
        from_name: str = "University Staff Directory",
        timeout: float = 10.0,
    ):
        self.provider = provider.lower()  # "brevo", "sendgrid" or "resend"
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout

    async def send(self, to: str, subject: str, html: str, text: str) -> bool:
        if self.provider == "brevo":
            return await self._send_brevo(to, subject, html, text)
        elif self.provider == "sendgrid":
            return await self._send_sendgrid(to, subject, html, text)
        elif self.provider == "resend":
            return await self._send_resend(to, subject, html, text)
        else:
            logger.info(
                "No email provider configured; not sending '%s' to %s", subject, to,
            )
            return False

    async def _post(self, url: str, payload: dict, headers: dict, ok: tuple[int, ...]) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError:
            logger.exception("%s send failed", self.provider)
            return False
        if resp.status_code in ok:
            logger.info("%s email sent", self.provider)
            return True
        logger.warning("%s error: %s %s", self.provider, resp.status_code, resp.text)
        return False

    async def _send_brevo(self, to: str, subject: str, html: str, text: str) -> bool:
        """Send via Brevo transactional email API."""
        return await self._post(
            "https://api.brevo.com/v3/smtp/email",
            {
                "sender": {"email": self.from_email, "name": self.from_name},
                "to": [{"email": to}],
                "subject": subject,
                "htmlContent": html or text,
                "textContent": text,
            },
            {"api-key": self.api_key, "Content-Type": "application/json"},
            ok=(200, 201, 202),
        )

    async def _send_sendgrid(self, to: str, subject: str, html: str, text: str) -> bool:
        """Send via SendGrid v3 API."""
        return await self._post(
            "https://api.sendgrid.com/v3/mail/send",
            {
                "personalizations": [{"to": [{"email": to}]}],
                "from": {"email": self.from_email, "name": self.from_name},
                "subject": subject,
                "content": [
                    {"type": "text/plain", "value": text},
                    {"type": "text/html", "value": html or text},
                ],
            },
            {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            ok=(200, 202),
        )

    async def _send_resend(self, to: str, subject: str, html: str, text: str) -> bool:
        """Send via Resend API."""
        return await self._post(
            "https://api.resend.com/emails",
            {
                "from": f"{self.from_name} <{self.from_email}>",
                "to": [to],
                "subject": subject,
                "html": html or text,
                "text": text,
            },
            {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            ok=(200, 201),
        )
