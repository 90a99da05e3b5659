"""Outbound email.

``ResendEmailSender`` posts to the Resend HTTP API. Without an API key
outside production, ``LogEmailSender`` is used instead: it logs the
message and reports success so local wizard runs complete.
"""

import logging
from dataclasses import dataclass, field

import httpx

from bloomrent.config import settings
from bloomrent.emails.templates import render

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    to: list[str]
    subject: str
    html: str
    text: str | None = None
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class EmailResult:
    success: bool
    id: str | None = None
    error: str | None = None


class EmailSender:
    async def send(self, message: EmailMessage) -> EmailResult:
        raise NotImplementedError

    async def send_template(self, to: str, subject: str, template: str, **context) -> EmailResult:
        rendered = render(template, **context)
        return await self.send(
            EmailMessage(
                to=[to],
                subject=subject,
                html=rendered.html,
                text=rendered.text,
                tags={"template": template},
            )
        )


class ResendEmailSender(EmailSender):
    def __init__(
        self,
        api_key: str,
        api_url: str | None = None,
        sender: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url or settings.resend_api_url
        self.sender = sender or settings.email_from
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def send(self, message: EmailMessage) -> EmailResult:
        payload = {
            "from": self.sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            payload["text"] = message.text
        if message.tags:
            payload["tags"] = [{"name": k, "value": v} for k, v in message.tags.items()]

        try:
            async with httpx.AsyncClient(
                timeout=settings.http_timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(self.api_url, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning(f"Email to {message.to} failed: {e}")
            return EmailResult(success=False, error=str(e) or "Network error")

        if response.status_code >= 400:
            try:
                detail = response.json().get("message") or response.text
            except ValueError:
                detail = response.text
            logger.warning(
                f"Email provider rejected message to {message.to}: {response.status_code} {detail}"
            )
            return EmailResult(success=False, error=detail)

        return EmailResult(success=True, id=response.json().get("id"))


class LogEmailSender(EmailSender):
    async def send(self, message: EmailMessage) -> EmailResult:
        logger.info(
            f"Email delivery not configured; would send '{message.subject}' to {message.to}",
            extra={"tags": message.tags},
        )
        return EmailResult(success=True, id=None)


def get_email_sender() -> EmailSender:
    """FastAPI dependency; tests override it with a recording fake."""
    if settings.resend_api_key:
        return ResendEmailSender(settings.resend_api_key)
    if settings.environment == "production":
        logger.error("RESEND_API_KEY is not set in production")
        return ResendEmailSender("")
    return LogEmailSender()
