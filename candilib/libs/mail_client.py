"""
HTTP mail API client for transactional emails.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog
from candilib.core.config import get_settings

logger = structlog.get_logger(__name__)


class MailClientError(Exception):
    """Base exception for mail client errors."""


class MailAPIError(MailClientError):
    """Raised for non-success responses from the mail API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class MailResponse:
    """Identifier of the accepted message."""

    id: str


class MailClientProtocol(Protocol):
    async def send_email(
        self,
        *,
        from_email: str,
        to_emails: list[str],
        subject: str,
        html: str,
        text: str,
    ) -> MailResponse: ...


class MailClient:
    """Async mail API client."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.mail_api_key
        self.base_url = base_url or settings.mail_base_url
        self.timeout = (
            timeout_seconds if timeout_seconds is not None else settings.mail_timeout_seconds
        )
        self._transport = transport

        if not self.api_key:
            logger.warning("mail_api_key_missing", msg="MAIL_API_KEY not configured")

    async def send_email(
        self,
        *,
        from_email: str,
        to_emails: list[str],
        subject: str,
        html: str,
        text: str,
    ) -> MailResponse:
        """Send an email through the mail API."""
        if not self.api_key:
            raise MailClientError("MAIL_API_KEY not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "from": from_email,
            "to": to_emails,
            "subject": subject,
            "html": html,
            "text": text,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/emails",
                    headers=headers,
                    json=payload,
                )
        except httpx.HTTPError as exc:
            raise MailClientError(f"Mail API unreachable: {exc}") from exc

        if response.status_code not in (200, 201, 202):
            raise MailAPIError(
                f"Mail API error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise MailAPIError(
                "Mail API response was not valid JSON",
                status_code=response.status_code,
            ) from exc

        message_id = data.get("id")
        if not message_id:
            raise MailAPIError(
                "Mail API response missing message id",
                status_code=response.status_code,
            )

        return MailResponse(id=message_id)
