"""Shared library helpers."""

from candilib.libs.mail_client import (
    MailAPIError,
    MailClient,
    MailClientError,
    MailClientProtocol,
    MailResponse,
)

__all__ = [
    "MailAPIError",
    "MailClient",
    "MailClientError",
    "MailClientProtocol",
    "MailResponse",
]
