"""SMTP client for sending composed messages."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import TYPE_CHECKING

from ..core.interfaces import MailSender
from ..core.models import OutgoingMessage
from .oauth import build_xoauth2_string

if TYPE_CHECKING:
    from ..core.config import SmtpSettings

LOGGER = logging.getLogger(__name__)


class SmtpError(Exception):
    """Base exception for SMTP operations.

    Raised when SMTP connection, authentication, or sending fails.
    """


def build_mime_message(message: OutgoingMessage, from_address: str) -> EmailMessage:
    """Build a plain-text MIME message carrying threading headers."""
    mime_msg = EmailMessage()
    mime_msg["From"] = from_address
    mime_msg["To"] = message.to
    if message.cc:
        mime_msg["Cc"] = message.cc
    mime_msg["Subject"] = message.subject
    mime_msg["Date"] = formatdate(localtime=True)
    mime_msg["Message-ID"] = make_msgid()

    # Thread headers for proper email threading
    if message.in_reply_to:
        mime_msg["In-Reply-To"] = message.in_reply_to
    if message.references:
        mime_msg["References"] = " ".join(message.references)

    mime_msg.set_content(message.body)
    return mime_msg


class SmtpClient(MailSender):
    """SMTP client for sending emails.

    Connects lazily for every message so that a long interactive session
    never holds an idle SMTP connection.

    Example:
        >>> settings = SmtpSettings(host="smtp.gmail.com", ...)
        >>> SmtpClient(settings).send(OutgoingMessage(to="user@example.com", ...))
    """

    def __init__(self, settings: SmtpSettings) -> None:
        """Initialize SMTP client with configuration.

        Args:
            settings: SMTP configuration settings
        """
        self._settings = settings

    @property
    def from_address(self) -> str:
        """Return the ``From`` header value for outgoing mail."""
        username = self._settings.username or ""
        if self._settings.from_name:
            return f"{self._settings.from_name} <{username}>"
        return username

    def send(self, message: OutgoingMessage) -> None:
        """Send an email message.

        Args:
            message: The email message to send

        Raises:
            SmtpError: If connecting, authenticating or sending fails
        """
        LOGGER.info("Preparing to send email to %s: %s", message.to, message.subject)
        mime_message = build_mime_message(message, self.from_address)
        LOGGER.debug("Email headers: %s", dict(mime_message.items()))

        try:
            with self._connect() as connection:
                refused = connection.send_message(mime_message)
        except smtplib.SMTPAuthenticationError as exc:
            LOGGER.error("SMTP authentication failed: %s", exc)
            raise SmtpError(f"SMTP authentication failed: {exc}") from exc
        except smtplib.SMTPRecipientsRefused as exc:
            LOGGER.error("All recipients refused: %s", exc)
            raise SmtpError(f"All recipients refused: {exc}") from exc
        except smtplib.SMTPException as exc:
            LOGGER.error("Failed to send email: %s", exc)
            raise SmtpError(f"Failed to send email: {exc}") from exc
        except OSError as exc:
            LOGGER.error("Network error connecting to SMTP server: %s", exc)
            raise SmtpError(f"Network error: {exc}") from exc

        if refused:
            LOGGER.warning("Some recipients were refused: %s", refused)
            raise SmtpError(f"Some recipients were refused: {refused}")
        LOGGER.info("Email sent successfully to %s: %s", message.to, message.subject)

    def _connect(self) -> smtplib.SMTP:
        if not self._settings.host:
            raise SmtpError("SMTP host not configured")

        LOGGER.debug(
            "Attempting SMTP connection to %s:%d",
            self._settings.host,
            self._settings.port,
        )
        connection: smtplib.SMTP
        if self._settings.use_tls:
            connection = smtplib.SMTP(self._settings.host, self._settings.port, timeout=30)
            connection.starttls()
        else:
            connection = smtplib.SMTP_SSL(
                self._settings.host, self._settings.port, timeout=30
            )

        username = self._settings.username
        if username and self._settings.access_token:
            auth_string = build_xoauth2_string(username, self._settings.access_token)
            connection.ehlo()
            connection.auth("XOAUTH2", lambda challenge=None: auth_string)
        elif username and self._settings.password:
            connection.login(username, self._settings.password)
        return connection


__all__ = ["SmtpClient", "SmtpError", "build_mime_message"]
