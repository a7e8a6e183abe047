"""Transport adapters for external mailbox providers."""

from .imap_client import ImapClient, ImapError, render_search_criteria
from .smtp_client import SmtpClient, SmtpError, build_mime_message

__all__ = [
    "ImapClient",
    "ImapError",
    "SmtpClient",
    "SmtpError",
    "build_mime_message",
    "render_search_criteria",
]
