"""Utilities for parsing raw RFC822 messages into client messages."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from email import policy
from email.errors import HeaderParseError
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses, parsedate_to_datetime

from bs4 import BeautifulSoup

from ..core.datetime_utils import ensure_utc
from ..core.interfaces import MessageParser
from ..core.models import Message, MessageChunk

LOGGER = logging.getLogger(__name__)

NO_SUBJECT = "(No Subject)"
UNKNOWN_SENDER = "(Unknown)"
SEEN_FLAG = "\\Seen"


class MessageParseError(ValueError):
    """Raised when a payload cannot be turned into a message."""


class EmailParser(MessageParser):
    """Convert raw email payloads into :class:`Message` instances."""

    def __init__(self) -> None:
        """Prepare internal parser instance."""
        self._parser = BytesParser(policy=policy.default)

    def parse(self, chunk: MessageChunk) -> Message:
        """Parse ``chunk`` into a :class:`Message`."""
        if not chunk.raw:
            raise MessageParseError(f"Empty payload for UID {chunk.uid}")
        try:
            message = self._parser.parsebytes(chunk.raw)
            subject = _clean_header(message.get("Subject")) or NO_SUBJECT
            sender, sender_address = _parse_sender(message.get("From"))
            to_recipients = tuple(_extract_addresses(message.get_all("To", [])))
            cc_recipients = tuple(_extract_addresses(message.get_all("Cc", [])))
            message_id = _first_token(message.get("Message-ID"))
            in_reply_to = _first_token(message.get("In-Reply-To"))
            references = tuple(str(message.get("References") or "").split())
        except (HeaderParseError, IndexError, TypeError) as exc:
            raise MessageParseError(f"Malformed headers for UID {chunk.uid}") from exc

        return Message(
            uid=chunk.uid,
            subject=subject,
            sender=sender,
            sender_address=sender_address,
            date=_try_parse_datetime(message.get("Date")),
            body=_extract_body(message),
            seen=SEEN_FLAG in chunk.flags,
            important=chunk.important,
            message_id=message_id,
            in_reply_to=in_reply_to,
            references=references,
            to=to_recipients,
            cc=cc_recipients,
        )

    def parse_many(self, chunks: Iterable[MessageChunk]) -> list[Message]:
        """Parse every chunk, skipping those that fail."""
        messages: list[Message] = []
        for chunk in chunks:
            try:
                messages.append(self.parse(chunk))
            except MessageParseError as exc:
                LOGGER.warning("Skipping unparsable message: %s", exc)
        return messages


def html_to_text(html: str) -> str:
    """Render an HTML body as plain text."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style", "head"]):
        element.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    text = soup.get_text("\n")
    lines = [line.strip() for line in text.splitlines()]
    collapsed: list[str] = []
    for line in lines:
        if not line and collapsed and not collapsed[-1]:
            continue
        collapsed.append(line)
    return "\n".join(collapsed).strip()


def _clean_header(value: object) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def _first_token(value: object) -> str | None:
    tokens = str(value or "").split()
    return tokens[0] if tokens else None


def _extract_addresses(headers: Iterable[str]) -> Iterable[str]:
    for _, email_address in getaddresses([str(header) for header in headers]):
        if email_address:
            yield email_address


def _parse_sender(header_value: object) -> tuple[str, str]:
    if header_value is None:
        return UNKNOWN_SENDER, ""
    pairs = getaddresses([str(header_value)])
    if not pairs:
        return UNKNOWN_SENDER, ""
    name, address = pairs[0]
    return (name or address or UNKNOWN_SENDER), address


def _extract_body(message: EmailMessage) -> str:
    plain_chunks: list[str] = []
    html_chunks: list[str] = []

    for part in message.walk():
        if part.is_multipart():
            continue
        if part.get_content_disposition() == "attachment":
            continue
        content_type = part.get_content_type()
        try:
            content_obj = part.get_content()
        except (LookupError, ValueError):
            continue
        if not isinstance(content_obj, str):
            continue
        content = content_obj.strip()
        if content_type == "text/plain":
            plain_chunks.append(content)
        elif content_type == "text/html":
            html_chunks.append(content)

    if plain_chunks:
        return "\n\n".join(chunk for chunk in plain_chunks if chunk)
    if html_chunks:
        return html_to_text("\n".join(html_chunks))
    return ""


def _try_parse_datetime(header_value: str | None) -> datetime | None:
    if header_value is None:
        return None
    try:
        return ensure_utc(parsedate_to_datetime(str(header_value)))
    except (TypeError, ValueError, OverflowError):
        return None


__all__ = ["EmailParser", "MessageParseError", "html_to_text"]
