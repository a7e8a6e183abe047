"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Folder(Enum):
    """Mailbox folders reachable from the client."""

    INBOX = "inbox"
    SENT = "sent"
    DRAFTS = "drafts"
    TRASH = "trash"
    ARCHIVE = "archive"

    @property
    def mailbox_name(self) -> str:
        """Return the protocol-level mailbox name."""
        return _MAILBOX_NAMES[self]

    @property
    def display_name(self) -> str:
        """Return the human readable folder label."""
        return self.value.capitalize()

    @property
    def icon(self) -> str:
        """Return the glyph shown next to the folder name."""
        return _FOLDER_ICONS[self]


_MAILBOX_NAMES = {
    Folder.INBOX: "INBOX",
    Folder.SENT: "[Gmail]/Sent Mail",
    Folder.DRAFTS: "[Gmail]/Drafts",
    Folder.TRASH: "[Gmail]/Trash",
    Folder.ARCHIVE: "[Gmail]/All Mail",
}

_FOLDER_ICONS = {
    Folder.INBOX: "\U000f01f0",
    Folder.SENT: "\U000f044a",
    Folder.DRAFTS: "\U000f0ee3",
    Folder.TRASH: "\U000f01b4",
    Folder.ARCHIVE: "\U000f003c",
}


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class Message:
    """Normalized message as displayed by the client."""

    uid: int
    subject: str
    sender: str
    sender_address: str
    date: datetime | None
    body: str
    seen: bool = False
    important: bool = False
    message_id: str | None = None
    in_reply_to: str | None = None
    references: tuple[str, ...] = ()
    to: tuple[str, ...] = ()
    cc: tuple[str, ...] = ()
    starred: bool = False


@dataclass(slots=True)
class MessageChunk:
    """Raw RFC822 payload paired with its UID and flag state."""

    uid: int
    raw: bytes
    flags: tuple[str, ...] = ()
    important: bool = False


@dataclass(slots=True)
class OutgoingMessage:
    """Message composed locally, ready to send or store as a draft."""

    to: str
    subject: str
    body: str
    cc: str = ""
    in_reply_to: str | None = None
    references: tuple[str, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class QuotedMessage:
    """Prior message shown beneath a reply."""

    sender: str
    date: datetime | None
    body: str


@dataclass(slots=True)
class Reminder:
    """Snoozed message and the moment it should resurface.

    ``uid`` is only meaningful in the folder the message was snoozed from;
    ``message_id`` locates it again after it has been archived.
    """

    uid: int
    return_time: datetime
    message_id: str | None = None


__all__ = [
    "Folder",
    "Message",
    "MessageChunk",
    "OutgoingMessage",
    "QuotedMessage",
    "Reminder",
]
