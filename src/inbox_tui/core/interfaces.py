"""Protocol interfaces for the collaborators driven by the client."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from .models import Folder, Message, MessageChunk, OutgoingMessage, Reminder

if TYPE_CHECKING:
    from .threads import ThreadQuery


class MessageParser(Protocol):
    """Turns raw payloads into :class:`Message` instances."""

    def parse(self, chunk: MessageChunk) -> Message:
        """Parse ``chunk``; raise ``ValueError`` when it is unusable."""
        raise NotImplementedError


class ThreadSource(Protocol):
    """Executes thread queries against the remote mailbox."""

    def search_thread(self, query: ThreadQuery) -> Sequence[MessageChunk]:
        """Return raw payloads of every message matching ``query``."""
        raise NotImplementedError


class MailboxProvider(ThreadSource, Protocol):
    """Abstraction over a remote mailbox such as IMAP."""

    def fetch_recent(self, folder: Folder, limit: int) -> Sequence[MessageChunk]:
        """Return up to ``limit`` of the newest messages in ``folder``."""
        raise NotImplementedError

    def mark_as_read(self, folder: Folder, uid: int) -> None:
        """Set the seen flag on a message."""
        raise NotImplementedError

    def archive(self, folder: Folder, uid: int) -> None:
        """Move a message out of ``folder`` into the archive."""
        raise NotImplementedError

    def delete(self, folder: Folder, uid: int) -> None:
        """Delete a message permanently from ``folder``."""
        raise NotImplementedError

    def move(self, uid: int, source: Folder, destination: Folder) -> None:
        """Move a message between folders."""
        raise NotImplementedError

    def find_uid(self, folder: Folder, message_id: str) -> int | None:
        """Return the UID of the message carrying ``message_id`` in ``folder``."""
        raise NotImplementedError

    def save_draft(self, message: OutgoingMessage, sender: str) -> None:
        """Store ``message`` in the drafts folder."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any network resources."""
        raise NotImplementedError


class MailSender(Protocol):
    """Delivers outgoing messages."""

    def send(self, message: OutgoingMessage) -> None:
        """Send ``message`` or raise on failure."""
        raise NotImplementedError


class ReminderRepository(Protocol):
    """Persists the flat list of reminders."""

    def load_reminders(self) -> list[Reminder]:
        """Return every stored reminder."""
        raise NotImplementedError

    def save_reminders(self, reminders: Sequence[Reminder]) -> None:
        """Replace the stored reminders with ``reminders``."""
        raise NotImplementedError


__all__ = [
    "MailSender",
    "MailboxProvider",
    "MessageParser",
    "ReminderRepository",
    "ThreadSource",
]
