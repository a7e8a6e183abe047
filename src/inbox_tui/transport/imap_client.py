"""IMAP transport adapter providing mailbox access."""

from __future__ import annotations

import imaplib
import logging
import re
import time
from collections.abc import Sequence
from types import TracebackType

from ..core.config import ImapSettings
from ..core.interfaces import MailboxProvider
from ..core.models import Folder, MessageChunk, OutgoingMessage
from ..core.threads import HeaderMatch, ThreadQuery, iter_predicates
from .oauth import build_xoauth2_string
from .smtp_client import build_mime_message

LOGGER = logging.getLogger(__name__)

_FETCH_ITEMS = "(UID FLAGS BODY.PEEK[])"
_IMPORTANT_CRITERIA = 'X-GM-RAW "is:important"'
_UID_PATTERN = re.compile(rb"UID (\d+)")
_FLAGS_PATTERN = re.compile(rb"FLAGS \(([^)]*)\)")


class ImapError(RuntimeError):
    """Wrap low level IMAP errors with additional context."""


class ImapClient(MailboxProvider):
    """Thin wrapper around ``imaplib`` offering typed mailbox operations."""

    def __init__(self, settings: ImapSettings) -> None:
        """Initialise the client with configuration settings."""
        self._settings = settings
        self._connection: imaplib.IMAP4 | imaplib.IMAP4_SSL | None = None

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> ImapClient:
        """Connect on entering a context manager scope."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure resources are released on context exit."""
        self.close()

    # Public API ---------------------------------------------------------------
    def connect(self) -> None:
        """Establish the IMAP connection and authenticate."""
        if self._connection is not None:
            return

        username = self._settings.username
        if username is None:
            raise ImapError("IMAP username is not configured")
        if self._settings.access_token is None and self._settings.app_password is None:
            raise ImapError("IMAP credentials are not configured")

        try:
            if self._settings.use_ssl:
                LOGGER.debug(
                    "Connecting to IMAP host %s:%s via SSL",
                    self._settings.host,
                    self._settings.port,
                )
                connection: imaplib.IMAP4 | imaplib.IMAP4_SSL = imaplib.IMAP4_SSL(
                    self._settings.host, self._settings.port
                )
            else:
                LOGGER.debug(
                    "Connecting to IMAP host %s:%s without SSL",
                    self._settings.host,
                    self._settings.port,
                )
                connection = imaplib.IMAP4(self._settings.host, self._settings.port)

            if self._settings.access_token is not None:
                LOGGER.debug("Authenticating as %s via XOAUTH2", username)
                auth_string = build_xoauth2_string(username, self._settings.access_token)
                connection.authenticate("XOAUTH2", lambda _: auth_string.encode())
            else:
                LOGGER.debug("Authenticating as %s", username)
                connection.login(username, self._settings.app_password or "")
            self._connection = connection
        except (imaplib.IMAP4.error, OSError) as exc:  # pragma: no cover - network dependent
            raise ImapError("Failed to connect to IMAP server") from exc

    def fetch_recent(self, folder: Folder, limit: int) -> list[MessageChunk]:
        """Return the newest ``limit`` messages of ``folder``, newest first."""
        connection = self._select(folder)
        try:
            status, data = connection.uid("SEARCH", None, "ALL")  # type: ignore[arg-type]
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError(f"IMAP error while listing {folder.display_name}") from exc
        if status != "OK":
            raise ImapError(f"Failed to list messages in {folder.display_name}")

        raw_ids = data[0].split() if data and data[0] else []
        if not raw_ids:
            LOGGER.debug("Folder %s is empty", folder.display_name)
            return []

        uids = [int(raw) for raw in raw_ids[-limit:]]
        chunks = self._fetch_chunks(uids)
        chunks.sort(key=lambda chunk: chunk.uid, reverse=True)
        return chunks

    def find_uid(self, folder: Folder, message_id: str) -> int | None:
        """Return the UID ``message_id`` currently has in ``folder``."""
        connection = self._select(folder)
        criteria = render_search_criteria(HeaderMatch(message_id))
        try:
            status, data = connection.uid("SEARCH", None, criteria)  # type: ignore[arg-type]
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError(f"IMAP error while looking up {message_id}") from exc
        if status != "OK":
            raise ImapError(f"Failed to look up {message_id}")
        raw_ids = data[0].split() if data and data[0] else []
        if not raw_ids:
            return None
        return int(raw_ids[-1])

    def search_thread(self, query: ThreadQuery) -> list[MessageChunk]:
        """Run a thread query against the archive, which holds every message."""
        connection = self._select(Folder.ARCHIVE)
        criteria = render_search_criteria(query)
        LOGGER.debug("Searching thread with criteria %s", criteria)
        try:
            status, data = connection.uid("SEARCH", None, criteria)  # type: ignore[arg-type]
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError("IMAP error while searching for thread") from exc
        if status != "OK":
            raise ImapError("Failed to search for thread messages")
        raw_ids = data[0].split() if data and data[0] else []
        return self._fetch_chunks([int(raw) for raw in raw_ids])

    def mark_as_read(self, folder: Folder, uid: int) -> None:
        """Add the ``\\Seen`` flag to a message."""
        self._store_flags(folder, uid, "+FLAGS", r"(\Seen)")

    def archive(self, folder: Folder, uid: int) -> None:
        """Move a message to the archive folder."""
        self.move(uid, folder, Folder.ARCHIVE)

    def delete(self, folder: Folder, uid: int) -> None:
        """Delete a message by UID and expunge it from the mailbox."""
        connection = self._select(folder)
        uid_str = str(uid)
        LOGGER.debug("Marking UID %s for deletion", uid_str)
        try:
            status, _ = connection.uid(
                "STORE",
                uid_str,
                "+FLAGS.SILENT",
                r"(\Deleted)",
            )
            if status != "OK":
                raise ImapError(f"Failed to mark message UID {uid_str} for deletion")
            LOGGER.debug("Expunging deleted messages")
            status_expunge, _ = connection.expunge()
            if status_expunge != "OK":
                raise ImapError(f"Failed to expunge message UID {uid_str}")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError(f"IMAP error while deleting UID {uid_str}") from exc

    def move(self, uid: int, source: Folder, destination: Folder) -> None:
        """Move a message between folders using the MOVE extension."""
        connection = self._select(source)
        uid_str = str(uid)
        LOGGER.debug(
            "Moving UID %s from '%s' to '%s'",
            uid_str,
            source.mailbox_name,
            destination.mailbox_name,
        )
        try:
            status, _ = connection.uid(
                "MOVE", uid_str, _quote_mailbox(destination.mailbox_name)
            )
            if status != "OK":
                raise ImapError(
                    f"Failed to move message UID {uid_str} to {destination.display_name}"
                )
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError(f"IMAP error while moving UID {uid_str}") from exc

    def save_draft(self, message: OutgoingMessage, sender: str) -> None:
        """Append ``message`` to the drafts folder with the ``\\Draft`` flag."""
        connection = self._require_connection()
        payload = build_mime_message(message, sender).as_bytes()
        try:
            status, _ = connection.append(
                _quote_mailbox(Folder.DRAFTS.mailbox_name),
                r"(\Draft)",
                imaplib.Time2Internaldate(time.time()),
                payload,
            )
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError("IMAP error while saving draft") from exc
        if status != "OK":
            raise ImapError("Failed to save draft")

    def close(self) -> None:
        """Terminate the IMAP session cleanly."""
        if self._connection is None:
            return
        try:
            LOGGER.debug("Closing IMAP connection")
            self._connection.close()
        except (imaplib.IMAP4.error, OSError):  # pragma: no cover
            LOGGER.debug("IMAP close raised; continuing with logout")
        finally:
            try:
                self._connection.logout()
            except (imaplib.IMAP4.error, OSError):  # pragma: no cover
                LOGGER.debug("IMAP logout raised; suppressing during shutdown")
            self._connection = None

    # Internal helpers ---------------------------------------------------------
    def _require_connection(self) -> imaplib.IMAP4 | imaplib.IMAP4_SSL:
        if self._connection is None:
            raise ImapError("IMAP connection has not been established")
        return self._connection

    def _select(self, folder: Folder) -> imaplib.IMAP4 | imaplib.IMAP4_SSL:
        connection = self._require_connection()
        try:
            status, _ = connection.select(_quote_mailbox(folder.mailbox_name))
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError(f"Unable to select mailbox '{folder.mailbox_name}'") from exc
        if status != "OK":
            raise ImapError(f"Unable to select mailbox '{folder.mailbox_name}'")
        return connection

    def _store_flags(self, folder: Folder, uid: int, mode: str, flags: str) -> None:
        connection = self._select(folder)
        try:
            status, _ = connection.uid("STORE", str(uid), mode, flags)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError(f"IMAP error while flagging UID {uid}") from exc
        if status != "OK":
            raise ImapError(f"Failed to update flags for UID {uid}")

    def _important_uids(self) -> set[int]:
        connection = self._require_connection()
        try:
            status, data = connection.uid("SEARCH", None, _IMPORTANT_CRITERIA)  # type: ignore[arg-type]
        except (imaplib.IMAP4.abort, OSError) as exc:
            raise ImapError("IMAP connection lost during search") from exc
        except imaplib.IMAP4.error:
            LOGGER.debug("Server does not support Gmail importance search")
            return set()
        if status != "OK" or not data or not data[0]:
            return set()
        return {int(raw) for raw in data[0].split()}

    def _fetch_chunks(self, uids: Sequence[int]) -> list[MessageChunk]:
        if not uids:
            return []
        connection = self._require_connection()
        important = self._important_uids()
        uid_list = ",".join(str(uid) for uid in uids)
        LOGGER.debug("Fetching %d message(s)", len(uids))
        try:
            status, fetch_data = connection.uid("FETCH", uid_list, _FETCH_ITEMS)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError(f"IMAP error while fetching messages {uid_list}") from exc
        if status != "OK":
            raise ImapError(f"Failed to fetch messages {uid_list}")
        chunks = _parse_fetch_response(fetch_data)
        for chunk in chunks:
            chunk.important = chunk.uid in important
        return chunks


def render_search_criteria(query: ThreadQuery) -> str:
    """Render a thread query as IMAP SEARCH criteria.

    ``OR a OR b c`` for three ids; the chain is walked iteratively.
    """
    predicates = list(iter_predicates(query))
    parts = [
        f'HEADER {predicate.header} "{_escape(predicate.value)}"'
        for predicate in predicates
    ]
    rendered = parts[-1]
    for part in reversed(parts[:-1]):
        rendered = f"OR {part} {rendered}"
    return rendered


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _quote_mailbox(name: str) -> str:
    return f'"{_escape(name)}"'


def _parse_fetch_response(
    fetch_data: list[tuple[bytes, bytes] | bytes],
) -> list[MessageChunk]:
    """Extract UID, flags and RFC822 payloads from ``imaplib`` chunks."""
    chunks: list[MessageChunk] = []
    for entry in fetch_data:
        if not (isinstance(entry, tuple) and len(entry) == 2):
            continue
        header, payload = entry
        uid_match = _UID_PATTERN.search(header)
        if uid_match is None:
            LOGGER.warning("FETCH response without UID: %r", header[:80])
            continue
        flags_match = _FLAGS_PATTERN.search(header)
        flags = tuple(flags_match.group(1).decode().split()) if flags_match else ()
        chunks.append(
            MessageChunk(uid=int(uid_match.group(1)), raw=payload, flags=flags)
        )
    return chunks


__all__ = [
    "ImapClient",
    "ImapError",
    "render_search_criteria",
]
