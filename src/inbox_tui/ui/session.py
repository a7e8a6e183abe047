"""Driver that executes actions requested by the key handlers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from ..core.datetime_utils import display_datetime, utc_now
from ..core.interfaces import MailboxProvider, MailSender, ReminderRepository
from ..core.models import Folder, Message, Reminder
from ..core.reminders import Clock, DurationError, ReminderSchedule
from ..core.threads import reconstruct_thread
from ..ingestion.parser import EmailParser
from ..storage.sqlite import ReminderStoreError
from ..transport.imap_client import ImapError
from ..transport.smtp_client import SmtpError
from .actions import (
    Action,
    ArchiveEmail,
    ChangeFolder,
    DeleteEmail,
    EditDraft,
    FetchThread,
    MarkAsRead,
    Refresh,
    RemindEmail,
    SaveDraft,
    SendEmail,
)
from .keybindings import handle_key_event
from .keys import KeyEvent
from .listing import MessageList
from .state import AppState, View

LOGGER = logging.getLogger(__name__)


class MailSession:
    """Run actions against the mailbox, SMTP sender and reminder store.

    Every blocking call happens here, between two paints. Failures become
    error notifications and the session carries on with the data it has.
    """

    def __init__(
        self,
        state: AppState,
        mailbox: MailboxProvider,
        sender: MailSender,
        reminder_store: ReminderRepository,
        *,
        from_address: str = "",
        parser: EmailParser | None = None,
        page_size: int = 50,
        clock: Clock = utc_now,
        progress_callback: Callable[[], None] | None = None,
    ) -> None:
        # pylint: disable=too-many-arguments
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.state = state
        self._mailbox = mailbox
        self._sender = sender
        self._reminder_store = reminder_store
        self._from_address = from_address
        self._parser = parser or EmailParser()
        self._page_size = page_size
        self.progress_callback = progress_callback
        self.schedule = ReminderSchedule(reminder_store.load_reminders(), clock=clock)
        self._handlers: dict[type, Callable[[Any], None]] = {
            Refresh: self._refresh,
            ChangeFolder: self._change_folder,
            MarkAsRead: self._mark_as_read,
            ArchiveEmail: self._archive,
            DeleteEmail: self._delete,
            SendEmail: self._send,
            SaveDraft: self._save_draft,
            EditDraft: self._edit_draft,
            FetchThread: self._fetch_thread,
            RemindEmail: self._remind,
        }

    # Loop entry points -----------------------------------------------------
    def start(self) -> None:
        """Load the initial folder and resurface anything already due."""
        self._load(self.state.folder, replace=True)
        self.check_reminders()

    def handle_key(self, event: KeyEvent, view_height: int = 20) -> None:
        action = handle_key_event(self.state, event, view_height)
        if action is not None:
            self.execute(action)
        self.check_reminders()

    def execute(self, action: Action) -> None:
        LOGGER.debug("Executing %r", action)
        self._handlers[type(action)](action)

    def check_reminders(self) -> list[int]:
        """Move due messages back to the inbox and drop their reminders."""
        due = self.schedule.due()
        if not due:
            return []

        for reminder in due:
            self._resurface(reminder)
            self.schedule.discard(reminder)
        self._persist_reminders()

        if self.state.folder is Folder.INBOX:
            self._load(Folder.INBOX, replace=False)
        count = len(due)
        self.state.notify(f"{count} reminder{'s' if count != 1 else ''} due")
        LOGGER.info("Resurfaced %d reminded message(s)", count)
        return [reminder.uid for reminder in due]

    def _resurface(self, reminder: Reminder) -> None:
        # The stored UID belongs to the folder the message was snoozed from,
        # so the archived copy is located again by its Message-ID.
        if reminder.message_id is None:
            LOGGER.warning("Reminder for UID %s has no Message-ID", reminder.uid)
            return
        try:
            uid = self._mailbox.find_uid(Folder.ARCHIVE, reminder.message_id)
            if uid is None:
                LOGGER.warning("Snoozed message %s is gone", reminder.message_id)
                return
            self._mailbox.move(uid, Folder.ARCHIVE, Folder.INBOX)
        except ImapError as exc:
            LOGGER.warning(
                "Could not return %s to the inbox: %s", reminder.message_id, exc
            )

    # Folder loading ----------------------------------------------------------
    def _load(self, folder: Folder, *, replace: bool) -> bool:
        try:
            chunks = self._mailbox.fetch_recent(folder, self._page_size)
        except ImapError as exc:
            self.state.notify_error(f"Failed to load {folder.display_name}: {exc}")
            return False
        messages = self._parser.parse_many(chunks)
        if replace:
            self.state.messages = MessageList(messages)
        else:
            self.state.messages.set_messages(messages)
        self.state.folder = folder
        LOGGER.info("Loaded %d message(s) from %s", len(messages), folder.display_name)
        return True

    def _progress(self, message: str) -> None:
        self.state.notify(message)
        if self.progress_callback is not None:
            self.progress_callback()

    def _refresh(self, _action: Action | None = None) -> None:
        self._progress("Refreshing...")
        if self._load(self.state.folder, replace=False):
            self.state.notify("Refreshed")

    def _change_folder(self, action: ChangeFolder) -> None:
        self._progress(f"Loading {action.folder.display_name}...")
        if self._load(action.folder, replace=True):
            self.state.set_view(View.INBOX)
            self.state.scroll_offset = 0
            self.state.clear_notification()

    # Message actions -----------------------------------------------------------
    def _mark_as_read(self, action: MarkAsRead) -> None:
        try:
            self._mailbox.mark_as_read(self.state.folder, action.uid)
        except ImapError as exc:
            LOGGER.warning("Could not mark UID %s as read: %s", action.uid, exc)

    def _targets(self) -> list[Message]:
        if self.state.view is View.EMAIL_VIEW:
            message = self.state.selected_message()
            return [message] if message is not None else []
        return self.state.messages.action_targets()

    def _apply_bulk(
        self,
        operation: Callable[[Folder, int], None],
        *,
        progress: str,
        done: str,
        failed: str,
    ) -> None:
        targets = self._targets()
        if not targets:
            return
        self._progress(progress)
        folder = self.state.folder
        succeeded: list[int] = []
        errors: list[str] = []
        for message in targets:
            try:
                operation(folder, message.uid)
            except ImapError as exc:
                errors.append(str(exc))
            else:
                succeeded.append(message.uid)
        self._remove_from_list(succeeded)

        if errors:
            self.state.notify_error(f"{failed}: {errors[0]}")
        else:
            count = len(succeeded)
            self.state.notify(done if count == 1 else f"{done} {count} messages")

    def _remove_from_list(self, uids: Sequence[int]) -> None:
        if not uids:
            return
        self.state.messages.remove_uids(uids)
        if self.state.view is View.EMAIL_VIEW:
            self.state.scroll_offset = 0
            if self.state.selected_message() is None:
                self.state.close_message()

    def _archive(self, _action: Action | None = None) -> None:
        self._apply_bulk(
            self._mailbox.archive,
            progress="Archiving...",
            done="Archived",
            failed="Archive failed",
        )

    def _delete(self, _action: Action | None = None) -> None:
        self._apply_bulk(
            self._mailbox.delete,
            progress="Deleting...",
            done="Deleted",
            failed="Delete failed",
        )

    # Compose actions -----------------------------------------------------------
    def _send(self, _action: Action | None = None) -> None:
        compose = self.state.compose
        if not compose.to.strip():
            self.state.notify_error("Add at least one recipient before sending")
            return
        self._progress("Sending...")
        try:
            self._sender.send(compose.to_outgoing())
        except SmtpError as exc:
            self.state.notify_error(f"Send failed: {exc}")
            return
        self._discard_stale_draft(compose.draft_uid)
        self.state.discard_compose()
        self.state.notify("Message sent")

    def _save_draft(self, _action: Action | None = None) -> None:
        compose = self.state.compose
        self._progress("Saving draft...")
        try:
            self._mailbox.save_draft(compose.to_outgoing(), self._from_address)
        except ImapError as exc:
            self.state.notify_error(f"Could not save draft: {exc}")
            return
        self._discard_stale_draft(compose.draft_uid)
        self.state.discard_compose()
        self.state.notify("Draft saved")

    def _discard_stale_draft(self, draft_uid: int | None) -> None:
        if draft_uid is None:
            return
        try:
            self._mailbox.delete(Folder.DRAFTS, draft_uid)
        except ImapError as exc:
            LOGGER.warning("Could not delete previous draft UID %s: %s", draft_uid, exc)
            return
        if self.state.folder is Folder.DRAFTS:
            self.state.messages.remove_uids([draft_uid])

    def _edit_draft(self, _action: Action | None = None) -> None:
        message = self.state.selected_message()
        if message is None:
            return
        self.state.start_draft_edit(message)

    def _fetch_thread(self, _action: Action | None = None) -> None:
        source = self.state.reply_source
        if source is None:
            return
        self._progress("Loading conversation...")
        try:
            thread = reconstruct_thread(source, self._mailbox, self._parser)
        except ImapError as exc:
            self.state.notify_error(f"Could not load conversation: {exc}")
            return
        self.state.clear_notification()
        if self.state.view is View.COMPOSE and self.state.reply_source is source:
            self.state.compose.set_thread(thread)

    # Reminders -------------------------------------------------------------------
    def _remind(self, action: RemindEmail) -> None:
        index = self.state.messages.index_of(action.uid)
        message = self.state.messages.messages[index] if index is not None else None
        if message is None or not message.message_id:
            self.state.notify_error("Cannot snooze a message without a Message-ID")
            return
        try:
            reminder = self.schedule.snooze(
                action.uid, action.duration_text, message_id=message.message_id
            )
        except DurationError as exc:
            self.state.notify_error(str(exc))
            return
        try:
            self._mailbox.archive(self.state.folder, action.uid)
        except ImapError as exc:
            self.schedule.discard(reminder)
            self.state.notify_error(f"Could not snooze message: {exc}")
            return
        self._persist_reminders()
        self.state.messages.remove_uids([action.uid])
        self.state.notify(f"Reminder set for {display_datetime(reminder.return_time)}")

    def _persist_reminders(self) -> None:
        try:
            self._reminder_store.save_reminders(self.schedule.reminders)
        except ReminderStoreError as exc:
            self.state.notify_error(f"Could not save reminders: {exc}")


__all__ = ["MailSession"]
