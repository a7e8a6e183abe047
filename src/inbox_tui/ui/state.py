"""Application state shared by the key handlers, renderer and session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..core.models import Folder, Message
from . import text
from .commands import CommandState
from .compose import ComposeState
from .listing import MessageList

LOGGER = logging.getLogger(__name__)


class View(Enum):
    INBOX = "inbox"
    EMAIL_VIEW = "email_view"
    COMPOSE = "compose"
    SEARCH = "search"
    COMMAND = "command"
    HELP = "help"
    REMIND = "remind"


@dataclass(slots=True)
class Notification:
    message: str
    is_error: bool = False


@dataclass(slots=True)
class RemindState:
    """Single-line duration input for snoozing one message."""

    uid: int | None = None
    input: str = ""
    cursor: int = 0

    def insert(self, char: str) -> None:
        self.input, self.cursor = text.insert(self.input, self.cursor, char)

    def backspace(self) -> None:
        self.input, self.cursor = text.delete_before(self.input, self.cursor)

    def move_left(self) -> None:
        self.cursor = text.move_left(self.input, self.cursor)

    def move_right(self) -> None:
        self.cursor = text.move_right(self.input, self.cursor)


# pylint: disable=too-many-instance-attributes
class AppState:
    """Everything the interactive client knows between two key presses.

    Per-view state (compose buffers, search query, palette input, remind
    input) stays allocated while other views are active; each view resets
    its own state when it is entered.
    """

    def __init__(
        self,
        messages: list[Message] | None = None,
        *,
        folder: Folder = Folder.INBOX,
        account_address: str | None = None,
    ) -> None:
        self.view = View.INBOX
        self.previous_view = View.INBOX
        self.folder = folder
        self.account_address = account_address
        self.messages = MessageList(messages or ())
        self.compose = ComposeState()
        self.command = CommandState()
        self.remind = RemindState()
        self.reply_source: Message | None = None
        self.notification: Notification | None = None
        self.pending_command: str | None = None
        self.scroll_offset = 0
        self.should_quit = False

    # Views -----------------------------------------------------------------
    def set_view(self, view: View) -> None:
        if view is not self.view:
            LOGGER.debug("View %s -> %s", self.view.value, view.value)
        self.view = view

    def selected_message(self) -> Message | None:
        return self.messages.selected_message()

    def open_selected(self) -> Message | None:
        """Show the highlighted message; return it when it was unread.

        The read flag is flipped locally straight away so the next paint does
        not wait for the server.
        """
        message = self.selected_message()
        if message is None:
            return None
        self.set_view(View.EMAIL_VIEW)
        self.scroll_offset = 0
        return self._mark_seen(message)

    def show_adjacent(self, *, forward: bool) -> Message | None:
        """Move to the next or previous visible message while reading."""
        current = self.selected_message()
        if forward:
            self.messages.select_next()
        else:
            self.messages.select_previous()
        self.scroll_offset = 0
        message = self.selected_message()
        if message is None or message is current:
            return None
        return self._mark_seen(message)

    @staticmethod
    def _mark_seen(message: Message) -> Message | None:
        if message.seen:
            return None
        message.seen = True
        return message

    def close_message(self) -> None:
        self.set_view(View.INBOX)
        self.scroll_offset = 0

    def scroll_by(self, lines: int) -> None:
        self.scroll_offset = max(0, self.scroll_offset + lines)

    def open_help(self) -> None:
        if self.view is not View.HELP:
            self.previous_view = self.view
        self.set_view(View.HELP)

    def close_help(self) -> None:
        self.set_view(self.previous_view)

    def open_search(self) -> None:
        self.messages.start_search()
        self.set_view(View.SEARCH)

    def open_command(self) -> None:
        self.command = CommandState()
        self.set_view(View.COMMAND)

    def open_remind(self) -> bool:
        message = self.selected_message()
        if message is None:
            return False
        self.remind = RemindState(uid=message.uid)
        self.set_view(View.REMIND)
        return True

    # Compose ---------------------------------------------------------------
    def start_compose(self) -> None:
        self.compose = ComposeState()
        self.reply_source = None
        self.set_view(View.COMPOSE)

    def start_reply(self, *, reply_all: bool) -> bool:
        message = self.selected_message()
        if message is None:
            return False
        self.compose = ComposeState.reply_to(
            message, reply_all=reply_all, own_address=self.account_address
        )
        self.reply_source = message
        self.set_view(View.COMPOSE)
        return True

    def start_forward(self) -> bool:
        message = self.selected_message()
        if message is None:
            return False
        self.compose = ComposeState.forward(message)
        self.reply_source = None
        self.set_view(View.COMPOSE)
        return True

    def start_draft_edit(self, message: Message) -> None:
        self.compose = ComposeState.from_draft(message)
        self.reply_source = None
        self.set_view(View.COMPOSE)

    def discard_compose(self) -> None:
        self.compose = ComposeState()
        self.reply_source = None
        self.set_view(View.INBOX)

    # Flags -------------------------------------------------------------------
    def toggle_star(self) -> None:
        message = self.selected_message()
        if message is not None:
            message.starred = not message.starred

    # Notifications -----------------------------------------------------------
    def notify(self, message: str) -> None:
        self.notification = Notification(message)

    def notify_error(self, message: str) -> None:
        LOGGER.error("%s", message)
        self.notification = Notification(message, is_error=True)

    def clear_notification(self) -> None:
        self.notification = None


__all__ = ["AppState", "Notification", "RemindState", "View"]
