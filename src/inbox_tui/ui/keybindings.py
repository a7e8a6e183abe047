"""Per-view key handlers driving the application state machine."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.models import Folder
from ..core.reminders import DurationError, parse_duration
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
from .commands import FOLDER_COMMANDS, CommandState
from .compose import EditMode, EditorResult, handle_insert_key, handle_normal_key
from .keys import Key, KeyEvent
from .state import AppState, View

LOGGER = logging.getLogger(__name__)

GOTO_FOLDERS = {
    "i": Folder.INBOX,
    "t": Folder.SENT,
    "d": Folder.DRAFTS,
    "e": Folder.TRASH,
    "a": Folder.ARCHIVE,
}

Handler = Callable[[AppState, KeyEvent, int], Action | None]


def handle_key_event(
    state: AppState, event: KeyEvent, view_height: int = 20
) -> Action | None:
    """Route ``event`` to the handler of the active view.

    The notification banner is cleared before any handler runs.
    """
    state.clear_notification()
    handler = _HANDLERS[state.view]
    action = handler(state, event, view_height)
    if action is not None:
        LOGGER.debug("Key %r in %s requested %r", event.key, state.view.value, action)
    return action


def _change_folder(state: AppState, folder: Folder) -> ChangeFolder:
    state.messages.clear_search_filter()
    return ChangeFolder(folder)


# Inbox ---------------------------------------------------------------------


def _handle_pending(state: AppState, event: KeyEvent) -> Action | None:
    state.pending_command = None
    if event.key is Key.ESC or event.char is None:
        return None
    if event.char == "g":
        state.messages.select_first()
        return None
    folder = GOTO_FOLDERS.get(event.char)
    if folder is not None:
        return _change_folder(state, folder)
    return None


# pylint: disable=too-many-return-statements,too-many-branches
def _handle_inbox(state: AppState, event: KeyEvent, _view_height: int) -> Action | None:
    if state.pending_command is not None:
        return _handle_pending(state, event)

    if event.ctrl:
        return None
    messages = state.messages
    key = event.key

    if key == "q":
        state.should_quit = True
    elif key in ("j", Key.DOWN):
        messages.select_next()
    elif key in ("k", Key.UP):
        messages.select_previous()
    elif key == "J":
        messages.select_next_with_selection()
    elif key == "K":
        messages.select_previous_with_selection()
    elif key == "G":
        messages.select_last()
    elif key == "g":
        state.pending_command = "g"
    elif key in (Key.ENTER, "l"):
        opened = state.open_selected()
        if opened is not None:
            return MarkAsRead(opened.uid)
    elif key == "c":
        state.start_compose()
    elif key == "e":
        if messages.action_targets():
            return ArchiveEmail()
    elif key == "d":
        if messages.action_targets():
            return DeleteEmail()
    elif key == "s":
        state.toggle_star()
    elif key == "x":
        messages.toggle_selection()
    elif key is Key.ESC:
        if messages.multi_selected:
            messages.clear_selection()
        elif messages.search.active:
            messages.clear_search_filter()
    elif key == "h":
        state.open_remind()
    elif key == "I":
        current = messages.cycle_importance_filter()
        state.notify(f"Showing: {current.value}")
    elif key == "R":
        return Refresh()
    elif key == "/":
        state.open_search()
    elif key == ":":
        state.open_command()
    elif key == "?":
        state.open_help()
    return None


# Email view ----------------------------------------------------------------


# pylint: disable=too-many-return-statements,too-many-branches
def _handle_email_view(
    state: AppState, event: KeyEvent, view_height: int
) -> Action | None:
    half_page = max(1, view_height // 2)
    if event.ctrl:
        if event.is_ctrl("d"):
            state.scroll_by(half_page)
        elif event.is_ctrl("u"):
            state.scroll_by(-half_page)
        elif event.is_ctrl("e"):
            state.scroll_by(1)
        elif event.is_ctrl("y"):
            state.scroll_by(-1)
        return None

    key = event.key
    if key in ("j", Key.DOWN, "k", Key.UP):
        shown = state.show_adjacent(forward=key in ("j", Key.DOWN))
        if shown is not None:
            return MarkAsRead(shown.uid)
    elif key in (" ", Key.PAGE_DOWN):
        state.scroll_by(half_page)
    elif key is Key.PAGE_UP:
        state.scroll_by(-half_page)
    elif key in ("r", "a"):
        if state.start_reply(reply_all=key == "a"):
            return FetchThread()
    elif key == "f":
        state.start_forward()
    elif key == "e":
        if state.selected_message() is not None:
            return EditDraft() if state.folder is Folder.DRAFTS else ArchiveEmail()
    elif key == "d":
        if state.selected_message() is not None:
            return DeleteEmail()
    elif key == "s":
        state.toggle_star()
    elif key in ("q", Key.ESC, Key.LEFT):
        state.close_message()
    elif key == "?":
        state.open_help()
    return None


# Compose -------------------------------------------------------------------


def _handle_compose(state: AppState, event: KeyEvent, _view_height: int) -> Action | None:
    compose = state.compose
    if event.is_ctrl("s"):
        if not compose.to.strip():
            state.notify_error("Add at least one recipient before sending")
            return None
        return SendEmail()

    if compose.edit_mode is EditMode.INSERT:
        handle_insert_key(compose, event)
        return None

    if handle_normal_key(compose, event) is EditorResult.EXIT_REQUESTED:
        if compose.has_content():
            return SaveDraft()
        state.discard_compose()
    return None


# Search --------------------------------------------------------------------


def _handle_search(state: AppState, event: KeyEvent, _view_height: int) -> Action | None:
    messages = state.messages
    search = messages.search
    key = event.key
    if key is Key.ESC:
        messages.cancel_search()
        state.set_view(View.INBOX)
    elif key is Key.ENTER:
        if messages.accept_search():
            state.set_view(View.INBOX)
    elif key in (Key.DOWN, Key.TAB) or event.is_ctrl("n"):
        messages.search_next()
    elif key in (Key.UP, Key.BACKTAB) or event.is_ctrl("p"):
        messages.search_previous()
    elif key is Key.BACKSPACE:
        messages.set_query(search.query[:-1])
    elif event.char is not None:
        messages.set_query(search.query + event.char)
    return None


# Command palette -----------------------------------------------------------


def _execute_command(state: AppState, command: str) -> Action | None:
    if command in ("quit", "q"):
        state.should_quit = True
        return None
    if command in ("refresh", "r"):
        return Refresh()
    if command == "help":
        state.open_help()
        return None
    folder = FOLDER_COMMANDS.get(command)
    if folder is not None:
        return _change_folder(state, folder)
    state.notify_error(f"Unknown command: {command}")
    return None


def _handle_command(state: AppState, event: KeyEvent, _view_height: int) -> Action | None:
    palette = state.command
    key = event.key
    if key is Key.ESC:
        state.set_view(View.INBOX)
    elif key is Key.ENTER:
        command = palette.resolve()
        state.set_view(View.INBOX)
        state.command = CommandState()
        return _execute_command(state, command)
    elif key in (Key.TAB, Key.DOWN):
        palette.select_next()
    elif key in (Key.BACKTAB, Key.UP):
        palette.select_previous()
    elif key is Key.BACKSPACE:
        palette.pop()
    elif event.char is not None:
        palette.push(event.char)
    return None


# Help and remind -----------------------------------------------------------


def _handle_help(state: AppState, event: KeyEvent, _view_height: int) -> Action | None:
    if event.key in (Key.ESC, "q", "?", Key.ENTER):
        state.close_help()
    return None


def _handle_remind(state: AppState, event: KeyEvent, _view_height: int) -> Action | None:
    remind = state.remind
    key = event.key
    if key is Key.ESC:
        state.set_view(View.INBOX)
    elif key is Key.ENTER:
        duration_text = remind.input.strip()
        try:
            parse_duration(duration_text)
        except DurationError as exc:
            state.notify_error(str(exc))
            return None
        state.set_view(View.INBOX)
        if remind.uid is None:
            return None
        return RemindEmail(remind.uid, duration_text)
    elif key is Key.BACKSPACE:
        remind.backspace()
    elif key is Key.LEFT:
        remind.move_left()
    elif key is Key.RIGHT:
        remind.move_right()
    elif event.char is not None:
        remind.insert(event.char)
    return None


_HANDLERS: dict[View, Handler] = {
    View.INBOX: _handle_inbox,
    View.EMAIL_VIEW: _handle_email_view,
    View.COMPOSE: _handle_compose,
    View.SEARCH: _handle_search,
    View.COMMAND: _handle_command,
    View.HELP: _handle_help,
    View.REMIND: _handle_remind,
}


__all__ = ["GOTO_FOLDERS", "handle_key_event"]
