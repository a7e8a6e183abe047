"""Pure description of what the terminal should show for an ``AppState``.

``render_screen`` never touches the terminal: it returns rows of styled
spans plus a cursor cell, measured in terminal columns so that wide
(East Asian) characters and combining marks line up.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from enum import Enum

from ..core.datetime_utils import display_datetime, relative_time
from ..core.models import Message
from .commands import describe
from .compose import ComposeField, ComposeState, VimOperator
from .state import AppState, View

SENDER_COLUMN = 22
DATE_COLUMN = 10

HELP_SECTIONS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "Inbox",
        (
            ("j / k", "Next / previous message"),
            ("J / K", "Extend selection down / up"),
            ("gg / G", "First / last message"),
            ("Enter / l", "Open message"),
            ("x", "Toggle selection"),
            ("e / d", "Archive / delete"),
            ("h", "Remind me later"),
            ("s", "Toggle star"),
            ("I", "Cycle importance filter"),
            ("c", "Compose"),
            ("R", "Refresh"),
            ("/", "Search"),
            (":", "Command palette"),
            ("gi gt gd ge ga", "Inbox, Sent, Drafts, Trash, Archive"),
            ("q", "Quit"),
        ),
    ),
    (
        "Reading",
        (
            ("j / k", "Next / previous message"),
            ("Ctrl-d / Ctrl-u", "Scroll half a page"),
            ("Ctrl-e / Ctrl-y", "Scroll one line"),
            ("r / a / f", "Reply / reply all / forward"),
            ("e", "Archive, or edit when in Drafts"),
            ("q / Esc", "Back to the list"),
        ),
    ),
    (
        "Compose",
        (
            ("Ctrl-s", "Send"),
            ("Esc", "Normal mode; again to save draft and leave"),
            ("Tab", "Next field"),
            ("h l w b e 0 $", "Motions"),
            ("dw de dd cw ce cc x", "Edit"),
            ("i a I A o", "Insert"),
        ),
    ),
)


class Style(Enum):
    NORMAL = "normal"
    DIM = "dim"
    BOLD = "bold"
    TITLE = "title"
    HIGHLIGHT = "highlight"
    MARKED = "marked"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Span:
    text: str
    style: Style = Style.NORMAL


@dataclass(slots=True)
class Line:
    spans: list[Span] = field(default_factory=list)

    @classmethod
    def of(cls, text: str, style: Style = Style.NORMAL) -> Line:
        return cls([Span(text, style)])

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


@dataclass(slots=True)
class Popup:
    """A bordered box drawn over the body at ``(top, left)``."""

    title: str
    lines: list[Line]
    top: int
    left: int
    width: int
    height: int


@dataclass(slots=True)
class Screen:
    width: int
    height: int
    title: Line
    body: list[Line]
    status: Line
    popup: Popup | None = None
    cursor: tuple[int, int] | None = None


# Column arithmetic -----------------------------------------------------------


def char_width(char: str) -> int:
    if unicodedata.combining(char) or unicodedata.category(char) in ("Mn", "Me", "Cf"):
        return 0
    if unicodedata.east_asian_width(char) in ("W", "F"):
        return 2
    return 1


def display_width(value: str) -> int:
    return sum(char_width(char) for char in value)


def fit(value: str, width: int) -> str:
    """Truncate ``value`` to ``width`` columns, padding with spaces."""
    if width <= 0:
        return ""
    used = 0
    chars: list[str] = []
    for char in value:
        size = char_width(char)
        if used + size > width:
            break
        chars.append(char)
        used += size
    return "".join(chars) + " " * (width - used)


def wrap(value: str, width: int) -> list[str]:
    """Break ``value`` into rows no wider than ``width`` columns."""
    rows: list[str] = []
    for raw in value.split("\n"):
        current = ""
        used = 0
        for char in raw:
            size = char_width(char)
            if used + size > width > 0 and current:
                rows.append(current)
                current, used = "", 0
            current += char
            used += size
        rows.append(current)
    return rows


def _wrap_segments(value: str, width: int) -> list[tuple[int, str]]:
    """Like ``wrap`` but paired with the character offset each row starts at."""
    segments: list[tuple[int, str]] = []
    offset = 0
    for raw in value.split("\n"):
        start = offset
        used = 0
        for index, char in enumerate(raw):
            size = char_width(char)
            if used + size > width > 0 and offset + index > start:
                segments.append((start, value[start : offset + index]))
                start, used = offset + index, 0
            used += size
        segments.append((start, value[start : offset + len(raw)]))
        offset += len(raw) + 1
    return segments


# Screen assembly -----------------------------------------------------------


def render_screen(state: AppState, width: int, height: int) -> Screen:
    """Describe the whole screen for the current state."""
    body_height = max(1, height - 2)
    screen = Screen(
        width=width,
        height=height,
        title=_title_line(state),
        body=[],
        status=_status_line(state),
    )

    base = state.previous_view if state.view is View.HELP else state.view
    if base is View.EMAIL_VIEW:
        screen.body = _email_body(state, width, body_height)
    elif base is View.COMPOSE:
        screen.body, screen.cursor = _compose_body(state.compose, width, body_height)
    elif base is View.SEARCH:
        screen.body = _search_body(state, width, body_height)
        prompt = f"/{state.messages.search.query}"
        screen.title = Line.of(prompt, Style.TITLE)
        screen.cursor = (0, min(display_width(prompt), width - 1))
    else:
        screen.body = _inbox_body(state, width, body_height)

    if state.view is View.HELP:
        screen.popup = _help_popup(width, body_height)
        screen.cursor = None
    elif state.view is View.COMMAND:
        screen.popup, screen.cursor = _command_popup(state, width, body_height)
    elif state.view is View.REMIND:
        screen.popup, screen.cursor = _remind_popup(state, width, body_height)

    screen.body = [_fit_line(line, width) for line in screen.body[:body_height]]
    return screen


def _fit_line(line: Line, width: int) -> Line:
    spans: list[Span] = []
    remaining = width
    for span in line.spans:
        if remaining <= 0:
            break
        size = display_width(span.text)
        if size > remaining:
            spans.append(Span(fit(span.text, remaining).rstrip(" "), span.style))
            break
        spans.append(span)
        remaining -= size
    return Line(spans)


def _title_line(state: AppState) -> Line:
    folder = state.folder
    return Line(
        [
            Span(f" {folder.icon} {folder.display_name} ", Style.TITLE),
            Span(f" {len(state.messages)} messages", Style.DIM),
        ]
    )


def _status_line(state: AppState) -> Line:
    notification = state.notification
    if notification is not None:
        style = Style.ERROR if notification.is_error else Style.INFO
        return Line.of(notification.message, style)

    parts = [state.view.value.replace("_", " ").upper()]
    messages = state.messages
    if state.view is View.COMPOSE:
        compose = state.compose
        parts.append(f"-- {compose.edit_mode.value.upper()} --")
        pending = _vim_pending(compose)
        if pending:
            parts.append(pending)
    else:
        if state.pending_command:
            parts.append(state.pending_command)
        if messages.multi_selected:
            parts.append(f"{len(messages.multi_selected)} selected")
        if messages.search.active:
            parts.append(f"search: {messages.search.query}")
        if messages.importance_filter.value != "all":
            parts.append(f"filter: {messages.importance_filter.value}")
    return Line.of("  ".join(parts), Style.DIM)


def _vim_pending(compose: ComposeState) -> str:
    vim = compose.vim
    pending = "" if vim.count is None else str(vim.count)
    if vim.operator is VimOperator.DELETE:
        pending += "d"
    elif vim.operator is VimOperator.CHANGE:
        pending += "c"
    return pending


# Inbox -------------------------------------------------------------------------


def _message_row(message: Message, width: int, *, marked: bool) -> list[Span]:
    flags = ("*" if message.starred else " ") + ("+" if marked else " ")
    unread = "" if message.seen else "●"
    sender = fit(f"{unread} {message.sender}".strip(), SENDER_COLUMN)
    date = fit(relative_time(message.date), DATE_COLUMN)
    subject_width = max(0, width - SENDER_COLUMN - DATE_COLUMN - len(flags) - 2)
    subject = fit(message.subject, subject_width)
    return [
        Span(flags),
        Span(sender + " "),
        Span(subject + " "),
        Span(date, Style.DIM),
    ]


def _list_rows(
    state: AppState, indices: list[int], highlighted: int | None, width: int, height: int
) -> list[Line]:
    if not indices:
        return [Line.of("  No messages", Style.DIM)]
    position = indices.index(highlighted) if highlighted in indices else 0
    top = max(0, position - height + 1)
    rows: list[Line] = []
    messages = state.messages
    for index in indices[top : top + height]:
        message = messages.messages[index]
        marked = message.uid in messages.multi_selected
        spans = _message_row(message, width, marked=marked)
        if index == highlighted:
            style = Style.HIGHLIGHT
        elif marked:
            style = Style.MARKED
        elif not message.seen:
            style = Style.BOLD
        else:
            style = Style.NORMAL
        rows.append(
            Line(
                [
                    Span(span.text, style if span.style is Style.NORMAL else span.style)
                    for span in spans
                ]
            )
        )
    return rows


def _inbox_body(state: AppState, width: int, height: int) -> list[Line]:
    messages = state.messages
    return _list_rows(state, messages.visible_indices(), messages.selected, width, height)


def _search_body(state: AppState, width: int, height: int) -> list[Line]:
    search = state.messages.search
    return _list_rows(state, search.results, search.highlighted(), width, height)


# Email view --------------------------------------------------------------------


def _email_lines(message: Message, width: int) -> list[Line]:
    sender = message.sender
    if message.sender_address and message.sender_address != sender:
        sender = f"{sender} <{message.sender_address}>"
    lines = [
        Line([Span("From: ", Style.DIM), Span(sender, Style.BOLD)]),
        Line([Span("Date: ", Style.DIM), Span(display_datetime(message.date))]),
    ]
    if message.to:
        lines.append(Line([Span("To: ", Style.DIM), Span(", ".join(message.to))]))
    if message.cc:
        lines.append(Line([Span("Cc: ", Style.DIM), Span(", ".join(message.cc))]))
    lines.append(Line([Span("Subject: ", Style.DIM), Span(message.subject, Style.TITLE)]))
    lines.append(Line.of("─" * max(0, width), Style.DIM))
    lines.extend(Line.of(row) for row in wrap(message.body, width))
    return lines


def _email_body(state: AppState, width: int, height: int) -> list[Line]:
    message = state.selected_message()
    if message is None:
        return [Line.of("  No message selected", Style.DIM)]
    lines = _email_lines(message, width)
    top = min(state.scroll_offset, max(0, len(lines) - height))
    return lines[top : top + height]


# Compose -----------------------------------------------------------------------

_HEADER_FIELDS = (ComposeField.TO, ComposeField.CC, ComposeField.SUBJECT)


def _compose_body(
    compose: ComposeState, width: int, height: int
) -> tuple[list[Line], tuple[int, int] | None]:
    lines: list[Line] = []
    cursor: tuple[int, int] | None = None
    # Screen row 0 is the title, so body row N is drawn at screen row N + 1.
    for row, compose_field in enumerate(_HEADER_FIELDS):
        label = f"{compose_field.label}: "
        active = compose.active_field is compose_field
        lines.append(
            Line(
                [
                    Span(label, Style.BOLD if active else Style.DIM),
                    Span(compose.field_text(compose_field)),
                ]
            )
        )
        if active:
            column = display_width(label + compose.current_text[: compose.cursor])
            cursor = (row + 1, min(column, width - 1))
    lines.append(Line.of("─" * max(0, width), Style.DIM))

    segments = _wrap_segments(compose.body, width)
    available = max(1, height - len(lines))
    top = 0
    if compose.active_field is ComposeField.BODY:
        cursor_row = 0
        for index, (start, _row) in enumerate(segments):
            if start <= compose.cursor:
                cursor_row = index
        top = max(0, cursor_row - available + 1)
        start = segments[cursor_row][0]
        column = display_width(compose.body[start : compose.cursor])
        cursor = (len(lines) + cursor_row - top + 1, min(column, width - 1))
    lines.extend(Line.of(row) for _start, row in segments[top : top + available])

    if compose.reply_chain:
        lines.append(Line.of(""))
        for quoted in compose.reply_chain[compose.chain_scroll :]:
            header = f"On {display_datetime(quoted.date)}, {quoted.sender} wrote:"
            lines.append(Line.of(header, Style.DIM))
            lines.extend(Line.of(f"> {row}", Style.DIM) for row in wrap(quoted.body, width - 2))
    return lines, cursor


# Popups ------------------------------------------------------------------------


def _centered(title: str, lines: list[Line], width: int, height: int) -> Popup:
    popup_width = min(width, max(display_width(line.text) for line in lines) + 4)
    popup_height = min(height, len(lines) + 2)
    return Popup(
        title=title,
        lines=[_fit_line(line, popup_width - 4) for line in lines[: popup_height - 2]],
        top=1 + max(0, (height - popup_height) // 2),
        left=max(0, (width - popup_width) // 2),
        width=popup_width,
        height=popup_height,
    )


def _help_popup(width: int, height: int) -> Popup:
    key_width = max(len(keys) for _, entries in HELP_SECTIONS for keys, _ in entries)
    lines: list[Line] = []
    for title, entries in HELP_SECTIONS:
        if lines:
            lines.append(Line.of(""))
        lines.append(Line.of(title, Style.TITLE))
        for keys, description in entries:
            lines.append(Line([Span(keys.ljust(key_width + 2), Style.BOLD), Span(description)]))
    return _centered("Help", lines, width, height)


def _command_popup(
    state: AppState, width: int, height: int
) -> tuple[Popup, tuple[int, int]]:
    palette = state.command
    prompt = f":{palette.input}"
    lines = [Line.of(prompt.ljust(30), Style.BOLD)]
    for index, name in enumerate(palette.suggestions):
        style = Style.HIGHLIGHT if index == palette.selected else Style.NORMAL
        lines.append(Line([Span(name.ljust(10), style), Span(describe(name), Style.DIM)]))
    popup = _centered("Command", lines, width, height)
    return popup, _popup_cursor(popup, display_width(prompt))


def _remind_popup(
    state: AppState, width: int, height: int
) -> tuple[Popup, tuple[int, int]]:
    remind = state.remind
    label = "Remind me in: "
    lines = [
        Line([Span(label, Style.BOLD), Span(remind.input.ljust(20))]),
        Line.of("e.g. 30 minutes, 2 hours, 3 days, 1 week", Style.DIM),
    ]
    popup = _centered("Remind", lines, width, height)
    column = display_width(label + remind.input[: remind.cursor])
    return popup, _popup_cursor(popup, column)


def _popup_cursor(popup: Popup, column: int) -> tuple[int, int]:
    # First content row sits inside the top border, two columns in from the left.
    return popup.top + 1, min(popup.left + 2 + column, popup.left + popup.width - 2)


__all__ = [
    "HELP_SECTIONS",
    "Line",
    "Popup",
    "Screen",
    "Span",
    "Style",
    "char_width",
    "display_width",
    "fit",
    "render_screen",
    "wrap",
]
