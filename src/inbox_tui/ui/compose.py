"""Modal (insert/normal) editor used for composing messages."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from ..core.models import Message, OutgoingMessage, QuotedMessage
from ..ingestion.parser import NO_SUBJECT
from . import text
from .keys import Key, KeyEvent

LOGGER = logging.getLogger(__name__)

FORWARD_BANNER = "---------- Forwarded message ----------"


class ComposeField(Enum):
    TO = "to"
    CC = "cc"
    SUBJECT = "subject"
    BODY = "body"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def next(self, *, wrap: bool) -> ComposeField:
        order = _FIELD_ORDER
        index = order.index(self) + 1
        if index == len(order):
            return order[0] if wrap else self
        return order[index]

    def previous(self) -> ComposeField:
        index = _FIELD_ORDER.index(self)
        return _FIELD_ORDER[max(index - 1, 0)]


_FIELD_ORDER = (ComposeField.TO, ComposeField.CC, ComposeField.SUBJECT, ComposeField.BODY)


class ComposeMode(Enum):
    NEW = "new"
    REPLY = "reply"
    REPLY_ALL = "reply_all"
    FORWARD = "forward"


class EditMode(Enum):
    INSERT = "insert"
    NORMAL = "normal"


class VimOperator(Enum):
    NONE = "none"
    DELETE = "delete"
    CHANGE = "change"


class EditorResult(Enum):
    """Outcome of a key press the surrounding view must react to."""

    HANDLED = "handled"
    EXIT_REQUESTED = "exit_requested"


@dataclass(slots=True)
class VimState:
    """Armed operator and pending repeat count."""

    operator: VimOperator = VimOperator.NONE
    count: int | None = None

    @property
    def pending(self) -> bool:
        return self.operator is not VimOperator.NONE or self.count is not None

    def take_count(self) -> int:
        return self.count or 1

    def push_digit(self, digit: int) -> None:
        self.count = (self.count or 0) * 10 + digit

    def reset(self) -> None:
        self.operator = VimOperator.NONE
        self.count = None


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class ComposeState:
    """Fields, cursor and editing mode of one compose session."""

    to: str = ""
    cc: str = ""
    subject: str = ""
    body: str = ""
    active_field: ComposeField = ComposeField.TO
    mode: ComposeMode = ComposeMode.NEW
    edit_mode: EditMode = EditMode.INSERT
    cursor: int = 0
    vim: VimState = field(default_factory=VimState)
    reply_chain: list[QuotedMessage] = field(default_factory=list)
    chain_scroll: int = 0
    in_reply_to: str | None = None
    references: tuple[str, ...] = ()
    draft_uid: int | None = None

    # Construction ------------------------------------------------------------
    @classmethod
    def reply_to(
        cls,
        message: Message,
        *,
        reply_all: bool = False,
        own_address: str | None = None,
    ) -> ComposeState:
        """Start a reply quoting ``message``, positioned in the body."""
        subject = message.subject
        if not subject.lower().startswith("re:"):
            subject = f"Re: {subject}"
        cc = ""
        if reply_all:
            excluded = {message.sender_address.lower()}
            if own_address:
                excluded.add(own_address.lower())
            seen: list[str] = []
            for address in (*message.to, *message.cc):
                if address.lower() not in excluded and address not in seen:
                    seen.append(address)
            cc = ", ".join(seen)
        references = message.references
        if message.message_id and message.message_id not in references:
            references = (*references, message.message_id)
        return cls(
            to=message.sender_address,
            cc=cc,
            subject=subject,
            active_field=ComposeField.BODY,
            mode=ComposeMode.REPLY_ALL if reply_all else ComposeMode.REPLY,
            reply_chain=[_quote(message)],
            in_reply_to=message.message_id,
            references=references,
        )

    @classmethod
    def forward(cls, message: Message) -> ComposeState:
        """Start forwarding ``message`` with its content below a banner."""
        sender = message.sender
        if message.sender_address and message.sender_address != sender:
            sender = f"{sender} <{message.sender_address}>"
        body = (
            f"\n\n{FORWARD_BANNER}\n"
            f"From: {sender}\n"
            f"Subject: {message.subject}\n\n"
            f"{message.body}"
        )
        return cls(
            subject=f"Fwd: {message.subject}",
            body=body,
            active_field=ComposeField.BODY,
            mode=ComposeMode.FORWARD,
        )

    @classmethod
    def from_draft(cls, message: Message) -> ComposeState:
        """Reopen a stored draft for editing."""
        return cls(
            to=", ".join(message.to),
            cc=", ".join(message.cc),
            subject="" if message.subject == NO_SUBJECT else message.subject,
            body=message.body,
            active_field=ComposeField.BODY,
            in_reply_to=message.in_reply_to,
            references=message.references,
            draft_uid=message.uid,
        )

    # Field access ------------------------------------------------------------
    def field_text(self, compose_field: ComposeField | None = None) -> str:
        return getattr(self, (compose_field or self.active_field).value)

    def set_current_text(self, value: str) -> None:
        setattr(self, self.active_field.value, value)

    @property
    def current_text(self) -> str:
        return self.field_text()

    def has_content(self) -> bool:
        return any(self.field_text(item) for item in _FIELD_ORDER)

    def set_thread(self, messages: Sequence[Message]) -> None:
        """Replace the quoted chain with a reconstructed conversation."""
        self.reply_chain = [_quote(message) for message in messages]
        self.chain_scroll = 0
        for message in messages:
            if message.message_id and message.message_id not in self.references:
                self.references = (*self.references, message.message_id)

    def to_outgoing(self) -> OutgoingMessage:
        return OutgoingMessage(
            to=self.to.strip(),
            cc=self.cc.strip(),
            subject=self.subject,
            body=self.body,
            in_reply_to=self.in_reply_to,
            references=self.references,
        )

    # Cursor and editing --------------------------------------------------------
    def focus(self, compose_field: ComposeField) -> None:
        """Switch fields, keeping the cursor inside the new field."""
        self.active_field = compose_field
        self.cursor = text.clamp(self.current_text, self.cursor)

    def insert_text(self, value: str) -> None:
        updated, self.cursor = text.insert(self.current_text, self.cursor, value)
        self.set_current_text(updated)

    def delete_char_before(self) -> None:
        updated, self.cursor = text.delete_before(self.current_text, self.cursor)
        self.set_current_text(updated)

    def delete_char_at(self) -> None:
        self.set_current_text(text.delete_at(self.current_text, self.cursor))
        self.cursor = text.clamp(self.current_text, self.cursor)

    def move_cursor(self, motion: Callable[[str, int], int], count: int = 1) -> None:
        for _ in range(count):
            self.cursor = motion(self.current_text, self.cursor)

    def delete_motion(self, target: int, *, inclusive: bool) -> None:
        end = target + 1 if inclusive else target
        self.set_current_text(text.delete_range(self.current_text, self.cursor, end))
        self.cursor = text.clamp(self.current_text, min(self.cursor, target))

    def enter_insert(self) -> None:
        self.vim.reset()
        self.edit_mode = EditMode.INSERT


def _quote(message: Message) -> QuotedMessage:
    return QuotedMessage(sender=message.sender, date=message.date, body=message.body)


# Key handling ----------------------------------------------------------------

_SIMPLE_MOTIONS: dict[str, Callable[[str, int], int]] = {
    "h": lambda value, pos: text.move_left(value, pos),
    "l": lambda value, pos: text.move_right(value, pos),
    "w": text.word_forward,
    "b": text.word_backward,
    "e": text.word_end,
}
_LINE_MOTIONS: dict[str, Callable[[str, int], int]] = {
    "0": text.line_start,
    "$": text.line_last_char,
}
# Motions an armed operator can consume, and whether the target is included.
_OPERATOR_MOTIONS = {"w": False, "e": True}
_ARROW_MOTIONS = {Key.LEFT: "h", Key.RIGHT: "l"}
_OPERATOR_KEYS = {"d": VimOperator.DELETE, "c": VimOperator.CHANGE}
_DIGITS = frozenset("0123456789")


def handle_insert_key(state: ComposeState, event: KeyEvent) -> EditorResult:
    """Apply an insert-mode key press."""
    key = event.key
    if key is Key.ESC:
        state.edit_mode = EditMode.NORMAL
    elif key is Key.TAB:
        state.focus(state.active_field.next(wrap=True))
    elif key is Key.BACKSPACE:
        state.delete_char_before()
    elif key is Key.ENTER:
        if state.active_field is ComposeField.BODY:
            state.insert_text("\n")
        else:
            state.focus(state.active_field.next(wrap=False))
    elif key is Key.LEFT:
        state.move_cursor(_SIMPLE_MOTIONS["h"])
    elif key is Key.RIGHT:
        state.move_cursor(_SIMPLE_MOTIONS["l"])
    elif event.char is not None:
        state.insert_text(event.char)
    return EditorResult.HANDLED


# pylint: disable=too-many-return-statements,too-many-branches
def handle_normal_key(state: ComposeState, event: KeyEvent) -> EditorResult:
    """Apply a normal-mode key press through the operator/count machine."""
    vim = state.vim
    key = event.key
    if isinstance(key, Key) and key in _ARROW_MOTIONS:
        key = _ARROW_MOTIONS[key]
    elif event.ctrl:
        vim.reset()
        return EditorResult.HANDLED

    if key is Key.ESC:
        if vim.pending:
            vim.reset()
            return EditorResult.HANDLED
        return EditorResult.EXIT_REQUESTED

    if key in _DIGITS and (key != "0" or vim.count is not None):
        vim.push_digit(int(key))
        return EditorResult.HANDLED

    if key in _OPERATOR_KEYS:
        operator = _OPERATOR_KEYS[key]
        if vim.operator is operator:
            _apply_line_operator(state, operator)
        else:
            vim.operator = operator
        return EditorResult.HANDLED

    if key in _OPERATOR_MOTIONS and vim.operator is not VimOperator.NONE:
        _apply_operator_motion(state, key)
        return EditorResult.HANDLED

    if key in _SIMPLE_MOTIONS:
        count = vim.take_count()
        if key == "h":
            state.cursor = text.move_left(state.current_text, state.cursor, count)
        elif key == "l":
            state.cursor = text.move_right(state.current_text, state.cursor, count)
        else:
            state.move_cursor(_SIMPLE_MOTIONS[key], count)
        vim.reset()
        return EditorResult.HANDLED

    if key in _LINE_MOTIONS:
        state.move_cursor(_LINE_MOTIONS[key])
        vim.reset()
        return EditorResult.HANDLED

    if key == "x":
        for _ in range(vim.take_count()):
            state.delete_char_at()
        vim.reset()
        return EditorResult.HANDLED

    if key in ("i", "a", "I", "A", "o"):
        _enter_insert(state, key)
        return EditorResult.HANDLED

    if key in ("j", Key.DOWN):
        state.focus(state.active_field.next(wrap=False))
    elif key in ("k", Key.UP):
        state.focus(state.active_field.previous())
    vim.reset()
    return EditorResult.HANDLED


def _apply_line_operator(state: ComposeState, operator: VimOperator) -> None:
    if operator is VimOperator.DELETE:
        updated, state.cursor = text.delete_line(state.current_text, state.cursor)
        state.set_current_text(updated)
        state.vim.reset()
    else:
        updated, state.cursor = text.clear_line(state.current_text, state.cursor)
        state.set_current_text(updated)
        state.enter_insert()


def _apply_operator_motion(state: ComposeState, key: str) -> None:
    vim = state.vim
    motion = _SIMPLE_MOTIONS[key]
    target = state.cursor
    for _ in range(vim.take_count()):
        target = motion(state.current_text, target)
    if target != state.cursor:
        state.delete_motion(target, inclusive=_OPERATOR_MOTIONS[key])
    if vim.operator is VimOperator.CHANGE:
        state.enter_insert()
    else:
        vim.reset()


def _enter_insert(state: ComposeState, key: str) -> None:
    current = state.current_text
    if key == "a":
        state.cursor = text.move_right(current, state.cursor)
    elif key == "I":
        state.cursor = text.line_start(current, state.cursor)
    elif key == "A":
        state.cursor = text.line_end(current, state.cursor)
    elif key == "o":
        state.cursor = text.line_end(current, state.cursor)
        if state.active_field is ComposeField.BODY:
            state.insert_text("\n")
    state.enter_insert()


__all__ = [
    "ComposeField",
    "ComposeMode",
    "ComposeState",
    "EditMode",
    "EditorResult",
    "FORWARD_BANNER",
    "VimOperator",
    "VimState",
    "handle_insert_key",
    "handle_normal_key",
]
