"""Tests for the modal compose editor."""

from __future__ import annotations

from datetime import UTC, datetime

from inbox_tui.core.models import Message
from inbox_tui.ui.compose import (
    FORWARD_BANNER,
    ComposeField,
    ComposeMode,
    ComposeState,
    EditMode,
    EditorResult,
    VimOperator,
    handle_insert_key,
    handle_normal_key,
)
from inbox_tui.ui.keys import Key, KeyEvent


def _normal(body: str, cursor: int = 0) -> ComposeState:
    return ComposeState(
        body=body,
        active_field=ComposeField.BODY,
        edit_mode=EditMode.NORMAL,
        cursor=cursor,
    )


def _press(state: ComposeState, *keys: str | Key) -> EditorResult:
    result = EditorResult.HANDLED
    for key in keys:
        handler = handle_normal_key if state.edit_mode is EditMode.NORMAL else handle_insert_key
        result = handler(state, KeyEvent(key))
    return result


def _message(**overrides) -> Message:
    fields = {
        "uid": 10,
        "subject": "Plans",
        "sender": "Bob",
        "sender_address": "bob@example.com",
        "date": datetime(2025, 1, 2, 3, 4, tzinfo=UTC),
        "body": "Let's meet.",
        "message_id": "<m2@example.com>",
        "references": ("<m1@example.com>",),
        "to": ("me@example.com", "carol@example.com"),
        "cc": ("dave@example.com", "bob@example.com"),
    }
    fields.update(overrides)
    return Message(**fields)


def test_dw_deletes_word_and_trailing_space() -> None:
    state = _normal("hello world")

    _press(state, "d", "w")

    assert state.body == "world"
    assert state.cursor == 0
    assert state.vim.operator is VimOperator.NONE
    assert state.vim.count is None


def test_de_deletes_to_word_end_inclusive() -> None:
    state = _normal("hello world")

    _press(state, "d", "e")

    assert state.body == " world"
    assert state.cursor == 0


def test_de_at_end_of_field_deletes_nothing() -> None:
    state = _normal("hello", cursor=5)

    _press(state, "d", "e")

    assert state.body == "hello"
    assert state.cursor == 5
    assert state.vim.operator is VimOperator.NONE


def test_de_on_last_character_deletes_nothing() -> None:
    state = _normal("hello", cursor=4)

    _press(state, "d", "e")

    assert state.body == "hello"


def test_cw_changes_word_and_enters_insert() -> None:
    state = _normal("hello world")

    _press(state, "c", "w")

    assert state.body == "world"
    assert state.edit_mode is EditMode.INSERT


def test_count_repeats_operator_motion() -> None:
    state = _normal("one two three four")

    _press(state, "2", "d", "w")

    assert state.body == "three four"


def test_dd_deletes_current_line() -> None:
    state = _normal("first\nsecond\nthird", cursor=8)

    _press(state, "d", "d")

    assert state.body == "first\nthird"
    assert state.cursor == 6
    assert not state.vim.pending


def test_cc_clears_line_and_enters_insert() -> None:
    state = _normal("first\nsecond", cursor=8)

    _press(state, "c", "c")

    assert state.body == "first\n"
    assert state.cursor == 6
    assert state.edit_mode is EditMode.INSERT


def test_leading_zero_is_line_start_not_count() -> None:
    state = _normal("abc def", cursor=5)

    _press(state, "0")
    assert state.cursor == 0
    assert state.vim.count is None

    _press(state, "1", "0", "l")
    assert state.cursor == 7


def test_h_and_l_respect_count_and_bounds() -> None:
    state = _normal("abcdef", cursor=1)

    _press(state, "3", "l")
    assert state.cursor == 4
    _press(state, "9", "h")
    assert state.cursor == 0


def test_dollar_moves_to_last_character() -> None:
    state = _normal("abc\ndef")

    _press(state, "$")

    assert state.cursor == 2


def test_x_deletes_under_cursor_with_count() -> None:
    state = _normal("abcdef", cursor=1)

    _press(state, "3", "x")

    assert state.body == "aef"
    assert state.cursor == 1


def test_insert_entry_keys() -> None:
    state = _normal("abc\ndef", cursor=5)
    _press(state, "I")
    assert (state.cursor, state.edit_mode) == (4, EditMode.INSERT)

    state = _normal("abc\ndef", cursor=1)
    _press(state, "A")
    assert state.cursor == 3

    state = _normal("abc", cursor=1)
    _press(state, "a")
    assert state.cursor == 2

    state = _normal("abc\ndef", cursor=1)
    _press(state, "o")
    assert state.body == "abc\n\ndef"
    assert state.cursor == 4


def test_unknown_key_and_q_reset_pending_state() -> None:
    state = _normal("abc")

    _press(state, "3", "d", "q")

    assert not state.vim.pending
    assert state.body == "abc"


def test_escape_cancels_pending_before_exiting() -> None:
    state = _normal("abc")
    _press(state, "d")

    assert _press(state, Key.ESC) is EditorResult.HANDLED
    assert not state.vim.pending
    assert _press(state, Key.ESC) is EditorResult.EXIT_REQUESTED


def test_j_and_k_move_between_fields_and_clamp_cursor() -> None:
    state = ComposeState(
        to="a@b.c", subject="Hi", edit_mode=EditMode.NORMAL, cursor=4
    )

    _press(state, "j")
    assert state.active_field is ComposeField.CC
    assert state.cursor == 0

    _press(state, "j", "j", "j")
    assert state.active_field is ComposeField.BODY

    _press(state, "k", "k", "k", "k")
    assert state.active_field is ComposeField.TO


def test_insert_mode_typing_and_field_navigation() -> None:
    state = ComposeState()

    for char in "bob@example.com":
        handle_insert_key(state, KeyEvent(char))
    handle_insert_key(state, KeyEvent(Key.ENTER))
    assert state.to == "bob@example.com"
    assert state.active_field is ComposeField.CC

    handle_insert_key(state, KeyEvent(Key.TAB))
    handle_insert_key(state, KeyEvent(Key.TAB))
    assert state.active_field is ComposeField.BODY
    handle_insert_key(state, KeyEvent("x"))
    handle_insert_key(state, KeyEvent(Key.ENTER))
    assert state.body == "x\n"

    handle_insert_key(state, KeyEvent(Key.TAB))
    assert state.active_field is ComposeField.TO


def test_insert_escape_keeps_cursor() -> None:
    state = ComposeState(body="abc", active_field=ComposeField.BODY, cursor=2)

    handle_insert_key(state, KeyEvent(Key.ESC))

    assert state.edit_mode is EditMode.NORMAL
    assert state.cursor == 2


def test_backspace_and_arrows_in_insert_mode() -> None:
    state = ComposeState(subject="héllo", active_field=ComposeField.SUBJECT, cursor=5)

    handle_insert_key(state, KeyEvent(Key.LEFT))
    handle_insert_key(state, KeyEvent(Key.BACKSPACE))
    handle_insert_key(state, KeyEvent(Key.RIGHT))

    assert state.subject == "hélo"
    assert state.cursor == 4


def test_reply_targets_sender_and_quotes_message() -> None:
    state = ComposeState.reply_to(_message())

    assert state.mode is ComposeMode.REPLY
    assert state.to == "bob@example.com"
    assert state.cc == ""
    assert state.subject == "Re: Plans"
    assert state.active_field is ComposeField.BODY
    assert state.edit_mode is EditMode.INSERT
    assert [quoted.body for quoted in state.reply_chain] == ["Let's meet."]
    assert state.in_reply_to == "<m2@example.com>"
    assert state.references == ("<m1@example.com>", "<m2@example.com>")


def test_reply_does_not_stack_prefix() -> None:
    state = ComposeState.reply_to(_message(subject="RE: Plans"))
    assert state.subject == "RE: Plans"


def test_reply_all_copies_other_recipients() -> None:
    state = ComposeState.reply_to(
        _message(), reply_all=True, own_address="me@example.com"
    )

    assert state.mode is ComposeMode.REPLY_ALL
    assert state.cc == "carol@example.com, dave@example.com"


def test_forward_leaves_recipients_blank() -> None:
    state = ComposeState.forward(_message())

    assert state.mode is ComposeMode.FORWARD
    assert state.to == ""
    assert state.subject == "Fwd: Plans"
    assert FORWARD_BANNER in state.body
    assert "From: Bob <bob@example.com>" in state.body
    assert state.body.endswith("Let's meet.")
    assert state.active_field is ComposeField.BODY


def test_draft_round_trip_keeps_uid() -> None:
    draft = _message(uid=77, subject="(No Subject)", body="draft text")

    state = ComposeState.from_draft(draft)

    assert state.draft_uid == 77
    assert state.subject == ""
    assert state.to == "me@example.com, carol@example.com"
    assert state.to_outgoing().body == "draft text"


def test_has_content() -> None:
    assert not ComposeState().has_content()
    assert ComposeState(cc="x").has_content()
