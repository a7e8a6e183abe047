"""Tests for the IMAP transport adapter."""

# pylint: disable=protected-access

from __future__ import annotations

import imaplib
from unittest.mock import MagicMock

import pytest

from inbox_tui.core.config import ImapSettings
from inbox_tui.core.models import Folder, OutgoingMessage
from inbox_tui.core.threads import build_thread_query
from inbox_tui.transport import ImapClient, ImapError, render_search_criteria


def _client_with(connection: MagicMock) -> ImapClient:
    settings = ImapSettings(
        host="imap.test",
        port=993,
        username="user@example.com",
        app_password="password",
        use_ssl=False,
    )
    client = ImapClient(settings)
    client._connection = connection  # type: ignore[attr-defined]
    return client


def _connection() -> MagicMock:
    connection = MagicMock()
    connection.select.return_value = ("OK", [b"3"])
    return connection


def test_fetch_recent_returns_newest_chunks_first() -> None:
    connection = _connection()

    def uid(command, *args):
        if command == "SEARCH" and args[1] == "ALL":
            return "OK", [b"101 102 103"]
        if command == "SEARCH":
            return "OK", [b"103"]
        if command == "FETCH":
            return "OK", [
                (b"1 (UID 102 FLAGS (\\Seen) BODY[] {7}", b"raw-102"),
                b")",
                (b"2 (UID 103 FLAGS () BODY[] {7}", b"raw-103"),
                b")",
            ]
        raise AssertionError("Unexpected IMAP command")

    connection.uid.side_effect = uid
    client = _client_with(connection)

    chunks = client.fetch_recent(Folder.INBOX, 2)

    assert [chunk.uid for chunk in chunks] == [103, 102]
    assert chunks[0].raw == b"raw-103"
    assert chunks[0].important is True
    assert chunks[1].flags == ("\\Seen",)
    assert chunks[1].important is False
    connection.select.assert_called_with('"INBOX"')
    connection.uid.assert_any_call("FETCH", "102,103", "(UID FLAGS BODY.PEEK[])")


def test_fetch_recent_on_empty_folder() -> None:
    connection = _connection()
    connection.uid.return_value = ("OK", [b""])
    client = _client_with(connection)

    assert client.fetch_recent(Folder.TRASH, 50) == []
    connection.select.assert_called_with('"[Gmail]/Trash"')


def test_render_search_criteria_nests_or_to_the_right() -> None:
    query = build_thread_query(["<a@x>", "<b@x>", "<c@x>"])
    assert query is not None

    assert render_search_criteria(query) == (
        'OR HEADER Message-ID "<a@x>" '
        'OR HEADER Message-ID "<b@x>" HEADER Message-ID "<c@x>"'
    )


def test_render_search_criteria_single_id_has_no_or() -> None:
    query = build_thread_query(["<only@x>"])
    assert query is not None

    assert render_search_criteria(query) == 'HEADER Message-ID "<only@x>"'


def test_search_thread_runs_against_all_mail() -> None:
    connection = _connection()
    connection.uid.side_effect = [("OK", [b""])]
    client = _client_with(connection)
    query = build_thread_query(["<a@x>"])
    assert query is not None

    assert client.search_thread(query) == []
    connection.select.assert_called_with('"[Gmail]/All Mail"')
    connection.uid.assert_called_once_with("SEARCH", None, 'HEADER Message-ID "<a@x>"')


def test_mark_as_read_sets_seen_flag() -> None:
    connection = _connection()
    connection.uid.return_value = ("OK", [b""])
    client = _client_with(connection)

    client.mark_as_read(Folder.INBOX, 7)

    connection.uid.assert_called_once_with("STORE", "7", "+FLAGS", r"(\Seen)")


def test_archive_moves_to_all_mail() -> None:
    connection = _connection()
    connection.uid.return_value = ("OK", [b""])
    client = _client_with(connection)

    client.archive(Folder.INBOX, 9)

    connection.select.assert_called_with('"INBOX"')
    connection.uid.assert_called_once_with("MOVE", "9", '"[Gmail]/All Mail"')


def test_move_failure_raises() -> None:
    connection = _connection()
    connection.uid.return_value = ("NO", [b"nope"])
    client = _client_with(connection)

    with pytest.raises(ImapError):
        client.move(9, Folder.ARCHIVE, Folder.INBOX)


def test_find_uid_searches_message_id_in_folder() -> None:
    connection = _connection()
    connection.uid.return_value = ("OK", [b"41 57"])
    client = _client_with(connection)

    assert client.find_uid(Folder.ARCHIVE, "<a@x>") == 57
    connection.select.assert_called_with('"[Gmail]/All Mail"')
    connection.uid.assert_called_once_with("SEARCH", None, 'HEADER Message-ID "<a@x>"')


def test_find_uid_returns_none_when_missing() -> None:
    connection = _connection()
    connection.uid.return_value = ("OK", [b""])
    client = _client_with(connection)

    assert client.find_uid(Folder.ARCHIVE, "<gone@x>") is None


def test_fetch_recent_wraps_dropped_connection_during_fetch() -> None:
    connection = _connection()

    def uid(command, *args):
        if command == "SEARCH" and args[1] == "ALL":
            return "OK", [b"101"]
        if command == "SEARCH":
            return "OK", [b""]
        raise imaplib.IMAP4.abort("socket closed")

    connection.uid.side_effect = uid
    client = _client_with(connection)

    with pytest.raises(ImapError):
        client.fetch_recent(Folder.INBOX, 10)


def test_fetch_recent_wraps_dropped_connection_during_listing() -> None:
    connection = _connection()
    connection.uid.side_effect = imaplib.IMAP4.abort("socket closed")
    client = _client_with(connection)

    with pytest.raises(ImapError):
        client.fetch_recent(Folder.INBOX, 10)


def test_importance_search_socket_error_is_wrapped() -> None:
    connection = _connection()

    def uid(command, *args):
        if command == "SEARCH" and args[1] == "ALL":
            return "OK", [b"101"]
        raise OSError("broken pipe")

    connection.uid.side_effect = uid
    client = _client_with(connection)

    with pytest.raises(ImapError):
        client.fetch_recent(Folder.INBOX, 10)


def test_select_socket_error_is_wrapped() -> None:
    connection = _connection()
    connection.select.side_effect = OSError("connection reset")
    client = _client_with(connection)

    with pytest.raises(ImapError):
        client.mark_as_read(Folder.INBOX, 1)


def test_delete_flags_and_expunges() -> None:
    connection = _connection()
    connection.uid.return_value = ("OK", [b""])
    connection.expunge.return_value = ("OK", [b""])
    client = _client_with(connection)

    client.delete(Folder.DRAFTS, 11)

    connection.uid.assert_called_once_with("STORE", "11", "+FLAGS.SILENT", r"(\Deleted)")
    connection.expunge.assert_called_once()


def test_save_draft_appends_to_drafts() -> None:
    connection = _connection()
    connection.append.return_value = ("OK", [b""])
    client = _client_with(connection)

    client.save_draft(
        OutgoingMessage(to="bob@example.com", subject="Plan", body="Draft body"),
        "user@example.com",
    )

    args = connection.append.call_args.args
    assert args[0] == '"[Gmail]/Drafts"'
    assert args[1] == r"(\Draft)"
    assert b"Subject: Plan" in args[3]
    assert b"Draft body" in args[3]


def test_operations_require_connection() -> None:
    client = ImapClient(ImapSettings(username="user", app_password="secret"))

    with pytest.raises(ImapError):
        client.fetch_recent(Folder.INBOX, 10)


def test_connect_requires_credentials() -> None:
    client = ImapClient(ImapSettings(username="user"))

    with pytest.raises(ImapError):
        client.connect()
