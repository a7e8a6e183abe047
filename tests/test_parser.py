"""Tests for RFC822 parsing into client messages."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from inbox_tui.core.models import MessageChunk
from inbox_tui.ingestion import EmailParser, MessageParseError, html_to_text

FIXTURE_PATH = Path(__file__).parent / "fixtures" / "sample_email.eml"


def test_email_parser_extracts_headers_and_body() -> None:
    chunk = MessageChunk(uid=101, raw=FIXTURE_PATH.read_bytes(), flags=("\\Seen",))
    parser = EmailParser()

    message = parser.parse(chunk)

    assert message.uid == 101
    assert message.subject == "Test Email"
    assert message.sender == "Alice Example"
    assert message.sender_address == "alice@example.com"
    assert message.to == ("user@example.com", "bob@example.com")
    assert message.cc == ("another@example.com",)
    assert message.message_id == "<1234@example.com>"
    assert message.in_reply_to == "<1200@example.com>"
    assert message.references == ("<1100@example.com>", "<1200@example.com>")
    assert message.date == datetime(2025, 10, 14, 7, 30, tzinfo=UTC)
    assert message.body == "Hello world."
    assert message.seen is True
    assert message.important is False


def test_missing_headers_fall_back_to_placeholders() -> None:
    raw = b"Content-Type: text/plain\r\n\r\nJust a body\r\n"
    message = EmailParser().parse(MessageChunk(uid=5, raw=raw, important=True))

    assert message.subject == "(No Subject)"
    assert message.sender == "(Unknown)"
    assert message.date is None
    assert message.message_id is None
    assert message.references == ()
    assert message.seen is False
    assert message.important is True


def test_html_only_body_is_rendered_as_text() -> None:
    raw = (
        b"From: news@example.com\r\n"
        b"Subject: Weekly\r\n"
        b"Content-Type: text/html; charset=utf-8\r\n\r\n"
        b"<html><head><style>p {color: red}</style></head>"
        b"<body><p>First line</p><p>Second<br>line</p><script>x()</script></body></html>\r\n"
    )
    message = EmailParser().parse(MessageChunk(uid=6, raw=raw))

    assert "First line" in message.body
    assert "Second" in message.body
    assert "color" not in message.body
    assert "x()" not in message.body


def test_html_to_text_collapses_blank_lines() -> None:
    assert html_to_text("<p>One</p>\n\n\n<p>Two</p>") == "One\n\nTwo"


def test_empty_payload_is_rejected() -> None:
    with pytest.raises(MessageParseError):
        EmailParser().parse(MessageChunk(uid=1, raw=b""))


def test_parse_many_skips_failures() -> None:
    chunks = [
        MessageChunk(uid=1, raw=b""),
        MessageChunk(uid=2, raw=b"Subject: ok\r\n\r\nbody\r\n"),
    ]

    messages = EmailParser().parse_many(chunks)

    assert [message.uid for message in messages] == [2]


def test_parse_many_survives_out_of_range_dates() -> None:
    chunks = [
        MessageChunk(
            uid=1,
            raw=b"Subject: far\r\nDate: Fri, 31 Dec 9999 23:00:00 -1200\r\n\r\nbody\r\n",
        ),
        MessageChunk(uid=2, raw=b"Subject: ok\r\n\r\nbody\r\n"),
    ]

    messages = EmailParser().parse_many(chunks)

    assert [message.uid for message in messages] == [1, 2]
    assert messages[0].date is None
