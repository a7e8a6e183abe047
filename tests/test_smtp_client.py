"""Tests for outgoing mail delivery."""

from __future__ import annotations

import smtplib
from unittest.mock import MagicMock

import pytest

from inbox_tui.core.config import SmtpSettings
from inbox_tui.core.models import OutgoingMessage
from inbox_tui.transport import SmtpClient, SmtpError, build_mime_message


def _fake_smtp(monkeypatch: pytest.MonkeyPatch, name: str = "SMTP_SSL") -> MagicMock:
    connection = MagicMock()
    connection.__enter__.return_value = connection
    connection.send_message.return_value = {}
    factory = MagicMock(return_value=connection)
    monkeypatch.setattr(smtplib, name, factory)
    return connection


def test_build_mime_message_carries_thread_headers() -> None:
    message = OutgoingMessage(
        to="bob@example.com",
        cc="carol@example.com",
        subject="Re: Plan",
        body="Sounds good",
        in_reply_to="<m2@example.com>",
        references=("<m1@example.com>", "<m2@example.com>"),
    )

    mime = build_mime_message(message, "Alice <alice@example.com>")

    assert mime["To"] == "bob@example.com"
    assert mime["Cc"] == "carol@example.com"
    assert mime["In-Reply-To"] == "<m2@example.com>"
    assert mime["References"] == "<m1@example.com> <m2@example.com>"
    assert mime.get_content().strip() == "Sounds good"


def test_from_address_includes_display_name() -> None:
    client = SmtpClient(SmtpSettings(username="alice@example.com", from_name="Alice"))
    assert client.from_address == "Alice <alice@example.com>"


def test_send_logs_in_with_password(monkeypatch: pytest.MonkeyPatch) -> None:
    connection = _fake_smtp(monkeypatch)
    client = SmtpClient(SmtpSettings(username="alice@example.com", password="secret"))

    client.send(OutgoingMessage(to="bob@example.com", subject="Hi", body="Hello"))

    connection.login.assert_called_once_with("alice@example.com", "secret")
    sent = connection.send_message.call_args.args[0]
    assert sent["Subject"] == "Hi"


def test_send_uses_starttls_when_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    connection = _fake_smtp(monkeypatch, "SMTP")
    settings = SmtpSettings(
        port=587, use_tls=True, username="alice@example.com", password="secret"
    )

    SmtpClient(settings).send(OutgoingMessage(to="bob@example.com", subject="", body=""))

    connection.starttls.assert_called_once()


def test_refused_recipients_raise(monkeypatch: pytest.MonkeyPatch) -> None:
    connection = _fake_smtp(monkeypatch)
    connection.send_message.return_value = {"bad@example.com": (550, b"no such user")}
    client = SmtpClient(SmtpSettings(username="alice@example.com", password="secret"))

    with pytest.raises(SmtpError):
        client.send(OutgoingMessage(to="bad@example.com", subject="Hi", body="Hello"))


def test_authentication_failure_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    connection = _fake_smtp(monkeypatch)
    connection.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad creds")
    client = SmtpClient(SmtpSettings(username="alice@example.com", password="wrong"))

    with pytest.raises(SmtpError, match="authentication"):
        client.send(OutgoingMessage(to="bob@example.com", subject="Hi", body="Hello"))
