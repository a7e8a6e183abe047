"""Tests for the command-line entry point."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from inbox_tui.cli import build_parser, execute
from inbox_tui.core.config import AppSettings, StorageSettings
from inbox_tui.core.models import Reminder
from inbox_tui.storage import SqliteReminderRepository


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(storage=StorageSettings(db_path=tmp_path / "reminders.db"))


def test_parser_defaults_to_run() -> None:
    args = build_parser().parse_args([])

    assert args.command == "run"
    assert args.env_file is None


def test_info_prints_configuration(settings: AppSettings, capsys) -> None:
    args = build_parser().parse_args(["info"])

    assert execute(args, settings) == 0

    output = capsys.readouterr().out
    assert "imap.gmail.com:993" in output
    assert str(settings.storage.db_path) in output


def test_reminders_listing(settings: AppSettings, capsys) -> None:
    with SqliteReminderRepository(settings.storage) as repository:
        repository.save_reminders(
            [Reminder(uid=42, return_time=datetime(2030, 1, 1, tzinfo=UTC))]
        )

    assert execute(build_parser().parse_args(["reminders"]), settings) == 0

    output = capsys.readouterr().out
    assert "1 reminder(s):" in output
    assert "42" in output


def test_reminders_listing_when_empty(settings: AppSettings, capsys) -> None:
    assert execute(build_parser().parse_args(["reminders"]), settings) == 0

    assert "No reminders scheduled." in capsys.readouterr().out


def test_run_requires_credentials(settings: AppSettings, capsys) -> None:
    assert execute(build_parser().parse_args(["run"]), settings) == 1

    assert "INBOX_TUI_IMAP__USERNAME" in capsys.readouterr().out
