"""Tests for SQLite reminder persistence."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from inbox_tui.core.config import StorageSettings
from inbox_tui.core.models import Reminder
from inbox_tui.storage import ReminderStoreError, SqliteReminderRepository

DUE = datetime(2025, 6, 1, 8, 30, tzinfo=UTC)


def test_reminders_round_trip(tmp_path: Path) -> None:
    settings = StorageSettings(db_path=tmp_path / "nested" / "reminders.db")
    reminders = [
        Reminder(uid=7, return_time=DUE + timedelta(hours=2)),
        Reminder(uid=3, return_time=DUE),
    ]

    with SqliteReminderRepository(settings) as repository:
        assert repository.load_reminders() == []
        repository.save_reminders(reminders)

    with SqliteReminderRepository(settings) as repository:
        loaded = repository.load_reminders()

    assert [reminder.uid for reminder in loaded] == [3, 7]
    assert loaded[0].return_time == DUE


def test_save_replaces_previous_list(tmp_path: Path) -> None:
    settings = StorageSettings(db_path=tmp_path / "reminders.db")

    with SqliteReminderRepository(settings) as repository:
        repository.save_reminders([Reminder(uid=1, return_time=DUE)])
        repository.save_reminders([Reminder(uid=2, return_time=DUE)])
        assert [reminder.uid for reminder in repository.load_reminders()] == [2]

        repository.save_reminders([])
        assert repository.load_reminders() == []


def test_message_id_survives_reopen(tmp_path: Path) -> None:
    settings = StorageSettings(db_path=tmp_path / "reminders.db")

    with SqliteReminderRepository(settings) as repository:
        repository.save_reminders(
            [Reminder(uid=4, return_time=DUE, message_id="<4@example.com>")]
        )

    with SqliteReminderRepository(settings) as repository:
        loaded = repository.load_reminders()

    assert [(r.uid, r.message_id) for r in loaded] == [(4, "<4@example.com>")]


def test_database_without_message_id_column_is_upgraded(tmp_path: Path) -> None:
    db_path = tmp_path / "reminders.db"
    connection = sqlite3.connect(db_path)
    connection.executescript(
        "CREATE TABLE reminders ("
        " id INTEGER PRIMARY KEY AUTOINCREMENT,"
        " uid INTEGER NOT NULL,"
        " return_time TEXT NOT NULL);"
        "INSERT INTO reminders (uid, return_time) VALUES (9, '2025-06-01T08:30:00+00:00');"
    )
    connection.close()

    with SqliteReminderRepository(StorageSettings(db_path=db_path)) as repository:
        loaded = repository.load_reminders()

    assert [(r.uid, r.message_id) for r in loaded] == [(9, None)]


def test_unusable_path_raises_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(ReminderStoreError):
        SqliteReminderRepository(StorageSettings(db_path=blocker / "reminders.db"))
