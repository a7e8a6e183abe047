"""Tests for snooze duration parsing and the reminder schedule."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from inbox_tui.core.reminders import (
    DurationFormatError,
    ReminderSchedule,
    UnknownUnitError,
    calculate_return_time,
    parse_duration,
)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


START = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2 days", timedelta(hours=48)),
        ("1 week", timedelta(days=7)),
        ("1 minute", timedelta(minutes=1)),
        ("3 HOURS", timedelta(hours=3)),
        ("  5 minutes  ", timedelta(minutes=5)),
        ("1 month", timedelta(days=30)),
        ("2 months", timedelta(days=60)),
    ],
)
def test_parse_duration(text: str, expected: timedelta) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "bad input",
        "",
        "2",
        "2  days",
        "two days",
        "1 day later",
        "1_0 days",
        "+2 days",
        "\uff12 days",
    ],
)
def test_parse_duration_rejects_bad_format(text: str) -> None:
    with pytest.raises(DurationFormatError):
        parse_duration(text)


def test_parse_duration_rejects_unknown_unit() -> None:
    with pytest.raises(UnknownUnitError, match="fortnights"):
        parse_duration("5 fortnights")


def test_duration_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        parse_duration("5 fortnights")


def test_calculate_return_time_adds_duration() -> None:
    assert calculate_return_time("1 hour", now=START) == START + timedelta(hours=1)


def test_reminder_becomes_due_after_clock_advances() -> None:
    clock = FakeClock(START)
    schedule = ReminderSchedule(clock=clock)

    schedule.snooze(42, "1 hour")
    assert schedule.get_due_reminders() == []

    clock.advance(timedelta(minutes=59))
    assert schedule.get_due_reminders() == []

    clock.advance(timedelta(minutes=1))
    assert schedule.get_due_reminders() == [42]


def test_remove_reminder_by_uid() -> None:
    schedule = ReminderSchedule(clock=lambda: START)
    schedule.add_reminder(1, START)
    schedule.add_reminder(2, START + timedelta(days=1))

    schedule.remove_reminder(1)

    assert [reminder.uid for reminder in schedule.reminders] == [2]
    assert len(schedule) == 1
    assert schedule.get_due_reminders() == []
