"""Snooze reminders: duration parsing and due-time tracking."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from .datetime_utils import utc_now
from .models import Reminder

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_COUNT_PATTERN = re.compile(r"-?[0-9]+")

_UNIT_DAYS = {
    "day": 1,
    "days": 1,
    "week": 7,
    "weeks": 7,
    # Calendar months are not modelled; a month is always 30 days.
    "month": 30,
    "months": 30,
}


class DurationError(ValueError):
    """Raised when a snooze duration cannot be understood."""


class DurationFormatError(DurationError):
    """The input is not of the form ``<integer> <unit>``."""


class UnknownUnitError(DurationError):
    """The unit is not one of minutes, hours, days, weeks or months."""


def parse_duration(text: str) -> timedelta:
    """Parse ``"<count> <unit>"`` such as ``"2 days"`` into a timedelta."""
    parts = text.strip().split(" ")
    if len(parts) != 2 or not all(parts):
        raise DurationFormatError("Invalid format. Use: '1 hour', '2 days', etc.")

    raw_count, raw_unit = parts
    if not _COUNT_PATTERN.fullmatch(raw_count):
        raise DurationFormatError(f"Invalid number: {raw_count}")
    count = int(raw_count)

    unit = raw_unit.lower()
    if unit in ("minute", "minutes"):
        return timedelta(minutes=count)
    if unit in ("hour", "hours"):
        return timedelta(hours=count)
    if unit in _UNIT_DAYS:
        return timedelta(days=count * _UNIT_DAYS[unit])
    raise UnknownUnitError(f"Unknown time unit: {unit}")


def calculate_return_time(text: str, *, now: datetime | None = None) -> datetime:
    """Return the absolute due time for a duration expression."""
    return (now or utc_now()) + parse_duration(text)


class ReminderSchedule:
    """In-memory list of outstanding reminders."""

    def __init__(
        self,
        reminders: Iterable[Reminder] = (),
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._reminders: list[Reminder] = list(reminders)
        self._clock = clock

    @property
    def reminders(self) -> tuple[Reminder, ...]:
        return tuple(self._reminders)

    def __len__(self) -> int:
        return len(self._reminders)

    def add_reminder(
        self, uid: int, return_time: datetime, message_id: str | None = None
    ) -> Reminder:
        reminder = Reminder(uid=uid, return_time=return_time, message_id=message_id)
        self._reminders.append(reminder)
        LOGGER.debug("Scheduled reminder for UID %s at %s", uid, return_time)
        return reminder

    def snooze(
        self, uid: int, duration_text: str, *, message_id: str | None = None
    ) -> Reminder:
        """Schedule ``uid`` to resurface after ``duration_text``."""
        return_time = calculate_return_time(duration_text, now=self._clock())
        return self.add_reminder(uid, return_time, message_id)

    def due(self) -> list[Reminder]:
        """Return reminders whose return time is now or in the past."""
        now = self._clock()
        return [reminder for reminder in self._reminders if reminder.return_time <= now]

    def get_due_reminders(self) -> list[int]:
        """Return UIDs whose return time is now or in the past."""
        return [reminder.uid for reminder in self.due()]

    def remove_reminder(self, uid: int) -> None:
        self._reminders = [
            reminder for reminder in self._reminders if reminder.uid != uid
        ]

    def discard(self, reminder: Reminder) -> None:
        """Drop one reminder; others sharing its UID are kept."""
        self._reminders = [item for item in self._reminders if item is not reminder]


__all__ = [
    "Clock",
    "DurationError",
    "DurationFormatError",
    "ReminderSchedule",
    "UnknownUnitError",
    "calculate_return_time",
    "parse_duration",
]
