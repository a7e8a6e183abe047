"""Local persistence adapters."""

from .sqlite import ReminderStoreError, SqliteReminderRepository

__all__ = ["ReminderStoreError", "SqliteReminderRepository"]
