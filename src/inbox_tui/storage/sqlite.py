"""SQLite-backed reminder repository implementation."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Sequence
from pathlib import Path
from types import TracebackType

from ..core.config import StorageSettings
from ..core.datetime_utils import parse_datetime, serialize_datetime
from ..core.interfaces import ReminderRepository
from ..core.models import Reminder

LOGGER = logging.getLogger(__name__)


class ReminderStoreError(RuntimeError):
    """Raised when reminders cannot be read or written."""


class SqliteReminderRepository(ReminderRepository):
    """Persist snooze reminders using SQLite."""

    def __init__(self, settings: StorageSettings) -> None:
        """Initialise the repository and apply migrations."""
        self._settings = settings
        db_path = Path(settings.db_path).expanduser()
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(db_path, check_same_thread=False)
        except (OSError, sqlite3.Error) as exc:
            raise ReminderStoreError(f"Unable to open reminder database {db_path}") from exc
        self._connection.row_factory = sqlite3.Row
        try:
            self._apply_migrations()
        except sqlite3.Error as exc:
            self._connection.close()
            raise ReminderStoreError("Unable to prepare reminder database") from exc

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> SqliteReminderRepository:
        """Enter context manager scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure the connection is closed when exiting context manager."""
        self.close()

    # ReminderRepository API --------------------------------------------------
    def load_reminders(self) -> list[Reminder]:
        """Return every stored reminder ordered by due time."""
        try:
            rows = self._connection.execute(
                "SELECT uid, return_time, message_id FROM reminders "
                "ORDER BY return_time, id"
            ).fetchall()
        except sqlite3.Error as exc:
            raise ReminderStoreError("Unable to load reminders") from exc

        reminders: list[Reminder] = []
        for row in rows:
            return_time = parse_datetime(row["return_time"])
            if return_time is None:
                continue
            reminders.append(
                Reminder(
                    uid=int(row["uid"]),
                    return_time=return_time,
                    message_id=row["message_id"],
                )
            )
        LOGGER.debug("Loaded %d reminder(s)", len(reminders))
        return reminders

    def save_reminders(self, reminders: Sequence[Reminder]) -> None:
        """Replace the stored reminders in a single transaction."""
        try:
            with self._connection:
                self._connection.execute("DELETE FROM reminders")
                self._connection.executemany(
                    "INSERT INTO reminders (uid, return_time, message_id) "
                    "VALUES (?, ?, ?)",
                    [
                        (
                            reminder.uid,
                            serialize_datetime(reminder.return_time),
                            reminder.message_id,
                        )
                        for reminder in reminders
                    ],
                )
        except sqlite3.Error as exc:
            raise ReminderStoreError("Unable to save reminders") from exc
        LOGGER.debug("Saved %d reminder(s)", len(reminders))

    def close(self) -> None:
        """Close the underlying SQLite connection."""
        self._connection.close()

    # Internal helpers --------------------------------------------------------
    def _apply_migrations(self) -> None:
        schema_dir = Path(__file__).resolve().parent / "schema"
        for migration in sorted(schema_dir.glob("*.sql")):
            handler = self._get_migration_handler(migration.stem)
            LOGGER.debug("Applying migration %s", migration.name)
            handler(migration.read_text(encoding="utf-8"))

    def _get_migration_handler(self, name: str) -> Callable[[str], None]:
        """Return a migration handler for the supplied migration stem."""
        return {
            "002_reminder_message_id": self._apply_message_id_migration,
        }.get(name, self._apply_default_migration)

    def _apply_default_migration(self, script: str) -> None:
        """Execute the supplied migration script inside a transaction."""
        with self._connection:
            self._connection.executescript(script)

    def _apply_message_id_migration(self, script: str) -> None:
        """Add the message_id column unless an earlier run already did."""
        columns = {
            row["name"]
            for row in self._connection.execute("PRAGMA table_info(reminders)")
        }
        if "message_id" in columns:
            LOGGER.debug("message_id column already exists, skipping ALTER TABLE")
            return
        self._apply_default_migration(script)


__all__ = ["ReminderStoreError", "SqliteReminderRepository"]
