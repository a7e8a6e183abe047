"""Command-line entry point for Inbox TUI."""

from __future__ import annotations

import argparse
from pathlib import Path

from inbox_tui.core import (
    AppSettings,
    SmtpSettings,
    configure_logging,
    load_app_settings,
)
from inbox_tui.core.datetime_utils import display_datetime, relative_time
from inbox_tui.storage import ReminderStoreError, SqliteReminderRepository
from inbox_tui.transport import ImapClient, ImapError, SmtpClient
from inbox_tui.ui import AppState, MailSession, run_terminal


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Keyboard-driven terminal mail client")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "info", "reminders"],
        help="Operation to execute (default: run).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return an exit status."""
    command = args.command
    if command == "info":
        _print_info(settings)
        return 0
    if command == "reminders":
        return _list_reminders(settings)
    return _run_client(settings)


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    settings = load_app_settings(env_file=args.env_file)
    # The terminal UI owns the screen, so only file logging is allowed while it runs.
    configure_logging(settings.logging, console=args.command != "run")
    raise SystemExit(execute(args, settings))


def _print_info(settings: AppSettings) -> None:
    print("Inbox TUI configuration")
    print(f"Account: {settings.account_address or '(not configured)'}")
    print(f"IMAP: {settings.imap.host}:{settings.imap.port}")
    print(f"SMTP: {settings.smtp.host}:{settings.smtp.port}")
    print(f"Reminder database: {settings.storage.db_path}")
    print(f"Log file: {settings.logging.file or '(disabled)'}")
    print(f"Messages per folder: {settings.ui.page_size}")


def _list_reminders(settings: AppSettings) -> int:
    try:
        with SqliteReminderRepository(settings.storage) as repository:
            reminders = repository.load_reminders()
    except ReminderStoreError as exc:
        print(f"Could not read reminders: {exc}")
        return 1

    if not reminders:
        print("No reminders scheduled.")
        return 0

    print(f"{len(reminders)} reminder(s):")
    header = f"{'UID':>8}  {'Due':<28}  When"
    print(header)
    print("-" * len(header))
    for reminder in reminders:
        due = display_datetime(reminder.return_time)
        print(f"{reminder.uid:>8}  {due:<28}  {relative_time(reminder.return_time)}")
    return 0


def _smtp_settings(settings: AppSettings) -> SmtpSettings:
    smtp = settings.smtp
    if smtp.username is None and settings.imap.username:
        smtp = smtp.model_copy(
            update={
                "username": settings.imap.username,
                "password": smtp.password or settings.imap.app_password,
                "access_token": smtp.access_token or settings.imap.access_token,
            }
        )
    return smtp


def _run_client(settings: AppSettings) -> int:
    if not settings.imap.username:
        print("Set INBOX_TUI_IMAP__USERNAME (and a password or access token) first.")
        return 1

    print("Connecting to mailbox...")
    sender = SmtpClient(_smtp_settings(settings))
    try:
        with (
            ImapClient(settings.imap) as mailbox,
            SqliteReminderRepository(settings.storage) as repository,
        ):
            session = MailSession(
                AppState(account_address=settings.account_address),
                mailbox,
                sender,
                repository,
                from_address=sender.from_address,
                page_size=settings.ui.page_size,
            )
            run_terminal(session)
    except ImapError as exc:
        print(f"Mailbox connection failed: {exc}")
        return 1
    except ReminderStoreError as exc:
        print(f"Reminder storage failed: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    main()
