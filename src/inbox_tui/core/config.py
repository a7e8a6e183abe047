"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field


def _default_config_dir() -> Path:
    return Path.home() / ".config" / "inbox_tui"


class ImapSettings(BaseModel):
    """Settings controlling IMAP connectivity."""

    host: str = Field(default="imap.gmail.com", description="IMAP hostname")
    port: int = Field(default=993, description="IMAP port, typically 993 for SSL")
    username: str | None = Field(default=None, description="Account username")
    app_password: str | None = Field(default=None, description="Gmail app password")
    access_token: str | None = Field(
        default=None, description="OAuth2 bearer token used with XOAUTH2"
    )
    use_ssl: bool = Field(default=True, description="Whether to enforce SSL")


class SmtpSettings(BaseModel):
    """Settings controlling outgoing mail delivery."""

    host: str = Field(default="smtp.gmail.com", description="SMTP hostname")
    port: int = Field(default=465, description="SMTP port")
    use_tls: bool = Field(
        default=False, description="Use STARTTLS instead of implicit SSL"
    )
    username: str | None = Field(default=None, description="Sender account")
    password: str | None = Field(default=None, description="Sender password")
    access_token: str | None = Field(
        default=None, description="OAuth2 bearer token used with XOAUTH2"
    )
    from_name: str | None = Field(default=None, description="Display name")


class StorageSettings(BaseModel):
    """Settings for local persistence."""

    db_path: Path = Field(
        default_factory=lambda: _default_config_dir() / "inbox_tui.db",
        description="SQLite database holding reminders",
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle JSON structured logging"
    )
    file: Path | None = Field(
        default=None, description="Log file used while the terminal UI is active"
    )


class UiSettings(BaseModel):
    """Settings for the interactive client."""

    page_size: int = Field(
        default=50, ge=1, description="Messages fetched per folder load"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    imap: ImapSettings = Field(default_factory=ImapSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    ui: UiSettings = Field(default_factory=UiSettings)

    @property
    def account_address(self) -> str | None:
        """Return the mailbox address used for sending and reply-all."""
        return self.smtp.username or self.imap.username


ENV_PREFIX = "INBOX_TUI_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, *, include_environment: bool
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value: Any = value
        if isinstance(value, str) and value == "":
            normalized_value = None
        elif isinstance(value, str):
            lowercase_value = value.lower()
            if lowercase_value == "true":
                normalized_value = True
            elif lowercase_value == "false":
                normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    *,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment=include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "ImapSettings",
    "LoggingSettings",
    "SmtpSettings",
    "StorageSettings",
    "UiSettings",
    "load_app_settings",
]
