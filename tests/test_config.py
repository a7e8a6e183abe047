"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from inbox_tui.core.config import AppSettings, load_app_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.imap.host == "imap.gmail.com"
    assert settings.smtp.port == 465
    assert settings.storage.db_path.name == "inbox_tui.db"
    assert settings.ui.page_size == 50
    assert settings.logging.file is None


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "INBOX_TUI_IMAP__HOST=imap.example.com\n"
        "INBOX_TUI_IMAP__USE_SSL=false\n"
        "INBOX_TUI_UI__PAGE_SIZE=25\n"
        "INBOX_TUI_SMTP__FROM_NAME=\n"
        "UNRELATED_KEY=ignored\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.imap.host == "imap.example.com"
    assert settings.imap.use_ssl is False
    assert settings.ui.page_size == 25
    assert settings.smtp.from_name is None


def test_process_environment_wins_over_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("INBOX_TUI_IMAP__USERNAME=file@example.com\n", encoding="utf-8")
    monkeypatch.setenv("INBOX_TUI_IMAP__USERNAME", "env@example.com")

    settings = load_app_settings(env_file=env_file)
    assert settings.imap.username == "env@example.com"


def test_account_address_prefers_smtp_username() -> None:
    settings = AppSettings.model_validate(
        {"imap": {"username": "imap@example.com"}, "smtp": {"username": "smtp@example.com"}}
    )
    assert settings.account_address == "smtp@example.com"

    imap_only = AppSettings.model_validate({"imap": {"username": "imap@example.com"}})
    assert imap_only.account_address == "imap@example.com"
