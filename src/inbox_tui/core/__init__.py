"""Core utilities for configuration, logging, and the domain model."""

from .config import AppSettings, SmtpSettings, UiSettings, load_app_settings
from .logging import configure_logging
from .models import Folder, Message, MessageChunk, OutgoingMessage, Reminder

__all__ = [
    "AppSettings",
    "Folder",
    "Message",
    "MessageChunk",
    "OutgoingMessage",
    "Reminder",
    "SmtpSettings",
    "UiSettings",
    "configure_logging",
    "load_app_settings",
]
