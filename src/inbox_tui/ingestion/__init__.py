"""Ingestion pipeline components."""

from .parser import EmailParser, MessageParseError, html_to_text

__all__ = [
    "EmailParser",
    "MessageParseError",
    "html_to_text",
]
