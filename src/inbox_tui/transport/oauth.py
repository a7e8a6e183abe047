"""XOAUTH2 SASL helpers shared by the IMAP and SMTP adapters."""

from __future__ import annotations


def build_xoauth2_string(username: str, access_token: str) -> str:
    """Return the unencoded XOAUTH2 initial client response."""
    return f"user={username}\x01auth=Bearer {access_token}\x01\x01"


__all__ = ["build_xoauth2_string"]
