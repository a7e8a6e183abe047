"""Cursor arithmetic and editing primitives over text buffers.

Positions are character offsets in ``[0, len(text)]``; the end position
addresses the slot after the last character. Every function returns
positions inside that range, whatever it is given.
"""

from __future__ import annotations


def clamp(text: str, pos: int) -> int:
    return max(0, min(pos, len(text)))


def insert(text: str, pos: int, value: str) -> tuple[str, int]:
    """Insert ``value`` at ``pos`` and return the text and the new cursor."""
    pos = clamp(text, pos)
    return text[:pos] + value + text[pos:], pos + len(value)


def delete_before(text: str, pos: int) -> tuple[str, int]:
    """Remove the character left of the cursor (Backspace)."""
    pos = clamp(text, pos)
    if pos == 0:
        return text, 0
    return text[: pos - 1] + text[pos:], pos - 1


def delete_at(text: str, pos: int) -> str:
    """Remove the character under the cursor."""
    pos = clamp(text, pos)
    return text[:pos] + text[pos + 1 :]


def delete_range(text: str, start: int, end: int) -> str:
    start, end = sorted((clamp(text, start), clamp(text, end)))
    return text[:start] + text[end:]


def move_left(text: str, pos: int, count: int = 1) -> int:
    return clamp(text, pos - count)


def move_right(text: str, pos: int, count: int = 1) -> int:
    return clamp(text, pos + count)


def word_forward(text: str, pos: int) -> int:
    """Return the start of the next word (vim ``w``)."""
    pos = clamp(text, pos)
    length = len(text)
    while pos < length and not text[pos].isspace():
        pos += 1
    while pos < length and text[pos].isspace():
        pos += 1
    return pos


def word_backward(text: str, pos: int) -> int:
    """Return the start of the current or previous word (vim ``b``)."""
    pos = clamp(text, pos)
    if pos == 0:
        return 0
    pos -= 1
    while pos > 0 and text[pos].isspace():
        pos -= 1
    while pos > 0 and not text[pos - 1].isspace():
        pos -= 1
    return pos


def word_end(text: str, pos: int) -> int:
    """Return the last character of the current or next word (vim ``e``)."""
    length = len(text)
    start = clamp(text, pos)
    pos = start + 1
    while pos < length and text[pos].isspace():
        pos += 1
    if pos >= length:
        return start
    while pos + 1 < length and not text[pos + 1].isspace():
        pos += 1
    return pos


def line_bounds(text: str, pos: int) -> tuple[int, int]:
    """Return ``(start, end)`` of the line holding ``pos``; ``end`` excludes the newline."""
    pos = clamp(text, pos)
    start = text.rfind("\n", 0, pos) + 1
    end = text.find("\n", pos)
    if end == -1:
        end = len(text)
    return start, end


def line_start(text: str, pos: int) -> int:
    return line_bounds(text, pos)[0]


def line_end(text: str, pos: int) -> int:
    """Return the slot after the last character of the line."""
    return line_bounds(text, pos)[1]


def line_last_char(text: str, pos: int) -> int:
    """Return the last character of the line, or its start when empty (vim ``$``)."""
    start, end = line_bounds(text, pos)
    return max(start, end - 1)


def delete_line(text: str, pos: int) -> tuple[str, int]:
    """Remove the line holding ``pos`` together with one adjoining newline."""
    start, end = line_bounds(text, pos)
    if end < len(text):
        remaining = text[:start] + text[end + 1 :]
        return remaining, start
    if start > 0:
        remaining = text[: start - 1]
        return remaining, line_start(remaining, len(remaining))
    return "", 0


def clear_line(text: str, pos: int) -> tuple[str, int]:
    """Empty the line holding ``pos`` but keep the line itself."""
    start, end = line_bounds(text, pos)
    return text[:start] + text[end:], start


__all__ = [
    "clamp",
    "clear_line",
    "delete_at",
    "delete_before",
    "delete_line",
    "delete_range",
    "insert",
    "line_bounds",
    "line_end",
    "line_last_char",
    "line_start",
    "move_left",
    "move_right",
    "word_backward",
    "word_end",
    "word_forward",
]
