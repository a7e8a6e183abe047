"""Terminal-independent keyboard events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Key(Enum):
    """Non-printable keys understood by the client."""

    ENTER = "enter"
    ESC = "esc"
    BACKSPACE = "backspace"
    TAB = "tab"
    BACKTAB = "backtab"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"


@dataclass(frozen=True, slots=True)
class KeyEvent:
    """A single key press: a printable character or a :class:`Key`."""

    key: str | Key
    ctrl: bool = False

    @property
    def char(self) -> str | None:
        """Return the typed character for plain printable presses."""
        if isinstance(self.key, str) and not self.ctrl:
            return self.key
        return None

    def is_ctrl(self, letter: str) -> bool:
        return self.ctrl and self.key == letter


__all__ = ["Key", "KeyEvent"]
