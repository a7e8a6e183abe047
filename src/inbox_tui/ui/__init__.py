"""Interactive terminal client: state machine, editor, rendering and driver."""

from .actions import Action
from .keybindings import handle_key_event
from .keys import Key, KeyEvent
from .render import Screen, render_screen
from .session import MailSession
from .state import AppState, View
from .terminal import run_terminal

__all__ = [
    "Action",
    "AppState",
    "Key",
    "KeyEvent",
    "MailSession",
    "Screen",
    "View",
    "handle_key_event",
    "render_screen",
    "run_terminal",
]
