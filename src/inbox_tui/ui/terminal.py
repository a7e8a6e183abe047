"""Curses front end: turns key codes into events and paints screens."""

from __future__ import annotations

import curses
import logging

from .keys import Key, KeyEvent
from .render import Popup, Screen, Span, Style, display_width, fit, render_screen
from .session import MailSession

LOGGER = logging.getLogger(__name__)

# Milliseconds to wait for a key before checking reminders again.
IDLE_TIMEOUT_MS = 30_000

_SPECIAL_KEYS = {
    curses.KEY_ENTER: Key.ENTER,
    curses.KEY_BACKSPACE: Key.BACKSPACE,
    curses.KEY_BTAB: Key.BACKTAB,
    curses.KEY_LEFT: Key.LEFT,
    curses.KEY_RIGHT: Key.RIGHT,
    curses.KEY_UP: Key.UP,
    curses.KEY_DOWN: Key.DOWN,
    curses.KEY_PPAGE: Key.PAGE_UP,
    curses.KEY_NPAGE: Key.PAGE_DOWN,
}

_CONTROL_CHARS = {
    "\n": Key.ENTER,
    "\r": Key.ENTER,
    "\t": Key.TAB,
    "\x1b": Key.ESC,
    "\x7f": Key.BACKSPACE,
    "\x08": Key.BACKSPACE,
}


def translate_key(raw: int | str) -> KeyEvent | None:
    """Map a ``get_wch`` result to a :class:`KeyEvent`; ``None`` if unknown."""
    if isinstance(raw, int):
        key = _SPECIAL_KEYS.get(raw)
        return KeyEvent(key) if key is not None else None
    if raw in _CONTROL_CHARS:
        return KeyEvent(_CONTROL_CHARS[raw])
    code = ord(raw)
    if 1 <= code <= 26:
        return KeyEvent(chr(code + ord("a") - 1), ctrl=True)
    if not raw.isprintable():
        return None
    return KeyEvent(raw)


class TerminalApp:
    """Own the curses screen and feed key presses to a ``MailSession``."""

    def __init__(self, session: MailSession) -> None:
        self._session = session
        self._stdscr: curses.window | None = None
        self._attrs: dict[Style, int] = {}

    def run(self, stdscr: curses.window) -> None:
        self._stdscr = stdscr
        self._setup(stdscr)
        self._session.progress_callback = self.paint
        self._session.start()

        while not self._session.state.should_quit:
            self.paint()
            try:
                raw = stdscr.get_wch()
            except curses.error:
                # Timed out waiting for input.
                self._session.check_reminders()
                continue
            if raw == curses.KEY_RESIZE:
                continue
            event = translate_key(raw)
            if event is None:
                continue
            height, _ = stdscr.getmaxyx()
            self._session.handle_key(event, view_height=max(1, height - 2))
        LOGGER.info("Terminal session finished")

    def _setup(self, stdscr: curses.window) -> None:
        curses.raw()
        curses.set_escdelay(25)
        stdscr.keypad(True)
        stdscr.timeout(IDLE_TIMEOUT_MS)
        self._attrs = {
            Style.NORMAL: curses.A_NORMAL,
            Style.DIM: curses.A_DIM,
            Style.BOLD: curses.A_BOLD,
            Style.TITLE: curses.A_BOLD | curses.A_UNDERLINE,
            Style.HIGHLIGHT: curses.A_REVERSE,
            Style.MARKED: curses.A_BOLD,
            Style.ERROR: curses.A_BOLD,
            Style.INFO: curses.A_NORMAL,
        }
        if curses.has_colors():
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(1, curses.COLOR_RED, -1)
            curses.init_pair(2, curses.COLOR_CYAN, -1)
            curses.init_pair(3, curses.COLOR_YELLOW, -1)
            self._attrs[Style.ERROR] |= curses.color_pair(1)
            self._attrs[Style.INFO] |= curses.color_pair(2)
            self._attrs[Style.MARKED] |= curses.color_pair(3)

    # Painting --------------------------------------------------------------
    def paint(self) -> None:
        stdscr = self._stdscr
        if stdscr is None:
            return
        height, width = stdscr.getmaxyx()
        screen = render_screen(self._session.state, width, height)
        stdscr.erase()
        self._draw_spans(0, 0, screen.title.spans, width)
        for row, line in enumerate(screen.body, start=1):
            self._draw_spans(row, 0, line.spans, width)
        self._draw_spans(height - 1, 0, screen.status.spans, width - 1)
        if screen.popup is not None:
            self._draw_popup(screen.popup)
        self._place_cursor(screen)
        stdscr.refresh()

    def _draw_popup(self, popup: Popup) -> None:
        inner = popup.width - 2
        bottom = popup.top + popup.height - 1
        title = f" {popup.title} "
        border = "┌" + title + "─" * max(0, inner - display_width(title)) + "┐"
        self._addstr(popup.top, popup.left, border, curses.A_BOLD)
        for offset in range(1, popup.height - 1):
            line = popup.lines[offset - 1] if offset - 1 < len(popup.lines) else None
            self._addstr(
                popup.top + offset, popup.left, "│" + " " * inner + "│", curses.A_BOLD
            )
            if line is not None:
                self._draw_spans(popup.top + offset, popup.left + 2, line.spans, inner - 2)
        self._addstr(bottom, popup.left, "└" + "─" * inner + "┘", curses.A_BOLD)

    def _draw_spans(self, row: int, column: int, spans: list[Span], width: int) -> None:
        remaining = width
        for span in spans:
            if remaining <= 0:
                break
            text = span.text
            if display_width(text) > remaining:
                text = fit(text, remaining).rstrip(" ")
            self._addstr(row, column, text, self._attrs.get(span.style, curses.A_NORMAL))
            used = display_width(text)
            column += used
            remaining -= used

    def _place_cursor(self, screen: Screen) -> None:
        stdscr = self._stdscr
        assert stdscr is not None
        if screen.cursor is None:
            _set_cursor_visible(False)
            return
        row, column = screen.cursor
        _set_cursor_visible(True)
        try:
            stdscr.move(row, column)
        except curses.error:
            _set_cursor_visible(False)

    def _addstr(self, row: int, column: int, text: str, attr: int) -> None:
        assert self._stdscr is not None
        try:
            self._stdscr.addstr(row, column, text, attr)
        except curses.error:
            # Writing the bottom-right cell raises after drawing succeeded.
            pass


def _set_cursor_visible(visible: bool) -> None:
    try:
        curses.curs_set(1 if visible else 0)
    except curses.error:
        pass


def run_terminal(session: MailSession) -> None:
    """Run ``session`` full screen until the user quits."""
    curses.wrapper(TerminalApp(session).run)


__all__ = ["TerminalApp", "run_terminal", "translate_key"]
