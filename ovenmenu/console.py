"""Full-screen terminal output and keyboard input for the menu display.

Positions given to :class:`Console` count from 1 (column, line).  The
terminal library counts from 0 as (line, column) and is converted here.
"""

from __future__ import annotations

import sys
from typing import Any, Optional, Tuple

KEY_TIMEOUT_MS = 100
"""How long one key read waits before giving up, in milliseconds."""

REFRESH_KEY = ord("q")
"""Key reported when the automatic refresh period has run out."""

REPAINT_KEY = ord("l")
"""Key reported after the help screen so that the page is repainted."""

HELP_TEXT = (
    "?\t\tHelp for cursor mode",
    "j, CR\t\tCursor down one line",
    "d\t\tScroll down half page",
    "f, SP\t\tScroll down full page",
    "g\t\tScroll down to end of page",
    "k\t\tCursor up   one line",
    "u\t\tScroll up   half page",
    "b\t\tScroll up   full page",
    ".\t\tScroll up   to top of page",
    "n\t\tGo     to related  menu",
    "!\t\tGo directly to error menu",
    "p\t\tReturn to previous menu",
    "l\t\tRepaint page",
    "q\t\tRefresh page",
    "a\t\tAuto-refresh page",
    "e\t\tEnter new data",
    "i\t\tEnter new data from image cursor",
    "m\t\tEnter new data and go to related menu",
    "o\t\tEnter new data from image cursor and go to",
    "P\t\tEnable parameter edit and cache",
    "K\t\tEnable clock parameter edit and cache",
    "W\t\tFlush parameter cache",
    " Press any key to exit",
)

PROMPT = " ? : "
"""Prompt shown when a value is to be typed in."""


def _default_backend() -> Any:
    import curses

    return curses


class Console:
    """The terminal the menus are drawn on.

    ``backend`` is the terminal library module (``curses`` by default); it
    must provide ``initscr``, ``endwin``, ``echo``, ``noecho``, ``cbreak``,
    ``nocbreak``, ``raw`` and ``noraw``.  Key reads wake up every
    ``KEY_TIMEOUT_MS`` milliseconds so that the page can refresh itself.
    """

    def __init__(self, backend: Any = None) -> None:
        self._backend = backend
        self._screen: Any = None
        self._update_wait: Optional[int] = None
        self._pushed: Optional[int] = None

    # -- lifecycle -------------------------------------------------------

    def open(self) -> "Console":
        """Take over the terminal."""
        if self._backend is None:
            self._backend = _default_backend()
        self._screen = self._backend.initscr()
        self._screen.timeout(KEY_TIMEOUT_MS)
        self._backend.noecho()
        return self

    def close(self) -> None:
        """Give the terminal back."""
        if self._screen is None:
            return
        self._backend.endwin()
        self._screen = None

    def __enter__(self) -> "Console":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    @property
    def is_open(self) -> bool:
        return self._screen is not None

    def _win(self) -> Any:
        if self._screen is None:
            raise RuntimeError("console is not open")
        return self._screen

    def _ignore_errors(self) -> Tuple[type, ...]:
        error = getattr(self._backend, "error", None)
        return (error,) if isinstance(error, type) else ()

    # -- output ----------------------------------------------------------

    def size(self) -> Tuple[int, int]:
        """Screen size as (columns, lines)."""
        lines, cols = self._win().getmaxyx()
        return cols, lines

    def clear(self) -> None:
        win = self._win()
        win.clear()
        win.refresh()

    def clear_to_eol(self) -> None:
        self._win().clrtoeol()

    def move(self, col: int, line: int) -> None:
        """Put the cursor at column ``col`` of line ``line`` (from 1)."""
        try:
            self._win().move(line - 1, col - 1)
        except self._ignore_errors():
            pass

    def write(self, text: str) -> None:
        """Write ``text`` at the cursor."""
        win = self._win()
        try:
            win.addstr(text)
        except self._ignore_errors():
            pass
        win.refresh()

    def write_at(self, col: int, line: int, text: str) -> None:
        """Write ``text`` starting at column ``col`` of line ``line`` (from 1)."""
        win = self._win()
        try:
            win.addstr(line - 1, col - 1, text)
        except self._ignore_errors():
            pass
        win.refresh()

    def raw(self) -> None:
        self._win()
        self._backend.raw()

    def noraw(self) -> None:
        self._win()
        self._backend.noraw()

    @staticmethod
    def flush() -> None:
        sys.stdout.flush()
        sys.stderr.flush()

    # -- input -----------------------------------------------------------

    def key(self, period: int) -> int:
        """Wait for a key and return its code.

        When no key arrives within about ``period`` seconds, ``REFRESH_KEY``
        is returned so that the caller refreshes the page.  The countdown
        carries over between calls and restarts after it runs out.
        """
        win = self._win()
        if self._pushed is not None:
            code, self._pushed = self._pushed, None
            return code
        if self._update_wait is None:
            self._update_wait = 10 * period
        while True:
            code = win.getch()
            if code != -1:
                return code
            self._update_wait -= 1
            if self._update_wait <= 0:
                self._update_wait = 10 * period
                return REFRESH_KEY

    def read_string(self) -> str:
        """Prompt for and read a line of text, echoed as it is typed."""
        win = self._win()
        self._backend.nocbreak()
        self._backend.echo()
        win.timeout(-1)
        try:
            try:
                win.addstr(PROMPT)
            except self._ignore_errors():
                pass
            raw = win.getstr()
        finally:
            win.timeout(KEY_TIMEOUT_MS)
            self._backend.noecho()
            self._backend.cbreak()
        if isinstance(raw, (bytes, bytearray)):
            return bytes(raw).decode("utf-8", errors="replace")
        return str(raw)

    def show_help(self) -> None:
        """Show the key help until a key is pressed, then ask for a repaint."""
        win = self._win()
        win.clear()
        for row, text in enumerate(HELP_TEXT):
            try:
                win.addstr(row, 0, text)
            except self._ignore_errors():
                pass
        win.refresh()
        while win.getch() == -1:
            pass
        self._pushed = REPAINT_KEY