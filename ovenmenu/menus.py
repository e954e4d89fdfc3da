"""The scrolling, cursor-driven menu display and its command handling."""

from __future__ import annotations

import socket
from dataclasses import dataclass, field
from enum import Flag
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Tuple

from .context import ContextError, ContextStack, MenuContext
from .keys import MenuCode, next_menu_key

if TYPE_CHECKING:
    from .context import EditCache
    from .errorlog import ErrorLog

BELL = "\a"
ERROR_MENU = "er"
WRITE_MENU = "zz"
FREE_ENTRY_MENU = "cs"
MAIN_MENU = "aa"

_OVEN_NAMES = {0: "Main oven (oven0v0)", 1: "Meter cube (oven1v0)"}


class MenuError(Exception):
    """Raised by menu functions and lookups; the text goes on the status line."""


class Status(Flag):
    """What the next pass of the display has to do."""

    NONE = 0
    REPAINT = 1
    REFRESH = 2
    AUTO = 4


@dataclass
class Item:
    """One entry of a menu.

    Callbacks get the session, then the repetition number when ``ntimes``
    is set.  ``output`` returns the text of the field; ``input`` also gets
    the typed text and ``toggle`` nothing more; either may return True to
    ask for a repaint.  ``go`` moves to another menu; returning False means
    it did its work in place.  Failures raise :class:`MenuError`.
    """

    text: Optional[str] = None
    text_start: int = 0
    text_end: int = 0
    func_start: int = 0
    func_end: int = 0
    ntimes: Optional[Callable[..., int]] = None
    output: Optional[Callable[..., str]] = None
    go: Optional[Callable[..., Any]] = None
    input: Optional[Callable[..., Any]] = None
    toggle: Optional[Callable[..., Any]] = None
    mtimes: int = 1

    @property
    def repeated(self) -> bool:
        return self.ntimes is not None


@dataclass
class Menu:
    """A menu: its id and items; the first item is the title."""

    id: str
    items: List[Item]
    mlines: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError(f"menu {self.id!r} has no items")
        self.mlines = sum(item.mtimes for item in self.items)

    def count_lines(self, session: Any) -> int:
        """Recount the lines of every item and return the menu's total."""
        for item in self.items:
            item.mtimes = item.ntimes(session) if item.ntimes else 1
        self.mlines = sum(item.mtimes for item in self.items)
        return self.mlines

    def rows(self) -> Iterator[Tuple[Item, int]]:
        """Every menu line as (item, repetition number)."""
        for item in self.items:
            for itime in range(item.mtimes):
                yield item, itime


@dataclass
class MenuSet:
    """All menus; the first one is shown at start."""

    menus: List[Menu]

    def index(self, menu_id: str) -> int:
        for number, menu in enumerate(self.menus):
            if menu.id == menu_id:
                return number
        raise MenuError("goto error")

    def __getitem__(self, number: int) -> Menu:
        return self.menus[number]

    def __len__(self) -> int:
        return len(self.menus)


def retitle(menu_set: MenuSet, oven: int, host: Optional[str] = None) -> bool:
    """Name the oven and host in the main menu title; tell if it was changed."""
    if not menu_set.menus or menu_set[0].id != MAIN_MENU:
        return False
    title = menu_set[0].items[0]
    if not title.text or not title.text.startswith("Oven"):
        return False
    if host is None:
        try:
            host = socket.gethostname()
        except OSError:
            host = "anonymous"
    host = host.split(".", 1)[0]
    name = _OVEN_NAMES.get(oven, "unknown oven !! ??")
    title.text = f"Oven Main Menu -- {name} (running on {host})"
    title.text_end = len(title.text) - 1
    return True


def status_line_text(
    cached_p: bool, cached_b: bool, unseen: bool, autom: bool, top: int, bot: int, total: int
) -> str:
    """Text of the status line: cache, error and auto flags, then the lines shown."""
    cache = ("K" if cached_b else "P") if cached_p else " "
    return (
        f"{cache}{'E' if unseen else ' '}{'A' if autom else ' '}"
        f" lines {top + 1} to {bot + 1} out of {total}"
    )


class MenuSession:
    """The state of one user's walk through the menus."""

    def __init__(
        self,
        menu_set: MenuSet,
        *,
        readonly: bool = False,
        param_cache: Optional["EditCache"] = None,
        bip_cache: Optional["EditCache"] = None,
        error_log: Optional["ErrorLog"] = None,
        refresh_data: Optional[Callable[[], Any]] = None,
        console: Any = None,
        edit_parameters: bool = False,
        edit_biparameters: bool = False,
    ) -> None:
        self.menu_set = menu_set
        self.readonly = readonly
        self.param_cache = param_cache
        self.bip_cache = bip_cache
        self.error_log = error_log
        self.refresh_data = refresh_data
        self.console = console
        self.edit_parameters = edit_parameters
        self.edit_biparameters = edit_biparameters
        self.contexts = ContextStack()
        self.message = ""
        self._nlines = 24

    @property
    def context(self) -> MenuContext:
        return self.contexts.current

    @property
    def menu(self) -> Menu:
        return self.menu_set[self.context.nmenu]

    def goto(self, menu_id: str) -> None:
        """Make the menu with this id the current one."""
        self.context.nmenu = self.menu_set.index(menu_id)

    def exit(self) -> None:
        """End the session after the current command."""
        self.context.nmenu = -1

    def update_item(self) -> Tuple[int, int]:
        """Set the current item and repetition from the cursor line."""
        ctx = self.context
        found = None
        for mline, (item, itime) in enumerate(self.menu.rows()):
            if mline == ctx.nline:
                found = (self.menu.items.index(item), itime)
                break
        if found is None:
            last = len(self.menu.items) - 1
            found = (last, max(0, self.menu.items[last].mtimes - 1))
        ctx.nitem, ctx.ntime = found
        return found

    def layout(self, nlines: int) -> Tuple[int, int]:
        """Fit the scroll position and cursor to the screen; give first and last line shown."""
        self._nlines = nlines
        ctx = self.context
        menu = self.menu
        ctx.mline = max(0, min((menu.mlines - 1) - (nlines - 2), ctx.mline))
        top = ctx.mline + menu.items[0].mtimes
        bot = min(ctx.mline + nlines - 2, menu.mlines - 1)
        ctx.nline = max(top, min(bot, ctx.nline))
        return top, bot

    def cursor_position(self) -> Tuple[int, int]:
        """Screen position (column, line, from 1) of the cursor on the current item."""
        self.update_item()
        item = self.menu.items[self.context.nitem]
        if item.input:
            col = item.func_end + 1
        elif item.toggle:
            col = item.func_end
        elif item.output:
            col = item.func_start
        elif item.text:
            col = item.text_end + 1
        else:
            col = 0
        return col + 1, self.context.nline - self.context.mline + 1

    # -- commands --------------------------------------------------------

    def handle_code(
        self, code: MenuCode, nlines: int, mlines: int, top: int, bot: int
    ) -> Tuple[Status, bool]:
        """Carry out one command.

        Returns the display work it needs and whether the key loop is done;
        False means another key is to be read.
        """
        self._nlines = nlines
        ctx = self.context
        match code:
            case MenuCode.DATA:
                if self.refresh_data is not None:
                    self.refresh_data()
            case MenuCode.SCR_U0:
                ctx.mline = 0
            case MenuCode.SCR_D0:
                ctx.mline = mlines
            case MenuCode.SCR_U1:
                ctx.mline -= nlines - 3
            case MenuCode.SCR_D1:
                ctx.mline += nlines - 3
            case MenuCode.SCR_U2:
                ctx.mline -= (nlines - 2) // 2
            case MenuCode.SCR_D2:
                ctx.mline += (nlines - 2) // 2
            case MenuCode.CUR_U:
                scrolled = ctx.nline == top
                if scrolled:
                    ctx.mline -= 1
                ctx.nline -= 1
                return Status.NONE, scrolled
            case MenuCode.CUR_D:
                scrolled = ctx.nline == bot
                if scrolled:
                    ctx.mline += 1
                ctx.nline += 1
                return Status.NONE, scrolled
            case MenuCode.REPAINT:
                return Status.REPAINT, True
            case MenuCode.REFRESH:
                return Status.REFRESH, True
            case MenuCode.AUTO:
                return Status.REFRESH | Status.AUTO, True
            case MenuCode.WRITEP:
                if self._write_parameters():
                    return Status.REPAINT, True
                return Status.NONE, False
            case MenuCode.CACHEP:
                if self._cache_parameters():
                    return Status.REFRESH, True
                return Status.NONE, False
            case MenuCode.CACHEB:
                if self._cache_biparameters():
                    return Status.REFRESH, True
                return Status.NONE, False
            case MenuCode.RETURN:
                try:
                    self.contexts.pop()
                except ContextError:
                    self._status_line(BELL + "no where to return to")
                    return Status.NONE, False
                return Status.REPAINT, True
            case MenuCode.ENTER | MenuCode.IMCUR | MenuCode.ENTERG | MenuCode.IMCURG:
                status = self._enter()
                if status is None:
                    return Status.NONE, False
                if code in (MenuCode.ENTERG, MenuCode.IMCURG):
                    if not self._goto_item(False):
                        return status, False
                    status |= Status.REPAINT
                return status, True
            case MenuCode.GOTO | MenuCode.GOERR:
                if self._goto_item(code is MenuCode.GOERR):
                    return Status.REPAINT, True
                return Status.NONE, False
            case MenuCode.HELP:
                if self.console is not None:
                    self.console.show_help()
                return Status.REPAINT, False
            case _:
                self._status_line(BELL + "unrecognized key - press `?' for help")
                return Status.NONE, False
        return Status.NONE, True

    def _call(self, func: Callable[..., Any], item: Item, itime: int, *extra: Any) -> Any:
        if item.repeated:
            return func(self, itime, *extra)
        return func(self, *extra)

    def _current_item(self) -> Tuple[Item, int]:
        nitem, ntime = self.update_item()
        return self.menu.items[nitem], ntime

    def _enter_menu(self, action: Callable[[], Any]) -> bool:
        self.contexts.push()
        try:
            moved = action() is not False
        except MenuError as err:
            self.contexts.pop()
            self._status_line(BELL + str(err))
            return False
        if not moved:
            self.contexts.pop()
            self._status_line("Executed")
            return False
        return True

    def _goto_item(self, to_errors: bool) -> bool:
        item, itime = self._current_item()
        if not to_errors and item.go is None:
            self._status_line(BELL + "no where to go to")
            return False
        if self.console is not None:
            self.console.write("Executing")
            self.console.flush()
        if to_errors:
            return self._enter_menu(lambda: self.goto(ERROR_MENU))
        go = item.go
        return self._enter_menu(lambda: self._call(go, item, itime))

    def _write_parameters(self) -> bool:
        if not self.edit_parameters:
            self._status_line(BELL + "parameter editing not enabled")
            return False
        return self._enter_menu(lambda: self.goto(WRITE_MENU))

    def _cache_parameters(self) -> bool:
        if self.readonly:
            return self._refuse("parameter database is readonly")
        if self.param_cache is not None and self.param_cache.cached:
            return self._refuse("parameter database is already cached")
        if self.edit_parameters:
            return self._refuse("parameter database caching is not necessary")
        if not self._begin(self.param_cache):
            return self._refuse("could not cache parameters")
        self.edit_parameters = True
        return True

    def _cache_biparameters(self) -> bool:
        if not self.edit_parameters:
            return self._refuse("parameter editing not enabled")
        if self.readonly:
            return self._refuse("clock parameter database is readonly")
        if self.bip_cache is not None and self.bip_cache.cached:
            return self._refuse("clock parameter database is already cached")
        if self.edit_biparameters:
            return self._refuse("clock parameter database caching is not necessary")
        if not self._begin(self.bip_cache):
            return self._refuse("could not cache clock parameters")
        self.edit_biparameters = True
        return True

    @staticmethod
    def _begin(cache: Optional["EditCache"]) -> bool:
        if cache is None:
            return False
        try:
            cache.begin()
        except (ContextError, TypeError):
            return False
        return True

    def _refuse(self, message: str) -> bool:
        self._status_line(BELL + message)
        return False

    def _enter(self) -> Optional[Status]:
        item, itime = self._current_item()
        if item.input is None and item.toggle is None:
            self._refuse("cannot enter data")
            return None
        if not self.edit_parameters and self.menu.id != FREE_ENTRY_MENU:
            self._refuse("parameter editing not enabled")
            return None
        try:
            if item.input is not None:
                if self.console is None:
                    raise RuntimeError("no console to read input from")
                self.console.clear_to_eol()
                self._place_cursor()
                text = self.console.read_string()
                repaint = self._call(item.input, item, itime, text)
            else:
                repaint = self._call(item.toggle, item, itime)
        except MenuError as err:
            self._refuse(str(err))
            return None
        return Status.REPAINT if repaint else Status.REFRESH

    # -- display ---------------------------------------------------------

    def _status_line(self, text: str) -> None:
        self.message = text
        if self.console is not None:
            self.console.move(1, self._nlines)
            self.console.clear_to_eol()
            self.console.write(text)

    def _place_cursor(self) -> None:
        if self.console is not None:
            self.console.move(*self.cursor_position())

    def _draw(self, item: Item, itime: int, nline: int, repaint: bool, refresh: bool) -> None:
        console = self.console
        if repaint and item.text:
            console.write_at(item.text_start + 1, nline + 1, item.text)
        if (repaint or refresh) and item.output:
            console.write_at(item.func_start + 1, nline + 1, self._call(item.output, item, itime))
            console.clear_to_eol()

    def _read_command(
        self, period: int, autom: bool, nlines: int, mlines: int, top: int, bot: int
    ) -> Status:
        start_mline = self.context.mline
        status = Status.NONE
        while True:
            self._place_cursor()
            code = next_menu_key(lambda: self.console.key(period), autom)
            autom = False
            result, done = self.handle_code(code, nlines, mlines, top, bot)
            status |= result
            if done:
                break
        if not status & Status.REPAINT:
            ctx = self.context
            ctx.mline = max(0, min((mlines - 1) - (nlines - 2), ctx.mline))
            if ctx.mline != start_mline:
                status |= Status.REPAINT
        if status & (Status.REPAINT | Status.REFRESH):
            self.console.raw()
        return status

    def run(self, console: Any, period: int = 60) -> None:
        """Show the menus on ``console`` until a menu function ends the session."""
        self.console = console
        console.open()
        try:
            status = Status.REPAINT
            while self.context.nmenu >= 0:
                _, nlines = console.size()
                menu = self.menu
                repaint = bool(status & Status.REPAINT)
                refresh = bool(status & Status.REFRESH)
                if repaint:
                    console.clear()
                if repaint or menu.id == ERROR_MENU:
                    menu.count_lines(self)
                top, bot = self.layout(nlines)
                top_nline = menu.items[0].mtimes
                for mline, (item, itime) in enumerate(menu.rows()):
                    if mline < top:
                        continue
                    if mline > bot:
                        break
                    self._draw(item, itime, top_nline + mline - top, repaint, refresh)
                    console.flush()
                title = menu.items[0]
                for itime in range(title.mtimes):
                    self._draw(title, itime, itime, repaint, refresh)
                unseen = self.error_log.has_unseen() if self.error_log is not None else False
                self._status_line(
                    status_line_text(
                        self.param_cache is not None and self.param_cache.cached,
                        self.bip_cache is not None and self.bip_cache.cached,
                        unseen,
                        bool(status & Status.AUTO),
                        top,
                        bot,
                        menu.mlines,
                    )
                )
                self._place_cursor()
                status = self._read_command(
                    period, bool(status & Status.AUTO), nlines, menu.mlines, top, bot
                )
        finally:
            console.close()