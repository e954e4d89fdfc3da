"""Mapping of keystrokes to menu commands."""

from __future__ import annotations

from enum import Enum, auto
from typing import Callable, Dict, Union

INTERRUPT_KEY = 0o3
"""Control-C, taken as a cursor move down."""

AUTO_KEY = ord("q")
"""Key taken in automatic refresh mode: it asks for an immediate refresh."""

_ESCAPE = 0o33
_IGNORED = frozenset({_ESCAPE, ord("["), ord("O")})


class MenuCode(Enum):
    """Commands the menu display understands."""

    UNKNOWN = auto()
    DATA = auto()
    SCR_U0 = auto()
    SCR_D0 = auto()
    SCR_U1 = auto()
    SCR_D1 = auto()
    SCR_U2 = auto()
    SCR_D2 = auto()
    CUR_U = auto()
    CUR_D = auto()
    REPAINT = auto()
    REFRESH = auto()
    AUTO = auto()
    WRITEP = auto()
    CACHEP = auto()
    CACHEB = auto()
    RETURN = auto()
    ENTER = auto()
    ENTERG = auto()
    IMCUR = auto()
    IMCURG = auto()
    GOTO = auto()
    GOERR = auto()
    HELP = auto()


def _build_keymap() -> Dict[int, MenuCode]:
    groups = {
        "d": MenuCode.SCR_D2,
        "u": MenuCode.SCR_U2,
        "f ": MenuCode.SCR_D1,
        "b": MenuCode.SCR_U1,
        "g": MenuCode.SCR_D0,
        ".": MenuCode.SCR_U0,
        "?": MenuCode.HELP,
        "Bj\n\r\x1a": MenuCode.CUR_D,
        "Ak\x17": MenuCode.CUR_U,
        "Dn\x19": MenuCode.GOTO,
        "!": MenuCode.GOERR,
        "Cp\x18": MenuCode.RETURN,
        "l": MenuCode.REPAINT,
        "q": MenuCode.REFRESH,
        "a": MenuCode.AUTO,
        "eE": MenuCode.ENTER,
        "r": MenuCode.DATA,
        "i": MenuCode.IMCUR,
        "m": MenuCode.ENTERG,
        "o": MenuCode.IMCURG,
        "P": MenuCode.CACHEP,
        "K": MenuCode.CACHEB,
        "W": MenuCode.WRITEP,
    }
    keymap = {ord(ch): code for chars, code in groups.items() for ch in chars}
    keymap[INTERRUPT_KEY] = MenuCode.CUR_D
    return keymap


_KEYMAP = _build_keymap()


def map_key(key: Union[int, str]) -> MenuCode:
    """Give the command for a key code or a one-character string."""
    if isinstance(key, str):
        if len(key) != 1:
            return MenuCode.UNKNOWN
        key = ord(key)
    return _KEYMAP.get(key, MenuCode.UNKNOWN)


def next_menu_key(read_key: Callable[[], int], autom: bool = False) -> MenuCode:
    """Read keys until one gives a command and return that command.

    Escape, ``[`` and ``O`` are skipped so that the arrow keys arrive as
    ``A``, ``B``, ``C`` and ``D``.  In automatic mode no key is read and
    an immediate refresh is asked for.
    """
    if autom:
        return map_key(AUTO_KEY)
    while True:
        key = read_key()
        if key not in _IGNORED:
            return map_key(key)