"""Command-line options and operator checks shared by the oven programs."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

DEFAULT_PERIOD = 60
"""Seconds between automatic display refreshes."""

PILOT_USERS = frozenset({"pilot", "pilot2", "tom"})
"""Login names allowed to write to the oven databases."""

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


@dataclass
class OvenOptions:
    """Settings chosen on the command line."""

    oven: int = 0
    comp: int = 0
    readonly: bool = False
    period: int = DEFAULT_PERIOD
    offset: int = 0
    log_data: bool = True


def _leading_int(text: str) -> int:
    """Read a leading decimal integer, giving 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else 0


def parse_args(argv: Optional[Sequence[str]] = None) -> OvenOptions:
    """Build options from arguments (program name excluded).

    ``-o<n>`` selects oven 0 or 1, ``-c<n>`` computer 0 to 2, ``-M`` is a
    shortcut for oven 1 and ``-nol...`` turns data logging off.  Values
    out of range are ignored; later arguments override earlier ones.
    """
    if argv is None:
        argv = sys.argv[1:]
    options = OvenOptions()
    for arg in argv:
        if arg.startswith("-o"):
            value = _leading_int(arg[2:])
            if 0 <= value <= 1:
                options.oven = value
        if arg.startswith("-c"):
            value = _leading_int(arg[2:])
            if 0 <= value <= 2:
                options.comp = value
        if arg.startswith("-M"):
            options.oven = 1
        if arg.startswith("-nol"):
            options.log_data = False
    return options


def is_pilot(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Tell whether the current user may write to the databases."""
    if environ is None:
        environ = os.environ
    return environ.get("USER") in PILOT_USERS