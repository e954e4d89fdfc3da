"""The oven error log: fixed-length records appended under a lock file.

Each record is exactly ``LINE_LENGTH`` characters including its newline,
so the log can be read by record number.  A record names the menu and
the address where the error can be inspected, as ``@addr<mm ...>``.
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple, Union

LINE_LENGTH = 79
"""Length of one error log record, newline included."""

LOG_NAME = "errors.log"
LOCK_NAME = "errors.lok"

ERROR_MENUS = frozenset({"zo", "he", "pp", "tc", "sb", "dc", "ti", "al", "ms"})
"""Menus an error record may point to."""

_RECORD_FORMAT = "%16.16s %1.1dv%1.1d#%6.6d@%-4.4s<%2.2s %-11.11s>%2.2d %-27.27s\n"

PathLike = Union[str, "os.PathLike[str]"]

_log = logging.getLogger(__name__)


def error_timestamp(when: Optional[datetime] = None) -> str:
    """Time stamp of a record: ``ctime`` form without the year."""
    when = when or datetime.now()
    return when.ctime()[:-5]


def format_error_line(
    timestamp: str,
    noven: int,
    ncomp: int,
    count: int,
    address: str,
    menu: str,
    location: str,
    errnum: int,
    message: str,
) -> str:
    """Build one log record of exactly ``LINE_LENGTH`` characters.

    The weekday is dropped from ``timestamp``.  A record that would come
    out too long (for instance from a huge count) is cut to length.
    """
    line = _RECORD_FORMAT % (
        timestamp[4:],
        noven,
        ncomp,
        count,
        address,
        menu,
        location,
        errnum,
        message,
    )
    if len(line) != LINE_LENGTH or line[-1] != "\n":
        line = line[: LINE_LENGTH - 1] + "\n"
        _log.warning("error log line trimmed")
    return line


@contextmanager
def _locked(directory: Path, poll: float = 1.0) -> Iterator[None]:
    lock = directory / LOCK_NAME
    while True:
        try:
            fd = os.open(lock, os.O_RDWR | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            time.sleep(poll)
            continue
        os.close(fd)
        break
    try:
        yield
    finally:
        lock.unlink(missing_ok=True)


def append_lines(lines: Iterable[str], directory: PathLike = ".") -> Path:
    """Append records to the error log, holding the lock file meanwhile."""
    base = Path(directory)
    path = base / LOG_NAME
    with _locked(base):
        with path.open("a", encoding="ascii", errors="replace") as handle:
            for line in lines:
                handle.write(line)
                handle.flush()
    return path


def parse_error_target(line: str) -> Tuple[str, str]:
    """Give the menu id and address a record points to.

    Raises ValueError when the record names no place to go.
    """
    _, bracket, after = line.partition("<")
    if not bracket or len(after) < 2:
        raise ValueError("no where to go to")
    menu = after[:2]
    _, at, after = line.partition("@")
    if not at or len(after) < 4:
        raise ValueError("no where to go to")
    address = after[:4].rstrip(" ")
    if menu not in ERROR_MENUS:
        raise ValueError(f"no where to go to: unknown menu {menu!r}")
    return menu, address


class ErrorLog:
    """Reader of the error log that tracks how many records were seen.

    ``seen`` is the number of records already shown; unless ``readonly``,
    reading the last record marks all as seen, and a log that shrank
    below ``seen`` resets it to 0.
    """

    def __init__(self, directory: PathLike = ".", readonly: bool = False, seen: int = 0) -> None:
        self.path = Path(directory) / LOG_NAME
        self.readonly = readonly
        self.seen = seen

    def count(self) -> int:
        """Number of whole records in the log."""
        try:
            nlines = self.path.stat().st_size // LINE_LENGTH
        except OSError:
            nlines = 0
        if self.seen > nlines and not self.readonly:
            self.seen = 0
        return nlines

    def line(self, n: int) -> str:
        """Record ``n`` (counting from 0) without its newline."""
        nlines = self.count()
        if not 0 <= n < nlines:
            raise IndexError(f"record {n} outside 0..{nlines - 1}")
        with self.path.open("rb") as handle:
            handle.seek(n * LINE_LENGTH)
            raw = handle.read(LINE_LENGTH)
        if len(raw) != LINE_LENGTH:
            return ""
        if n == nlines - 1 and not self.readonly:
            self.seen = max(n + 1, self.seen)
        return raw[: LINE_LENGTH - 1].decode("ascii", errors="replace")

    def has_unseen(self) -> bool:
        """Tell whether there are records not yet seen."""
        return self.count() > self.seen