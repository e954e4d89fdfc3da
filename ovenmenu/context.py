"""Menu navigation context stack and database edit caching."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, List, Optional


class ContextError(Exception):
    """Raised when a context or cache operation is not possible."""


@dataclass
class MenuContext:
    """Where the user is: menu, cursor and the selected oven address."""

    nmenu: int = 0
    nline: int = 0
    nitem: int = 0
    ntime: int = 0
    mline: int = 0
    dntx: int = 0
    dsb: int = 0
    pfe: int = 0
    zone: int = 0
    tctype: int = 0
    node: int = 0


class ContextStack:
    """A stack of menu contexts; the top one is the current context."""

    def __init__(self, root: Optional[MenuContext] = None) -> None:
        self._stack: List[MenuContext] = [root if root is not None else MenuContext()]

    @property
    def current(self) -> MenuContext:
        return self._stack[-1]

    def __len__(self) -> int:
        return len(self._stack)

    def push(self) -> MenuContext:
        """Enter a new context that keeps the current address selection."""
        old = self.current
        new = MenuContext(
            dntx=old.dntx,
            dsb=old.dsb,
            pfe=old.pfe,
            zone=old.zone,
            tctype=old.tctype,
            node=old.node,
        )
        self._stack.append(new)
        return new

    def pop(self) -> MenuContext:
        """Return to the previous context and give it back."""
        if len(self._stack) == 1:
            raise ContextError("no where to return to")
        self._stack.pop()
        return self.current


def _copy_into(target: Any, source: Any) -> None:
    if isinstance(target, (bytearray, list)):
        target[:] = source
    elif isinstance(target, dict):
        target.clear()
        target.update(source)
    elif hasattr(target, "__dict__"):
        target.__dict__.clear()
        target.__dict__.update(source.__dict__)
    else:
        raise TypeError(f"cannot update {type(target).__name__} in place")


def _check_updatable(data: Any) -> None:
    if not isinstance(data, (bytearray, list, dict)) and not hasattr(data, "__dict__"):
        raise TypeError(f"cannot cache {type(data).__name__}")


class EditCache:
    """Holds a database while it is being edited on a private copy.

    ``begin`` switches ``data`` to a copy, ``commit`` writes the copy back
    into the original object in place, ``discard`` drops the copy.
    Used as a context manager it commits on success and discards on error.
    """

    def __init__(self, data: Any) -> None:
        self._data = data
        self._original: Any = None
        self._cached = False

    @property
    def data(self) -> Any:
        return self._data

    @property
    def cached(self) -> bool:
        return self._cached

    def begin(self) -> Any:
        if self._cached:
            raise ContextError("database is already cached")
        _check_updatable(self._data)
        self._original = self._data
        self._data = copy.deepcopy(self._data)
        self._cached = True
        return self._data

    def commit(self) -> Any:
        if not self._cached:
            raise ContextError("database is not cached")
        _copy_into(self._original, self._data)
        return self._restore()

    def discard(self) -> Any:
        if not self._cached:
            raise ContextError("database is not cached")
        return self._restore()

    def _restore(self) -> Any:
        self._data = self._original
        self._original = None
        self._cached = False
        return self._data

    def __enter__(self) -> Any:
        return self.begin()

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.discard()
        return False