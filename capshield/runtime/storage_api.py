"""
capshield.runtime.storage_api — journaled in-memory state.

Every ledger keeps its state in a handful of ``JournaledMap`` containers that
share one ``Journal``. While a transaction is open, each write records an undo
closure; ``rollback`` replays them in reverse so a failed call leaves no trace,
and ``commit`` discards them once the outermost transaction succeeds.

Transactions nest: an inner ``begin`` returns a savepoint, and only the
outermost ``commit`` clears the undo log. Writes made while no transaction is
open are applied directly and cannot be undone.

Usage
-----
    journal = Journal()
    balances = JournaledMap(journal, "balances", default=0)
    with journal.transaction():
        balances[alice] = 10
        raise RuntimeError   # balances[alice] is restored
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import (Any, Callable, Dict, Generic, Hashable, Iterator, List,
                    Optional, Tuple, TypeVar)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()

UndoFn = Callable[[], None]


class JournalError(Exception):
    """Misuse of the journal (commit/rollback without begin)."""


class Journal:
    """Undo log shared by all containers of one ledger."""

    def __init__(self) -> None:
        self._undo: List[UndoFn] = []
        self._depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def active(self) -> bool:
        return self._depth > 0

    def record(self, undo: UndoFn) -> None:
        if self._depth:
            self._undo.append(undo)

    def begin(self) -> int:
        """Open a (possibly nested) transaction; return its savepoint."""
        self._depth += 1
        return len(self._undo)

    def commit(self) -> None:
        if self._depth == 0:
            raise JournalError("commit without begin")
        self._depth -= 1
        if self._depth == 0:
            self._undo.clear()

    def rollback(self, savepoint: int = 0) -> None:
        if self._depth == 0:
            raise JournalError("rollback without begin")
        while len(self._undo) > savepoint:
            self._undo.pop()()
        self._depth -= 1

    @contextmanager
    def transaction(self) -> Iterator[None]:
        savepoint = self.begin()
        try:
            yield
        except BaseException:
            self.rollback(savepoint)
            raise
        else:
            self.commit()


class JournaledMap(Generic[K, V]):
    """
    Dict-like container whose writes are undoable through a Journal.

    Reads of absent keys return ``default``. Entries are never deleted by the
    ledgers (a zero balance is a valid steady state); ``pop`` exists for
    bookkeeping maps such as pending handover requests.
    """

    def __init__(self, journal: Journal, name: str, default: Any = None) -> None:
        self._journal = journal
        self._data: Dict[K, V] = {}
        self.name = name
        self.default = default

    def get(self, key: K, default: Any = _MISSING) -> Any:
        if default is _MISSING:
            default = self.default
        return self._data.get(key, default)

    def __getitem__(self, key: K) -> V:
        return self._data.get(key, self.default)

    def __setitem__(self, key: K, value: V) -> None:
        prev = self._data.get(key, _MISSING)
        self._data[key] = value
        self._journal.record(lambda: self._restore(key, prev))

    def pop(self, key: K, default: Any = None) -> Any:
        prev = self._data.pop(key, _MISSING)
        if prev is _MISSING:
            return default
        self._journal.record(lambda: self._restore(key, prev))
        return prev

    def _restore(self, key: K, prev: Any) -> None:
        if prev is _MISSING:
            self._data.pop(key, None)
        else:
            self._data[key] = prev

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def items(self) -> List[Tuple[K, V]]:
        return list(self._data.items())

    def values(self) -> List[V]:
        return list(self._data.values())

    def snapshot(self) -> Dict[K, V]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"JournaledMap({self.name!r}, entries={len(self._data)})"


class JournaledLog(Generic[V]):
    """Append-only list whose appends are undone on rollback."""

    def __init__(self, journal: Journal) -> None:
        self._journal = journal
        self._items: List[V] = []

    def append(self, item: V) -> None:
        self._items.append(item)
        self._journal.record(self._items.pop)

    def __iter__(self) -> Iterator[V]:
        return iter(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, idx: int) -> V:
        return self._items[idx]

    def last(self) -> Optional[V]:
        return self._items[-1] if self._items else None


__all__ = ["Journal", "JournalError", "JournaledMap", "JournaledLog"]
