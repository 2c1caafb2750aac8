"""
capshield.runtime.events_api — the journaled event log.

Each ledger owns one ``EventLog``. ``emit`` validates the name (bytes) and the
args (identifier keys; bytes, str, bool or 256-bit int values) and appends an
``Event`` stamped with the current block height. Appends share the ledger
Journal, so a reverted call leaves no events behind.

``to_receipt`` renders events in canonical form: ``0x``-hex names and typed
``{"k", "t", "v"}`` args in emission order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .storage_api import Journal, JournaledLog

# Basic bounds for event payloads.
MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_STR_LEN = 4096
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class EventError(Exception):
    """Malformed event name or argument."""


@dataclass(frozen=True)
class Event:
    """One entry of the ledger's observability log."""

    name: bytes
    args: Dict[str, Any]
    height: int
    index: int

    def __getitem__(self, key: str) -> Any:
        return self.args[key]


@dataclass(frozen=True)
class CanonicalEvent:
    """
    Receipt form of an event:

        name: "0x" + hex-encoded event name bytes
        args: sequence of {"k", "t", "v"} dicts
              t="b" => bytes encoded as 0x-prefixed hex
              t="i" => integer
              t="z" => boolean
              t="s" => text
    """

    name: str
    args: Sequence[Mapping[str, Any]]


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)):
        raise EventError("event name must be bytes")
    b = bytes(name)
    if not b:
        raise EventError("event name must be non-empty")
    if len(b) > MAX_EVENT_NAME_BYTES:
        raise EventError(f"event name too long ({len(b)} bytes)")
    return b


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise EventError("event key must be a non-empty str")
    if len(key) > MAX_KEY_LEN or not _KEY_RE.match(key):
        raise EventError(f"invalid event key {key!r}")
    return key


def _check_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise EventError("event bytes arg too long")
        return b
    if isinstance(value, bool):
        # bool is a subclass of int, so check it before int.
        return value
    if isinstance(value, int):
        if value.bit_length() > MAX_INT_BITS:
            raise EventError("event int arg out of range")
        return int(value)
    if isinstance(value, str):
        if len(value) > MAX_STR_LEN:
            raise EventError("event str arg too long")
        return value
    raise EventError(f"unsupported event arg type {type(value).__name__}")


class EventLog:
    """
    Per-ledger event log.

    Appends go through the ledger journal, so events emitted by a call that
    later reverts disappear together with its state writes.
    """

    def __init__(self, journal: Journal, height_fn=None) -> None:
        self._log: JournaledLog[Event] = JournaledLog(journal)
        self._height_fn = height_fn or (lambda: 0)

    def emit(self, name: bytes, args: Mapping[str, Any]) -> Event:
        bname = _check_name(name)
        if not isinstance(args, Mapping):
            raise EventError("event args must be a mapping")
        checked = {_check_key(k): _check_value(v) for k, v in args.items()}
        ev = Event(name=bname, args=checked, height=int(self._height_fn()), index=len(self._log))
        self._log.append(ev)
        return ev

    def all(self) -> List[Event]:
        return list(self._log)

    def filter(self, name: Optional[bytes] = None, **match: Any) -> List[Event]:
        """Events named `name` (any name if None) whose args contain `match`."""
        out: List[Event] = []
        for ev in self._log:
            if name is not None and ev.name != name:
                continue
            if any(ev.args.get(k, _NO_ARG) != v for k, v in match.items()):
                continue
            out.append(ev)
        return out

    def last(self, name: Optional[bytes] = None) -> Optional[Event]:
        found = self.filter(name)
        return found[-1] if found else None

    def since(self, index: int) -> List[Event]:
        return [ev for ev in self._log if ev.index >= index]

    def __len__(self) -> int:
        return len(self._log)

    def __iter__(self):
        return iter(self._log)


_NO_ARG = object()


def to_receipt(events: Iterable[Event]) -> List[CanonicalEvent]:
    """Convert events into canonical receipt form."""
    out: List[CanonicalEvent] = []
    for ev in events:
        enc_args: List[Dict[str, Any]] = []
        for k, v in ev.args.items():
            if isinstance(v, (bytes, bytearray)):
                enc_args.append({"k": k, "t": "b", "v": "0x" + bytes(v).hex()})
            elif isinstance(v, bool):
                enc_args.append({"k": k, "t": "z", "v": v})
            elif isinstance(v, int):
                enc_args.append({"k": k, "t": "i", "v": int(v)})
            else:
                enc_args.append({"k": k, "t": "s", "v": str(v)})
        out.append(CanonicalEvent(name="0x" + ev.name.hex(), args=tuple(enc_args)))
    return out


__all__ = [
    "Event",
    "CanonicalEvent",
    "EventError",
    "EventLog",
    "to_receipt",
    "MAX_EVENT_NAME_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_INT_BITS",
]
