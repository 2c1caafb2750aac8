"""
capshield.stdlib.control.pausable
=================================

Global pause switch for a ledger.

Key Points
----------
- The paused flag is **global to the ledger** (single boolean).
- Only the Owner changes it. ``pause`` while paused raises ``LedgerPaused``
  and ``unpause`` while unpaused raises ``LedgerNotPaused``; neither is a
  silent no-op.
- The gate covers value movement and issuance only (``transfer``,
  ``transfer_from`` and every mint entry point). Burns, approvals, role
  management, ownership governance and fee administration stay available
  while paused; this asymmetry is deliberate policy.
- Emitted events: ``Paused`` {"account": bytes}, ``Unpaused`` {"account": bytes}

Usage
-----
    gate = PauseGate(journal, events, ownership)

    def transfer(caller, to, amount):
        gate.require_not_paused()
        ...
"""

from __future__ import annotations

import logging
from typing import Any

from ...errors import LedgerNotPaused, LedgerPaused
from ...runtime.events_api import EventLog
from ...runtime.storage_api import Journal, JournaledMap
from ..access.ownable import Ownership

log = logging.getLogger(__name__)

EVT_PAUSED = b"Paused"
EVT_UNPAUSED = b"Unpaused"


class PauseGate:
    def __init__(self, journal: Journal, events: EventLog, ownership: Ownership) -> None:
        self._events = events
        self._ownership = ownership
        self._flag: JournaledMap[str, bool] = JournaledMap(journal, "pause", default=False)

    def is_paused(self) -> bool:
        return bool(self._flag["paused"])

    def require_not_paused(self) -> None:
        """Raise LedgerPaused ("Pausable: paused") if the flag is set."""
        if self.is_paused():
            raise LedgerPaused("Pausable: paused")

    def require_paused(self) -> None:
        if not self.is_paused():
            raise LedgerNotPaused("Pausable: not paused")

    def pause(self, caller: Any) -> None:
        account = self._ownership.require_owner(caller)
        self.require_not_paused()
        self._flag["paused"] = True
        self._events.emit(EVT_PAUSED, {"account": account})
        log.warning("ledger paused by 0x%s", account.hex())

    def unpause(self, caller: Any) -> None:
        account = self._ownership.require_owner(caller)
        self.require_paused()
        self._flag["paused"] = False
        self._events.emit(EVT_UNPAUSED, {"account": account})
        log.warning("ledger unpaused by 0x%s", account.hex())


__all__ = ["PauseGate", "EVT_PAUSED", "EVT_UNPAUSED"]
