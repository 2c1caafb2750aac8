"""
capshield.stdlib.access.ownable
===============================

Ownership governance for the ledgers. The single Owner identity must be
*code-bearing* (an account with attached logic, standing in for a multi-party
wallet) at construction and after every change of hands:

- ``init_owner`` (construction) and ``transfer_ownership`` reject key-pair
  accounts with ``AdminMustBeContract``.
- Two-step handover: any identity may ``request_ownership_handover``; the
  request lives for ``handover_validity_seconds`` of chain time, and the
  Owner finalizes it with ``complete_ownership_handover``.
- ``renounce_ownership`` always fails, for every caller.

The code-bearing test is a heuristic: a single-signer wrapper contract passes
it. ``is_owner_multi_party`` reports the same point-in-time predicate.

Events:
    - "OwnershipTransferred"        {"previous": bytes, "new": bytes}
    - "OwnershipHandoverRequested"  {"pending": bytes}
    - "OwnershipHandoverCanceled"   {"pending": bytes}
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ...errors import (AdminMustBeContract, NoHandoverRequest,
                       RenounceDisabled, Unauthorized)
from ...runtime.chain import Chain
from ...runtime.context import (ZERO_ADDRESS, ContextError, normalize_address,
                               to_bytes)
from ...runtime.events_api import EventLog
from ...runtime.storage_api import Journal, JournaledMap

log = logging.getLogger(__name__)

EVT_OWNERSHIP_TRANSFERRED = b"OwnershipTransferred"
EVT_HANDOVER_REQUESTED = b"OwnershipHandoverRequested"
EVT_HANDOVER_CANCELED = b"OwnershipHandoverCanceled"


class Ownership:
    def __init__(
        self,
        journal: Journal,
        events: EventLog,
        chain: Chain,
        *,
        handover_validity_seconds: int,
    ) -> None:
        self._events = events
        self._chain = chain
        self._validity = int(handover_validity_seconds)
        self._slot: JournaledMap[str, Optional[bytes]] = JournaledMap(journal, "owner")
        self._handovers: JournaledMap[bytes, int] = JournaledMap(journal, "handovers")

    # ---- queries ---- #

    @property
    def handover_validity_seconds(self) -> int:
        return self._validity

    def owner(self) -> Optional[bytes]:
        return self._slot["owner"]

    def is_owner(self, account: Any) -> bool:
        try:
            addr = to_bytes(account)
        except ContextError:
            return False
        owner = self.owner()
        return owner is not None and addr == owner

    def is_owner_multi_party(self) -> bool:
        owner = self.owner()
        return owner is not None and self._chain.has_code(owner)

    def ownership_handover_expires_at(self, pending: Any) -> int:
        """Expiry timestamp of ``pending``'s request, 0 when there is none."""
        return self._handovers.get(normalize_address(pending, "pending"), 0)

    # ---- guards ---- #

    def require_owner(self, caller: Any) -> bytes:
        if not self.is_owner(caller):
            raise Unauthorized("caller is not the owner", context={"caller": _raw(caller)})
        return self.owner()  # type: ignore[return-value]

    def _require_code_bearing(self, candidate: bytes, field: str) -> None:
        if not self._chain.has_code(candidate):
            raise AdminMustBeContract(
                f"{field} must be a code-bearing account",
                context={field: candidate},
            )

    # ---- mutations ---- #

    def init_owner(self, admin: Any) -> bytes:
        addr = normalize_address(admin, "admin")
        self._require_code_bearing(addr, "admin")
        self._set_owner(addr, initial=True)
        return addr

    def transfer_ownership(self, caller: Any, new_owner: Any) -> None:
        self.require_owner(caller)
        addr = normalize_address(new_owner, "new_owner")
        self._require_code_bearing(addr, "new_owner")
        self._set_owner(addr)

    def request_ownership_handover(self, caller: Any) -> int:
        pending = normalize_address(caller, "caller")
        expires = self._chain.now() + self._validity
        self._handovers[pending] = expires
        self._events.emit(EVT_HANDOVER_REQUESTED, {"pending": pending})
        return expires

    def cancel_ownership_handover(self, caller: Any) -> None:
        pending = normalize_address(caller, "caller")
        self._handovers.pop(pending)
        self._events.emit(EVT_HANDOVER_CANCELED, {"pending": pending})

    def complete_ownership_handover(self, caller: Any, pending_owner: Any) -> None:
        self.require_owner(caller)
        pending = normalize_address(pending_owner, "pending_owner")
        self._require_code_bearing(pending, "pending_owner")
        expires = self._handovers.pop(pending)
        if expires is None or self._chain.now() > expires:
            raise NoHandoverRequest(
                "no live handover request",
                context={"pending_owner": pending, "expires_at": expires or 0},
            )
        self._set_owner(pending)

    def renounce_ownership(self, caller: Any) -> None:
        raise RenounceDisabled("Ownership cannot be renounced", context={"caller": _raw(caller)})

    def _set_owner(self, new_owner: bytes, initial: bool = False) -> None:
        previous = self.owner() or ZERO_ADDRESS
        self._slot["owner"] = new_owner
        self._events.emit(EVT_OWNERSHIP_TRANSFERRED, {"previous": previous, "new": new_owner})
        if not initial:
            log.warning("ownership: 0x%s -> 0x%s", previous.hex(), new_owner.hex())


def _raw(value: Any) -> Any:
    try:
        return to_bytes(value)
    except ContextError:
        return repr(value)


__all__ = [
    "Ownership",
    "EVT_OWNERSHIP_TRANSFERRED",
    "EVT_HANDOVER_REQUESTED",
    "EVT_HANDOVER_CANCELED",
]
