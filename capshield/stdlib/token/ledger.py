"""
Balance ledger
==============

Balances, allowances and total supply for one fungible ledger, kept in
journaled maps so the enclosing entry point can roll every write back.

This component knows nothing about authorization, pausing or caps. It does
enforce the accounting invariants:

- ``sum(balances) == total_supply`` after every operation;
- balances and allowances never go negative;
- ``transfer`` is supply-neutral; only ``credit`` (issuance) and
  ``burn``/``debit`` move total supply.

Events emitted here:
  - b"Transfer" {"from", "to", "value"} for moves, issuance (from = zero) and
    burns (to = zero)
  - b"Approval" {"owner", "spender", "value"}
  - b"Burn"     {"account", "amount"}
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from ...errors import InsufficientAllowance, InsufficientBalance
from ...runtime.context import ZERO_ADDRESS
from ...runtime.events_api import EventLog
from ...runtime.storage_api import Journal, JournaledMap
from ..math import u256_add, u256_sub
from . import (EVT_APPROVAL, EVT_BURN, EVT_TRANSFER, UNLIMITED_ALLOWANCE,
               require_account, require_amount)


class BalanceLedger:
    def __init__(self, journal: Journal, events: EventLog) -> None:
        self._events = events
        self._balances: JournaledMap[bytes, int] = JournaledMap(journal, "balances", default=0)
        self._allowances: JournaledMap[Tuple[bytes, bytes], int] = JournaledMap(
            journal, "allowances", default=0
        )
        self._supply: JournaledMap[str, int] = JournaledMap(journal, "supply", default=0)

    # ---- views ---- #

    def balance_of(self, account: Any) -> int:
        return self._balances[require_account(account)]

    def allowance(self, owner: Any, spender: Any) -> int:
        return self._allowances[(require_account(owner, "owner"), require_account(spender, "spender"))]

    def total_supply(self) -> int:
        return self._supply["total"]

    def holders(self) -> Dict[bytes, int]:
        return self._balances.snapshot()

    # ---- supply-moving primitives ---- #

    def credit(self, account: Any, amount: int) -> int:
        """Issue ``amount`` to ``account``; emits Transfer from the zero identity."""
        to = require_account(account, "to")
        require_amount(amount)
        self._supply["total"] = u256_add(self._supply["total"], amount)
        new_bal = u256_add(self._balances[to], amount)
        self._balances[to] = new_bal
        self._events.emit(EVT_TRANSFER, {"from": ZERO_ADDRESS, "to": to, "value": amount})
        return new_bal

    def debit(self, account: Any, amount: int) -> int:
        """Remove ``amount`` from ``account`` and from total supply (no events)."""
        frm = require_account(account, "from")
        require_amount(amount, allow_zero=True)
        bal = self._balances[frm]
        if amount > bal:
            raise InsufficientBalance(
                "burn amount exceeds balance",
                context={"account": frm, "balance": bal, "amount": amount},
            )
        self._balances[frm] = bal - amount
        self._supply["total"] = u256_sub(self._supply["total"], amount)
        return bal - amount

    def burn(self, account: Any, amount: int) -> None:
        frm = require_account(account, "from")
        self.debit(frm, amount)
        self._events.emit(EVT_BURN, {"account": frm, "amount": amount})
        self._events.emit(EVT_TRANSFER, {"from": frm, "to": ZERO_ADDRESS, "value": amount})

    # ---- supply-neutral ---- #

    def transfer(self, sender: Any, recipient: Any, amount: int) -> None:
        frm = require_account(sender, "from")
        to = require_account(recipient, "to")
        require_amount(amount, allow_zero=True)
        bal = self._balances[frm]
        if amount > bal:
            raise InsufficientBalance(
                "transfer amount exceeds balance",
                context={"account": frm, "balance": bal, "amount": amount},
            )
        self._balances[frm] = bal - amount
        self._balances[to] = u256_add(self._balances[to], amount)
        self._events.emit(EVT_TRANSFER, {"from": frm, "to": to, "value": amount})

    def approve(self, owner: Any, spender: Any, amount: int) -> None:
        o = require_account(owner, "owner")
        s = require_account(spender, "spender")
        require_amount(amount, allow_zero=True)
        self._allowances[(o, s)] = amount
        self._events.emit(EVT_APPROVAL, {"owner": o, "spender": s, "value": amount})

    def spend_allowance(self, owner: Any, spender: Any, amount: int) -> int:
        """Consume ``amount`` of the allowance; returns what remains."""
        o = require_account(owner, "owner")
        s = require_account(spender, "spender")
        require_amount(amount, allow_zero=True)
        current = self._allowances[(o, s)]
        if current == UNLIMITED_ALLOWANCE:
            return current
        if amount > current:
            raise InsufficientAllowance(
                "amount exceeds allowance",
                context={"owner": o, "spender": s, "allowance": current, "amount": amount},
            )
        self._allowances[(o, s)] = current - amount
        return current - amount

    def increase_allowance(self, owner: Any, spender: Any, added: int) -> int:
        o = require_account(owner, "owner")
        s = require_account(spender, "spender")
        require_amount(added, allow_zero=True)
        new = u256_add(self._allowances[(o, s)], added)
        self._allowances[(o, s)] = new
        self._events.emit(EVT_APPROVAL, {"owner": o, "spender": s, "value": new})
        return new

    def decrease_allowance(self, owner: Any, spender: Any, subtracted: int) -> int:
        o = require_account(owner, "owner")
        s = require_account(spender, "spender")
        require_amount(subtracted, allow_zero=True)
        current = self._allowances[(o, s)]
        if subtracted > current:
            raise InsufficientAllowance(
                "decreased allowance below zero",
                context={"owner": o, "spender": s, "allowance": current, "amount": subtracted},
            )
        self._allowances[(o, s)] = current - subtracted
        self._events.emit(EVT_APPROVAL, {"owner": o, "spender": s, "value": current - subtracted})
        return current - subtracted


__all__ = ["BalanceLedger"]
