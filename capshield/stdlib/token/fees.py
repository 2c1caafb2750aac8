"""
Fee-skimming transfer pipeline
==============================

Every transfer between two non-exempt accounts is split three ways:

    burn     = amount * burn_pct // 100        (destroyed; total_minted untouched)
    treasury = amount * treasury_pct // 100    (moved to the treasury address)
    net      = amount - burn - treasury        (delivered to the recipient)

With the default 1% + 1% a transfer of 1000 yields 10 / 10 / 980, and any
amount below 100 carries no fee at all (zero legs are skipped). If either
party is exempt the full amount moves untouched.

The treasury and DAO addresses are always exempt. Re-pointing either one
un-exempts the previous address (unless it still holds the other role) and
exempts the new one.

Events
------
- "TransferFee"            {"payer": bytes, "treasury": bytes, "amount": int}
- "TreasuryAddressUpdated" {"previous": bytes, "new": bytes}
- "DaoAddressUpdated"      {"previous": bytes, "new": bytes}
- "ExemptionUpdated"       {"account": bytes, "exempt": bool}
plus the Transfer / Burn events of the underlying balance moves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from ...errors import InsufficientBalance
from ...runtime.events_api import EventLog
from ...runtime.storage_api import Journal, JournaledMap
from ..access.ownable import Ownership
from ..math import check_pct, fee_split
from . import (EVT_DAO_UPDATED, EVT_EXEMPTION_UPDATED, EVT_TRANSFER_FEE,
               EVT_TREASURY_UPDATED, require_account, require_amount)
from .ledger import BalanceLedger

log = logging.getLogger(__name__)

DEFAULT_BURN_PCT = 1
DEFAULT_TREASURY_PCT = 1


@dataclass(frozen=True)
class FeeBreakdown:
    amount: int
    burned: int
    treasury: int
    net: int
    exempt: bool

    def as_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "burned": self.burned,
            "treasury": self.treasury,
            "net": self.net,
            "exempt": self.exempt,
        }


class FeePipeline:
    def __init__(
        self,
        journal: Journal,
        events: EventLog,
        balances: BalanceLedger,
        ownership: Ownership,
        *,
        burn_pct: int = DEFAULT_BURN_PCT,
        treasury_pct: int = DEFAULT_TREASURY_PCT,
    ) -> None:
        check_pct(burn_pct)
        check_pct(treasury_pct)
        self._events = events
        self._balances = balances
        self._ownership = ownership
        self.burn_pct = burn_pct
        self.treasury_pct = treasury_pct
        self._exempt: JournaledMap[bytes, bool] = JournaledMap(journal, "exempt", default=False)
        self._addresses: JournaledMap[str, bytes] = JournaledMap(journal, "fee_addresses")

    # ---- queries ---- #

    def treasury_address(self) -> bytes:
        return self._addresses["treasury"]

    def dao_address(self) -> bytes:
        return self._addresses["dao"]

    def is_exempt(self, account: Any) -> bool:
        return bool(self._exempt[require_account(account)])

    def quote(self, sender: Any, recipient: Any, amount: int) -> FeeBreakdown:
        """Fee split ``transfer_with_fee`` would apply, without moving anything."""
        frm = require_account(sender, "from")
        to = require_account(recipient, "to")
        require_amount(amount)
        if self._exempt[frm] or self._exempt[to]:
            return FeeBreakdown(amount, 0, 0, amount, True)
        burned, treasury, net = fee_split(amount, self.burn_pct, self.treasury_pct)
        return FeeBreakdown(amount, burned, treasury, net, False)

    # ---- transfer ---- #

    def transfer_with_fee(self, sender: Any, recipient: Any, amount: int) -> FeeBreakdown:
        split = self.quote(sender, recipient, amount)
        frm = require_account(sender, "from")
        to = require_account(recipient, "to")
        balance = self._balances.balance_of(frm)
        if amount > balance:
            raise InsufficientBalance(
                "transfer amount exceeds balance",
                context={"account": frm, "balance": balance, "amount": amount},
            )
        if split.burned:
            self._balances.burn(frm, split.burned)
        if split.treasury:
            treasury = self.treasury_address()
            self._balances.transfer(frm, treasury, split.treasury)
            self._events.emit(
                EVT_TRANSFER_FEE, {"payer": frm, "treasury": treasury, "amount": split.treasury}
            )
        self._balances.transfer(frm, to, split.net)
        return split

    # ---- administration ---- #

    def init_addresses(self, treasury: Any, dao: Any) -> None:
        t = require_account(treasury, "treasury")
        d = require_account(dao, "dao")
        self._addresses["treasury"] = t
        self._addresses["dao"] = d
        self._set_exempt(t, True)
        self._set_exempt(d, True)

    def set_treasury_address(self, caller: Any, new_treasury: Any) -> None:
        self._ownership.require_owner(caller)
        self._repoint("treasury", "dao", require_account(new_treasury, "treasury"), EVT_TREASURY_UPDATED)

    def set_dao_address(self, caller: Any, new_dao: Any) -> None:
        self._ownership.require_owner(caller)
        self._repoint("dao", "treasury", require_account(new_dao, "dao"), EVT_DAO_UPDATED)

    def set_exemption(self, caller: Any, account: Any, exempt: bool) -> None:
        self._ownership.require_owner(caller)
        self._set_exempt(require_account(account), bool(exempt))

    def _repoint(self, slot: str, other: str, new: bytes, event: bytes) -> None:
        previous = self._addresses[slot]
        self._addresses[slot] = new
        self._events.emit(event, {"previous": previous, "new": new})
        if previous != self._addresses[other]:
            self._set_exempt(previous, False)
        self._set_exempt(new, True)
        log.warning("%s address: 0x%s -> 0x%s", slot, previous.hex(), new.hex())

    def _set_exempt(self, account: bytes, exempt: bool) -> None:
        self._exempt[account] = exempt
        self._events.emit(EVT_EXEMPTION_UPDATED, {"account": account, "exempt": exempt})


__all__ = ["FeePipeline", "FeeBreakdown", "DEFAULT_BURN_PCT", "DEFAULT_TREASURY_PCT"]
