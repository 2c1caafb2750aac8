"""
AngelSEED (ANGEL): the community reward ledger.

Single issuance channel, ``reward``, open to the Owner and to holders of
``Role.REWARD_MINTER``. Every reward carries a human-readable reason that is
logged in the ``RewardMint`` event. Transfers carry no fee.
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence, Tuple

from ..errors import ArrayLengthMismatch, BatchTooLarge, EmptyArrays
from ..stdlib.access.roles import Role
from ..stdlib.token import EVT_REWARD_MINT, require_reason
from .base import CappedLedger, entrypoint

log = logging.getLogger(__name__)

REWARD = "reward"


class AngelSEED(CappedLedger):
    NAME = "AngelSEED"
    SYMBOL = "ANGEL"
    MAX_SUPPLY = 10_000_000_000 * 10**18
    CATEGORIES = (REWARD,)
    ADMIN_ROLES = Role.REWARD_MINTER
    CODE = b"capshield.AngelSEED"

    @entrypoint
    def reward_mint(self, caller: Any, to: Any, amount: int, reason: str) -> int:
        """Mint ``amount`` to ``to``; returns the new total minted."""
        self.roles.require_owner_or_role(caller, Role.REWARD_MINTER)
        recipient, amount = self._mint_target(to, amount)
        reason = require_reason(reason, self.config.max_reason_length)
        return self._issue(REWARD, recipient, amount, EVT_REWARD_MINT, {"reason": reason})

    @entrypoint
    def batch_reward_mint(
        self,
        caller: Any,
        recipients: Sequence[Any],
        amounts: Sequence[int],
        reason: str,
    ) -> int:
        """
        Reward several recipients under one reason.

        All-or-nothing: the cap is checked against the batch sum before any
        balance moves, and any invalid element fails the whole batch. Emits
        one ``RewardMint`` per recipient. Returns the batch total.
        """
        self.roles.require_owner_or_role(caller, Role.REWARD_MINTER)
        recipients = list(recipients)
        amounts = list(amounts)
        if len(recipients) != len(amounts):
            raise ArrayLengthMismatch(
                "recipients and amounts differ in length",
                context={"recipients": len(recipients), "amounts": len(amounts)},
            )
        if not recipients:
            raise EmptyArrays("batch is empty")
        if len(recipients) > self.config.max_batch_size:
            raise BatchTooLarge(
                "batch exceeds the maximum size",
                context={"size": len(recipients), "max_batch_size": self.config.max_batch_size},
            )
        reason = require_reason(reason, self.config.max_reason_length)

        items: List[Tuple[bytes, int]] = [self._mint_target(to, amt) for to, amt in zip(recipients, amounts)]
        total = sum(amt for _, amt in items)

        self.pause_gate.require_not_paused()
        self.supply.check(total)
        for to, amt in items:
            self._issue(REWARD, to, amt, EVT_REWARD_MINT, {"reason": reason})
        log.debug("batch reward: %d recipients, total %d", len(items), total)
        return total


__all__ = ["AngelSEED", "REWARD"]
