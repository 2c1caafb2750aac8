"""
CAPX (CAPShield): the shield ledger.

Issuance is split into four categories. ``team``, ``treasury`` and ``dao``
are open to the Owner or the matching minter role; ``revenue`` is Owner-only
and converts a revenue figure into tokens at a given market value:

    tokens = revenue * 10**18 // market_value

Every transfer (including ``transfer_from``) runs through the fee-skimming
pipeline; the treasury and DAO addresses are exempt from it.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..config import LedgerConfig
from ..errors import InvalidAmount, InvalidMarketValue, InvalidRevenue
from ..runtime.chain import Chain
from ..runtime.context import to_hex
from ..stdlib.access.roles import Role
from ..stdlib.math import WAD, mul_div_down, require_u256
from ..stdlib.token import (EVT_DAO_MINT, EVT_REVENUE_MINT, EVT_TEAM_MINT,
                            EVT_TREASURY_MINT, require_account)
from ..stdlib.token.fees import FeeBreakdown, FeePipeline
from .base import CappedLedger, entrypoint

TEAM = "team"
TREASURY = "treasury"
DAO = "dao"
REVENUE = "revenue"


class CAPX(CappedLedger):
    NAME = "CAPShield"
    SYMBOL = "CAPX"
    MAX_SUPPLY = 1_000_000_000 * 10**18
    CATEGORIES = (TEAM, TREASURY, DAO, REVENUE)
    ADMIN_ROLES = Role.TEAM_MINTER | Role.TREASURY_MINTER | Role.DAO_MINTER
    CODE = b"capshield.CAPX"

    def __init__(
        self,
        chain: Chain,
        admin: Any,
        treasury: Any,
        dao: Any,
        *,
        config: Optional[LedgerConfig] = None,
    ) -> None:
        self._initial_treasury = treasury
        self._initial_dao = dao
        super().__init__(chain, admin, config=config)

    def _initialize(self) -> None:
        self.fees = FeePipeline(self._journal, self.events, self.balances, self.ownership)
        self.fees.init_addresses(self._initial_treasury, self._initial_dao)

    # ---- queries ---- #

    def treasury_address(self) -> bytes:
        return self.fees.treasury_address()

    def dao_address(self) -> bytes:
        return self.fees.dao_address()

    def is_exempt(self, account: Any) -> bool:
        return self.fees.is_exempt(account)

    def quote_transfer(self, sender: Any, recipient: Any, amount: int) -> FeeBreakdown:
        return self.fees.quote(sender, recipient, amount)

    def info(self) -> Dict[str, Any]:
        out = super().info()
        out["treasury"] = to_hex(self.treasury_address())
        out["dao"] = to_hex(self.dao_address())
        return out

    # ---- transfers ---- #

    def _move(self, sender: bytes, recipient: bytes, amount: int) -> None:
        self.fees.transfer_with_fee(sender, recipient, amount)

    # ---- issuance ---- #

    @entrypoint
    def team_mint(self, caller: Any, to: Any, amount: int) -> int:
        self.roles.require_owner_or_role(caller, Role.TEAM_MINTER)
        recipient, amount = self._mint_target(to, amount)
        return self._issue(TEAM, recipient, amount, EVT_TEAM_MINT, {})

    @entrypoint
    def treasury_mint(self, caller: Any, to: Any, amount: int) -> int:
        self.roles.require_owner_or_role(caller, Role.TREASURY_MINTER)
        recipient, amount = self._mint_target(to, amount)
        return self._issue(TREASURY, recipient, amount, EVT_TREASURY_MINT, {})

    @entrypoint
    def dao_mint(self, caller: Any, to: Any, amount: int) -> int:
        self.roles.require_owner_or_role(caller, Role.DAO_MINTER)
        recipient, amount = self._mint_target(to, amount)
        return self._issue(DAO, recipient, amount, EVT_DAO_MINT, {})

    @entrypoint
    def revenue_mint(self, caller: Any, to: Any, revenue: int, market_value: int) -> int:
        """Owner-only; returns the number of tokens minted."""
        self.ownership.require_owner(caller)
        recipient = require_account(to, "to")
        if not isinstance(revenue, int) or isinstance(revenue, bool) or revenue <= 0:
            raise InvalidRevenue("revenue must be positive", context={"revenue": revenue})
        if not isinstance(market_value, int) or isinstance(market_value, bool) or market_value <= 0:
            raise InvalidMarketValue("market value must be positive", context={"market_value": market_value})
        require_u256(revenue, market_value, field="revenue")
        tokens = mul_div_down(revenue, WAD, market_value)
        if tokens == 0:
            raise InvalidAmount(
                "revenue converts to zero tokens",
                context={"revenue": revenue, "market_value": market_value},
            )
        self._issue(
            REVENUE,
            recipient,
            tokens,
            EVT_REVENUE_MINT,
            {"revenue": revenue, "market_value": market_value},
        )
        return tokens

    # ---- fee administration ---- #

    @entrypoint
    def set_treasury_address(self, caller: Any, new_treasury: Any) -> None:
        self.fees.set_treasury_address(caller, new_treasury)

    @entrypoint
    def set_dao_address(self, caller: Any, new_dao: Any) -> None:
        self.fees.set_dao_address(caller, new_dao)

    @entrypoint
    def set_exemption(self, caller: Any, account: Any, exempt: bool) -> None:
        self.fees.set_exemption(caller, account, exempt)


__all__ = ["CAPX", "TEAM", "TREASURY", "DAO", "REVENUE"]
