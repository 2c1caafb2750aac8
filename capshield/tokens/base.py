"""
capshield.tokens.base — the shared capped-ledger engine.

``CappedLedger`` wires the stdlib components around one ``Journal`` and one
``EventLog`` and exposes the entry points common to both ledgers. Concrete
ledgers (``AngelSEED``, ``CAPX``) add their issuance channels and may replace
the value-movement step (CAPX routes it through the fee pipeline).

Every public mutating method is wrapped with ``@entrypoint``:

* calls are serialized by a per-ledger ``threading.RLock``;
* the body runs inside ``journal.transaction()``, so any exception restores
  every balance, counter, flag and buffered event written by the call;
* entry points invoked from inside another entry point join the outer
  transaction and are not logged separately.

Control flow for issuance: authorization -> recipient -> amount -> pause gate
-> cap guard -> category counter -> credit -> events.
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, TypeVar

from ..config import LedgerConfig, load_config
from ..errors import LedgerError
from ..runtime.chain import Chain
from ..runtime.context import to_hex
from ..runtime.events_api import CanonicalEvent, EventLog, to_receipt
from ..runtime.storage_api import Journal
from ..stdlib.access.ownable import Ownership
from ..stdlib.access.roles import Role, RoleLike, RoleRegistry
from ..stdlib.control.pausable import PauseGate
from ..stdlib.token import (DEFAULT_DECIMALS, require_account, require_amount,
                            require_name, require_symbol)
from ..stdlib.token.ledger import BalanceLedger
from ..stdlib.token.supply import SupplyCapGuard

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def entrypoint(fn: F) -> F:
    """Run a ledger method atomically under the ledger lock."""

    @functools.wraps(fn)
    def wrapper(self: "CappedLedger", *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            outer = not self._journal.active
            try:
                with self._journal.transaction():
                    result = fn(self, *args, **kwargs)
            except LedgerError as e:
                if outer:
                    log.info("%s.%s reverted: %s (%s)", self.SYMBOL, fn.__name__, e.code, e.message)
                raise
            if outer:
                log.debug("%s.%s committed", self.SYMBOL, fn.__name__)
            return result

    wrapper.__entrypoint__ = True  # type: ignore[attr-defined]
    return wrapper  # type: ignore[return-value]


class CappedLedger:
    NAME: ClassVar[str]
    SYMBOL: ClassVar[str]
    DECIMALS: ClassVar[int] = DEFAULT_DECIMALS
    MAX_SUPPLY: ClassVar[int]
    CATEGORIES: ClassVar[Tuple[str, ...]]
    # Roles the admin receives at construction.
    ADMIN_ROLES: ClassVar[Role] = Role(0)
    CODE: ClassVar[bytes] = b"capshield.ledger"

    def __init__(self, chain: Chain, admin: Any, *, config: Optional[LedgerConfig] = None) -> None:
        require_name(self.NAME)
        require_symbol(self.SYMBOL)
        self.chain = chain
        self.config = config or load_config()
        self._lock = threading.RLock()
        self._journal = Journal()
        self.events = EventLog(self._journal, height_fn=lambda: chain.height)
        self.balances = BalanceLedger(self._journal, self.events)
        self.supply = SupplyCapGuard(self._journal, self.MAX_SUPPLY, self.CATEGORIES)
        self.ownership = Ownership(
            self._journal,
            self.events,
            chain,
            handover_validity_seconds=self.config.handover_validity_seconds,
        )
        self.roles = RoleRegistry(self._journal, self.events, self.ownership)
        self.pause_gate = PauseGate(self._journal, self.events, self.ownership)

        with self._lock, self._journal.transaction():
            owner = self.ownership.init_owner(admin)
            if self.ADMIN_ROLES:
                self.roles.grant_initial(owner, self.ADMIN_ROLES)
            self._initialize()
        self.address = chain.deploy(self.SYMBOL, self.CODE)
        log.info("%s deployed at %s (owner %s)", self.SYMBOL, to_hex(self.address), to_hex(owner))

    def _initialize(self) -> None:
        """Subclass construction step, run inside the construction transaction."""

    # ------------------------------------------------------------------ #
    # metadata & queries
    # ------------------------------------------------------------------ #

    def name(self) -> str:
        return self.NAME

    def symbol(self) -> str:
        return self.SYMBOL

    def decimals(self) -> int:
        return self.DECIMALS

    def balance_of(self, account: Any) -> int:
        return self.balances.balance_of(account)

    def allowance(self, owner: Any, spender: Any) -> int:
        return self.balances.allowance(owner, spender)

    def total_supply(self) -> int:
        return self.balances.total_supply()

    def get_max_supply(self) -> int:
        return self.supply.cap

    def get_total_minted(self) -> int:
        return self.supply.total_minted()

    def get_mint_allocation(self, category: Optional[str] = None) -> Any:
        if category is None:
            return self.supply.mint_allocation()
        return self.supply.allocation(category)

    def has_role(self, account: Any, roles: RoleLike) -> bool:
        return self.roles.has_role(account, roles)

    def has_any_role(self, account: Any, roles: RoleLike) -> bool:
        return self.roles.has_any_role(account, roles)

    def roles_of(self, account: Any) -> Role:
        return self.roles.roles_of(account)

    def owner(self) -> Optional[bytes]:
        return self.ownership.owner()

    def is_owner_multi_party(self) -> bool:
        return self.ownership.is_owner_multi_party()

    def ownership_handover_expires_at(self, pending: Any) -> int:
        return self.ownership.ownership_handover_expires_at(pending)

    def paused(self) -> bool:
        return self.pause_gate.is_paused()

    def receipt(self, since: int = 0) -> List[CanonicalEvent]:
        return to_receipt(self.events.since(since))

    def info(self) -> Dict[str, Any]:
        owner = self.owner()
        return {
            "address": to_hex(self.address),
            "name": self.NAME,
            "symbol": self.SYMBOL,
            "decimals": self.DECIMALS,
            "max_supply": str(self.MAX_SUPPLY),
            "total_supply": str(self.total_supply()),
            "total_minted": str(self.get_total_minted()),
            "mint_allocation": {k: str(v) for k, v in self.supply.mint_allocation().items()},
            "owner": to_hex(owner) if owner else None,
            "owner_is_multisig": self.is_owner_multi_party(),
            "paused": self.paused(),
        }

    # ------------------------------------------------------------------ #
    # value movement
    # ------------------------------------------------------------------ #

    def _move(self, sender: bytes, recipient: bytes, amount: int) -> None:
        self.balances.transfer(sender, recipient, amount)

    @entrypoint
    def transfer(self, caller: Any, to: Any, amount: int) -> bool:
        self.pause_gate.require_not_paused()
        self._move(require_account(caller, "from"), require_account(to, "to"), amount)
        return True

    @entrypoint
    def transfer_from(self, caller: Any, owner: Any, to: Any, amount: int) -> bool:
        self.pause_gate.require_not_paused()
        frm = require_account(owner, "from")
        self.balances.spend_allowance(frm, caller, amount)
        self._move(frm, require_account(to, "to"), amount)
        return True

    @entrypoint
    def approve(self, caller: Any, spender: Any, amount: int) -> bool:
        self.balances.approve(caller, spender, amount)
        return True

    @entrypoint
    def increase_allowance(self, caller: Any, spender: Any, added: int) -> int:
        return self.balances.increase_allowance(caller, spender, added)

    @entrypoint
    def decrease_allowance(self, caller: Any, spender: Any, subtracted: int) -> int:
        return self.balances.decrease_allowance(caller, spender, subtracted)

    @entrypoint
    def burn(self, caller: Any, amount: int) -> bool:
        self.balances.burn(caller, amount)
        return True

    @entrypoint
    def burn_from(self, caller: Any, owner: Any, amount: int) -> bool:
        self.balances.spend_allowance(owner, caller, amount)
        self.balances.burn(owner, amount)
        return True

    # ------------------------------------------------------------------ #
    # issuance
    # ------------------------------------------------------------------ #

    def _issue(self, category: str, to: bytes, amount: int, event: bytes, extra: Dict[str, Any]) -> int:
        """Pause gate -> cap -> counter -> credit -> category event."""
        self.pause_gate.require_not_paused()
        new_total = self.supply.reserve_issuance(amount, category)
        self.balances.credit(to, amount)
        self.events.emit(event, {"to": to, "amount": amount, **extra})
        return new_total

    def _mint_target(self, to: Any, amount: Any) -> Tuple[bytes, int]:
        return require_account(to, "to"), require_amount(amount)

    # ------------------------------------------------------------------ #
    # roles, pause, ownership
    # ------------------------------------------------------------------ #

    @entrypoint
    def grant_roles(self, caller: Any, account: Any, roles: RoleLike) -> Role:
        return self.roles.grant_roles(caller, account, roles)

    @entrypoint
    def revoke_roles(self, caller: Any, account: Any, roles: RoleLike) -> Role:
        return self.roles.revoke_roles(caller, account, roles)

    @entrypoint
    def pause(self, caller: Any) -> None:
        self.pause_gate.pause(caller)

    @entrypoint
    def unpause(self, caller: Any) -> None:
        self.pause_gate.unpause(caller)

    @entrypoint
    def transfer_ownership(self, caller: Any, new_owner: Any) -> None:
        self.ownership.transfer_ownership(caller, new_owner)

    @entrypoint
    def request_ownership_handover(self, caller: Any) -> int:
        return self.ownership.request_ownership_handover(caller)

    @entrypoint
    def cancel_ownership_handover(self, caller: Any) -> None:
        self.ownership.cancel_ownership_handover(caller)

    @entrypoint
    def complete_ownership_handover(self, caller: Any, pending_owner: Any) -> None:
        self.ownership.complete_ownership_handover(caller, pending_owner)

    @entrypoint
    def renounce_ownership(self, caller: Any) -> None:
        self.ownership.renounce_ownership(caller)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={to_hex(self.address)}, supply={self.total_supply()})"


def entrypoints(cls: type) -> List[str]:
    """Names of the atomic entry points exposed by a ledger class."""
    return sorted(
        name
        for name in dir(cls)
        if not name.startswith("_") and getattr(getattr(cls, name), "__entrypoint__", False)
    )


__all__ = ["CappedLedger", "entrypoint", "entrypoints"]
