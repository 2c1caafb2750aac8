"""
capshield.stdlib.access.roles
=============================

Capability roles as a bit-flag enum, stored per account.

- ``Role`` is an ``enum.IntFlag``; a mask is any combination of members.
- ``has_role(account, mask)`` is subset containment: every bit of ``mask``
  must be held. ``has_any_role`` needs just one.
- Roles are orthogonal to ownership. Only the Owner may grant or revoke, and
  the Owner is *not* implicitly a role holder (entry points that accept
  "Owner or role" check both explicitly).
- Granting bits already held or revoking bits not held is accepted; events
  carry the requested mask.

Events
------
- "RoleGranted" : {"roles": int, "account": bytes, "sender": bytes}
- "RoleRevoked" : {"roles": int, "account": bytes, "sender": bytes}
"""

from __future__ import annotations

import enum
import logging
from typing import Any, List, Union

from ...errors import InvalidRoles, Unauthorized
from ...runtime.context import ZERO_ADDRESS, normalize_address
from ...runtime.events_api import EventLog
from ...runtime.storage_api import Journal, JournaledMap
from .ownable import Ownership

log = logging.getLogger(__name__)

EVT_ROLE_GRANTED = b"RoleGranted"
EVT_ROLE_REVOKED = b"RoleRevoked"


class Role(enum.IntFlag):
    TEAM_MINTER = 1 << 0
    TREASURY_MINTER = 1 << 1
    DAO_MINTER = 1 << 2
    REWARD_MINTER = 1 << 3


ALL_ROLES = Role.TEAM_MINTER | Role.TREASURY_MINTER | Role.DAO_MINTER | Role.REWARD_MINTER

RoleLike = Union[Role, int, str]


def to_role(value: RoleLike) -> Role:
    """
    Coerce an int mask, a Role, or a name / "A|B" combination of names into a
    Role. Unknown bits or names raise InvalidRoles.
    """
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        mask = Role(0)
        for part in value.split("|"):
            name = part.strip().upper()
            if not name:
                continue
            try:
                mask |= Role[name]
            except KeyError:
                raise InvalidRoles(f"unknown role {part.strip()!r}") from None
        return mask
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0 or value & ~int(ALL_ROLES):
            raise InvalidRoles("role mask has unknown bits", context={"roles": value})
        return Role(value)
    raise InvalidRoles(f"cannot interpret {value!r} as roles")


class RoleRegistry:
    def __init__(self, journal: Journal, events: EventLog, ownership: Ownership) -> None:
        self._events = events
        self._ownership = ownership
        self._roles: JournaledMap[bytes, int] = JournaledMap(journal, "roles", default=0)

    # ---- queries ---- #

    def roles_of(self, account: Any) -> Role:
        return Role(self._roles[normalize_address(account, "account")])

    def has_role(self, account: Any, roles: RoleLike) -> bool:
        mask = to_role(roles)
        if not mask:
            return False
        return (self.roles_of(account) & mask) == mask

    def has_any_role(self, account: Any, roles: RoleLike) -> bool:
        return bool(self.roles_of(account) & to_role(roles))

    def holders(self, roles: RoleLike) -> List[bytes]:
        mask = to_role(roles)
        return [a for a, bits in self._roles.items() if mask and (bits & mask) == mask]

    def is_owner(self, account: Any) -> bool:
        return self._ownership.is_owner(account)

    def require_owner_or_role(self, caller: Any, roles: RoleLike) -> None:
        if self._ownership.is_owner(caller):
            return
        if self.has_role(caller, roles):
            return
        mask = to_role(roles)
        raise Unauthorized(
            "caller is neither the owner nor holds the required role",
            context={"roles": int(mask)},
        )

    # ---- mutations ---- #

    def grant_roles(self, actor: Any, target: Any, roles: RoleLike) -> Role:
        sender = self._ownership.require_owner(actor)
        account = normalize_address(target, "account")
        mask = self._nonempty(roles)
        updated = Role(self._roles[account] | mask)
        self._roles[account] = int(updated)
        self._events.emit(EVT_ROLE_GRANTED, {"roles": int(mask), "account": account, "sender": sender})
        log.warning("roles granted: %s to 0x%s", mask, account.hex())
        return updated

    def revoke_roles(self, actor: Any, target: Any, roles: RoleLike) -> Role:
        sender = self._ownership.require_owner(actor)
        account = normalize_address(target, "account")
        mask = self._nonempty(roles)
        updated = Role(self._roles[account] & ~mask & ALL_ROLES)
        self._roles[account] = int(updated)
        self._events.emit(EVT_ROLE_REVOKED, {"roles": int(mask), "account": account, "sender": sender})
        log.warning("roles revoked: %s from 0x%s", mask, account.hex())
        return updated

    def grant_initial(self, account: bytes, roles: RoleLike) -> None:
        """Construction-time grant; the sender is the ledger itself (zero identity)."""
        mask = self._nonempty(roles)
        self._roles[account] = int(Role(self._roles[account]) | mask)
        self._events.emit(
            EVT_ROLE_GRANTED, {"roles": int(mask), "account": account, "sender": ZERO_ADDRESS}
        )

    @staticmethod
    def _nonempty(roles: RoleLike) -> Role:
        mask = to_role(roles)
        if not mask:
            raise InvalidRoles("role mask must not be empty", context={"roles": 0})
        return mask


__all__ = [
    "Role",
    "ALL_ROLES",
    "RoleLike",
    "RoleRegistry",
    "to_role",
    "EVT_ROLE_GRANTED",
    "EVT_ROLE_REVOKED",
]
