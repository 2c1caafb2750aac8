"""
capshield.stdlib.token
======================

Shared conventions for the fungible ledgers: event names, the unlimited
allowance sentinel, and deterministic validation helpers. Storage and event
emission live in the component modules (``ledger``, ``supply``, ``fees``);
this package only holds what they agree on.

Events (names as bytes):
  - b"Transfer"      {"from": bytes, "to": bytes, "value": int}
  - b"Approval"      {"owner": bytes, "spender": bytes, "value": int}
  - b"Burn"          {"account": bytes, "amount": int}
  - b"TransferFee"   {"payer": bytes, "treasury": bytes, "amount": int}
  - issuance events  (RewardMint, TeamMint, TreasuryMint, DaoMint, RevenueMint)

Names and symbols:
  - Symbols: 1..11 printable ASCII.
  - Names:   1..64 printable ASCII.
"""

from __future__ import annotations

from typing import Any, Final

from ...errors import InvalidAmount, InvalidReason, ValidationError
from ...runtime.context import normalize_address
from ..math import U256_MAX, require_u256

EVT_TRANSFER: Final[bytes] = b"Transfer"
EVT_APPROVAL: Final[bytes] = b"Approval"
EVT_BURN: Final[bytes] = b"Burn"
EVT_TRANSFER_FEE: Final[bytes] = b"TransferFee"
EVT_REWARD_MINT: Final[bytes] = b"RewardMint"
EVT_TEAM_MINT: Final[bytes] = b"TeamMint"
EVT_TREASURY_MINT: Final[bytes] = b"TreasuryMint"
EVT_DAO_MINT: Final[bytes] = b"DaoMint"
EVT_REVENUE_MINT: Final[bytes] = b"RevenueMint"
EVT_TREASURY_UPDATED: Final[bytes] = b"TreasuryAddressUpdated"
EVT_DAO_UPDATED: Final[bytes] = b"DaoAddressUpdated"
EVT_EXEMPTION_UPDATED: Final[bytes] = b"ExemptionUpdated"

DEFAULT_DECIMALS: Final[int] = 18

# Allowance value that spend_allowance never decrements.
UNLIMITED_ALLOWANCE: Final[int] = U256_MAX


def require_account(value: Any, field: str = "account") -> bytes:
    """Normalized non-zero identity, else InvalidAccount."""
    return normalize_address(value, field)


def require_amount(n: Any, *, allow_zero: bool = False, field: str = "amount") -> int:
    """
    Ensure ``n`` is an integer in [0, U256_MAX]; zero is rejected unless
    ``allow_zero``.
    """
    require_u256(n, field=field)
    if n == 0 and not allow_zero:
        raise InvalidAmount(f"{field} must be non-zero", context={field: 0})
    return n


def require_reason(reason: Any, max_length: int) -> str:
    """Mint reasons are 1..max_length characters."""
    if not isinstance(reason, str):
        raise InvalidReason("reason must be a string")
    if not reason:
        raise InvalidReason("reason must not be empty", context={"length": 0})
    if len(reason) > max_length:
        raise InvalidReason(
            "reason too long",
            context={"length": len(reason), "max_length": max_length},
        )
    return reason


def is_printable_ascii(s: str) -> bool:
    return bool(s) and all(32 <= ord(c) <= 126 for c in s)


def require_symbol(sym: str) -> str:
    if not is_printable_ascii(sym) or not (1 <= len(sym) <= 11):
        raise ValidationError(f"bad symbol {sym!r}", code="InvalidSymbol")
    return sym


def require_name(name: str) -> str:
    if not is_printable_ascii(name) or not (1 <= len(name) <= 64):
        raise ValidationError(f"bad name {name!r}", code="InvalidName")
    return name


__all__ = [
    "EVT_TRANSFER",
    "EVT_APPROVAL",
    "EVT_BURN",
    "EVT_TRANSFER_FEE",
    "EVT_REWARD_MINT",
    "EVT_TEAM_MINT",
    "EVT_TREASURY_MINT",
    "EVT_DAO_MINT",
    "EVT_REVENUE_MINT",
    "EVT_TREASURY_UPDATED",
    "EVT_DAO_UPDATED",
    "EVT_EXEMPTION_UPDATED",
    "DEFAULT_DECIMALS",
    "UNLIMITED_ALLOWANCE",
    "require_account",
    "require_amount",
    "require_reason",
    "require_symbol",
    "require_name",
]
