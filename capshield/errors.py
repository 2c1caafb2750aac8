"""
capshield.errors — typed failure taxonomy for the ledgers.

Every public entry point either succeeds completely or raises one of the
exceptions below after its transaction has been rolled back. Errors are
grouped into five families so callers can branch on the *kind* of failure
without matching individual codes:

    LedgerError
    ├── ValidationError      caller supplied malformed input
    ├── AuthorizationError   caller lacks the role / is not the owner
    ├── CapacityError        cap, balance or allowance would be exceeded
    ├── StateError           ledger state forbids the call (paused, ...)
    └── GovernanceViolation  owner slot would leave multi-party control

Each concrete error carries a stable ``code`` (its class name unless given
explicitly), a human-readable ``message`` and a ``context`` mapping with the
offending values for logs and RPC wiring.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(eq=False)
class LedgerError(Exception):
    """
    Structured ledger failure.

    Call patterns:

        InvalidAmount("amount must be non-zero")
        InvalidAmount("amount must be non-zero", context={"amount": 0})
        LedgerError("custom", code="SomeCode")
    """

    code: str
    message: str
    context: Dict[str, Any]

    family = "ledger"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        message = str(message) if message else type(self).__name__
        super().__init__(message)
        object.__setattr__(self, "code", code or type(self).__name__)
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "context", dict(context or {}))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "code": self.code,
            "message": self.message,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }


def _jsonable(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    return v


# --- families -----------------------------------------------------------------


class ValidationError(LedgerError):
    family = "validation"


class AuthorizationError(LedgerError):
    family = "authorization"


class CapacityError(LedgerError):
    family = "capacity"


class StateError(LedgerError):
    family = "state"


class GovernanceViolation(LedgerError):
    family = "governance"


# --- validation ---------------------------------------------------------------


class InvalidAccount(ValidationError):
    """Zero or malformed identity."""


class InvalidAmount(ValidationError):
    """Zero amount where a positive one is required, or out of U256 range."""


class InvalidReason(ValidationError):
    """Empty or over-length mint reason."""


class ArrayLengthMismatch(ValidationError):
    pass


class EmptyArrays(ValidationError):
    pass


class BatchTooLarge(ValidationError):
    pass


class InvalidRoles(ValidationError):
    """Empty role mask."""


class InvalidRevenue(ValidationError):
    pass


class InvalidMarketValue(ValidationError):
    pass


class UnknownCategory(ValidationError):
    """Issuance category the ledger does not define."""


# --- authorization ------------------------------------------------------------


class Unauthorized(AuthorizationError):
    pass


# --- capacity -----------------------------------------------------------------


class MaxSupplyExceeded(CapacityError):
    pass


class InsufficientBalance(CapacityError):
    pass


class InsufficientAllowance(CapacityError):
    pass


class ArithmeticOverflow(CapacityError):
    """Result left the U256 domain."""


# --- state --------------------------------------------------------------------


class LedgerPaused(StateError):
    pass


class LedgerNotPaused(StateError):
    pass


class NoHandoverRequest(StateError):
    pass


# --- governance ---------------------------------------------------------------


class AdminMustBeContract(GovernanceViolation):
    """Candidate owner has no code attached (plain key-pair account)."""


class RenounceDisabled(GovernanceViolation):
    pass


__all__ = [
    "LedgerError",
    "ValidationError",
    "AuthorizationError",
    "CapacityError",
    "StateError",
    "GovernanceViolation",
    "InvalidAccount",
    "InvalidAmount",
    "InvalidReason",
    "ArrayLengthMismatch",
    "EmptyArrays",
    "BatchTooLarge",
    "InvalidRoles",
    "InvalidRevenue",
    "InvalidMarketValue",
    "UnknownCategory",
    "Unauthorized",
    "MaxSupplyExceeded",
    "InsufficientBalance",
    "InsufficientAllowance",
    "ArithmeticOverflow",
    "LedgerPaused",
    "LedgerNotPaused",
    "NoHandoverRequest",
    "AdminMustBeContract",
    "RenounceDisabled",
]
