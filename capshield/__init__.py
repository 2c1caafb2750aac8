"""
capshield — capped-supply fungible ledgers with multi-party governance.

    from capshield import Chain, AngelSEED, CAPX

    chain = Chain()
    multisig = chain.deploy("multisig", b"safe")
    seed = AngelSEED(chain, multisig)
    seed.reward_mint(multisig, chain.account("alice"), 10**18, "early supporter")
"""

from __future__ import annotations

from .errors import (AuthorizationError, CapacityError, GovernanceViolation,
                     LedgerError, StateError, ValidationError)
from .runtime.chain import Chain
from .stdlib.access.roles import Role
from .tokens import CAPX, AngelSEED
from .version import __version__

__all__ = [
    "AngelSEED",
    "CAPX",
    "Chain",
    "Role",
    "LedgerError",
    "ValidationError",
    "AuthorizationError",
    "CapacityError",
    "StateError",
    "GovernanceViolation",
    "__version__",
]
