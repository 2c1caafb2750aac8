from __future__ import annotations

from .angel_seed import AngelSEED
from .base import CappedLedger, entrypoint, entrypoints
from .capx import CAPX

LEDGERS = {"angel": AngelSEED, "capx": CAPX}

__all__ = ["AngelSEED", "CAPX", "CappedLedger", "entrypoint", "entrypoints", "LEDGERS"]
