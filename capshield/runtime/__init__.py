"""
capshield runtime — the host-facing layer under the ledgers.

    from capshield.runtime import Chain, Journal, EventLog

- ``context``: identity coercion and the deterministic block environment.
- ``storage_api``: journaled containers giving each call all-or-nothing writes.
- ``events_api``: the per-ledger observability log and its receipt encoding.
- ``chain``: the in-process host (clock + which identities carry code).
"""

from __future__ import annotations

from . import events_api as events
from . import storage_api as storage
from .chain import Chain, derive_address
from .context import (ZERO_ADDRESS, BlockEnv, is_zero_address,
                      normalize_address, to_bytes, to_hex)
from .events_api import Event, EventLog
from .storage_api import Journal, JournaledLog, JournaledMap

__all__ = [
    "Chain",
    "derive_address",
    "BlockEnv",
    "ZERO_ADDRESS",
    "is_zero_address",
    "normalize_address",
    "to_bytes",
    "to_hex",
    "Event",
    "EventLog",
    "Journal",
    "JournaledLog",
    "JournaledMap",
    "events",
    "storage",
]
