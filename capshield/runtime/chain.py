"""
capshield.runtime.chain — the in-process execution host.

A ``Chain`` stands in for the network the ledgers are deployed on. It owns:

- the block environment (height, timestamp, chain id) that drives handover
  expiries;
- the account directory recording which identities carry code. The ledgers
  treat "has code" as their multi-party-control predicate for the owner;
- deterministic address derivation, so tests and the CLI get stable
  identities without randomness.

The chain never executes attached code; it only remembers that it exists.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Dict, Optional

from ..config import load_config
from .context import ADDRESS_LEN, AddressLike, BlockEnv, normalize_address

log = logging.getLogger(__name__)

# Fixed genesis timestamp; the chain clock only moves through advance().
GENESIS_TIMESTAMP = 1_700_000_000


def derive_address(tag: str, *, salt: bytes = b"") -> bytes:
    """Stable 20-byte identity from a human tag (sha3-256, truncated)."""
    m = hashlib.sha3_256()
    m.update(b"capshield.address.v1|")
    m.update(salt)
    m.update(tag.encode("utf-8"))
    return m.digest()[:ADDRESS_LEN]


class Chain:
    """Block clock plus account directory."""

    def __init__(
        self,
        *,
        chain_id: Optional[int] = None,
        timestamp: int = GENESIS_TIMESTAMP,
        height: int = 0,
    ) -> None:
        cid = load_config().chain_id if chain_id is None else chain_id
        self.env = BlockEnv(height=height, timestamp=timestamp, chain_id=cid)
        self._code: Dict[bytes, bytes] = {}
        self._deploy_nonce = 0

    # ---- clock ---- #

    @property
    def chain_id(self) -> int:
        return self.env.chain_id

    @property
    def height(self) -> int:
        return self.env.height

    def now(self) -> int:
        return self.env.timestamp

    def advance(self, seconds: int = 0, blocks: int = 1) -> BlockEnv:
        self.env = self.env.advanced(seconds=seconds, blocks=blocks)
        return self.env

    # ---- accounts ---- #

    def account(self, tag: str) -> bytes:
        """Key-pair identity for `tag` (no code attached)."""
        return derive_address(tag, salt=self.chain_id.to_bytes(8, "big"))

    def deploy_code(self, address: AddressLike, code: bytes) -> bytes:
        """Attach `code` to `address`; returns the normalized address."""
        addr = normalize_address(address, "address")
        if not isinstance(code, (bytes, bytearray)) or not code:
            raise ValueError("code must be non-empty bytes")
        self._code[addr] = bytes(code)
        log.debug("code attached at 0x%s (%d bytes)", addr.hex(), len(code))
        return addr

    def deploy(self, tag: str, code: bytes) -> bytes:
        """Derive a fresh contract address for `tag` and attach `code` there."""
        self._deploy_nonce += 1
        addr = derive_address(f"{tag}#{self._deploy_nonce}", salt=b"contract|" + self.chain_id.to_bytes(8, "big"))
        return self.deploy_code(addr, code)

    def has_code(self, address: bytes) -> bool:
        return len(self._code.get(bytes(address), b"")) > 0

    def code_at(self, address: bytes) -> bytes:
        return self._code.get(bytes(address), b"")


__all__ = ["Chain", "derive_address", "GENESIS_TIMESTAMP"]
