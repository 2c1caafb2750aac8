"""
capshield.runtime.context — identities and the block environment.

Identities are raw bytes. Hex strings (with or without "0x") are accepted by
the helpers and normalized to bytes, so callers may pass either form. The
canonical width is 20 bytes; shorter or longer byte strings are accepted as
opaque identities, but the empty string and any all-zero value are the
*zero identity* and are rejected wherever an account is required.
Deployment inputs go through ``canonical_address``, which also enforces the
20-byte width.

``BlockEnv`` carries the deterministic chain clock. The ledgers never read
wall-clock time; handover expiries are measured against ``BlockEnv.timestamp``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Union

from ..errors import InvalidAccount

ADDRESS_LEN = 20
ZERO_ADDRESS: bytes = b"\x00" * ADDRESS_LEN

AddressLike = Union[bytes, bytearray, memoryview, str]


class ContextError(Exception):
    """Validation or coercion failure for BlockEnv."""


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: AddressLike) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def is_zero_address(addr: bytes) -> bool:
    return len(addr) == 0 or not any(addr)


def normalize_address(value: Any, field: str = "account") -> bytes:
    """
    Return `value` as identity bytes; raise InvalidAccount for malformed or
    zero identities.
    """
    try:
        addr = to_bytes(value)
    except ContextError as e:
        raise InvalidAccount(f"{field}: {e}", context={"field": field}) from e
    if is_zero_address(addr):
        raise InvalidAccount(f"{field} is the zero identity", context={"field": field})
    return addr


def canonical_address(value: Any, field: str = "account") -> bytes:
    """``normalize_address`` plus the 20-byte width check."""
    addr = normalize_address(value, field)
    if len(addr) != ADDRESS_LEN:
        raise InvalidAccount(
            f"{field}: expected {ADDRESS_LEN}-byte address, got {len(addr)} bytes",
            context={"field": field, "length": len(addr)},
        )
    return addr


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


@dataclass(frozen=True)
class BlockEnv:
    """
    Deterministic block environment.

    height:     Block height (0-based).
    timestamp:  Chain timestamp in seconds.
    chain_id:   Integer chain identifier.
    """

    height: int
    timestamp: int
    chain_id: int

    def __post_init__(self) -> None:
        _require_non_negative_int("height", self.height)
        _require_non_negative_int("timestamp", self.timestamp)
        _require_non_negative_int("chain_id", self.chain_id)

    def advanced(self, seconds: int = 0, blocks: int = 1) -> "BlockEnv":
        _require_non_negative_int("seconds", seconds)
        _require_non_negative_int("blocks", blocks)
        return replace(self, height=self.height + blocks, timestamp=self.timestamp + seconds)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "ADDRESS_LEN",
    "canonical_address",
    "ZERO_ADDRESS",
    "AddressLike",
    "ContextError",
    "to_bytes",
    "to_hex",
    "is_zero_address",
    "normalize_address",
    "BlockEnv",
]
