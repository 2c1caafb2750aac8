"""
capshield.stdlib.math
=====================

Integer-only U256 helpers shared by the ledgers.

- Amounts live in the closed interval [0, U256_MAX]; nothing here uses floats.
- Checked add/sub raise ``ArithmeticOverflow`` instead of wrapping.
- Percentages are whole-percent (denominator 100) and always round down, so a
  skim of 1% on 99 units is 0.
"""

from __future__ import annotations

from typing import Final, Tuple

from ...errors import ArithmeticOverflow, InvalidAmount

U256_MAX: Final[int] = 2**256 - 1
PCT_DEN: Final[int] = 100
WAD: Final[int] = 10**18


def require_u256(*xs: int, field: str = "amount") -> None:
    for x in xs:
        if not isinstance(x, int) or isinstance(x, bool):
            raise InvalidAmount(f"{field} must be an int", context={field: repr(x)})
        if x < 0 or x > U256_MAX:
            raise InvalidAmount(f"{field} outside U256 range", context={field: x})


def u256_add(x: int, y: int) -> int:
    """Checked add."""
    require_u256(x, y)
    s = x + y
    if s > U256_MAX:
        raise ArithmeticOverflow("u256 add overflow", context={"x": x, "y": y})
    return s


def u256_sub(x: int, y: int) -> int:
    """Checked sub: y > x is an underflow."""
    require_u256(x, y)
    if y > x:
        raise ArithmeticOverflow("u256 sub underflow", context={"x": x, "y": y})
    return x - y


def mul_div_down(a: int, b: int, d: int) -> int:
    """floor(a * b / d) with exact big-int intermediate."""
    if d <= 0:
        raise ArithmeticOverflow("division by zero", context={"d": d})
    return (a * b) // d


def check_pct(pct: int) -> None:
    if not isinstance(pct, int) or not (0 <= pct <= PCT_DEN):
        raise ValueError(f"percentage out of range: {pct!r}")


def apply_pct(amount: int, pct: int) -> int:
    """floor(amount * pct / 100)."""
    require_u256(amount)
    check_pct(pct)
    return mul_div_down(amount, pct, PCT_DEN)


def fee_split(amount: int, burn_pct: int, treasury_pct: int) -> Tuple[int, int, int]:
    """
    Split ``amount`` into (burn, treasury, net).

    Each leg is floored independently; ``burn + treasury + net == amount``.
    """
    if burn_pct + treasury_pct > PCT_DEN:
        raise ValueError("fee legs exceed 100%")
    burn = apply_pct(amount, burn_pct)
    treasury = apply_pct(amount, treasury_pct)
    return burn, treasury, amount - burn - treasury


__all__ = [
    "U256_MAX",
    "PCT_DEN",
    "WAD",
    "require_u256",
    "u256_add",
    "u256_sub",
    "mul_div_down",
    "check_pct",
    "apply_pct",
    "fee_split",
]
