from __future__ import annotations

import pytest

from capshield.errors import ArithmeticOverflow, CapacityError, InvalidAmount
from capshield.stdlib.math import (U256_MAX, apply_pct, fee_split,
                                   mul_div_down, require_u256, u256_add,
                                   u256_sub)


def test_checked_add_and_sub():
    assert u256_add(U256_MAX - 1, 1) == U256_MAX
    assert u256_sub(10, 10) == 0
    with pytest.raises(ArithmeticOverflow):
        u256_add(U256_MAX, 1)
    with pytest.raises(CapacityError):
        u256_sub(1, 2)


@pytest.mark.parametrize("bad", [-1, U256_MAX + 1, 1.0, True, "5"])
def test_require_u256_rejects_out_of_domain(bad):
    with pytest.raises(InvalidAmount):
        require_u256(bad)


@pytest.mark.parametrize(
    "amount,expected",
    [
        (1000, (10, 10, 980)),
        (100, (1, 1, 98)),
        (199, (1, 1, 197)),
        (99, (0, 0, 99)),
        (1, (0, 0, 1)),
    ],
)
def test_fee_split_whole_percent_floor(amount, expected):
    assert fee_split(amount, 1, 1) == expected
    assert sum(expected) == amount


def test_apply_pct_and_mul_div():
    assert apply_pct(12345, 10) == 1234
    assert mul_div_down(7, 10**18, 2 * 10**18) == 3
    with pytest.raises(ValueError):
        fee_split(100, 60, 50)
