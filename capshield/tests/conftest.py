"""
capshield.tests.conftest
========================

Shared fixtures: a fresh deterministic chain per test, a mock multisig
wallet (a code-bearing account that forwards calls as itself), key-pair
accounts with stable addresses, and deployed AngelSEED / CAPX ledgers.

Usage (inside a test file):
    def test_reward(angel, multisig, alice):
        multisig.execute(angel.reward_mint, alice, 100, "bounty")
        assert angel.balance_of(alice) == 100
"""

from __future__ import annotations

import os
from typing import Any, Callable, Dict

import pytest
from hypothesis import HealthCheck, settings

from capshield.config import load_config
from capshield.runtime.chain import Chain
from capshield.tokens import CAPX, AngelSEED

os.environ.setdefault("TZ", "UTC")

ONE = 10**18

# Hypothesis profiles; property tests build their own ledgers per example.
settings.register_profile(
    "dev", max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture]
)
settings.register_profile(
    "ci", max_examples=300, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture]
)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE") or ("ci" if os.environ.get("CI") else "dev"))


class MockMultisig:
    """
    Stand-in for a multi-party wallet: an identity with code attached that
    calls ledger entry points with itself as the caller.
    """

    def __init__(self, chain: Chain, tag: str = "multisig") -> None:
        self.chain = chain
        self.address = chain.deploy(tag, b"mock-multisig:" + tag.encode())

    def execute(self, fn: Callable[..., Any], *args: Any) -> Any:
        return fn(self.address, *args)


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    for name in list(os.environ):
        if name.startswith("CAPSHIELD_"):
            monkeypatch.delenv(name, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def chain() -> Chain:
    return Chain(chain_id=31337)


@pytest.fixture
def multisig(chain: Chain) -> MockMultisig:
    return MockMultisig(chain)


@pytest.fixture
def other_multisig(chain: Chain) -> MockMultisig:
    return MockMultisig(chain, "safe-2")


@pytest.fixture
def accounts(chain: Chain) -> Dict[str, bytes]:
    return {tag: chain.account(tag) for tag in ("alice", "bob", "carol", "eoa", "treasury", "dao")}


@pytest.fixture
def alice(accounts) -> bytes:
    return accounts["alice"]


@pytest.fixture
def bob(accounts) -> bytes:
    return accounts["bob"]


@pytest.fixture
def carol(accounts) -> bytes:
    return accounts["carol"]


@pytest.fixture
def treasury(accounts) -> bytes:
    return accounts["treasury"]


@pytest.fixture
def dao(accounts) -> bytes:
    return accounts["dao"]


@pytest.fixture
def angel(chain: Chain, multisig: MockMultisig) -> AngelSEED:
    return AngelSEED(chain, multisig.address)


@pytest.fixture
def capx(chain: Chain, multisig: MockMultisig, treasury: bytes, dao: bytes) -> CAPX:
    return CAPX(chain, multisig.address, treasury, dao)


@pytest.fixture
def funded_capx(capx: CAPX, multisig: MockMultisig, alice: bytes, bob: bytes) -> CAPX:
    multisig.execute(capx.team_mint, alice, 1_000_000)
    multisig.execute(capx.team_mint, bob, 1_000_000)
    return capx


def assert_supply_consistent(ledger) -> None:
    """Sum of balances equals total supply, and total minted stays within the cap."""
    assert sum(ledger.balances.holders().values()) == ledger.total_supply()
    assert ledger.get_total_minted() <= ledger.get_max_supply()
    assert sum(ledger.get_mint_allocation().values()) == ledger.get_total_minted()
