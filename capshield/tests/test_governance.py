"""
Ownership governance and role administration: the owner must always be a
code-bearing account, handovers expire on chain time, and renouncing is
impossible.
"""

from __future__ import annotations

import pytest

from capshield.config import DEFAULT_HANDOVER_VALIDITY
from capshield.errors import (AdminMustBeContract, GovernanceViolation,
                              InvalidAccount, InvalidRoles, NoHandoverRequest,
                              RenounceDisabled, Unauthorized)
from capshield.runtime.context import ZERO_ADDRESS
from capshield.stdlib.access.roles import ALL_ROLES, Role, to_role


@pytest.fixture(params=["angel", "capx"])
def ledger(request):
    return request.getfixturevalue(request.param)


# ---------------------------- transfer_ownership -----------------------------


def test_transfer_to_key_pair_account_fails(ledger, multisig, alice):
    with pytest.raises(GovernanceViolation):
        multisig.execute(ledger.transfer_ownership, alice)
    assert ledger.owner() == multisig.address


def test_transfer_to_code_bearing_account_succeeds(ledger, multisig, other_multisig):
    multisig.execute(ledger.transfer_ownership, other_multisig.address)
    assert ledger.owner() == other_multisig.address
    assert ledger.is_owner_multi_party()
    ev = ledger.events.last(b"OwnershipTransferred")
    assert (ev["previous"], ev["new"]) == (multisig.address, other_multisig.address)

    with pytest.raises(Unauthorized):
        multisig.execute(ledger.pause)


def test_only_owner_transfers_ownership(ledger, alice, other_multisig):
    with pytest.raises(Unauthorized):
        ledger.transfer_ownership(alice, other_multisig.address)
    with pytest.raises(Unauthorized):
        other_multisig.execute(ledger.transfer_ownership, other_multisig.address)


def test_transfer_to_zero_identity_fails(ledger, multisig):
    with pytest.raises(InvalidAccount):
        multisig.execute(ledger.transfer_ownership, ZERO_ADDRESS)


# ---------------------------- handover ---------------------------------------


def test_handover_request_and_complete(ledger, chain, multisig, other_multisig):
    expires = other_multisig.execute(ledger.request_ownership_handover)
    assert expires == chain.now() + DEFAULT_HANDOVER_VALIDITY
    assert ledger.ownership_handover_expires_at(other_multisig.address) == expires

    chain.advance(seconds=DEFAULT_HANDOVER_VALIDITY)
    multisig.execute(ledger.complete_ownership_handover, other_multisig.address)

    assert ledger.owner() == other_multisig.address
    assert ledger.is_owner_multi_party()
    assert ledger.ownership_handover_expires_at(other_multisig.address) == 0


def test_expired_handover_cannot_complete(ledger, chain, multisig, other_multisig):
    other_multisig.execute(ledger.request_ownership_handover)
    chain.advance(seconds=DEFAULT_HANDOVER_VALIDITY + 1)
    with pytest.raises(NoHandoverRequest):
        multisig.execute(ledger.complete_ownership_handover, other_multisig.address)
    assert ledger.owner() == multisig.address


def test_complete_without_request_fails(ledger, multisig, other_multisig):
    with pytest.raises(NoHandoverRequest):
        multisig.execute(ledger.complete_ownership_handover, other_multisig.address)


def test_cancelled_request_cannot_complete(ledger, multisig, other_multisig):
    other_multisig.execute(ledger.request_ownership_handover)
    other_multisig.execute(ledger.cancel_ownership_handover)
    assert ledger.events.last(b"OwnershipHandoverCanceled")["pending"] == other_multisig.address
    with pytest.raises(NoHandoverRequest):
        multisig.execute(ledger.complete_ownership_handover, other_multisig.address)


def test_handover_to_key_pair_account_fails_and_keeps_request(ledger, multisig, alice):
    ledger.request_ownership_handover(alice)
    with pytest.raises(AdminMustBeContract):
        multisig.execute(ledger.complete_ownership_handover, alice)
    assert ledger.owner() == multisig.address
    assert ledger.ownership_handover_expires_at(alice) > 0


def test_only_owner_completes_handover(ledger, other_multisig):
    other_multisig.execute(ledger.request_ownership_handover)
    with pytest.raises(Unauthorized):
        other_multisig.execute(ledger.complete_ownership_handover, other_multisig.address)


# ---------------------------- renounce ---------------------------------------


@pytest.mark.parametrize("who", ["owner", "stranger"])
def test_renounce_always_fails(ledger, chain, multisig, alice, who):
    caller = multisig.address if who == "owner" else alice
    with pytest.raises(RenounceDisabled, match="cannot be renounced"):
        ledger.renounce_ownership(caller)
    chain.advance(seconds=10**6, blocks=1000)
    with pytest.raises(GovernanceViolation):
        ledger.renounce_ownership(caller)
    assert ledger.owner() == multisig.address


def test_renounce_fails_after_ownership_change(ledger, multisig, other_multisig):
    multisig.execute(ledger.transfer_ownership, other_multisig.address)
    with pytest.raises(RenounceDisabled):
        other_multisig.execute(ledger.renounce_ownership)


# ---------------------------- roles ------------------------------------------


def test_grant_and_revoke_roles(ledger, multisig, carol):
    mask = Role.TEAM_MINTER | Role.DAO_MINTER
    assert multisig.execute(ledger.grant_roles, carol, mask) == mask
    assert ledger.has_role(carol, mask)
    assert ledger.has_role(carol, Role.DAO_MINTER)
    assert not ledger.has_role(carol, mask | Role.TREASURY_MINTER)

    ev = ledger.events.last(b"RoleGranted")
    assert (ev["roles"], ev["account"], ev["sender"]) == (int(mask), carol, multisig.address)

    multisig.execute(ledger.revoke_roles, carol, Role.TEAM_MINTER)
    assert ledger.roles_of(carol) == Role.DAO_MINTER
    assert ledger.events.last(b"RoleRevoked")["roles"] == int(Role.TEAM_MINTER)


def test_role_admin_errors(ledger, multisig, alice, carol):
    with pytest.raises(Unauthorized):
        ledger.grant_roles(alice, carol, Role.TEAM_MINTER)
    with pytest.raises(InvalidRoles):
        multisig.execute(ledger.grant_roles, carol, 0)
    with pytest.raises(InvalidRoles):
        multisig.execute(ledger.revoke_roles, carol, Role(0))
    with pytest.raises(InvalidAccount):
        multisig.execute(ledger.grant_roles, ZERO_ADDRESS, Role.TEAM_MINTER)
    assert ledger.roles_of(carol) == Role(0)


def test_empty_mask_is_never_held(ledger, multisig):
    assert not ledger.has_role(multisig.address, 0)


def test_role_coercion():
    assert to_role("team_minter|DAO_MINTER") == Role.TEAM_MINTER | Role.DAO_MINTER
    assert to_role(int(ALL_ROLES)) == ALL_ROLES
    with pytest.raises(InvalidRoles):
        to_role(1 << 8)
    with pytest.raises(InvalidRoles):
        to_role("PAUSER")


def test_owner_is_not_implicitly_a_role_holder(capx, multisig, other_multisig):
    multisig.execute(capx.transfer_ownership, other_multisig.address)
    assert not capx.has_role(other_multisig.address, Role.TEAM_MINTER)
    # the previous admin keeps its roles and may still mint by role
    assert capx.has_role(multisig.address, Role.TEAM_MINTER)
