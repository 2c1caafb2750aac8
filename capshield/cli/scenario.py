"""
capshield.cli.scenario — deployment and scenario replay on a local chain.

Both CLI commands build on the same two steps: install the code-bearing
accounts a profile declares, then deploy AngelSEED and CAPX with the
multisig as admin. ``Scenario.run`` then replays a list of ledger calls,
one atomic call per step, recording the outcome of each.

Scenario YAML:

    accounts: [alice, bob]          # key-pair identities, by tag
    contracts: [multisig, safe2]    # code-bearing identities, by tag
    admin: multisig
    treasury: treasury
    dao: dao
    steps:
      - {ledger: angel, op: reward_mint, caller: multisig, args: [alice, 1000, "bounty"]}
      - {ledger: capx, op: team_mint, caller: multisig, args: [bob, 5000]}
      - {advance: 3600}             # move chain time (seconds)

Strings in ``caller`` and ``args`` that match a declared tag are replaced by
that identity; everything else is passed through unchanged (hex strings are
accepted wherever an identity is).
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..config import ConfigError, DeploymentConfig, LedgerConfig
from ..errors import LedgerError
from ..runtime.chain import Chain
from ..runtime.context import ContextError, normalize_address, to_hex
from ..stdlib.token.fees import FeeBreakdown
from ..tokens import CAPX, LEDGERS, AngelSEED

log = logging.getLogger(__name__)

MULTISIG_CODE = b"capshield.multisig"


class ScenarioError(Exception):
    """Malformed scenario file or step."""


@dataclass
class Deployment:
    chain: Chain
    angel: AngelSEED
    capx: CAPX
    constructor_args: Dict[str, List[str]] = field(default_factory=dict)

    def ledger(self, key: str):
        if key not in LEDGERS:
            raise ScenarioError(f"unknown ledger {key!r}; expected one of {sorted(LEDGERS)}")
        return getattr(self, key)

    def info(self, network: str) -> Dict[str, Any]:
        return {
            "network": network,
            "chain_id": self.chain.chain_id,
            "height": self.chain.height,
            "timestamp": self.chain.now(),
            "contracts": {
                ledger.NAME: {**ledger.info(), "constructor_args": self.constructor_args[ledger.NAME]}
                for ledger in (self.angel, self.capx)
            },
        }


def deploy_ledgers(
    chain: Chain,
    multisig: Any,
    treasury: Any,
    dao: Any,
    *,
    config: Optional[LedgerConfig] = None,
) -> Deployment:
    admin = normalize_address(multisig, "multisig")
    t = normalize_address(treasury, "treasury")
    d = normalize_address(dao, "dao")
    angel = AngelSEED(chain, admin, config=config)
    capx = CAPX(chain, admin, t, d, config=config)
    return Deployment(
        chain=chain,
        angel=angel,
        capx=capx,
        constructor_args={
            AngelSEED.NAME: [to_hex(admin)],
            CAPX.NAME: [to_hex(admin), to_hex(t), to_hex(d)],
        },
    )


def chain_from_profile(profile: DeploymentConfig) -> Chain:
    """Local chain with every address in ``profile.contracts`` marked code-bearing."""
    chain = Chain(chain_id=profile.chain_id)
    for address, tag in profile.contracts.items():
        chain.deploy_code(address, (tag or "contract").encode("utf-8"))
    return chain


# ----------------------------------------------------------------------------
# scenario replay
# ----------------------------------------------------------------------------


@dataclass
class StepResult:
    index: int
    ledger: Optional[str]
    op: str
    ok: bool
    result: Any = None
    error: Optional[Dict[str, Any]] = None

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"step": self.index, "ledger": self.ledger, "op": self.op, "ok": self.ok}
        if self.ok:
            out["result"] = jsonable(self.result)
        else:
            out["error"] = self.error
        return out


def jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    if isinstance(value, enum.Flag):
        return int(value)
    if isinstance(value, FeeBreakdown):
        return value.as_dict()
    if isinstance(value, Mapping):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > 2**53:
        # Keep large amounts exact in JSON consumers.
        return str(value)
    return value


def load_scenario(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read scenario {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: scenario must be a mapping")
    if not isinstance(data.get("steps", []), list):
        raise ConfigError(f"{path}: 'steps' must be a list")
    return data


class Scenario:
    def __init__(self, spec: Mapping[str, Any], *, config: Optional[LedgerConfig] = None) -> None:
        self.spec = spec
        self.chain = Chain(chain_id=spec.get("chain_id"))
        self.names: Dict[str, bytes] = {}
        for tag in spec.get("accounts") or []:
            self.names[str(tag)] = self.chain.account(str(tag))
        for tag in spec.get("contracts") or []:
            self.names[str(tag)] = self.chain.deploy(str(tag), MULTISIG_CODE)
        admin = self.resolve(spec.get("admin", "multisig"))
        treasury = self.resolve(spec.get("treasury", "treasury"))
        dao = self.resolve(spec.get("dao", "dao"))
        self.deployment = deploy_ledgers(self.chain, admin, treasury, dao, config=config)

    def resolve(self, value: Any) -> Any:
        if isinstance(value, str):
            if value in self.names:
                return self.names[value]
            if value.startswith(("0x", "0X")):
                return value
            # Undeclared tags become fresh key-pair identities.
            addr = self.chain.account(value)
            self.names[value] = addr
            return addr
        if isinstance(value, list):
            return [self.resolve_arg(v) for v in value]
        return value

    def resolve_arg(self, value: Any) -> Any:
        if isinstance(value, str) and value in self.names:
            return self.names[value]
        if isinstance(value, list):
            return [self.resolve_arg(v) for v in value]
        return value

    def run(self) -> List[StepResult]:
        results: List[StepResult] = []
        for i, step in enumerate(self.spec.get("steps") or []):
            results.append(self.run_step(i, step))
        return results

    def run_step(self, index: int, step: Any) -> StepResult:
        if not isinstance(step, dict):
            raise ScenarioError(f"step {index}: must be a mapping")
        if "advance" in step:
            try:
                env = self.chain.advance(seconds=int(step["advance"]), blocks=int(step.get("blocks", 1)))
            except (TypeError, ValueError, ContextError) as e:
                raise ScenarioError(f"step {index}: bad advance {step['advance']!r}: {e}") from e
            return StepResult(index, None, "advance", True, result=env.to_dict())

        ledger_key = str(step.get("ledger", ""))
        op = str(step.get("op", ""))
        ledger = self.deployment.ledger(ledger_key)
        if op.startswith("_") or not callable(getattr(type(ledger), op, None)):
            raise ScenarioError(f"step {index}: {ledger_key} has no operation {op!r}")

        args = [self.resolve_arg(a) for a in step.get("args") or []]
        if "caller" in step:
            args.insert(0, self.resolve(step["caller"]))
        try:
            result = getattr(ledger, op)(*args)
        except LedgerError as e:
            return StepResult(index, ledger_key, op, False, error=e.to_dict())
        except TypeError as e:
            raise ScenarioError(f"step {index}: bad arguments for {op}: {e}") from e
        return StepResult(index, ledger_key, op, True, result=result)


__all__ = [
    "Deployment",
    "Scenario",
    "ScenarioError",
    "StepResult",
    "chain_from_profile",
    "deploy_ledgers",
    "jsonable",
    "load_scenario",
]
