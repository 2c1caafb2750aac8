"""
capshield.config — runtime knobs and deployment profiles.

Two layers live here:

* ``LedgerConfig`` — numeric limits and operational flags read from the
  environment (``CAPSHIELD_*``) with safe defaults. Loaded once and cached.
* ``DeploymentConfig`` — the addresses a deployment needs (multisig admin,
  treasury, DAO) plus the chain profile describing which accounts carry code.
  Resolved from a YAML file, falling back to environment variables.

Configuration precedence for ``LedgerConfig``:
  1) Environment variables
  2) Hardcoded safe defaults below

Key env vars:
  - CAPSHIELD_HANDOVER_VALIDITY   (int seconds) default: 172800 (48h)
  - CAPSHIELD_MAX_REASON_LENGTH   (int)         default: 256
  - CAPSHIELD_MAX_BATCH_SIZE      (int)         default: 500
  - CAPSHIELD_LOG_LEVEL           (str)         default: WARNING
  - CAPSHIELD_NETWORK             (str)         default: local
  - CAPSHIELD_CHAIN_ID            (int)         default: 31337

Deployment env vars (used only for addresses the YAML profile omits):
  - CAPSHIELD_MULTISIG_ADDRESS, CAPSHIELD_TREASURY_ADDRESS, CAPSHIELD_DAO_ADDRESS
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_HANDOVER_VALIDITY = 48 * 60 * 60
DEFAULT_MAX_REASON_LENGTH = 256
DEFAULT_MAX_BATCH_SIZE = 500
DEFAULT_NETWORK = "local"
DEFAULT_CHAIN_ID = 31337

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Invalid or missing configuration."""


# ----------------------------- helpers ---------------------------------------


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    return raw.strip() if raw and raw.strip() else default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    handover_validity_seconds: int
    max_reason_length: int
    max_batch_size: int
    log_level: str
    network: str
    chain_id: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "handover_validity_seconds": self.handover_validity_seconds,
            "max_reason_length": self.max_reason_length,
            "max_batch_size": self.max_batch_size,
            "log_level": self.log_level,
            "network": self.network,
            "chain_id": self.chain_id,
        }


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """
    Build the process-wide LedgerConfig from the environment.

    Cached; call ``load_config.cache_clear()`` after changing env in tests.
    """
    level = _env_str("CAPSHIELD_LOG_LEVEL", "WARNING").upper()
    if level not in _LOG_LEVELS:
        level = "WARNING"
    return LedgerConfig(
        handover_validity_seconds=_env_int(
            "CAPSHIELD_HANDOVER_VALIDITY", DEFAULT_HANDOVER_VALIDITY, min_v=1, max_v=365 * 24 * 3600
        ),
        max_reason_length=_env_int(
            "CAPSHIELD_MAX_REASON_LENGTH", DEFAULT_MAX_REASON_LENGTH, min_v=1, max_v=4096
        ),
        max_batch_size=_env_int("CAPSHIELD_MAX_BATCH_SIZE", DEFAULT_MAX_BATCH_SIZE, min_v=1, max_v=10_000),
        log_level=level,
        network=_env_str("CAPSHIELD_NETWORK", DEFAULT_NETWORK),
        chain_id=_env_int("CAPSHIELD_CHAIN_ID", DEFAULT_CHAIN_ID, min_v=0, max_v=2**63 - 1),
    )


# --------------------------- deployment profile ------------------------------


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Inputs for ``capshield deploy``.

    ``contracts`` maps hex addresses to a code tag; every address listed there
    is installed as a code-bearing account on the local chain before the
    ledgers are deployed.
    """

    multisig: str
    treasury: str
    dao: str
    network: str = DEFAULT_NETWORK
    chain_id: int = DEFAULT_CHAIN_ID
    contracts: Mapping[str, str] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "multisig": self.multisig,
            "treasury": self.treasury,
            "dao": self.dao,
            "network": self.network,
            "chain_id": self.chain_id,
            "contracts": dict(self.contracts),
        }


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top-level YAML value must be a mapping")
    return raw


def load_deployment_config(path: Optional[Path] = None) -> DeploymentConfig:
    """
    Resolve deployment addresses from ``path`` (YAML) with env fallback.

    YAML shape:

        network: local
        chain_id: 31337
        multisig: "0x..."
        treasury: "0x..."
        dao: "0x..."
        contracts:
          "0x...": multisig
    """
    data: Dict[str, Any] = _read_yaml(path) if path is not None else {}
    base = load_config()

    def pick(key: str, env: str) -> str:
        v = data.get(key) or os.getenv(env) or ""
        return _address_text(v)

    multisig = pick("multisig", "CAPSHIELD_MULTISIG_ADDRESS")
    treasury = pick("treasury", "CAPSHIELD_TREASURY_ADDRESS")
    dao = pick("dao", "CAPSHIELD_DAO_ADDRESS")
    for label, value in (("multisig", multisig), ("treasury", treasury), ("dao", dao)):
        if not value:
            raise ConfigError(
                f"missing {label} address; set it in the config file or CAPSHIELD_{label.upper()}_ADDRESS"
            )

    contracts = data.get("contracts") or {}
    if not isinstance(contracts, dict):
        raise ConfigError("'contracts' must be a mapping of address -> code tag")

    chain_id = data.get("chain_id", base.chain_id)
    try:
        chain_id = int(chain_id)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"chain_id must be an integer, got {chain_id!r}") from e

    return DeploymentConfig(
        multisig=multisig,
        treasury=treasury,
        dao=dao,
        network=str(data.get("network") or base.network),
        chain_id=chain_id,
        contracts={_address_text(k): str(v) for k, v in contracts.items()},
    )


def _address_text(v: Any) -> str:
    # YAML 1.1 reads an unquoted 0x... literal as an int.
    if isinstance(v, int) and not isinstance(v, bool):
        return "0x%040x" % v
    return str(v).strip()


__all__ = [
    "ConfigError",
    "LedgerConfig",
    "DeploymentConfig",
    "load_config",
    "load_deployment_config",
    "DEFAULT_HANDOVER_VALIDITY",
    "DEFAULT_MAX_REASON_LENGTH",
    "DEFAULT_MAX_BATCH_SIZE",
]
