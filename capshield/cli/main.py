"""
capshield - command-line interface for the CAPShield ledgers.

Commands:
  - capshield deploy      Deploy AngelSEED and CAPX on a local chain and print
                          the deployment record
  - capshield simulate    Replay a YAML scenario against fresh deployments
  - capshield info        Show resolved configuration

Global options:
  --verbose / -v          DEBUG logging (otherwise CAPSHIELD_LOG_LEVEL)

Examples:
  capshield deploy --config deploy.yaml --out deployments/
  CAPSHIELD_MULTISIG_ADDRESS=0x... CAPSHIELD_TREASURY_ADDRESS=0x... \\
    CAPSHIELD_DAO_ADDRESS=0x... capshield deploy --contract 0x...
  capshield simulate scenario.yaml
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, List, NoReturn, Optional

import typer

from ..config import ConfigError, load_config, load_deployment_config
from ..errors import LedgerError
from ..runtime.context import canonical_address
from ..version import __version__
from .scenario import (Scenario, ScenarioError, chain_from_profile,
                       deploy_ledgers, jsonable, load_scenario)

log = logging.getLogger(__name__)

app = typer.Typer(
    name="capshield",
    help="CAPShield ledger deployment and simulation",
    no_args_is_help=True,
    add_completion=False,
)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, load_config().log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("capshield").setLevel(level)


def _pretty(obj: Any) -> str:
    return json.dumps(jsonable(obj), indent=2, ensure_ascii=False)


def _fail(message: str, code: int = 1) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging"),
) -> None:
    """
    CAPShield CLI: deploy the AngelSEED and CAPX ledgers and replay scenarios
    against them on an in-process chain.

    Configuration:
      - Ledger limits and logging come from CAPSHIELD_* environment variables
        (see `capshield info`), falling back to built-in defaults.
      - Deployment addresses come from the --config YAML profile; an address
        the profile omits falls back to CAPSHIELD_{MULTISIG,TREASURY,DAO}_ADDRESS.
      - --verbose overrides CAPSHIELD_LOG_LEVEL.
    """
    _configure_logging(verbose)


@app.command()
def deploy(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML deployment profile (its addresses take precedence over CAPSHIELD_*_ADDRESS)",
        envvar="CAPSHIELD_DEPLOY_CONFIG",
    ),
    contract: Optional[List[str]] = typer.Option(
        None,
        "--contract",
        help="Mark an address as code-bearing on the local chain (repeatable)",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        help="Directory to write deployment-<network>-<ms>.json into",
    ),
) -> None:
    """Deploy both ledgers with the multisig as admin and print the record."""
    try:
        profile = load_deployment_config(config)
    except ConfigError as e:
        _fail(str(e))

    try:
        multisig = canonical_address(profile.multisig, "multisig")
        canonical_address(profile.treasury, "treasury")
        canonical_address(profile.dao, "dao")
        for address in profile.contracts:
            canonical_address(address, f"contracts[{address}]")
        extra = [canonical_address(address, f"--contract {address}") for address in contract or []]
        chain = chain_from_profile(profile)
    except LedgerError as e:
        _fail(e.message)

    for address in extra:
        chain.deploy_code(address, b"capshield.contract")

    if not chain.has_code(multisig):
        _fail(f"multisig {profile.multisig} is not a contract on network {profile.network!r}")

    log.info("deploying to %s (chain %d)", profile.network, profile.chain_id)
    try:
        deployment = deploy_ledgers(chain, profile.multisig, profile.treasury, profile.dao)
    except LedgerError as e:
        _fail(f"{e.code}: {e.message}")

    record = deployment.info(profile.network)
    text = _pretty(record)
    typer.echo(text)

    if out is not None:
        out.mkdir(parents=True, exist_ok=True)
        target = out / f"deployment-{profile.network}-{int(time.time() * 1000)}.json"
        target.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"Deployment info saved to: {target}", err=True)


@app.command()
def simulate(
    scenario: Path = typer.Argument(..., help="Scenario YAML file"),
    stop_on_error: bool = typer.Option(
        False, "--stop-on-error", help="Abort at the first failed step (exit 1)"
    ),
) -> None:
    """Replay a scenario; each step is atomic and failures are reported inline."""
    try:
        spec = load_scenario(scenario)
        sim = Scenario(spec)
    except ConfigError as e:
        _fail(str(e))
    except LedgerError as e:
        _fail(f"deployment failed: {e.code}: {e.message}")

    failed = 0
    for i, step in enumerate(spec.get("steps") or []):
        try:
            res = sim.run_step(i, step)
        except ScenarioError as e:
            _fail(str(e), code=2)
        if res.ok:
            typer.echo(f"[{i}] {res.op}: ok {json.dumps(jsonable(res.result))}")
        else:
            failed += 1
            typer.echo(f"[{i}] {res.op}: FAILED {res.error['code']} ({res.error['message']})")
            if stop_on_error:
                raise typer.Exit(1)

    typer.echo(_pretty(sim.deployment.info(load_config().network)))
    typer.echo(f"{failed} step(s) failed", err=True)


@app.command()
def info() -> None:
    """Print the resolved ledger configuration."""
    cfg = load_config()
    typer.echo(_pretty({"version": __version__, **cfg.as_dict()}))


def main() -> None:
    """Entry point for the capshield CLI."""
    app()


if __name__ == "__main__":
    main()
