"""
CLI tests for ``capshield deploy``, ``capshield simulate`` and ``capshield info``.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import typer.testing

from capshield.cli.main import app
from capshield.cli.scenario import Scenario

runner = typer.testing.CliRunner()

MS = "0x" + "11" * 20
TR = "0x" + "22" * 20
DAO = "0x" + "33" * 20


def _profile(tmp_path: Path, *, contract: bool = True) -> Path:
    path = tmp_path / "deploy.yaml"
    lines = [
        "network: local",
        f'multisig: "{MS}"',
        f'treasury: "{TR}"',
        f'dao: "{DAO}"',
    ]
    if contract:
        lines += ["contracts:", f'  "{MS}": gnosis-safe']
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


SCENARIO = """
accounts: [alice, bob]
contracts: [multisig]
admin: multisig
treasury: treasury
dao: dao
steps:
  - {ledger: angel, op: reward_mint, caller: multisig, args: [alice, 1000, "Early supporter"]}
  - {ledger: angel, op: reward_mint, caller: alice, args: [alice, 1, "self"]}
  - {ledger: capx, op: team_mint, caller: multisig, args: [alice, 5000]}
  - {ledger: capx, op: transfer, caller: alice, args: [bob, 1000]}
  - {advance: 3600}
  - {ledger: capx, op: renounce_ownership, caller: multisig}
  - {ledger: capx, op: balance_of, args: [bob]}
"""


class TestCLIBasics:
    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "deploy" in result.stdout
        assert "simulate" in result.stdout

    def test_info(self) -> None:
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["handover_validity_seconds"] == 172800
        assert data["network"] == "local"
        assert "version" in data


class TestDeploy:
    def test_deploy_from_yaml(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["deploy", "--config", str(_profile(tmp_path))])
        assert result.exit_code == 0, result.output
        record = json.loads(result.stdout)
        angel = record["contracts"]["AngelSEED"]
        capx = record["contracts"]["CAPShield"]
        assert angel["symbol"] == "ANGEL"
        assert angel["decimals"] == 18
        assert angel["max_supply"] == str(10_000_000_000 * 10**18)
        assert angel["owner"] == MS
        assert angel["owner_is_multisig"] is True
        assert angel["constructor_args"] == [MS]
        assert capx["symbol"] == "CAPX"
        assert capx["constructor_args"] == [MS, TR, DAO]
        assert capx["treasury"] == TR

    def test_deploy_from_env_with_contract_flag(self, monkeypatch) -> None:
        monkeypatch.setenv("CAPSHIELD_MULTISIG_ADDRESS", MS)
        monkeypatch.setenv("CAPSHIELD_TREASURY_ADDRESS", TR)
        monkeypatch.setenv("CAPSHIELD_DAO_ADDRESS", DAO)
        result = runner.invoke(app, ["deploy", "--contract", MS])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["contracts"]["CAPShield"]["owner"] == MS

    def test_deploy_aborts_when_multisig_has_no_code(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["deploy", "--config", str(_profile(tmp_path, contract=False))])
        assert result.exit_code == 1
        assert "not a contract" in result.output

    def test_deploy_aborts_on_missing_addresses(self) -> None:
        result = runner.invoke(app, ["deploy"])
        assert result.exit_code == 1
        assert "missing multisig address" in result.output

    def test_deploy_writes_record(self, tmp_path: Path) -> None:
        out = tmp_path / "deployments"
        result = runner.invoke(app, ["deploy", "--config", str(_profile(tmp_path)), "--out", str(out)])
        assert result.exit_code == 0, result.output
        (saved,) = out.glob("deployment-local-*.json")
        record = json.loads(saved.read_text(encoding="utf-8"))
        assert record["contracts"]["AngelSEED"]["owner"] == MS

    def test_deploy_rejects_malformed_contract_address(self, tmp_path: Path) -> None:
        path = _profile(tmp_path, contract=False)
        path.write_text(path.read_text(encoding="utf-8") + 'contracts:\n  "0xzz": multisig\n', encoding="utf-8")
        result = runner.invoke(app, ["deploy", "--config", str(path)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error: contracts[0xzz]" in result.output

    @pytest.mark.parametrize("field", ["multisig", "treasury", "dao"])
    def test_deploy_rejects_short_addresses(self, tmp_path: Path, field: str) -> None:
        path = tmp_path / "deploy.yaml"
        values = {"multisig": MS, "treasury": TR, "dao": DAO, field: "0x01"}
        path.write_text(
            "".join(f'{k}: "{v}"\n' for k, v in values.items()) + f'contracts:\n  "{MS}": safe\n',
            encoding="utf-8",
        )
        result = runner.invoke(app, ["deploy", "--config", str(path)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert f"{field}: expected 20-byte address" in result.output

    def test_rejects_short_contract_flag(self, monkeypatch) -> None:
        monkeypatch.setenv("CAPSHIELD_MULTISIG_ADDRESS", MS)
        monkeypatch.setenv("CAPSHIELD_TREASURY_ADDRESS", TR)
        monkeypatch.setenv("CAPSHIELD_DAO_ADDRESS", DAO)
        result = runner.invoke(app, ["deploy", "--contract", "0xabcd"])
        assert result.exit_code == 1
        assert "expected 20-byte address" in result.output

    def test_profile_addresses_win_over_env(self, tmp_path: Path, monkeypatch) -> None:
        other = "0x" + "44" * 20
        monkeypatch.setenv("CAPSHIELD_TREASURY_ADDRESS", other)
        monkeypatch.setenv("CAPSHIELD_DAO_ADDRESS", other)
        path = tmp_path / "deploy.yaml"
        path.write_text(
            f'multisig: "{MS}"\ntreasury: "{TR}"\ncontracts:\n  "{MS}": safe\n',
            encoding="utf-8",
        )
        result = runner.invoke(app, ["deploy", "--config", str(path)])
        assert result.exit_code == 0, result.output
        capx = json.loads(result.stdout)["contracts"]["CAPShield"]
        # treasury from the profile, dao from the env fallback
        assert capx["constructor_args"] == [MS, TR, other]


class TestSimulate:
    def test_simulate_reports_each_step(self, tmp_path: Path) -> None:
        path = tmp_path / "scenario.yaml"
        path.write_text(SCENARIO, encoding="utf-8")
        result = runner.invoke(app, ["simulate", str(path)])
        assert result.exit_code == 0, result.output
        out = result.stdout
        assert "[0] reward_mint: ok 1000" in out
        assert "[1] reward_mint: FAILED Unauthorized" in out
        assert "[3] transfer: ok true" in out
        assert "[5] renounce_ownership: FAILED RenounceDisabled" in out
        assert "[6] balance_of: ok 980" in out

    def test_stop_on_error(self, tmp_path: Path) -> None:
        path = tmp_path / "scenario.yaml"
        path.write_text(SCENARIO, encoding="utf-8")
        result = runner.invoke(app, ["simulate", str(path), "--stop-on-error"])
        assert result.exit_code == 1
        assert "[2]" not in result.stdout

    def test_unknown_operation_is_a_scenario_error(self, tmp_path: Path) -> None:
        path = tmp_path / "scenario.yaml"
        path.write_text(
            "contracts: [multisig]\nsteps:\n  - {ledger: capx, op: _move, args: []}\n",
            encoding="utf-8",
        )
        result = runner.invoke(app, ["simulate", str(path)])
        assert result.exit_code == 2
        assert "no operation" in result.output

    @pytest.mark.parametrize("value", ["soon", "[1, 2]", "-5"])
    def test_bad_advance_is_a_scenario_error(self, tmp_path: Path, value: str) -> None:
        path = tmp_path / "scenario.yaml"
        path.write_text(f"contracts: [multisig]\nsteps:\n  - {{advance: {value}}}\n", encoding="utf-8")
        result = runner.invoke(app, ["simulate", str(path)])
        assert result.exit_code == 2
        assert "bad advance" in result.output

    def test_key_pair_admin_fails_deployment(self, tmp_path: Path) -> None:
        path = tmp_path / "scenario.yaml"
        path.write_text("accounts: [multisig]\nsteps: []\n", encoding="utf-8")
        result = runner.invoke(app, ["simulate", str(path)])
        assert result.exit_code == 1
        assert "AdminMustBeContract" in result.output


def test_scenario_api_keeps_going_after_failures():
    sim = Scenario(
        {
            "accounts": ["alice"],
            "contracts": ["multisig"],
            "steps": [
                {"ledger": "capx", "op": "pause", "caller": "multisig"},
                {"ledger": "capx", "op": "team_mint", "caller": "multisig", "args": ["alice", 10]},
                {"ledger": "capx", "op": "unpause", "caller": "multisig"},
                {"ledger": "capx", "op": "team_mint", "caller": "multisig", "args": ["alice", 10]},
            ],
        }
    )
    results = sim.run()
    assert [r.ok for r in results] == [True, False, True, True]
    assert results[1].error["code"] == "LedgerPaused"
    assert results[1].error["family"] == "state"


def test_scenario_rejects_unknown_ledger():
    sim = Scenario({"contracts": ["multisig"]})
    with pytest.raises(Exception, match="unknown ledger"):
        sim.run_step(0, {"ledger": "nope", "op": "transfer"})
