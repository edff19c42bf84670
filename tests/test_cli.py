"""End-to-end CLI dispatch with the network session mocked out."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from eth_account import Account

from nbmon_ops.cli import main
from nbmon_ops.commands.session import Session
from nbmon_ops.setup.deployments import DeploymentRecord

from conftest import CONTRACT_ADDRESS


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    yield
    logging.getLogger("nbmon_ops").handlers.clear()


def test_no_subcommand_prints_help(capsys) -> None:
    assert main([]) == 2
    assert "usage: nbmon-ops" in capsys.readouterr().out


def test_networks(capsys) -> None:
    assert main(["networks"]) == 0
    out = capsys.readouterr().out
    assert "bscTestnet" in out
    assert "20 gwei" in out


def test_accounts(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    acct = Account.create()
    monkeypatch.setenv("WALLET_1", bytes(acct.key).hex())
    assert main(["accounts", "--network", "bscTestnet"]) == 0
    assert capsys.readouterr().out.strip() == acct.address


def test_accounts_without_key(capsys) -> None:
    assert main(["accounts", "--network", "bscTestnet"]) == 1
    assert "Error: No signer configured" in capsys.readouterr().err


def test_env_file_is_loaded(tmp_path: Path, capsys) -> None:
    acct = Account.create()
    env = tmp_path / "custom.env"
    env.write_text(f"WALLET_1={bytes(acct.key).hex()}\n")
    try:
        assert main(["accounts", "--network", "ganache", "--env-file", str(env)]) == 0
    finally:
        os.environ.pop("WALLET_1", None)
    assert acct.address in capsys.readouterr().out


def test_call_read_only(session, w3, capsys) -> None:
    w3.eth.contract.return_value.functions.getNFT.return_value.call.return_value = ["Male", "Common"]
    with patch.object(Session, "open", return_value=session) as open_:
        code = main(["call", "GenesisNBMon", "getNFT", "1", "--address", CONTRACT_ADDRESS, "--read-only"])

    assert code == 0
    assert open_.call_args.kwargs["need_signer"] is False
    assert json.loads(capsys.readouterr().out) == ["Male", "Common"]


def test_call_failure_exits_nonzero(session, capsys) -> None:
    with patch.object(Session, "open", return_value=session):
        code = main(["call", "GenesisNBMon", "noSuchMethod", "--address", CONTRACT_ADDRESS])
    assert code == 1
    assert "has no method 'noSuchMethod'" in capsys.readouterr().err


def test_deploy_dry_run(session, capsys) -> None:
    with patch.object(Session, "open", return_value=session):
        assert main(["deploy", "GenesisNBMon", "--dry-run"]) == 0
    assert "Prepared deploy plan" in capsys.readouterr().out


def test_check_payment_mismatch(session, w3, capsys) -> None:
    w3.eth.get_transaction.return_value = {"blockNumber": 1, "value": 5}
    with patch.object(Session, "open", return_value=session):
        assert main(["check-payment", "0x01", "--expected", "0.01"]) == 1
    assert capsys.readouterr().out.strip() == "not valid"


def test_tx_count(session, w3, capsys) -> None:
    w3.eth.get_transaction_count.return_value = 12
    with patch.object(Session, "open", return_value=session):
        assert main(["tx-count", "0x" + "ef" * 20]) == 0
    assert capsys.readouterr().out.strip() == "12"


def test_deployments_json(tmp_path: Path, capsys) -> None:
    DeploymentRecord(
        contract="GenesisNBMon",
        address=CONTRACT_ADDRESS,
        network="bscTestnet",
        chain_id=97,
        deployer="0x" + "a1" * 20,
        tx_hash="0x01",
        gas_used=1,
        block_number=1,
        timestamp="2024-01-01T00:00:00+00:00",
    ).save(tmp_path / "deployments")

    assert main(["deployments", "--format", "json", "--contract", "GenesisNBMon"]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert rows == [{
        "network": "bscTestnet",
        "contract": "GenesisNBMon",
        "address": CONTRACT_ADDRESS,
        "deployer": "0x" + "a1" * 20,
        "timestamp": "2024-01-01T00:00:00+00:00",
    }]


@pytest.mark.parametrize("network", ["97", "bsctestnet", "BSCTESTNET"])
def test_deployments_network_filter_resolves_aliases(tmp_path: Path, capsys, network: str) -> None:
    for net, address in (("bscTestnet", CONTRACT_ADDRESS), ("bscMainnet", "0x" + "cd" * 20)):
        DeploymentRecord(
            contract="GenesisNBMon", address=address, network=net, chain_id=0, deployer="",
            tx_hash="", gas_used=0, block_number=0, timestamp="2024-01-01T00:00:00+00:00",
        ).save(tmp_path / "deployments")

    assert main(["deployments", "--format", "json", "--network", network]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert [(r["network"], r["address"]) for r in rows] == [("bscTestnet", CONTRACT_ADDRESS)]


def test_deployments_unknown_network(capsys) -> None:
    assert main(["deployments", "--network", "nope"]) == 1
    assert "Unsupported network" in capsys.readouterr().err


def test_deployments_empty(capsys) -> None:
    assert main(["deployments"]) == 0
    assert "No deployment records found" in capsys.readouterr().out


def test_keystore_create(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    acct = Account.create()
    monkeypatch.setenv("WALLET_1", bytes(acct.key).hex())
    assert main(["keystore-create", "--keystore-pass", "pw"]) == 0
    assert (tmp_path / "build" / "wallets" / f"WALLET_1_{acct.address}.json").exists()
    assert f"Address: {acct.address}" in capsys.readouterr().out


def test_keystore_create_named_wallet(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    acct = Account.create()
    monkeypatch.setenv("WALLET_2", bytes(acct.key).hex())
    code = main(["keystore-create", "--private-key-env", "WALLET_2", "--out", "keys", "--keystore-pass", "pw"])
    assert code == 0
    assert (tmp_path / "keys" / f"WALLET_2_{acct.address}.json").exists()


def test_keystore_create_without_key(capsys) -> None:
    assert main(["keystore-create", "--keystore-pass", "pw"]) == 2
    assert "WALLET_1 is not set" in capsys.readouterr().err


def test_pin_metadata_missing_image(capsys) -> None:
    assert main(["pin-metadata", "--name", "Egg", "--description", "d", "--image", "nope.png"]) == 1
    assert "Image file not found" in capsys.readouterr().err
