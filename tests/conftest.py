"""Shared fixtures: fake Web3/RPC objects and a throwaway project root."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from nbmon_ops.commands.session import Session
from nbmon_ops.config import get_network_config
from nbmon_ops.helpers.artifacts import ArtifactStore
from nbmon_ops.helpers.transactions import GasConfig

SIGNER_ADDRESS = "0x" + "a1" * 20
CONTRACT_ADDRESS = "0x" + "b2" * 20
TX_HASH = bytes.fromhex("ab" * 32)

GENESIS_ABI = [
    {"inputs": [], "stateMutability": "nonpayable", "type": "constructor"},
    {"inputs": [{"name": "id", "type": "uint256"}], "name": "getNFT", "outputs": [{"name": "", "type": "string"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "uri", "type": "string"}], "name": "setBaseURI", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "amount", "type": "uint256"}, {"name": "stringMetadata", "type": "string[]"}], "name": "devMint", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "account", "type": "address"}], "name": "whitelisted", "outputs": [{"name": "", "type": "bool"}], "constant": True, "type": "function"},
    {"anonymous": False, "inputs": [], "name": "Minted", "type": "event"},
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell/.env from leaking into tests."""
    for name in ("NETWORK", "RPC_URL", "RPC_API_KEY", "NETWORKS_FILE", "WALLET_1", "WALLET_2",
                 "NFTSTORAGE_API", "WALLET_KEYSTORE_PASSWORD"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def project_root(tmp_path: Path) -> Path:
    """Project root with a Hardhat artifact for GenesisNBMon."""
    art_dir = tmp_path / "artifacts" / "contracts" / "GenesisNBMon.sol"
    art_dir.mkdir(parents=True)
    (art_dir / "GenesisNBMon.json").write_text(
        json.dumps({"contractName": "GenesisNBMon", "abi": GENESIS_ABI, "bytecode": "0x6080604052"})
    )
    (art_dir / "GenesisNBMon.dbg.json").write_text(json.dumps({"buildInfo": "../../build-info/x.json"}))
    return tmp_path


@pytest.fixture()
def signer() -> MagicMock:
    acct = MagicMock()
    acct.address = SIGNER_ADDRESS
    acct.sign_transaction.return_value = MagicMock(raw_transaction=b"\x02signed")
    return acct


@pytest.fixture()
def w3() -> MagicMock:
    fake = MagicMock()
    fake.eth.chain_id = 97
    fake.eth.get_transaction_count.return_value = 7
    fake.eth.send_raw_transaction.return_value = TX_HASH
    fake.eth.wait_for_transaction_receipt.return_value = {"status": 1, "gasUsed": 50_000, "blockNumber": 123}
    fake.eth.get_balance.return_value = 2 * 10**18
    return fake


@pytest.fixture()
def legacy_gas() -> GasConfig:
    return GasConfig(type="legacy", gas_price=20_000_000_000)


@pytest.fixture()
def session(w3: MagicMock, signer: MagicMock, project_root: Path, legacy_gas: GasConfig) -> Session:
    return Session(
        network=get_network_config("bscTestnet"),
        w3=w3,
        signer=signer,
        store=ArtifactStore(project_root),
        deployments_dir=project_root / "deployments",
        _gas=legacy_gas,
    )
