"""Artifact resolution by contract name."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from nbmon_ops.config import ERC20_ABI
from nbmon_ops.helpers.artifacts import ArtifactNotFoundError, ArtifactStore


def test_hardhat_artifact(project_root: Path) -> None:
    artifact = ArtifactStore(project_root).load("GenesisNBMon")
    assert artifact.bytecode == "0x6080604052"
    assert artifact.deployable
    assert any(e.get("name") == "getNFT" for e in artifact.abi)
    assert artifact.source.endswith("GenesisNBMon.json")


def test_build_directory(tmp_path: Path) -> None:
    build = tmp_path / "build"
    build.mkdir()
    (build / "Marketplace.abi").write_text(json.dumps([{"type": "function", "name": "salesFee", "inputs": [], "outputs": []}]))
    (build / "Marketplace.bin").write_text("6080\n")
    artifact = ArtifactStore(tmp_path).load("Marketplace")
    assert artifact.bytecode == "0x6080"
    assert artifact.abi[0]["name"] == "salesFee"


def test_build_abi_without_bin_is_not_deployable(tmp_path: Path) -> None:
    build = tmp_path / "build"
    build.mkdir()
    (build / "Iface.abi").write_text("[]")
    artifact = ArtifactStore(tmp_path).load("Iface")
    assert artifact.bytecode is None
    assert not artifact.deployable


def test_artifacts_win_over_build(project_root: Path) -> None:
    build = project_root / "build"
    build.mkdir()
    (build / "GenesisNBMon.abi").write_text("[]")
    assert ArtifactStore(project_root).load("GenesisNBMon").source.endswith(".json")


def test_bundled_fallback(tmp_path: Path) -> None:
    artifact = ArtifactStore(tmp_path).load("BEP20")
    assert artifact.abi is ERC20_ABI
    assert artifact.source == "bundled"
    assert not artifact.deployable


def test_unknown_contract(tmp_path: Path) -> None:
    with pytest.raises(ArtifactNotFoundError, match="NoSuchContract"):
        ArtifactStore(tmp_path).load("NoSuchContract")


def test_compile_missing_source(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Contract source not found"):
        ArtifactStore(tmp_path).compile_contract("Ghost")


class TestCompile:
    @pytest.fixture()
    def source_root(self, tmp_path: Path) -> Path:
        (tmp_path / "contracts").mkdir()
        (tmp_path / "contracts" / "Marketplace.sol").write_text("// SPDX-License-Identifier: MIT\n")
        return tmp_path

    def test_compiles_with_project_settings(self, source_root: Path) -> None:
        abi = [{"type": "function", "name": "salesFee", "inputs": [], "outputs": []}]
        compiled = {f"{source_root}/contracts/Marketplace.sol:Marketplace": {"abi": abi, "bin": "6080ff"}}
        with patch("nbmon_ops.helpers.artifacts.get_installed_solc_versions", return_value=["0.8.13"]), \
                patch("nbmon_ops.helpers.artifacts.install_solc") as install, \
                patch("nbmon_ops.helpers.artifacts.compile_files", return_value=compiled) as compile_files:
            artifact = ArtifactStore(source_root).compile_contract("Marketplace")

        install.assert_not_called()
        kwargs = compile_files.call_args.kwargs
        assert compile_files.call_args.args[0] == [str(source_root / "contracts" / "Marketplace.sol")]
        assert kwargs["solc_version"] == "0.8.13"
        assert kwargs["optimize"] is True
        assert kwargs["optimize_runs"] == 200
        assert kwargs["output_values"] == ["abi", "bin"]
        assert kwargs["import_remappings"] == [f"@openzeppelin/={source_root / 'node_modules' / '@openzeppelin'}/"]

        assert artifact.bytecode == "0x6080ff"
        assert json.loads((source_root / "build" / "Marketplace.abi").read_text()) == abi
        assert (source_root / "build" / "Marketplace.bin").read_text() == "0x6080ff"
        assert ArtifactStore(source_root).load("Marketplace").deployable

    def test_installs_missing_solc(self, source_root: Path) -> None:
        compiled = {"Marketplace.sol:Marketplace": {"abi": [], "bin": "00"}}
        with patch("nbmon_ops.helpers.artifacts.get_installed_solc_versions", return_value=[]), \
                patch("nbmon_ops.helpers.artifacts.install_solc") as install, \
                patch("nbmon_ops.helpers.artifacts.compile_files", return_value=compiled):
            ArtifactStore(source_root).compile_contract("Marketplace", solc_version="0.8.20")
        install.assert_called_once_with("0.8.20")

    def test_contract_missing_from_output(self, source_root: Path) -> None:
        compiled = {"Marketplace.sol:MarketplaceLib": {"abi": [], "bin": ""}}
        with patch("nbmon_ops.helpers.artifacts.get_installed_solc_versions", return_value=["0.8.13"]), \
                patch("nbmon_ops.helpers.artifacts.compile_files", return_value=compiled):
            with pytest.raises(ArtifactNotFoundError, match="no contract named Marketplace"):
                ArtifactStore(source_root).compile_contract("Marketplace")
        assert not (source_root / "build").exists()
