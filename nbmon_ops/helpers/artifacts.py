"""
Contract artifact resolution.

Resolves a contract interface by name so scripts can say ``GenesisNBMon``
instead of carrying ABIs around. Lookup order:

1. Hardhat-style ``artifacts/**/<Name>.json`` files (``abi`` + ``bytecode``)
2. ``build/<Name>.abi`` + ``build/<Name>.bin`` written by ``compile_contract``
3. Interface-only ABIs bundled in ``nbmon_ops.config.abis``
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from solcx import compile_files, get_installed_solc_versions, install_solc

from nbmon_ops.config import (
    ARTIFACTS_DIR,
    BUILD_DIR,
    BUNDLED_ABIS,
    CONTRACTS_DIR,
    OPTIMIZER_ENABLED,
    OPTIMIZER_RUNS,
    SOLC_VERSION,
)

logger = logging.getLogger(__name__)


class ArtifactNotFoundError(FileNotFoundError):
    """No ABI could be found for the requested contract name."""


@dataclass
class ContractArtifact:
    name: str
    abi: list[dict[str, Any]]
    bytecode: str | None
    source: str

    @property
    def deployable(self) -> bool:
        return bool(self.bytecode and self.bytecode != "0x")


def _prefixed(bytecode: str | None) -> str | None:
    if not bytecode:
        return None
    bytecode = bytecode.strip()
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    return bytecode


class ArtifactStore:
    """Looks up contract ABIs/bytecode under a project root."""

    def __init__(self, root: Path | str = "."):
        self.root = Path(root)
        self.artifacts_dir = self.root / ARTIFACTS_DIR
        self.build_dir = self.root / BUILD_DIR
        self.contracts_dir = self.root / CONTRACTS_DIR

    def _from_artifacts(self, name: str) -> ContractArtifact | None:
        if not self.artifacts_dir.exists():
            return None
        for path in sorted(self.artifacts_dir.rglob(f"{name}.json")):
            if "build-info" in path.parts:
                continue
            with open(path) as f:
                data = json.load(f)
            if "abi" not in data:
                continue
            return ContractArtifact(
                name=name,
                abi=data["abi"],
                bytecode=_prefixed(data.get("bytecode")),
                source=str(path),
            )
        return None

    def _from_build(self, name: str) -> ContractArtifact | None:
        abi_path = self.build_dir / f"{name}.abi"
        if not abi_path.exists():
            return None
        abi = json.loads(abi_path.read_text())
        bin_path = self.build_dir / f"{name}.bin"
        bytecode = _prefixed(bin_path.read_text()) if bin_path.exists() else None
        return ContractArtifact(name=name, abi=abi, bytecode=bytecode, source=str(abi_path))

    def load(self, name: str) -> ContractArtifact:
        """Return the artifact for ``name``; raises ArtifactNotFoundError if unknown."""
        artifact = self._from_artifacts(name) or self._from_build(name)
        if artifact is not None:
            logger.debug("Resolved %s from %s", name, artifact.source)
            return artifact
        if name in BUNDLED_ABIS:
            return ContractArtifact(name=name, abi=BUNDLED_ABIS[name], bytecode=None, source="bundled")
        raise ArtifactNotFoundError(
            f"No ABI for '{name}': looked in {self.artifacts_dir}, {self.build_dir} and bundled ABIs "
            f"({', '.join(sorted(BUNDLED_ABIS))}). Run the compile command first."
        )

    def compile_contract(self, name: str, solc_version: str = SOLC_VERSION) -> ContractArtifact:
        """Compile ``contracts/<name>.sol`` with py-solc-x and write ``build/<name>.abi/.bin``."""
        source = self.contracts_dir / f"{name}.sol"
        if not source.exists():
            raise ArtifactNotFoundError(f"Contract source not found: {source}")

        if solc_version not in {str(v) for v in get_installed_solc_versions()}:
            logger.info("Installing solc %s", solc_version)
            install_solc(solc_version)

        node_modules = self.root / "node_modules"
        compiled = compile_files(
            [str(source)],
            output_values=["abi", "bin"],
            solc_version=solc_version,
            optimize=OPTIMIZER_ENABLED,
            optimize_runs=OPTIMIZER_RUNS,
            allow_paths=[str(self.contracts_dir.resolve()), str(node_modules.resolve())],
            import_remappings=[f"@openzeppelin/={node_modules / '@openzeppelin'}/"],
        )
        key = next((k for k in compiled if k.endswith(f":{name}")), None)
        if key is None:
            raise ArtifactNotFoundError(f"{source} compiled but defines no contract named {name}")

        abi = compiled[key]["abi"]
        bytecode = _prefixed(compiled[key]["bin"])
        self.build_dir.mkdir(parents=True, exist_ok=True)
        (self.build_dir / f"{name}.abi").write_text(json.dumps(abi, indent=2))
        (self.build_dir / f"{name}.bin").write_text(bytecode or "")
        logger.info("Compiled %s with solc %s", name, solc_version)
        return ContractArtifact(name=name, abi=abi, bytecode=bytecode, source=str(source))
