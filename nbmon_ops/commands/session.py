"""
Per-command session: network, Web3, signer and artifact store for a single run.

Every command opens one session, resolves its contract handle(s) through it
and discards it on exit. Nothing is shared between runs.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from eth_account.signers.local import LocalAccount
from web3 import Web3

from nbmon_ops.config import DEPLOYMENTS_DIR, TX_TIMEOUT, get_network_config
from nbmon_ops.helpers.artifacts import ArtifactStore
from nbmon_ops.helpers.contracts import ContractFactory, ContractHandle
from nbmon_ops.helpers.signer import get_signer
from nbmon_ops.helpers.transactions import GasConfig
from nbmon_ops.helpers.web3_setup import get_web3
from nbmon_ops.setup.deployments import find_latest

logger = logging.getLogger(__name__)


@dataclass
class Session:
    network: dict[str, Any]
    w3: Web3
    signer: LocalAccount | None
    store: ArtifactStore
    deployments_dir: Path = DEPLOYMENTS_DIR
    gas_limit: int | None = None
    timeout: int = TX_TIMEOUT
    _gas: GasConfig | None = field(default=None, repr=False)

    @classmethod
    def open(
        cls,
        network: str | int | None = None,
        root: Path | str = ".",
        keystore: Path | None = None,
        password: str | None = None,
        need_signer: bool = True,
        gas_limit: int | None = None,
        timeout: int = TX_TIMEOUT,
    ) -> "Session":
        cfg = get_network_config(network)
        w3 = get_web3(cfg)
        signer = get_signer(cfg, keystore=keystore, password=password) if need_signer else None
        root = Path(root)
        logger.debug("Session on %s (%s) signer=%s", cfg["key"], cfg["url"], signer.address if signer else None)
        return cls(
            network=cfg,
            w3=w3,
            signer=signer,
            store=ArtifactStore(root),
            deployments_dir=root / DEPLOYMENTS_DIR,
            gas_limit=gas_limit,
            timeout=timeout,
        )

    @property
    def gas(self) -> GasConfig:
        if self._gas is None:
            self._gas = GasConfig.from_network(self.w3, self.network, gas_limit=self.gas_limit)
        return self._gas

    def factory(self, contract: str) -> ContractFactory:
        artifact = self.store.load(contract)
        return ContractFactory(
            self.w3,
            artifact,
            signer=self.signer,
            gas=self._gas,
            network=self.network,
            gas_limit=self.gas_limit,
            timeout=self.timeout,
        )

    def attach(self, contract: str, address: str | None = None) -> ContractHandle:
        """Handle for ``contract`` at ``address``, or at its latest recorded deployment on this network."""
        if address is None:
            record = find_latest(contract, self.network["key"], self.deployments_dir)
            if record is None:
                raise ValueError(f"No address given and no recorded deployment of {contract} on {self.network['key']}")
            address = record.address
            logger.info("Using recorded %s deployment at %s", contract, address)
        return self.factory(contract).attach(address)
