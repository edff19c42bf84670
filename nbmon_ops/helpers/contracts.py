"""
Contract handles and factories.

A ``ContractHandle`` binds a name, an address and an ABI to a Web3 instance
and a signer. ``call`` dispatches on the ABI: view/pure methods are read with
``eth_call``, anything else is signed and sent via ``send_transaction``.
"""
from __future__ import annotations

import logging
from typing import Any

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from web3 import Web3

from nbmon_ops.config import TX_TIMEOUT
from nbmon_ops.config.logging_config import log_tx
from nbmon_ops.helpers.artifacts import ContractArtifact
from nbmon_ops.helpers.transactions import GasConfig, TxResult, send_transaction

logger = logging.getLogger(__name__)

READ_ONLY_MUTABILITY = {"view", "pure"}


class _GasMixin:
    """Gas pricing resolved on the first write so read-only use never queries it."""

    w3: Web3
    gas: GasConfig | None
    network: dict[str, Any]
    gas_limit: int | None

    def gas_config(self) -> GasConfig:
        if self.gas is None:
            self.gas = GasConfig.from_network(self.w3, self.network, gas_limit=self.gas_limit)
        return self.gas


class ContractHandle(_GasMixin):
    """Local proxy for a deployed contract."""

    def __init__(
        self,
        w3: Web3,
        artifact: ContractArtifact,
        address: str,
        signer: LocalAccount | None = None,
        gas: GasConfig | None = None,
        network: dict[str, Any] | None = None,
        gas_limit: int | None = None,
        timeout: int = TX_TIMEOUT,
    ):
        self.w3 = w3
        self.artifact = artifact
        self.name = artifact.name
        self.address = to_checksum_address(address)
        self.signer = signer
        self.gas = gas
        self.network = network or {}
        self.gas_limit = gas_limit
        self.timeout = timeout
        self.contract = w3.eth.contract(address=self.address, abi=artifact.abi)

    def __repr__(self) -> str:
        return f"ContractHandle({self.name} @ {self.address})"

    def _abi_entries(self, method: str) -> list[dict[str, Any]]:
        entries = [e for e in self.artifact.abi if e.get("type", "function") == "function" and e.get("name") == method]
        if not entries:
            raise AttributeError(f"{self.name} has no method '{method}'")
        return entries

    def is_read_only(self, method: str) -> bool:
        """True if every overload of ``method`` is view/pure (or legacy ``constant``)."""
        for entry in self._abi_entries(method):
            mutability = entry.get("stateMutability")
            if mutability is None:
                if not entry.get("constant", False):
                    return False
            elif mutability not in READ_ONLY_MUTABILITY:
                return False
        return True

    def call(self, method: str, *args: Any, value: int = 0) -> Any:
        """
        Invoke ``method`` with literal ``args``.

        Returns:
            The decoded return value for read-only methods, a TxResult otherwise.
        """
        read_only = self.is_read_only(method)
        fn = getattr(self.contract.functions, method)(*args)

        if read_only:
            call_params = {"from": self.signer.address} if self.signer is not None else {}
            logger.debug("call %s.%s%s", self.name, method, args)
            return fn.call(call_params)

        if self.signer is None:
            raise RuntimeError(f"{self.name}.{method} sends a transaction but no signer is configured")
        logger.debug("transact %s.%s%s value=%s", self.name, method, args, value)
        result = send_transaction(self.w3, self.signer, fn, self.gas_config(), value=value, timeout=self.timeout)
        log_tx(logger, self.name, method, result.tx_hash, result.gas_used)
        return result


class ContractFactory(_GasMixin):
    """Deploys new instances of an artifact or attaches to existing ones."""

    def __init__(
        self,
        w3: Web3,
        artifact: ContractArtifact,
        signer: LocalAccount | None = None,
        gas: GasConfig | None = None,
        network: dict[str, Any] | None = None,
        gas_limit: int | None = None,
        timeout: int = TX_TIMEOUT,
    ):
        self.w3 = w3
        self.artifact = artifact
        self.signer = signer
        self.gas = gas
        self.network = network or {}
        self.gas_limit = gas_limit
        self.timeout = timeout

    def attach(self, address: str) -> ContractHandle:
        """Bind to an existing address; makes no network call."""
        return ContractHandle(
            self.w3,
            self.artifact,
            address,
            signer=self.signer,
            gas=self.gas,
            network=self.network,
            gas_limit=self.gas_limit,
            timeout=self.timeout,
        )

    def deploy(self, *args: Any, value: int = 0) -> tuple[ContractHandle, TxResult]:
        """Send the constructor transaction and return a handle at the new address."""
        if not self.artifact.deployable:
            raise ValueError(f"{self.artifact.name} has no bytecode ({self.artifact.source}); compile it before deploying")
        if self.signer is None:
            raise RuntimeError("Deploying requires a signer")

        factory = self.w3.eth.contract(abi=self.artifact.abi, bytecode=self.artifact.bytecode)
        ctor = factory.constructor(*args)
        result = send_transaction(self.w3, self.signer, ctor, self.gas_config(), value=value, timeout=self.timeout)
        log_tx(logger, self.artifact.name, "constructor", result.tx_hash, result.gas_used)
        if not result.contract_address:
            raise RuntimeError(f"Receipt for {result.tx_hash} has no contractAddress")
        return self.attach(result.contract_address), result


def safe_call(handle: ContractHandle, method: str, *args: Any, value: int = 0) -> Any:
    """Call ``method`` and log instead of raising, so a sequence of calls can continue."""
    try:
        return handle.call(method, *args, value=value)
    except Exception as e:
        logger.error("%s.%s failed: %s", handle.name, method, e)
        return None
