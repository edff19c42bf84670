"""
Transaction helpers - build, sign, broadcast and wait for contract transactions.

Every write goes through ``send_transaction`` so deploys, mints and admin
setters share nonce handling, gas pricing and receipt checks.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3Exception

from nbmon_ops.config import TX_TIMEOUT

logger = logging.getLogger(__name__)

PRIORITY_FEE_GWEI = 2
GAS_LIMIT_BUFFER_NUM = 12  # 20% buffer over the estimate
GAS_LIMIT_BUFFER_DEN = 10
FALLBACK_GAS_LIMIT = 5_000_000


class TransactionFailedError(RuntimeError):
    """A mined transaction came back with status != 1."""

    def __init__(self, result: "TxResult"):
        self.result = result
        super().__init__(f"Transaction {result.tx_hash} reverted (block {result.block_number}, gas used {result.gas_used})")


@dataclass
class TxResult:
    tx_hash: str
    status: int
    gas_used: int
    block_number: int
    contract_address: str | None = None
    receipt: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_receipt(cls, tx_hash: Any, receipt: Any) -> "TxResult":
        receipt = dict(receipt)
        return cls(
            tx_hash=Web3.to_hex(tx_hash),
            status=int(receipt.get("status", 0)),
            gas_used=int(receipt.get("gasUsed", 0)),
            block_number=int(receipt.get("blockNumber", 0)),
            contract_address=receipt.get("contractAddress"),
            receipt=receipt,
        )

    @property
    def effective_gas_price(self) -> int | None:
        """Wei actually paid per unit of gas, when the receipt reports it."""
        price = self.receipt.get("effectiveGasPrice")
        return int(price) if price is not None else None


@dataclass
class GasConfig:
    type: str  # "eip1559" or "legacy"
    gas_price: int | None = None
    max_fee: int | None = None
    priority_fee: int | None = None
    gas_limit: int | None = None

    @classmethod
    def from_network(cls, w3: Web3, network: dict[str, Any], gas_limit: int | None = None) -> "GasConfig":
        """Fixed network gas price if configured, else EIP-1559 when supported, else node gas price."""
        fixed = network.get("gas_price")
        if fixed:
            return cls(type="legacy", gas_price=int(fixed), gas_limit=gas_limit)

        latest_block = w3.eth.get_block("latest")
        base_fee = latest_block.get("baseFeePerGas")
        if base_fee is not None:
            priority_fee = int(Web3.to_wei(PRIORITY_FEE_GWEI, "gwei"))
            max_fee = int(base_fee) * 2 + priority_fee
            return cls(type="eip1559", max_fee=max_fee, priority_fee=priority_fee, gas_limit=gas_limit)

        return cls(type="legacy", gas_price=int(w3.eth.gas_price), gas_limit=gas_limit)

    def as_tx_fields(self) -> dict[str, int]:
        if self.type == "eip1559":
            assert self.max_fee is not None and self.priority_fee is not None
            fields = {"maxFeePerGas": self.max_fee, "maxPriorityFeePerGas": self.priority_fee}
        else:
            assert self.gas_price is not None
            fields = {"gasPrice": self.gas_price}
        if self.gas_limit is not None:
            fields["gas"] = int(self.gas_limit)
        return fields


def _estimate_gas_limit(fn: Any, params: dict[str, Any]) -> int:
    try:
        estimate = int(fn.estimate_gas({"from": params["from"], "value": params.get("value", 0)}))
    except ContractLogicError:
        # The call would revert; do not pay for it
        raise
    except (Web3Exception, ValueError) as err:
        logger.warning("estimate_gas failed, using %s fallback -> %s", FALLBACK_GAS_LIMIT, err)
        return FALLBACK_GAS_LIMIT
    return estimate * GAS_LIMIT_BUFFER_NUM // GAS_LIMIT_BUFFER_DEN


def send_transaction(
    w3: Web3,
    signer: LocalAccount,
    fn: Any,
    gas: GasConfig,
    value: int = 0,
    timeout: int = TX_TIMEOUT,
) -> TxResult:
    """
    Sign and broadcast a contract function or constructor call, then wait for it.

    Args:
        w3: Connected Web3 instance
        signer: Account that signs and pays for the transaction
        fn: A bound ``ContractFunction`` or ``ContractConstructor``
        gas: Gas pricing; its ``gas_limit`` skips estimation when set
        value: Native currency to send along (wei)
        timeout: Seconds to wait for the receipt

    Returns:
        TxResult for the mined receipt

    Raises:
        TransactionFailedError: If the receipt status is not 1
    """
    params: dict[str, Any] = {
        "from": signer.address,
        "nonce": w3.eth.get_transaction_count(signer.address, "pending"),
        "chainId": w3.eth.chain_id,
        "value": value,
        **gas.as_tx_fields(),
    }
    if "gas" not in params:
        params["gas"] = _estimate_gas_limit(fn, params)

    tx = fn.build_transaction(params)
    signed = signer.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    logger.info("Sent tx %s (nonce %s)", Web3.to_hex(tx_hash), params["nonce"])

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    result = TxResult.from_receipt(tx_hash, receipt)
    if result.status != 1:
        raise TransactionFailedError(result)
    return result


def get_transaction_count(w3: Web3, address: str) -> int:
    return int(w3.eth.get_transaction_count(Web3.to_checksum_address(address)))


def check_payment(w3: Web3, tx_hash: str, expected_value_eth: str | Decimal) -> dict[str, Any] | None:
    """Return the transaction if it is mined and paid exactly ``expected_value_eth``; else None."""
    try:
        tx = w3.eth.get_transaction(tx_hash)
    except TransactionNotFound:
        logger.info("Transaction %s not found", tx_hash)
        return None

    if not tx or not tx.get("blockNumber"):
        logger.info("Transaction %s is not mined yet", tx_hash)
        return None

    paid = Decimal(str(Web3.from_wei(tx["value"], "ether")))
    if paid != Decimal(str(expected_value_eth)):
        logger.info("Transaction %s paid %s, expected %s", tx_hash, paid, expected_value_eth)
        return None
    return dict(tx)
