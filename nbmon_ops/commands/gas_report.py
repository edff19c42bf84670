"""
Gas reporter: send the same write call several times and summarise gas used.

Usage:
    python -m nbmon_ops gas-report GenesisNBMon devMint 1 '["Male","Common"]' '[300,20]' '[true]' --count 10
"""
from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass
from typing import Any

from web3 import Web3

from nbmon_ops.commands.session import Session
from nbmon_ops.helpers.contracts import ContractHandle
from nbmon_ops.helpers.transactions import TxResult

logger = logging.getLogger(__name__)


@dataclass
class GasSummary:
    calls: int
    min_gas: int
    max_gas: int
    avg_gas: float
    total_gas: int
    total_cost_wei: int

    @property
    def price_per_gas_wei(self) -> int:
        """Average wei paid per unit of gas across the calls."""
        return self.total_cost_wei // self.total_gas if self.total_gas else 0

    @classmethod
    def from_results(cls, results: list[TxResult], fallback_price_wei: int | None = None) -> "GasSummary":
        """Summarise ``results``, costing each call at its receipt's effective gas price.

        ``fallback_price_wei`` prices calls whose receipt has no ``effectiveGasPrice``.
        """
        if not results:
            raise ValueError("No transactions to summarise")
        used = [r.gas_used for r in results]
        cost = 0
        for r in results:
            price = r.effective_gas_price
            if price is None:
                if fallback_price_wei is None:
                    raise ValueError(f"No gas price for {r.tx_hash}: receipt lacks effectiveGasPrice")
                price = fallback_price_wei
            cost += r.gas_used * price
        return cls(
            calls=len(used),
            min_gas=min(used),
            max_gas=max(used),
            avg_gas=statistics.mean(used),
            total_gas=sum(used),
            total_cost_wei=cost,
        )


def _current_gas_price(session: Session, handle: ContractHandle) -> int:
    # A fixed network price is what legacy transactions actually paid
    gas = handle.gas_config()
    if gas.type == "legacy" and gas.gas_price:
        return gas.gas_price
    return int(session.w3.eth.gas_price)


def gas_report(
    session: Session,
    contract: str,
    method: str,
    args: list[Any],
    *,
    count: int = 1,
    address: str | None = None,
    value: int = 0,
) -> GasSummary:
    """Invoke ``method`` ``count`` times sequentially and print per-call and summary gas."""
    if count < 1:
        raise ValueError("count must be at least 1")
    handle = session.attach(contract, address)
    if handle.is_read_only(method):
        raise ValueError(f"{contract}.{method} is read-only; gas reports need a write method")

    results: list[TxResult] = []
    for i in range(1, count + 1):
        result = handle.call(method, *args, value=value)
        results.append(result)
        print(f"{i:>4}  {method} gas used: {result.gas_used:,}  tx: {result.tx_hash}")

    fallback = None
    if any(r.effective_gas_price is None for r in results):
        fallback = _current_gas_price(session, handle)
    summary = GasSummary.from_results(results, fallback)
    currency = session.network.get("currency", "ETH")
    print(f"\n⛽ {contract}.{method} x{summary.calls}")
    print(f"  min: {summary.min_gas:,}  avg: {summary.avg_gas:,.0f}  max: {summary.max_gas:,}")
    print(f"  total: {summary.total_gas:,} gas ≈ {Web3.from_wei(summary.total_cost_wei, 'ether')} {currency}")
    return summary
