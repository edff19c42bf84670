#!/usr/bin/env python3
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from web3 import Web3

from nbmon_ops.commands.session import Session
from nbmon_ops.helpers.web3_setup import check_chain_id
from nbmon_ops.setup.deployments import DeploymentRecord, utc_now_iso

logger = logging.getLogger(__name__)


def _default_plan_path(base_dir: Path, contract: str) -> Path:
    return base_dir / "plans" / f"{contract}_{utc_now_iso().replace(':', '')}.json"


def deploy_contract(
    session: Session,
    contract: str,
    ctor_args: list[Any],
    *,
    value: int = 0,
    dry_run: bool = False,
    save_record: bool = True,
) -> DeploymentRecord | None:
    """Deploy ``contract`` from its artifact with the session signer as deployer.

    Prints the deployer address and balance first. With ``dry_run`` only the
    plan (deployer, balance, gas pricing, constructor args) is written and
    nothing is sent.
    """
    w3 = session.w3
    signer = session.signer
    if signer is None:
        raise RuntimeError("Deploying requires a signer")

    chain_id = check_chain_id(w3, session.network)
    factory = session.factory(contract)
    if not factory.artifact.deployable:
        raise ValueError(f"{contract} has no bytecode ({factory.artifact.source}); compile it before deploying")

    balance = int(w3.eth.get_balance(signer.address))
    print(f"Deploying contracts with the account: {signer.address}")
    print(f"Account balance: {balance} wei ({Web3.from_wei(balance, 'ether')} {session.network.get('currency', '')})".rstrip())

    if dry_run:
        gas = session.gas
        plan = {
            "contract": contract,
            "network": session.network["key"],
            "chain_id": chain_id,
            "deployer": signer.address,
            "deployer_balance_wei": balance,
            "constructor_args": ctor_args,
            "value": value,
            "gas": {"type": gas.type, **gas.as_tx_fields()},
            "artifact": factory.artifact.source,
            "generated_at": utc_now_iso(),
        }
        plan_path = _default_plan_path(session.deployments_dir, contract)
        plan_path.parent.mkdir(parents=True, exist_ok=True)
        with open(plan_path, "w") as f:
            json.dump(plan, f, indent=2)
        print(f"Prepared deploy plan: {plan_path}")
        return None

    handle, result = factory.deploy(*ctor_args, value=value)
    print(f"Deploy tx: {result.tx_hash}")
    print(f"Contract address: {handle.address}")

    record = DeploymentRecord(
        contract=contract,
        address=handle.address,
        network=session.network["key"],
        chain_id=chain_id,
        deployer=signer.address,
        tx_hash=result.tx_hash,
        gas_used=result.gas_used,
        block_number=result.block_number,
        timestamp=utc_now_iso(),
        abi=factory.artifact.abi,
    )
    if save_record:
        path = record.save(session.deployments_dir)
        print(f"Saved deployment info to {path}")
    return record
