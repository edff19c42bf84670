#!/usr/bin/env python3
from __future__ import annotations

"""
Deployment records

Every successful deploy writes ``deployments/<network>/<Contract>_<ts>.json``.
These records are the name-to-address binding used to attach to a contract by
name when no literal address is given.

CLI examples:
- List the latest deployment of each contract:
    python -m nbmon_ops deployments

- Latest address of one contract on one network:
    python -m nbmon_ops deployments --contract GenesisNBMon --network bscTestnet
"""

import json
import logging
import re
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from nbmon_ops.config import DEPLOYMENTS_DIR

logger = logging.getLogger(__name__)


def _parse_iso(value: Any) -> datetime | None:
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None


@dataclass
class DeploymentRecord:
    contract: str
    address: str
    network: str
    chain_id: int
    deployer: str
    tx_hash: str
    gas_used: int
    block_number: int
    timestamp: str
    abi: list[dict[str, Any]] | None = None
    record_file: str | None = None

    def ts(self) -> float:
        when = _parse_iso(self.timestamp) if self.timestamp else None
        return when.timestamp() if when else 0.0

    def save(self, base_dir: Path = DEPLOYMENTS_DIR) -> Path:
        """Write this record under ``base_dir/<network>/`` and return the path.

        Existing records are never overwritten; a clash gets a numeric suffix.
        """
        out_dir = base_dir / self.network
        out_dir.mkdir(parents=True, exist_ok=True)
        when = _parse_iso(self.timestamp) or datetime.now(timezone.utc)
        stem = f"{self.contract}_{when.strftime('%Y%m%dT%H%M%S_%f')}"
        out_path = out_dir / f"{stem}.json"
        n = 1
        while out_path.exists():
            out_path = out_dir / f"{stem}_{n}.json"
            n += 1
        payload = asdict(self)
        payload.pop("record_file")
        with open(out_path, "w") as f:
            json.dump(payload, f, indent=2)
        self.record_file = str(out_path)
        return out_path


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _load_json(path: Path) -> dict | None:
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        return None


def _is_hex_address(s: Any) -> bool:
    return isinstance(s, str) and bool(re.fullmatch(r"0x[a-fA-F0-9]{40}", s))


def _record_from_json(data: dict[str, Any], path: Path) -> DeploymentRecord:
    return DeploymentRecord(
        contract=data["contract"],
        address=data["address"],
        network=data.get("network") or path.parent.name,
        chain_id=int(data.get("chain_id") or 0),
        deployer=data.get("deployer") or "",
        tx_hash=data.get("tx_hash") or "",
        gas_used=int(data.get("gas_used") or 0),
        block_number=int(data.get("block_number") or 0),
        timestamp=str(data.get("timestamp") or ""),
        abi=data.get("abi"),
        record_file=str(path),
    )


def scan_deployments(base_dir: Path = DEPLOYMENTS_DIR) -> list[DeploymentRecord]:
    """Every readable record under ``base_dir``; malformed files are skipped."""
    records: list[DeploymentRecord] = []
    for p in sorted(base_dir.glob("*/*.json")):
        data = _load_json(p)
        if not isinstance(data, dict):
            continue
        if not data.get("contract") or not _is_hex_address(data.get("address")):
            continue
        try:
            records.append(_record_from_json(data, p))
        except (TypeError, ValueError) as e:
            logger.warning("Skipping malformed deployment record %s: %s", p, e)
    return records


def latest_by_contract(records: list[DeploymentRecord]) -> dict[tuple[str, str], DeploymentRecord]:
    """Latest record per (network, contract)."""
    latest: dict[tuple[str, str], DeploymentRecord] = {}
    for rec in records:
        key = (rec.network, rec.contract)
        cur = latest.get(key)
        if not cur or rec.ts() >= cur.ts():
            latest[key] = rec
    return latest


def find_latest(contract: str, network: str, base_dir: Path = DEPLOYMENTS_DIR) -> DeploymentRecord | None:
    candidates = [r for r in scan_deployments(base_dir) if r.contract == contract and r.network == network]
    if not candidates:
        return None
    candidates.sort(key=lambda r: r.ts(), reverse=True)
    return candidates[0]
