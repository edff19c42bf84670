"""
Sequential call plans.

A plan is a JSON list of steps executed in order, one outstanding call at a
time, replacing the one-off interaction scripts:

    [
      {"contract": "GenesisNBMon", "address": "0x...", "method": "getNFT", "args": [1]},
      {"contract": "GenesisNBMon", "method": "whitelistAddress", "args": ["0x..."],
       "continue_on_error": true}
    ]

``address`` is optional (latest recorded deployment is used) and ``value`` is
in wei. A failing step aborts the plan unless it sets ``continue_on_error``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nbmon_ops.commands.interact import render
from nbmon_ops.commands.session import Session
from nbmon_ops.helpers.contracts import ContractHandle

logger = logging.getLogger(__name__)


@dataclass
class PlanStep:
    contract: str
    method: str
    args: list[Any] = field(default_factory=list)
    address: str | None = None
    value: int = 0
    continue_on_error: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int) -> "PlanStep":
        missing = [k for k in ("contract", "method") if not data.get(k)]
        if missing:
            raise ValueError(f"Plan step {index} is missing {', '.join(missing)}")
        args = data.get("args", [])
        if not isinstance(args, list):
            raise ValueError(f"Plan step {index}: 'args' must be a list")
        return cls(
            contract=data["contract"],
            method=data["method"],
            args=args,
            address=data.get("address"),
            value=int(data.get("value", 0)),
            continue_on_error=bool(data.get("continue_on_error", False)),
        )


def load_plan(path: Path | str) -> list[PlanStep]:
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("steps", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: a plan is a list of steps or an object with 'steps'")
    return [PlanStep.from_dict(step, i) for i, step in enumerate(data, start=1)]


def run_plan(session: Session, steps: list[PlanStep]) -> list[Any]:
    """Execute ``steps`` in order and return their results (None for tolerated failures)."""
    handles: dict[tuple[str, str | None], ContractHandle] = {}
    results: list[Any] = []
    for i, step in enumerate(steps, start=1):
        print(f"[{i}/{len(steps)}] {step.contract}.{step.method}({', '.join(map(repr, step.args))})")
        try:
            key = (step.contract, step.address)
            if key not in handles:
                handles[key] = session.attach(step.contract, step.address)
            result = handles[key].call(step.method, *step.args, value=step.value)
        except Exception as e:
            if not step.continue_on_error:
                raise
            logger.error("Step %s (%s.%s) failed, continuing: %s", i, step.contract, step.method, e)
            result = None
        print(render(result))
        results.append(result)
    return results
