"""
Ad-hoc contract interaction: attach to a contract by name and invoke one method.

Usage:
    python -m nbmon_ops call GenesisNBMon getNFT 1 --address 0x...
    python -m nbmon_ops call BEP20 allowance 0xOwner 0xSpender --address 0xToken
    python -m nbmon_ops call GenesisNBMon setBaseURI '"https://example.com/"'
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from typing import Any

from hexbytes import HexBytes

from nbmon_ops.commands.session import Session
from nbmon_ops.helpers.contracts import safe_call

logger = logging.getLogger(__name__)


def parse_literal(raw: str) -> Any:
    """JSON literal if it parses (numbers, bools, arrays), else the raw string (addresses, names)."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_literals(raw_args: list[str]) -> list[Any]:
    return [parse_literal(a) for a in raw_args]


def _jsonable(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        data = asdict(obj)
        data.pop("receipt", None)
        return _jsonable(data)
    if isinstance(obj, (bytes, bytearray, HexBytes)):
        return "0x" + bytes(obj).hex()
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(x) for x in obj]
    return obj


def render(result: Any) -> str:
    """Human-readable form of a call result; structured values as JSON."""
    data = _jsonable(result)
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=2, default=str)
    return str(data)


def call_method(
    session: Session,
    contract: str,
    method: str,
    args: list[Any],
    *,
    address: str | None = None,
    value: int = 0,
    keep_going: bool = False,
) -> Any:
    """Attach to ``contract`` and invoke ``method``; prints and returns the result.

    With ``keep_going`` a failed call is logged and None is returned instead
    of raising.
    """
    handle = session.attach(contract, address)
    if keep_going:
        result = safe_call(handle, method, *args, value=value)
    else:
        result = handle.call(method, *args, value=value)
    print(render(result))
    return result
