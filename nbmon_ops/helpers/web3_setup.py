"""
Web3 setup helper - provides common web3 instance utilities.

Public API
----------
get_web3(network)
    Return a Web3 instance connected to the network's RPC URL.
check_chain_id(w3, network)
    Fail fast when the node answers for a different chain.
"""
from __future__ import annotations

from typing import Any, Optional

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

__all__ = ["get_web3", "check_chain_id"]

# Cached web3 instance
_w3_instance: Optional[Web3] = None


def get_web3(network: dict[str, Any]) -> Web3:
    """
    Get a Web3 instance connected to the network's RPC URL.

    Args:
        network: Network config from ``get_network_config``

    Returns:
        Web3 instance (cached while the URL stays the same)
    """
    global _w3_instance

    rpc_url = network["url"]
    if _w3_instance is not None and _w3_instance.provider.endpoint_uri == rpc_url:
        return _w3_instance

    w3 = Web3(Web3.HTTPProvider(rpc_url))
    # Polygon and BSC return oversized extraData in block headers
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    _w3_instance = w3
    return w3


def check_chain_id(w3: Web3, network: dict[str, Any]) -> int:
    """Return the node's chain ID, raising ValueError if it differs from the config."""
    actual = int(w3.eth.chain_id)
    expected = network["chain_id"]
    if actual != expected:
        raise ValueError(
            f"Chain ID mismatch: expected {expected} for {network.get('key', network.get('name'))}, got {actual}"
        )
    return actual
