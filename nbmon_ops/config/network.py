"""
Network configuration for the NBMon contract tooling.

Contains RPC URLs, chain IDs and optional fixed gas prices for every network
the contracts are deployed to, plus the Solidity compiler settings and the
project paths shared by the deploy/interact commands.
"""

import json
import os
from pathlib import Path
from typing import Any


# =============================================================================
# NETWORK CONFIGURATIONS
# =============================================================================

DEFAULT_NETWORK = "polygonTestnet"

# ``accounts`` lists the env vars holding signer private keys. URLs may contain
# an ``{api_key}`` placeholder filled from RPC_API_KEY.
NETWORKS: dict[str, dict[str, Any]] = {
    "polygonTestnet": {
        "chain_id": 80002,
        "name": "Polygon Amoy",
        "currency": "MATIC",
        "url": "https://rpc-amoy.polygon.technology",
        "gas_price": None,
        "accounts": ["WALLET_1"],
        "explorer": "https://amoy.polygonscan.com",
    },
    "ganache": {
        "chain_id": 1337,
        "name": "Ganache",
        "currency": "ETH",
        "url": "http://127.0.0.1:7545",
        "gas_price": None,
        "accounts": ["WALLET_1"],
        "explorer": None,
    },
    "bscTestnet": {
        "chain_id": 97,
        "name": "BSC Testnet",
        "currency": "tBNB",
        "url": "https://data-seed-prebsc-1-s1.binance.org:8545",
        "gas_price": 20_000_000_000,
        "accounts": ["WALLET_1"],
        "explorer": "https://testnet.bscscan.com",
    },
    "bscMainnet": {
        "chain_id": 56,
        "name": "BSC Mainnet",
        "currency": "BNB",
        "url": "https://bsc-dataseed.binance.org/",
        "gas_price": 20_000_000_000,
        "accounts": ["WALLET_1"],
        "explorer": "https://bscscan.com",
    },
    "ethTestnet": {
        "chain_id": 11155111,
        "name": "Ethereum Sepolia",
        "currency": "ETH",
        "url": "https://eth-sepolia.g.alchemy.com/v2/{api_key}",
        "gas_price": None,
        "accounts": ["WALLET_1"],
        "explorer": "https://sepolia.etherscan.io",
    },
}


# =============================================================================
# COMPILER & PATHS
# =============================================================================

SOLC_VERSION = "0.8.13"
OPTIMIZER_ENABLED = True
OPTIMIZER_RUNS = 200

CONTRACTS_DIR = Path("contracts")
ARTIFACTS_DIR = Path("artifacts")
BUILD_DIR = Path("build")
DEPLOYMENTS_DIR = Path("deployments")

# Receipt wait timeout
TX_TIMEOUT: int = 120  # seconds


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def load_networks() -> dict[str, dict[str, Any]]:
    """Return the network table, merged with entries from NETWORKS_FILE if set.

    Entries in the file override built-in entries key by key, so a file may
    add a network or just change the URL of an existing one.
    """
    networks = {name: dict(cfg) for name, cfg in NETWORKS.items()}
    extra_path = os.getenv("NETWORKS_FILE")
    if not extra_path:
        return networks

    with open(extra_path) as f:
        extra = json.load(f)
    if not isinstance(extra, dict):
        raise ValueError(f"NETWORKS_FILE must contain a JSON object: {extra_path}")

    for name, cfg in extra.items():
        merged = dict(networks.get(name, {}))
        merged.update(cfg)
        if "chain_id" not in merged or "url" not in merged:
            raise ValueError(f"Network '{name}' needs at least 'url' and 'chain_id'")
        merged.setdefault("name", name)
        merged.setdefault("gas_price", None)
        merged.setdefault("accounts", ["WALLET_1"])
        networks[name] = merged
    return networks


def resolve_network_key(network: str | int | None = None, networks: dict[str, Any] | None = None) -> str:
    """Canonical table key for a network name (any case) or chain ID; no URL resolution."""
    networks = networks if networks is not None else load_networks()

    if network is None:
        network = os.getenv("NETWORK") or DEFAULT_NETWORK

    if isinstance(network, int) or (isinstance(network, str) and network.isdigit()):
        chain_id = int(network)
        matches = [name for name, cfg in networks.items() if cfg["chain_id"] == chain_id]
        if not matches:
            raise ValueError(f"Unsupported chain ID: {chain_id}")
        return matches[0]

    by_lower = {name.lower(): name for name in networks}
    key = by_lower.get(network.lower())
    if key is None:
        raise ValueError(f"Unsupported network: {network}. Supported: {list(networks.keys())}")
    return key


def get_network_config(network: str | int | None = None) -> dict[str, Any]:
    """Get configuration for a specific network.

    Args:
        network: Network key (e.g., 'bscTestnet'), case-insensitive, or chain ID.
                 If None, uses the NETWORK environment variable or the default.

    Returns:
        Network configuration dictionary with an extra ``key`` entry and the
        URL resolved.

    Raises:
        ValueError: If the network is not supported or its URL needs an API key
                    that is not set.
    """
    networks = load_networks()
    key = resolve_network_key(network, networks)

    config = dict(networks[key])
    config["key"] = key
    config["url"] = _resolve_url(config["url"])
    return config


def _resolve_url(url: str) -> str:
    env_rpc = os.getenv("RPC_URL")
    if env_rpc:
        return env_rpc
    if "{api_key}" in url:
        api_key = os.getenv("RPC_API_KEY")
        if not api_key:
            raise ValueError(f"RPC_API_KEY must be set to use {url}")
        url = url.replace("{api_key}", api_key)
    return url


def get_rpc_url(network: str | int | None = None) -> str:
    """Get the RPC URL for a network (RPC_URL env wins)."""
    return get_network_config(network)["url"]


def get_chain_id(network: str | int | None = None) -> int:
    """Get the chain ID for a network name."""
    return get_network_config(network)["chain_id"]


def get_gas_price(network: str | int | None = None) -> int | None:
    """Get the fixed gas price in wei, or None when the node decides."""
    return get_network_config(network).get("gas_price")
