"""
Configuration package for the NBMon contract tooling.
"""

from nbmon_ops.config.network import (
    DEFAULT_NETWORK,
    NETWORKS,
    SOLC_VERSION,
    OPTIMIZER_ENABLED,
    OPTIMIZER_RUNS,
    CONTRACTS_DIR,
    ARTIFACTS_DIR,
    BUILD_DIR,
    DEPLOYMENTS_DIR,
    TX_TIMEOUT,
    load_networks,
    resolve_network_key,
    get_network_config,
    get_rpc_url,
    get_chain_id,
    get_gas_price,
)

from nbmon_ops.config.abis import (
    ERC20_ABI,
    ERC721_ABI,
    BUNDLED_ABIS,
)

__all__ = [
    # Network
    'DEFAULT_NETWORK',
    'NETWORKS',
    'SOLC_VERSION',
    'OPTIMIZER_ENABLED',
    'OPTIMIZER_RUNS',
    'CONTRACTS_DIR',
    'ARTIFACTS_DIR',
    'BUILD_DIR',
    'DEPLOYMENTS_DIR',
    'TX_TIMEOUT',
    'load_networks',
    'resolve_network_key',
    'get_network_config',
    'get_rpc_url',
    'get_chain_id',
    'get_gas_price',

    # ABIs
    'ERC20_ABI',
    'ERC721_ABI',
    'BUNDLED_ABIS',
]
