"""
Contract ABI package for the NBMon contract tooling.

Interface-only ABIs used when a contract has no local build artifact.
"""

from .erc20 import ERC20_ABI
from .erc721 import ERC721_ABI

# Contract name -> bundled ABI
BUNDLED_ABIS: dict[str, list] = {
    "ERC20": ERC20_ABI,
    "BEP20": ERC20_ABI,
    "ERC721": ERC721_ABI,
}

__all__ = [
    'ERC20_ABI',
    'ERC721_ABI',
    'BUNDLED_ABIS',
]
