"""
Signer resolution - turns the network's configured credentials into eth-account signers.

Public API
----------
load_accounts(network)
    One LocalAccount per env var named in the network's ``accounts`` list.
get_signer(network, keystore=None, password=None)
    The first configured account, or a decrypted keystore when one is given.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount

from nbmon_ops.setup.keystore import normalize_private_key, unlock_keystore

__all__ = ["load_accounts", "get_signer"]

logger = logging.getLogger(__name__)


def load_accounts(network: dict[str, Any]) -> list[LocalAccount]:
    """
    Build signers for every credential the network lists.

    Args:
        network: Network config from ``get_network_config``

    Returns:
        Accounts in the order of the network's ``accounts`` entries

    Raises:
        RuntimeError: If none of the listed env vars is set
    """
    accounts: list[LocalAccount] = []
    for env_name in network.get("accounts", []):
        value = os.getenv(env_name)
        if not value:
            logger.debug("Skipping %s: not set", env_name)
            continue
        accounts.append(Account.from_key(normalize_private_key(value)))
    if not accounts:
        names = ", ".join(network.get("accounts", [])) or "<none>"
        raise RuntimeError(f"No signer configured for {network.get('key', network.get('name'))}; set {names} in .env")
    return accounts


def get_signer(
    network: dict[str, Any],
    keystore: Path | None = None,
    password: str | None = None,
) -> LocalAccount:
    """Return the signer used for transactions on ``network``."""
    if keystore is not None:
        if password is None:
            raise ValueError("A keystore password is required to unlock the signer")
        return unlock_keystore(keystore, password)
    return load_accounts(network)[0]
