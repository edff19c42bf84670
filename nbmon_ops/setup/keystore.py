"""
Wallet keystores for the ``WALLET_n`` signer keys.

``keystore-create`` exports the key held in a ``WALLET_n`` env var to an
encrypted keystore named after that variable, e.g.
``build/wallets/WALLET_1_0xAbC....json``. ``--keystore`` later unlocks it
in place of the plain env key.

Public API
----------
normalize_private_key(raw)
    0x-prefixed 32-byte key from a ``WALLET_n`` value.
keystore_password(cli_pass=None, pass_env=None)
    Password from the CLI flag, a named env var, or WALLET_KEYSTORE_PASSWORD.
export_wallet(env_name, password, out_dir=KEYSTORE_DIR)
    Encrypt ``env_name``'s key and write it; returns (path, address).
unlock_keystore(path, password)
    LocalAccount for a keystore file.
"""
from __future__ import annotations

import json
import os
import re
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount

KEYSTORE_DIR = Path("build") / "wallets"
PASSWORD_ENV = "WALLET_KEYSTORE_PASSWORD"

_KEY_RE = re.compile(r"[0-9a-fA-F]{64}")


class WalletNotSetError(LookupError):
    """The WALLET_n variable to export is unset or empty."""


def normalize_private_key(raw: str) -> str:
    """WALLET_n values may omit the 0x prefix (hardhat style); eth-account wants it."""
    key = str(raw).strip()
    key = key[2:] if key.startswith(("0x", "0X")) else key
    if not _KEY_RE.fullmatch(key):
        raise ValueError("private key must be 64 hex characters (32 bytes)")
    return "0x" + key


def keystore_password(cli_pass: str | None = None, pass_env: str | None = None) -> str:
    if cli_pass:
        return cli_pass
    for name in (pass_env, PASSWORD_ENV):
        if name and os.getenv(name):
            return os.environ[name]
    raise ValueError(
        f"Keystore password not provided: pass --keystore-pass, or set {pass_env or PASSWORD_ENV}"
    )


def export_wallet(env_name: str, password: str, out_dir: Path = KEYSTORE_DIR) -> tuple[Path, str]:
    """Encrypt the key in ``env_name`` into ``out_dir/<env_name>_<address>.json``.

    Raises WalletNotSetError if ``env_name`` is unset.
    """
    raw = os.getenv(env_name)
    if not raw:
        raise WalletNotSetError(f"{env_name} is not set")
    key = normalize_private_key(raw)
    address = Account.from_key(key).address

    path = Path(out_dir) / f"{env_name}_{address}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    # Never leave a partial keystore under the final name
    partial = path.with_name(path.name + ".partial")
    partial.write_text(json.dumps(Account.encrypt(key, password), indent=2))
    partial.replace(path)
    return path, address


def unlock_keystore(path: Path | str, password: str) -> LocalAccount:
    with open(path) as f:
        keystore = json.load(f)
    return Account.from_key(Account.decrypt(keystore, password))
