#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from tabulate import tabulate
from web3 import Web3

from nbmon_ops import __version__
from nbmon_ops.config import DEPLOYMENTS_DIR, TX_TIMEOUT, get_network_config, load_networks, resolve_network_key
from nbmon_ops.config.logging_config import setup_logger
from nbmon_ops.helpers.artifacts import ArtifactStore
from nbmon_ops.helpers.pinning import store_metadata
from nbmon_ops.helpers.signer import load_accounts
from nbmon_ops.helpers.transactions import check_payment, get_transaction_count
from nbmon_ops.commands.call_plan import load_plan, run_plan
from nbmon_ops.commands.gas_report import gas_report
from nbmon_ops.commands.interact import call_method, parse_literals, render
from nbmon_ops.commands.session import Session
from nbmon_ops.setup.deploy import deploy_contract
from nbmon_ops.setup.deployments import latest_by_contract, scan_deployments
from nbmon_ops.setup.keystore import KEYSTORE_DIR, WalletNotSetError, export_wallet, keystore_password

logger = logging.getLogger("nbmon_ops")


def _open_session(args: argparse.Namespace, need_signer: bool = True) -> Session:
    password = None
    if args.keystore:
        password = keystore_password(args.keystore_pass, args.keystore_pass_env)
    return Session.open(
        network=args.network,
        root=args.root,
        keystore=Path(args.keystore) if args.keystore else None,
        password=password,
        need_signer=need_signer,
        gas_limit=args.gas_limit,
        timeout=args.timeout,
    )


def cmd_networks(args: argparse.Namespace) -> int:
    try:
        rows = []
        for key, cfg in load_networks().items():
            gas_price = f"{Web3.from_wei(cfg['gas_price'], 'gwei')} gwei" if cfg.get("gas_price") else "auto"
            rows.append([key, cfg.get("name", key), cfg["chain_id"], cfg["url"], gas_price])
        print(tabulate(rows, headers=["Network", "Name", "Chain ID", "RPC URL", "Gas price"]))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_accounts(args: argparse.Namespace) -> int:
    try:
        network = get_network_config(args.network)
        accounts = load_accounts(network)
        if not args.balances:
            for acct in accounts:
                print(acct.address)
            return 0
        session = _open_session(args, need_signer=False)
        rows = []
        for acct in accounts:
            bal = int(session.w3.eth.get_balance(acct.address))
            rows.append([acct.address, bal, Web3.from_wei(bal, "ether")])
        print(tabulate(rows, headers=["Address", "Balance (wei)", network.get("currency", "ETH")]))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_compile(args: argparse.Namespace) -> int:
    try:
        store = ArtifactStore(args.root)
        kwargs = {"solc_version": args.solc_version} if args.solc_version else {}
        artifact = store.compile_contract(args.contract, **kwargs)
        print(f"Compiled {artifact.name}: {len(artifact.abi)} ABI entries, {len(artifact.bytecode or '') // 2 - 1} bytes")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_deploy(args: argparse.Namespace) -> int:
    try:
        session = _open_session(args)
        deploy_contract(
            session,
            args.contract,
            parse_literals(args.args),
            value=args.value,
            dry_run=args.dry_run,
            save_record=not args.no_record,
        )
        return 0
    except Exception as e:
        logger.debug("deploy failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_call(args: argparse.Namespace) -> int:
    try:
        session = _open_session(args, need_signer=not args.read_only)
        call_method(
            session,
            args.contract,
            args.method,
            parse_literals(args.args),
            address=args.address,
            value=args.value,
            keep_going=args.keep_going,
        )
        return 0
    except Exception as e:
        logger.debug("call failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    try:
        steps = load_plan(args.plan)
        session = _open_session(args)
        run_plan(session, steps)
        return 0
    except Exception as e:
        logger.debug("plan failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_gas_report(args: argparse.Namespace) -> int:
    try:
        session = _open_session(args)
        gas_report(
            session,
            args.contract,
            args.method,
            parse_literals(args.args),
            count=args.count,
            address=args.address,
            value=args.value,
        )
        return 0
    except Exception as e:
        logger.debug("gas report failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_pin_metadata(args: argparse.Namespace) -> int:
    try:
        image = Path(args.image)
        if not image.exists():
            print(f"Image file not found: {image}", file=sys.stderr)
            return 1
        url = store_metadata(args.name, args.description, image)
        print(f"Metadata stored on IPFS with URL {url}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_tx_count(args: argparse.Namespace) -> int:
    try:
        session = _open_session(args, need_signer=False)
        print(get_transaction_count(session.w3, args.address))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_check_payment(args: argparse.Namespace) -> int:
    try:
        session = _open_session(args, need_signer=False)
        tx = check_payment(session.w3, args.tx_hash, args.expected)
        if tx is None:
            print("not valid")
            return 1
        print(render(tx))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_deployments(args: argparse.Namespace) -> int:
    try:
        base_dir = Path(args.root) / DEPLOYMENTS_DIR
        network_key = resolve_network_key(args.network) if args.network else None
        latest = latest_by_contract(scan_deployments(base_dir))
        rows = [
            [net, name, rec.address, rec.deployer or "-", rec.timestamp or "-"]
            for (net, name), rec in sorted(latest.items())
            if (not args.contract or name == args.contract) and (not network_key or net == network_key)
        ]
        if not rows:
            print(f"No deployment records found under {base_dir}/")
            return 0
        if args.format == "json":
            print(json.dumps([dict(zip(["network", "contract", "address", "deployer", "timestamp"], r)) for r in rows], indent=2))
        else:
            print(tabulate(rows, headers=["Network", "Contract", "Address", "Deployer", "Deployed at"]))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_keystore_create(args: argparse.Namespace) -> int:
    try:
        networks = load_networks()
        env_name = args.private_key_env or networks[resolve_network_key(args.network, networks)]["accounts"][0]
        password = keystore_password(args.keystore_pass, args.keystore_pass_env)
        ks_path, address = export_wallet(env_name, password, Path(args.out) if args.out else KEYSTORE_DIR)
        print(f"Created keystore: {ks_path}")
        print(f"Address: {address}")
        return 0
    except WalletNotSetError as e:
        print(e.args[0], file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _common_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--network", help="Network key or chain ID (default: NETWORK env or polygonTestnet)")
    common.add_argument("--env-file", help="Path to .env file to load before resolving env vars")
    common.add_argument("--root", default=".", help="Project root holding contracts/, artifacts/, build/, deployments/")
    common.add_argument("--keystore", help="Sign with this keystore file instead of WALLET_1")
    common.add_argument("--keystore-pass", dest="keystore_pass", help="Keystore password (insecure on CLI)")
    common.add_argument("--keystore-pass-env", dest="keystore_pass_env", help="Env var name for password (default WALLET_KEYSTORE_PASSWORD)")
    common.add_argument("--gas-limit", type=int, help="Fixed gas limit (default: estimate + 20%%)")
    common.add_argument("--timeout", type=int, default=TX_TIMEOUT, help=f"Seconds to wait for receipts (default {TX_TIMEOUT})")
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    common.add_argument("--log-file", help="Also write logs to logs/<LOG_FILE> (plus an errors log)")
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_parser()
    parser = argparse.ArgumentParser(prog="nbmon-ops", description="Deploy and interact with NBMon contracts")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd")

    p_net = sub.add_parser("networks", parents=[common], help="List configured networks")
    p_net.set_defaults(func=cmd_networks)

    p_acc = sub.add_parser("accounts", parents=[common], help="Print the configured signer addresses")
    p_acc.add_argument("--balances", action="store_true", help="Also query each account's balance")
    p_acc.set_defaults(func=cmd_accounts)

    p_comp = sub.add_parser("compile", parents=[common], help="Compile contracts/<NAME>.sol into build/")
    p_comp.add_argument("contract", help="Contract name")
    p_comp.add_argument("--solc-version", help="Override the configured solc version")
    p_comp.set_defaults(func=cmd_compile)

    p_dep = sub.add_parser("deploy", parents=[common], help="Deploy a contract by name")
    p_dep.add_argument("contract", help="Contract name (artifact lookup)")
    p_dep.add_argument("args", nargs="*", help="Constructor arguments as JSON literals")
    p_dep.add_argument("--value", type=int, default=0, help="Wei to send with the constructor")
    p_dep.add_argument("--dry-run", action="store_true", help="Write a deploy plan under deployments/plans/ and send nothing")
    p_dep.add_argument("--no-record", action="store_true", help="Do not write a deployment record")
    p_dep.set_defaults(func=cmd_deploy)

    p_call = sub.add_parser("call", parents=[common], help="Invoke one method on a deployed contract")
    p_call.add_argument("contract", help="Contract name (artifact lookup)")
    p_call.add_argument("method", help="Method name")
    p_call.add_argument("args", nargs="*", help="Method arguments as JSON literals")
    p_call.add_argument("--address", help="Contract address (default: latest recorded deployment)")
    p_call.add_argument("--value", type=int, default=0, help="Wei to send with the call")
    p_call.add_argument("--read-only", action="store_true", help="Do not load a signer (view/pure methods only)")
    p_call.add_argument("--keep-going", action="store_true", help="Log a failed call instead of exiting non-zero")
    p_call.set_defaults(func=cmd_call)

    p_run = sub.add_parser("run", parents=[common], help="Execute a JSON call plan sequentially")
    p_run.add_argument("plan", help="Path to the plan JSON file")
    p_run.set_defaults(func=cmd_run)

    p_gas = sub.add_parser("gas-report", parents=[common], help="Repeat a write call and summarise gas used")
    p_gas.add_argument("contract", help="Contract name (artifact lookup)")
    p_gas.add_argument("method", help="Write method name")
    p_gas.add_argument("args", nargs="*", help="Method arguments as JSON literals")
    p_gas.add_argument("--count", type=int, default=1, help="Number of calls (default 1)")
    p_gas.add_argument("--address", help="Contract address (default: latest recorded deployment)")
    p_gas.add_argument("--value", type=int, default=0, help="Wei to send with each call")
    p_gas.set_defaults(func=cmd_gas_report)

    p_pin = sub.add_parser("pin-metadata", parents=[common], help="Store NFT metadata and image on IPFS via NFT.Storage")
    p_pin.add_argument("--name", required=True)
    p_pin.add_argument("--description", required=True)
    p_pin.add_argument("--image", required=True, help="Path to the image file")
    p_pin.set_defaults(func=cmd_pin_metadata)

    p_cnt = sub.add_parser("tx-count", parents=[common], help="Print an address's transaction count")
    p_cnt.add_argument("address")
    p_cnt.set_defaults(func=cmd_tx_count)

    p_pay = sub.add_parser("check-payment", parents=[common], help="Check a mined transaction paid the expected amount")
    p_pay.add_argument("tx_hash")
    p_pay.add_argument("--expected", required=True, help="Expected value in ether units (e.g. 0.01)")
    p_pay.set_defaults(func=cmd_check_payment)

    p_deps = sub.add_parser("deployments", parents=[common], help="List recorded deployments (latest per contract)")
    p_deps.add_argument("--contract", help="Only this contract")
    p_deps.add_argument("--format", choices=["table", "json"], default="table")
    p_deps.set_defaults(func=cmd_deployments)

    p_ks = sub.add_parser("keystore-create", parents=[common], help="Encrypt the configured private key into a keystore")
    p_ks.add_argument("--private-key-env", dest="private_key_env", help="Env var holding the private key (default: the network's first account, WALLET_1)")
    p_ks.add_argument("--out", help="Output directory for keystore files (default build/wallets)")
    p_ks.set_defaults(func=cmd_keystore_create)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 2

    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv(find_dotenv(usecwd=True))

    setup_logger(
        "nbmon_ops",
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=args.log_file,
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
