"""
Entry point for running the toolkit as a module.

Usage:
    python -m nbmon_ops                  # Show available commands
    python -m nbmon_ops deploy GenesisNBMon --network bscTestnet
"""
from nbmon_ops.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
