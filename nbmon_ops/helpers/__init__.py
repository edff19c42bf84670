"""Shared helpers: Web3 setup, signers, artifacts, transactions and contract handles."""
