"""Liquidation agent for Solana token-lending markets."""

__version__ = "0.1.0"
