"""Swapflow - quote and execute single-chain token swaps through 1inch."""

__version__ = "0.1.0"
