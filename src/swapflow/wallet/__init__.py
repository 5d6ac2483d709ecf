"""Wallet signers that sign, broadcast and watch swap transactions."""

from swapflow.wallet.base import ConfirmationStatus, WalletSigner
from swapflow.wallet.dry_run import DryRunWalletSigner

__all__ = [
    "ConfirmationStatus",
    "WalletSigner",
    "DryRunWalletSigner",
]
