"""Dry-run wallet for simulated swaps.

Accepts every transaction without touching the network and reports a
scripted outcome. Used by ``swapflow swap --dry-run`` and the tests.
"""

import hashlib
import logging
import time
from typing import Optional

from swapflow.contracts import TransactionDescriptor
from swapflow.errors import BroadcastError, SignerRejected
from swapflow.tokens import Token
from swapflow.wallet.base import ConfirmationStatus, WalletSigner

logger = logging.getLogger(__name__)

DRY_RUN_ADDRESS = "0x000000000000000000000000000000000000dEaD"


class DryRunWalletSigner(WalletSigner):
    """Simulated wallet.

    Args:
        address: Account address, or None to simulate a disconnected wallet
        reject: Refuse to sign, as if the user declined
        broadcast_error: Fail the broadcast with this message
        outcome: Final status reported for every transaction
        pending_polls: Number of status polls that report PENDING first
        balances: Scripted balances in base units, keyed by token address
    """

    def __init__(
        self,
        address: Optional[str] = DRY_RUN_ADDRESS,
        reject: bool = False,
        broadcast_error: Optional[str] = None,
        outcome: ConfirmationStatus = ConfirmationStatus.CONFIRMED,
        pending_polls: int = 0,
        balances: Optional[dict[str, int]] = None,
    ):
        self._address = address
        self.reject = reject
        self.broadcast_error = broadcast_error
        self.outcome = outcome
        self.pending_polls = pending_polls
        self.balances = {k.lower(): v for k, v in (balances or {}).items()}
        self.sent: list[TransactionDescriptor] = []
        self._polls: dict[str, int] = {}

    @property
    def address(self) -> Optional[str]:
        return self._address

    def disconnect(self) -> None:
        self._address = None

    async def send_transaction(self, tx: TransactionDescriptor) -> str:
        if self._address is None:
            raise SignerRejected("No wallet connected")
        if self.reject:
            raise SignerRejected("User rejected the request")
        if self.broadcast_error:
            raise BroadcastError(self.broadcast_error)

        # In dry-run mode, we just return a simulated tx hash
        tx_data = f"{self._address}{tx.to}{tx.data}{tx.value}{time.time()}{len(self.sent)}"
        tx_hash = f"0x{hashlib.sha256(tx_data.encode()).hexdigest()}"
        self.sent.append(tx)
        self._polls[tx_hash] = 0
        logger.info(f"[dry-run] Broadcast {tx_hash} to {tx.to} (value {tx.value})")
        return tx_hash

    async def get_confirmation_status(self, tx_hash: str) -> ConfirmationStatus:
        polls = self._polls.get(tx_hash, 0)
        self._polls[tx_hash] = polls + 1
        if polls < self.pending_polls or self.outcome == ConfirmationStatus.PENDING:
            return ConfirmationStatus.PENDING
        return self.outcome

    async def get_balance(self, token: Token) -> Optional[int]:
        if self._address is None:
            return None
        return self.balances.get(token.key)
