"""Wallet signer interface.

Signing flow:
1. Receive a transaction descriptor (to, data, value) from the gateway
2. Sign it with the connected account
3. Broadcast and return the transaction hash
4. Report confirmation status until the transaction is mined
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from swapflow.config import get_settings
from swapflow.contracts import TransactionDescriptor
from swapflow.errors import Timeout
from swapflow.tokens import Token

logger = logging.getLogger(__name__)


class ConfirmationStatus(str, Enum):
    """On-chain status of a broadcast transaction."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class WalletSigner(ABC):
    """Abstract wallet that signs and broadcasts transactions."""

    @property
    @abstractmethod
    def address(self) -> Optional[str]:
        """Connected account address, or None when disconnected."""
        pass

    @property
    def is_connected(self) -> bool:
        return bool(self.address)

    @abstractmethod
    async def send_transaction(self, tx: TransactionDescriptor) -> str:
        """
        Sign and broadcast a transaction.

        Args:
            tx: Transaction descriptor from the swap-build endpoint

        Returns:
            Transaction hash once the network accepted the broadcast

        Raises:
            SignerRejected: If the user or wallet declined to sign
            BroadcastError: If the network refused the transaction
        """
        pass

    @abstractmethod
    async def get_confirmation_status(self, tx_hash: str) -> ConfirmationStatus:
        """Get the current status of a broadcast transaction."""
        pass

    @abstractmethod
    async def get_balance(self, token: Token) -> Optional[int]:
        """
        Get the connected account's balance of a token.

        Args:
            token: Native token or ERC-20 from the token list

        Returns:
            Balance in base units, or None when disconnected or unknown
        """
        pass

    async def wait_for_confirmation(
        self,
        tx_hash: str,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> ConfirmationStatus:
        """Poll until the transaction is confirmed or failed.

        Args:
            tx_hash: Transaction hash to watch
            timeout: Maximum seconds to wait
            poll_interval: Seconds between polls

        Returns:
            CONFIRMED or FAILED

        Raises:
            Timeout: If the transaction is still pending after ``timeout``
        """
        settings = get_settings()
        timeout = timeout if timeout is not None else settings.confirmation_timeout
        poll_interval = (
            poll_interval if poll_interval is not None else settings.confirmation_poll_interval
        )

        loop = asyncio.get_running_loop()
        start_time = loop.time()

        while True:
            status = await self.get_confirmation_status(tx_hash)
            if status != ConfirmationStatus.PENDING:
                logger.info(f"Transaction {tx_hash} {status.value}")
                return status

            elapsed = loop.time() - start_time
            if elapsed >= timeout:
                raise Timeout(f"Confirmation of {tx_hash}", timeout)

            # Wait before checking again
            await asyncio.sleep(min(poll_interval, max(timeout - elapsed, 0)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(address={self.address})"
