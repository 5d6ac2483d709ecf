"""Local-key wallet signer over JSON-RPC.

Signs with an in-memory private key (``WALLET_PRIVATE_KEY``) and
broadcasts through the configured RPC endpoint. Suitable for development
and small hot wallets; browser wallets implement the same interface on the
client side.
"""

import logging
from typing import Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound

from swapflow.config import get_settings
from swapflow.contracts import TransactionDescriptor
from swapflow.errors import BroadcastError, SignerRejected
from swapflow.tokens import Token
from swapflow.wallet.base import ConfirmationStatus, WalletSigner

logger = logging.getLogger(__name__)

# ERC20 balanceOf(address) method signature
BALANCE_OF_SIGNATURE = "0x70a08231"


class Web3WalletSigner(WalletSigner):
    """Wallet backed by a local private key and an RPC node."""

    def __init__(
        self,
        private_key: Optional[str] = None,
        rpc_url: Optional[str] = None,
        chain_id: Optional[int] = None,
    ):
        settings = get_settings()
        key = private_key or settings.wallet_private_key
        self.rpc_url = rpc_url or settings.rpc_url
        self.chain_id = chain_id or settings.chain_id
        self._account = Account.from_key(key) if key else None
        self._web3: Optional[AsyncWeb3] = None

    @property
    def web3(self) -> AsyncWeb3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
        return self._web3

    @property
    def address(self) -> Optional[str]:
        return self._account.address if self._account else None

    async def _build_params(self, tx: TransactionDescriptor) -> dict:
        address = self.address
        params = {
            "from": address,
            "to": Web3.to_checksum_address(tx.to),
            "data": tx.data,
            "value": tx.value_wei,
            "chainId": self.chain_id,
            "nonce": await self.web3.eth.get_transaction_count(address, "pending"),
        }
        # The aggregator is asked not to estimate, so gas may be missing
        params["gas"] = tx.gas or await self.web3.eth.estimate_gas(params)
        params["gasPrice"] = await self.web3.eth.gas_price
        return params

    async def send_transaction(self, tx: TransactionDescriptor) -> str:
        if self._account is None:
            raise SignerRejected("No wallet connected")

        try:
            params = await self._build_params(tx)
        except Exception as e:
            logger.warning(f"Could not prepare transaction to {tx.to}: {e}")
            raise BroadcastError(f"Could not prepare transaction: {e}")

        try:
            signed_tx = self._account.sign_transaction(params)
        except Exception as e:
            logger.warning(f"Signing refused: {e}")
            raise SignerRejected(f"Signing failed: {e}")

        # eth-account renamed rawTransaction to raw_transaction
        raw_tx = getattr(signed_tx, "raw_transaction", None) or signed_tx.rawTransaction
        try:
            tx_hash = await self.web3.eth.send_raw_transaction(raw_tx)
        except Exception as e:
            logger.error(f"Broadcast failed: {e}")
            raise BroadcastError(f"Broadcast failed: {e}")

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"Broadcast transaction {tx_hash_hex} from {self.address}")
        return tx_hash_hex

    async def get_confirmation_status(self, tx_hash: str) -> ConfirmationStatus:
        try:
            receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return ConfirmationStatus.PENDING

        if receipt is None:
            return ConfirmationStatus.PENDING
        if receipt["status"] == 1:
            return ConfirmationStatus.CONFIRMED
        return ConfirmationStatus.FAILED

    async def get_balance(self, token: Token) -> Optional[int]:
        address = self.address
        if address is None:
            return None

        try:
            if token.is_native:
                return await self.web3.eth.get_balance(address)

            address_padded = address.lower().replace("0x", "").zfill(64)
            result = await self.web3.eth.call(
                {
                    "to": Web3.to_checksum_address(token.address),
                    "data": f"{BALANCE_OF_SIGNATURE}{address_padded}",
                }
            )
        except Exception as e:
            logger.error(f"Failed to get {token.symbol} balance for {address}: {e}")
            return None

        # Empty return data means the address is not an ERC-20 contract
        if not result:
            return None
        return int.from_bytes(bytes(result), "big")
