"""User-facing swap session.

Wires TradeState, QuoteFetcher and TransactionDriver together and exposes
the actions a front end performs: pick tokens, type an amount, switch the
legs, confirm.
"""

import logging
from typing import Optional, Union

from swapflow.engine.quotes import QuoteFetcher
from swapflow.engine.state import TradeState, TxStatus
from swapflow.engine.transactions import TransactionDriver
from swapflow.engine.units import from_base_units
from swapflow.errors import UnknownToken
from swapflow.gateway import AggregatorGateway
from swapflow.tokens import Token, TokenList
from swapflow.wallet.base import WalletSigner

logger = logging.getLogger(__name__)

TokenRef = Union[Token, str, None]


class SwapSession:
    """One user's swap screen, from token list to confirmed trade."""

    def __init__(
        self,
        gateway: AggregatorGateway,
        signer: WalletSigner,
        debounce_seconds: Optional[float] = None,
        quote_timeout: Optional[float] = None,
        build_timeout: Optional[float] = None,
        confirmation_timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        slippage: Optional[float] = None,
        display_precision: Optional[int] = None,
    ):
        self.gateway = gateway
        self.signer = signer
        self.state = TradeState()
        self.tokens = TokenList()
        self.quotes = QuoteFetcher(
            self.state,
            gateway,
            debounce_seconds=debounce_seconds,
            timeout=quote_timeout,
            display_precision=display_precision,
        )
        self.driver = TransactionDriver(
            self.state,
            gateway,
            signer,
            slippage=slippage,
            build_timeout=build_timeout,
            confirmation_timeout=confirmation_timeout,
            poll_interval=poll_interval,
        )

    async def load_tokens(self, select_defaults: bool = True) -> TokenList:
        """Load the token list once and pick the default pair (ETH -> USDC)."""
        self.tokens = await self.gateway.get_tokens()
        if select_defaults:
            source, dest = self.tokens.default_pair()
            if source is not None and dest is not None:
                self.state.set_source_token(source)
                self.state.set_dest_token(dest)
                self.quotes.on_inputs_changed()
        return self.tokens

    def _resolve(self, ref: TokenRef) -> Optional[Token]:
        if ref is None or isinstance(ref, Token):
            return ref
        token = self.tokens.resolve(ref)
        if token is None:
            raise UnknownToken(ref)
        return token

    def select_source_token(self, ref: TokenRef) -> None:
        if self.state.set_source_token(self._resolve(ref)):
            self.quotes.on_inputs_changed()

    def select_dest_token(self, ref: TokenRef) -> None:
        if self.state.set_dest_token(self._resolve(ref)):
            self.quotes.on_inputs_changed()

    def set_source_amount(self, amount: str) -> None:
        if self.state.set_source_amount(amount):
            self.quotes.on_inputs_changed()

    def switch_tokens(self) -> None:
        if self.state.switch_tokens():
            self.quotes.on_inputs_changed()

    async def source_balance(self) -> Optional[str]:
        """Wallet balance of the source token, formatted like dest_amount.

        None when no source token is selected, the wallet is disconnected or
        the balance could not be read.
        """
        token = self.state.source_token
        if token is None or not self.signer.is_connected:
            return None
        raw = await self.signer.get_balance(token)
        if raw is None:
            return None
        return from_base_units(raw, token.decimals, self.quotes.display_precision)

    async def refresh_quote(self) -> None:
        await self.quotes.refresh()

    async def wait_for_quote(self) -> None:
        await self.quotes.wait_idle()

    async def confirm(self) -> TxStatus:
        """Execute the quoted trade. See ``TransactionDriver.confirm``."""
        return await self.driver.confirm()

    async def close(self) -> None:
        await self.quotes.close()
        await self.gateway.close()
