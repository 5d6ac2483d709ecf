"""Transaction lifecycle: build, sign, broadcast, confirm.

State machine (``TxStatus``)::

    none -> building -> awaiting_signature -> pending -> confirmed
                 \\               \\               \\
                  +-> failed <----+---------------+

A failed or confirmed trade goes back to ``none`` when acknowledged by the
next input edit (or, for failures, the next confirm).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from swapflow.config import get_settings
from swapflow.contracts import TransactionDescriptor
from swapflow.engine.state import QuoteStatus, TradeKey, TradeState, TxStatus
from swapflow.engine.units import to_base_units
from swapflow.errors import (
    InvalidAmount,
    PreconditionError,
    SignerRejected,
    SwapError,
    Timeout,
    TransactionReverted,
)
from swapflow.gateway import AggregatorGateway
from swapflow.wallet.base import ConfirmationStatus, WalletSigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildRequest:
    """Swap-build parameters derived from TradeState at confirm time."""

    src: str
    dst: str
    amount: str  # base units
    from_address: str
    slippage: float
    key: TradeKey


@dataclass(frozen=True)
class TransactionIntent:
    """A built transaction together with the inputs it was built for."""

    tx: TransactionDescriptor
    request: BuildRequest

    def matches(self, state: TradeState) -> bool:
        """True if the trade inputs have not drifted since the build."""
        return self.request.key == state.current_key()


class TransactionDriver:
    """Drives one trade at a time from a ready quote to confirmation."""

    def __init__(
        self,
        state: TradeState,
        gateway: AggregatorGateway,
        signer: WalletSigner,
        slippage: Optional[float] = None,
        build_timeout: Optional[float] = None,
        confirmation_timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ):
        settings = get_settings()
        self.state = state
        self.gateway = gateway
        self.signer = signer
        self.slippage = slippage if slippage is not None else settings.default_slippage
        self.build_timeout = build_timeout if build_timeout is not None else settings.build_timeout
        self.confirmation_timeout = (
            confirmation_timeout
            if confirmation_timeout is not None
            else settings.confirmation_timeout
        )
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.confirmation_poll_interval
        )

    def check_preconditions(self) -> BuildRequest:
        """Validate that a trade may start and derive its build request.

        Raises:
            PreconditionError: If a trade is in flight or already confirmed,
                the quote is not ready for the current inputs, or no
                wallet is connected
        """
        state = self.state
        if state.tx_status.in_flight:
            raise PreconditionError("A trade is already in progress")
        if state.tx_status == TxStatus.CONFIRMED:
            raise PreconditionError(
                "Trade already confirmed; change the amount or tokens to start another"
            )
        if state.quote_status != QuoteStatus.READY:
            raise PreconditionError(f"No ready quote (status: {state.quote_status.value})")

        address = self.signer.address
        if not address:
            raise PreconditionError("Wallet not connected")

        # Re-validate: the quote must belong to exactly the current inputs
        if not state.quote_is_current():
            raise PreconditionError("Trade inputs changed since the quote; wait for a new quote")

        source, dest = state.source_token, state.dest_token
        try:
            amount = to_base_units(state.source_amount, source.decimals)
        except InvalidAmount as e:
            raise PreconditionError(str(e))
        if amount == "0":
            raise PreconditionError("Amount must be greater than zero")

        return BuildRequest(
            src=source.address,
            dst=dest.address,
            amount=amount,
            from_address=address,
            slippage=self.slippage,
            key=state.current_key(),
        )

    async def confirm(self) -> TxStatus:
        """Execute the currently quoted trade.

        Failures after the preconditions are recorded in TradeState
        (``tx_status = failed`` plus ``last_error``) rather than raised.

        Returns:
            Final transaction status (CONFIRMED or FAILED)

        Raises:
            PreconditionError: If the trade cannot start; nothing is sent
        """
        request = self.check_preconditions()

        # No await between the checks above and entering BUILDING
        self.state.acknowledge_tx()
        self.state.transition_tx(TxStatus.BUILDING)
        logger.info(
            f"Building swap: {request.amount} {request.src} -> {request.dst} "
            f"for {request.from_address} (slippage {request.slippage}%)"
        )

        intent = await self._build(request)
        if intent is None:
            return self.state.tx_status

        tx_hash = await self._submit(intent)
        if tx_hash is None:
            return self.state.tx_status

        return await self._await_confirmation(tx_hash)

    async def _build(self, request: BuildRequest) -> Optional[TransactionIntent]:
        try:
            tx = await asyncio.wait_for(
                self.gateway.build_swap(
                    request.src,
                    request.dst,
                    request.amount,
                    request.from_address,
                    request.slippage,
                ),
                timeout=self.build_timeout,
            )
        except SwapError as e:
            return self._fail(f"Swap build failed: {e}")
        except asyncio.TimeoutError:
            return self._fail(f"Swap build failed: {Timeout('Swap build', self.build_timeout)}")
        except Exception as e:
            logger.error(f"Unexpected build failure: {type(e).__name__}: {e}")
            return self._fail(f"Swap build failed: {e}")

        intent = TransactionIntent(tx=tx, request=request)
        if not intent.matches(self.state):
            return self._fail("Trade inputs changed while building; confirm again")

        self.state.transition_tx(TxStatus.AWAITING_SIGNATURE)
        return intent

    async def _submit(self, intent: TransactionIntent) -> Optional[str]:
        try:
            tx_hash = await self.signer.send_transaction(intent.tx)
        except SignerRejected as e:
            return self._fail(f"Transaction rejected: {e}")
        except SwapError as e:
            return self._fail(str(e))
        except Exception as e:
            logger.error(f"Unexpected signer failure: {type(e).__name__}: {e}")
            return self._fail(f"Broadcast failed: {e}")

        self.state.transition_tx(TxStatus.PENDING, tx_hash=tx_hash)
        logger.info(f"Swap submitted: {tx_hash}")
        return tx_hash

    async def _await_confirmation(self, tx_hash: str) -> TxStatus:
        try:
            status = await asyncio.wait_for(
                self.signer.wait_for_confirmation(
                    tx_hash, self.confirmation_timeout, self.poll_interval
                ),
                timeout=self.confirmation_timeout + self.poll_interval,
            )
        except SwapError as e:
            self._fail(f"Transaction not confirmed: {e}")
            return self.state.tx_status
        except asyncio.TimeoutError:
            timeout = Timeout(f"Confirmation of {tx_hash}", self.confirmation_timeout)
            self._fail(f"Transaction not confirmed: {timeout}")
            return self.state.tx_status
        except Exception as e:
            logger.error(f"Unexpected confirmation failure: {type(e).__name__}: {e}")
            self._fail(f"Transaction not confirmed: {e}")
            return self.state.tx_status

        if status == ConfirmationStatus.CONFIRMED:
            self.state.transition_tx(TxStatus.CONFIRMED)
            logger.info(f"Swap confirmed: {tx_hash}")
        elif status == ConfirmationStatus.FAILED:
            self._fail(str(TransactionReverted(tx_hash)))
        else:
            timeout = Timeout(f"Confirmation of {tx_hash}", self.confirmation_timeout)
            self._fail(f"Transaction not confirmed: {timeout}")
        return self.state.tx_status

    def _fail(self, message: str) -> None:
        logger.warning(message)
        self.state.transition_tx(TxStatus.FAILED, error=message)
        return None
