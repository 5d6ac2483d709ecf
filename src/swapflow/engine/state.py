"""Single source of truth for an active swap session.

``TradeState`` is owned by one asyncio event loop. Its setters are plain
synchronous methods, so each mutation runs to completion without
interleaving; the quote fetcher and transaction driver only ever change
the state through them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from swapflow.tokens import Token

logger = logging.getLogger(__name__)


class QuoteStatus(str, Enum):
    """Status of the derived destination amount."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class TxStatus(str, Enum):
    """Lifecycle of the trade transaction."""

    NONE = "none"
    BUILDING = "building"
    AWAITING_SIGNATURE = "awaiting_signature"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def in_flight(self) -> bool:
        return self in IN_FLIGHT_TX_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in (TxStatus.CONFIRMED, TxStatus.FAILED)


IN_FLIGHT_TX_STATUSES = frozenset(
    {TxStatus.BUILDING, TxStatus.AWAITING_SIGNATURE, TxStatus.PENDING}
)

# No transition skips a state
TX_TRANSITIONS: dict[TxStatus, frozenset] = {
    TxStatus.NONE: frozenset({TxStatus.BUILDING}),
    TxStatus.BUILDING: frozenset({TxStatus.AWAITING_SIGNATURE, TxStatus.FAILED}),
    TxStatus.AWAITING_SIGNATURE: frozenset({TxStatus.PENDING, TxStatus.FAILED}),
    TxStatus.PENDING: frozenset({TxStatus.CONFIRMED, TxStatus.FAILED}),
    TxStatus.CONFIRMED: frozenset({TxStatus.NONE}),
    TxStatus.FAILED: frozenset({TxStatus.NONE}),
}


@dataclass(frozen=True)
class TradeKey:
    """The (source token, dest token, source amount) triple a quote belongs to."""

    src: str
    dst: str
    amount: str


StateListener = Callable[["TradeState"], None]


class TradeState:
    """Mutable trade model: selected tokens, amounts and lifecycle status.

    Invariant: ``dest_amount`` is either empty or the result of the last
    successful quote for the current ``(source_token, dest_token,
    source_amount)`` triple. Any input change that alters the triple clears
    it.
    """

    def __init__(self):
        self._source_token: Optional[Token] = None
        self._dest_token: Optional[Token] = None
        self._source_amount: str = ""
        self._dest_amount: str = ""
        self._quote_status = QuoteStatus.IDLE
        self._tx_status = TxStatus.NONE
        self._last_error: Optional[str] = None
        self._quote_key: Optional[TradeKey] = None
        self._tx_hash: Optional[str] = None
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def source_token(self) -> Optional[Token]:
        return self._source_token

    @property
    def dest_token(self) -> Optional[Token]:
        return self._dest_token

    @property
    def source_amount(self) -> str:
        return self._source_amount

    @property
    def dest_amount(self) -> str:
        return self._dest_amount

    @property
    def quote_status(self) -> QuoteStatus:
        return self._quote_status

    @property
    def tx_status(self) -> TxStatus:
        return self._tx_status

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def quote_key(self) -> Optional[TradeKey]:
        """Triple the current ``dest_amount`` was quoted for."""
        return self._quote_key

    @property
    def tx_hash(self) -> Optional[str]:
        return self._tx_hash

    def current_key(self) -> Optional[TradeKey]:
        """Triple for the current inputs, or None if a token is unset."""
        if self._source_token is None or self._dest_token is None:
            return None
        return TradeKey(
            src=self._source_token.key,
            dst=self._dest_token.key,
            amount=self._source_amount.strip(),
        )

    def quote_is_current(self) -> bool:
        """True when a ready quote exists for exactly the current inputs."""
        return (
            self._quote_status == QuoteStatus.READY
            and self._quote_key is not None
            and self._quote_key == self.current_key()
        )

    def snapshot(self) -> dict:
        """Plain-dict view for display and logging."""
        return {
            "source_token": self._source_token.symbol if self._source_token else None,
            "dest_token": self._dest_token.symbol if self._dest_token else None,
            "source_amount": self._source_amount,
            "dest_amount": self._dest_amount,
            "quote_status": self._quote_status.value,
            "tx_status": self._tx_status.value,
            "tx_hash": self._tx_hash,
            "last_error": self._last_error,
        }

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback run after every mutation.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"State listener {listener!r} failed: {type(e).__name__}: {e}")

    # ------------------------------------------------------------------
    # User input setters
    # ------------------------------------------------------------------

    def set_source_token(self, token: Optional[Token]) -> bool:
        """Select the token to sell. Picking the current dest token swaps the legs."""
        previous = self.current_key()
        if token is not None and token.same_asset(self._dest_token):
            self._dest_token = self._source_token
        self._source_token = token
        return self._inputs_changed(previous)

    def set_dest_token(self, token: Optional[Token]) -> bool:
        """Select the token to buy. Picking the current source token swaps the legs."""
        previous = self.current_key()
        if token is not None and token.same_asset(self._source_token):
            self._source_token = self._dest_token
        self._dest_token = token
        return self._inputs_changed(previous)

    def set_source_amount(self, amount: str) -> bool:
        """Store the amount text exactly as typed."""
        previous = self.current_key()
        self._source_amount = amount if amount is not None else ""
        return self._inputs_changed(previous)

    def switch_tokens(self) -> bool:
        """Swap the two legs, carrying the quoted output over as the new input."""
        previous = self.current_key()
        self._source_token, self._dest_token = self._dest_token, self._source_token
        self._source_amount = self._dest_amount
        return self._inputs_changed(previous)

    def _inputs_changed(self, previous: Optional[TradeKey]) -> bool:
        """Reset derived fields if the trade triple moved; True when it did."""
        if self.current_key() == previous:
            # Same triple: keep any scheduled, in-flight or committed quote
            self._notify()
            return False

        self._dest_amount = ""
        self._quote_key = None
        self._quote_status = QuoteStatus.IDLE
        self._last_error = None
        # An edit acknowledges a finished trade
        if self._tx_status.is_terminal:
            self._tx_status = TxStatus.NONE
            self._tx_hash = None
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Quote lifecycle (used by QuoteFetcher)
    # ------------------------------------------------------------------

    def begin_quote(self) -> None:
        self._quote_status = QuoteStatus.LOADING
        self._last_error = None
        self._notify()

    def commit_quote(self, key: TradeKey, dest_amount: str) -> None:
        """Store a successful quote for ``key``; ignored if the inputs moved on."""
        if key != self.current_key():
            logger.debug(f"Not committing quote for {key}: inputs changed")
            return
        self._dest_amount = dest_amount
        self._quote_key = key
        self._quote_status = QuoteStatus.READY
        self._notify()

    def fail_quote(self, message: str) -> None:
        self._dest_amount = ""
        self._quote_key = None
        self._quote_status = QuoteStatus.FAILED
        self._last_error = message
        self._notify()

    def clear_quote(self) -> None:
        self._dest_amount = ""
        self._quote_key = None
        self._quote_status = QuoteStatus.IDLE
        self._notify()

    # ------------------------------------------------------------------
    # Transaction lifecycle (used by TransactionDriver)
    # ------------------------------------------------------------------

    def transition_tx(
        self,
        status: TxStatus,
        error: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ) -> None:
        """Move the transaction to ``status``.

        Raises:
            RuntimeError: If the transition would skip a state
        """
        if status not in TX_TRANSITIONS[self._tx_status]:
            raise RuntimeError(
                f"Illegal transaction transition {self._tx_status.value} -> {status.value}"
            )
        logger.debug(f"Transaction {self._tx_status.value} -> {status.value}")
        self._tx_status = status
        if status == TxStatus.BUILDING:
            self._last_error = None
            self._tx_hash = None
        if tx_hash is not None:
            self._tx_hash = tx_hash
        if error is not None:
            self._last_error = error
        self._notify()

    def acknowledge_tx(self) -> None:
        """Return a finished trade to ``none`` so another can start."""
        if self._tx_status.is_terminal:
            self.transition_tx(TxStatus.NONE)
