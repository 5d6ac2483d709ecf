"""Swap orchestration engine.

- units: decimal <-> base-unit conversion
- state: TradeState, the single source of truth
- quotes: debounced quote fetching with stale-result suppression
- transactions: build / sign / confirm state machine
- session: user-facing facade over the above
"""

from swapflow.engine.quotes import QuoteFetcher, QuoteRequest
from swapflow.engine.session import SwapSession
from swapflow.engine.state import QuoteStatus, TradeKey, TradeState, TxStatus
from swapflow.engine.transactions import TransactionDriver, TransactionIntent
from swapflow.engine.units import from_base_units, to_base_units

__all__ = [
    "QuoteFetcher",
    "QuoteRequest",
    "QuoteStatus",
    "SwapSession",
    "TradeKey",
    "TradeState",
    "TransactionDriver",
    "TransactionIntent",
    "TxStatus",
    "from_base_units",
    "to_base_units",
]
