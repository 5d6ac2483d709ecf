"""Error taxonomy for the swap engine.

Every error here is recoverable: the engine turns them into
``quote_status``/``tx_status`` plus ``last_error`` instead of letting them
escape to the caller, except ``PreconditionError`` which is raised back to
whoever asked for the trade.
"""

from typing import Optional


class SwapError(Exception):
    """Base class for swap engine errors."""

    pass


class InvalidAmount(SwapError, ValueError):
    """Amount text is not a valid non-negative decimal number."""

    def __init__(self, amount: object, reason: str = "not a valid amount"):
        self.amount = amount
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class GatewayError(SwapError):
    """The aggregator gateway answered with a non-success response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class StaleResult(SwapError):
    """An async result belongs to a superseded request and must be dropped."""

    def __init__(self, generation: int, latest: int):
        self.generation = generation
        self.latest = latest
        super().__init__(f"Result of generation {generation} superseded by {latest}")


class PreconditionError(SwapError):
    """A trade was confirmed while the engine was not ready for it."""

    pass


class SignerRejected(SwapError):
    """The user or wallet declined to sign the transaction."""

    pass


class Timeout(SwapError, TimeoutError):
    """A bounded wait was exceeded."""

    def __init__(self, operation: str, seconds: float):
        self.operation = operation
        self.seconds = seconds
        super().__init__(f"{operation} timed out after {seconds:g}s")


class TransactionReverted(SwapError):
    """The transaction was mined but reverted."""

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} reverted")


class BroadcastError(SwapError):
    """The signed transaction could not be broadcast."""

    pass


class UnknownToken(SwapError, LookupError):
    """No token with this address or symbol in the session's token list."""

    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"Unknown token: {ref}")
