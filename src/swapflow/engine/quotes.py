"""Debounced, cancellable quote fetching.

Every input change bumps a generation counter. The debounce timer is an
``asyncio.Task`` that is cancelled and replaced on each change; once the
quiet period has elapsed the same task issues the gateway call. In-flight
calls are never aborted, but their results only commit if their generation
is still the latest when they resolve.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from swapflow.config import get_settings
from swapflow.engine.state import TradeKey, TradeState
from swapflow.engine.units import from_base_units, to_base_units
from swapflow.errors import GatewayError, InvalidAmount, StaleResult, SwapError, Timeout
from swapflow.gateway import AggregatorGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteRequest:
    """One quote attempt. Only the latest generation may touch TradeState."""

    src: str
    dst: str
    amount: str  # base units
    generation: int
    key: TradeKey
    dest_decimals: int


class QuoteFetcher:
    """Turns (source token, dest token, source amount) into ``dest_amount``."""

    def __init__(
        self,
        state: TradeState,
        gateway: AggregatorGateway,
        debounce_seconds: Optional[float] = None,
        timeout: Optional[float] = None,
        display_precision: Optional[int] = None,
    ):
        settings = get_settings()
        self.state = state
        self.gateway = gateway
        self.debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else settings.quote_debounce_seconds
        )
        self.timeout = timeout if timeout is not None else settings.quote_timeout
        self.display_precision = (
            display_precision if display_precision is not None else settings.display_precision
        )
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._latest_key: Optional[TradeKey] = None
        self._latest_task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        """Latest issued generation."""
        return self._generation

    @property
    def is_busy(self) -> bool:
        return bool(self._tasks)

    def build_request(self, generation: int) -> Optional[QuoteRequest]:
        """Derive a request from current state.

        Returns None when no quote should be issued: a token is unset, or
        the amount is empty, malformed, or zero in base units.
        """
        key = self.state.current_key()
        source, dest = self.state.source_token, self.state.dest_token
        if key is None or source is None or dest is None:
            return None
        try:
            amount = to_base_units(self.state.source_amount, source.decimals)
        except InvalidAmount:
            return None
        if amount == "0":
            return None
        return QuoteRequest(
            src=source.address,
            dst=dest.address,
            amount=amount,
            generation=generation,
            key=key,
            dest_decimals=dest.decimals,
        )

    def on_inputs_changed(self) -> None:
        """Reschedule the quote after a change to tokens or amount."""
        if self.state.quote_is_current() or self._latest_pending():
            return

        self._generation += 1
        self._latest_task = None
        self._cancel_timer()

        request = self.build_request(self._generation)
        if request is None:
            self.state.clear_quote()
            return

        self._timer = self._track(request, self.debounce_seconds)

    async def refresh(self) -> None:
        """Re-quote the current inputs immediately, skipping the debounce."""
        self._generation += 1
        self._latest_task = None
        self._cancel_timer()

        request = self.build_request(self._generation)
        if request is None:
            self.state.clear_quote()
            return

        await self._track(request, 0)

    async def wait_idle(self) -> None:
        """Wait until no quote is scheduled or in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel everything outstanding. Late results are discarded."""
        self._generation += 1
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._latest_task = None

    def _latest_pending(self) -> bool:
        """True while a request for exactly the current inputs is scheduled or in flight."""
        return (
            self._latest_task is not None
            and not self._latest_task.done()
            and self._latest_key == self.state.current_key()
        )

    def _track(self, request: QuoteRequest, delay: float) -> asyncio.Task:
        self._latest_key = request.key
        self._latest_task = self._spawn(self._run(request, delay))
        return self._latest_task

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _ensure_latest(self, request: QuoteRequest) -> None:
        if request.generation != self._generation:
            raise StaleResult(request.generation, self._generation)

    async def _run(self, request: QuoteRequest, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        # Past the quiet period: later edits no longer cancel this task
        if self._timer is asyncio.current_task():
            self._timer = None

        try:
            self._ensure_latest(request)
        except StaleResult:
            return

        self.state.begin_quote()
        logger.info(
            f"Requesting quote #{request.generation}: {request.amount} {request.src} -> {request.dst}"
        )

        dest_amount: Optional[str] = None
        error: Optional[SwapError] = None
        try:
            to_amount = await asyncio.wait_for(
                self.gateway.get_quote(request.src, request.dst, request.amount),
                timeout=self.timeout,
            )
            dest_amount = from_base_units(to_amount, request.dest_decimals, self.display_precision)
        except SwapError as e:
            error = e
        except asyncio.TimeoutError:
            error = Timeout("Quote request", self.timeout)
        except Exception as e:
            logger.error(f"Unexpected quote failure: {type(e).__name__}: {e}")
            error = GatewayError(f"Quote failed: {e}")

        try:
            self._ensure_latest(request)
        except StaleResult as e:
            logger.debug(f"Discarding quote result: {e}")
            return

        if error is not None:
            logger.warning(f"Quote #{request.generation} failed: {error}")
            self.state.fail_quote(str(error))
            return

        logger.info(f"Quote #{request.generation}: {request.amount} -> {dest_amount}")
        self.state.commit_quote(request.key, dest_amount)
