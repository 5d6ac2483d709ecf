"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Optional

import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["ONEINCH_API_KEY"] = "test-key"
os.environ["CHAIN_ID"] = "8453"
os.environ.pop("WALLET_PRIVATE_KEY", None)

from swapflow.contracts import TransactionDescriptor
from swapflow.engine.session import SwapSession
from swapflow.gateway import AggregatorGateway
from swapflow.tokens import NATIVE_TOKEN, Token, TokenList
from swapflow.wallet.dry_run import DryRunWalletSigner

USDC_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
WETH_ADDRESS = "0x4200000000000000000000000000000000000006"
CBBTC_ADDRESS = "0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf"
ROUTER_1INCH = "0x111111125421cA6dc452d289314280a0f8842A65"

TOKENS_RESPONSE = {
    "tokens": {
        NATIVE_TOKEN: {
            "address": NATIVE_TOKEN,
            "symbol": "ETH",
            "name": "Ether",
            "decimals": 18,
            "logoURI": "https://tokens.1inch.io/eth.png",
        },
        USDC_ADDRESS: {
            "address": USDC_ADDRESS,
            "symbol": "USDC",
            "name": "USD Coin",
            "decimals": 6,
            "logoURI": "https://tokens.1inch.io/usdc.png",
        },
        WETH_ADDRESS: {
            "address": WETH_ADDRESS,
            "symbol": "WETH",
            "name": "Wrapped Ether",
            "decimals": 18,
            "logoURI": "https://tokens.1inch.io/weth.png",
        },
        CBBTC_ADDRESS: {
            "address": CBBTC_ADDRESS,
            "symbol": "cbBTC",
            "name": "Coinbase Wrapped BTC",
            "decimals": 8,
            "logoURI": "",
        },
    }
}


class FakeGateway(AggregatorGateway):
    """In-memory gateway with scriptable quote and build behavior.

    ``quote_blockers[i]`` holds the i-th quote call until the event is set;
    ``quote_results[i]`` overrides its returned amount.
    """

    def __init__(self, to_amount: str = "4500000000"):
        self.token_list = TokenList.from_response(TOKENS_RESPONSE)
        self.to_amount = to_amount
        self.quote_error: Optional[Exception] = None
        self.build_error: Optional[Exception] = None
        self.quote_calls: list[tuple[str, str, str]] = []
        self.build_calls: list[dict] = []
        self.quote_blockers: dict[int, asyncio.Event] = {}
        self.quote_results: dict[int, str] = {}
        self.build_blocker: Optional[asyncio.Event] = None
        self.tx = TransactionDescriptor(to=ROUTER_1INCH, data="0x07ed2379", value="0")
        self.closed = False

    async def get_tokens(self) -> TokenList:
        return self.token_list

    async def get_quote(self, src: str, dst: str, amount: str) -> str:
        index = len(self.quote_calls)
        self.quote_calls.append((src, dst, amount))
        blocker = self.quote_blockers.get(index)
        if blocker is not None:
            await blocker.wait()
        if self.quote_error is not None:
            raise self.quote_error
        return self.quote_results.get(index, self.to_amount)

    async def build_swap(self, src, dst, amount, from_address, slippage) -> TransactionDescriptor:
        self.build_calls.append(
            {
                "src": src,
                "dst": dst,
                "amount": amount,
                "from_address": from_address,
                "slippage": slippage,
            }
        )
        if self.build_blocker is not None:
            await self.build_blocker.wait()
        if self.build_error is not None:
            raise self.build_error
        return self.tx

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def tokens() -> TokenList:
    return TokenList.from_response(TOKENS_RESPONSE)


@pytest.fixture
def eth(tokens) -> Token:
    return tokens.find_symbol("ETH")


@pytest.fixture
def usdc(tokens) -> Token:
    return tokens.find_symbol("USDC")


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def signer() -> DryRunWalletSigner:
    return DryRunWalletSigner()


@pytest.fixture
def wait_until():
    """Poll a predicate on the event loop until it holds."""

    async def _wait(predicate, timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not reached in time")
            await asyncio.sleep(0.001)

    return _wait


@pytest_asyncio.fixture
async def make_session(gateway, signer):
    """Factory for sessions with short timings; closes them afterwards."""
    sessions: list[SwapSession] = []

    async def _make(
        signer_override: Optional[DryRunWalletSigner] = None,
        load_tokens: bool = True,
        **kwargs,
    ) -> SwapSession:
        options = {
            "debounce_seconds": 0.05,
            "quote_timeout": 1.0,
            "build_timeout": 1.0,
            "confirmation_timeout": 1.0,
            "poll_interval": 0.01,
        }
        options.update(kwargs)
        session = SwapSession(gateway, signer_override or signer, **options)
        sessions.append(session)
        if load_tokens:
            await session.load_tokens()
            await session.wait_for_quote()
        return session

    yield _make

    for session in sessions:
        await session.close()


@pytest_asyncio.fixture
async def session(make_session) -> SwapSession:
    return await make_session()


@pytest_asyncio.fixture
async def quoted_session(session) -> SwapSession:
    """Session with a ready quote for 1.5 ETH -> USDC."""
    session.set_source_amount("1.5")
    await session.wait_for_quote()
    return session
