"""Tests for the HTTP aggregator gateway and wire contracts."""

import httpx
import pytest
from pydantic import ValidationError

from swapflow.contracts import QuoteResult, TransactionDescriptor
from swapflow.errors import GatewayError, Timeout
from swapflow.gateway import HttpAggregatorGateway
from swapflow.tokens import NATIVE_TOKEN

from conftest import ROUTER_1INCH, TOKENS_RESPONSE, USDC_ADDRESS

GATEWAY_URL = "http://proxy.test/api/1inch"


def make_gateway(handler) -> HttpAggregatorGateway:
    return HttpAggregatorGateway(
        base_url=GATEWAY_URL, timeout=1.0, transport=httpx.MockTransport(handler)
    )


class TestGatewayRequests:
    """Test requests sent to the proxy."""

    @pytest.mark.asyncio
    async def test_quote(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"toAmount": "4500000000", "extra": 1})

        gateway = make_gateway(handler)
        try:
            amount = await gateway.get_quote(NATIVE_TOKEN, USDC_ADDRESS, "1500000000000000000")
        finally:
            await gateway.close()

        assert amount == "4500000000"
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/api/1inch/quote"
        assert request.url.params["src"] == NATIVE_TOKEN
        assert request.url.params["dst"] == USDC_ADDRESS
        assert request.url.params["amount"] == "1500000000000000000"

    @pytest.mark.asyncio
    async def test_swap(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "dstAmount": "4500000000",
                    "tx": {
                        "from": "0x000000000000000000000000000000000000dEaD",
                        "to": ROUTER_1INCH,
                        "data": "0x07ed2379",
                        "value": "1500000000000000000",
                        "gas": 0,
                        "gasPrice": "1000000",
                    },
                },
            )

        gateway = make_gateway(handler)
        try:
            tx = await gateway.build_swap(
                NATIVE_TOKEN,
                USDC_ADDRESS,
                "1500000000000000000",
                "0x000000000000000000000000000000000000dEaD",
                0.5,
            )
        finally:
            await gateway.close()

        assert tx.to == ROUTER_1INCH
        assert tx.data == "0x07ed2379"
        assert tx.value_wei == 1500000000000000000
        params = seen[0].url.params
        assert seen[0].url.path == "/api/1inch/swap"
        assert params["from"] == "0x000000000000000000000000000000000000dEaD"
        assert params["slippage"] == "0.5"
        assert params["disableEstimate"] == "true"

    @pytest.mark.asyncio
    async def test_tokens(self):
        gateway = make_gateway(lambda request: httpx.Response(200, json=TOKENS_RESPONSE))
        try:
            tokens = await gateway.get_tokens()
        finally:
            await gateway.close()

        assert len(tokens) == 4
        assert tokens.get(USDC_ADDRESS.lower()).decimals == 6


class TestGatewayErrors:
    """Test error mapping."""

    @pytest.mark.asyncio
    async def test_error_body(self):
        gateway = make_gateway(
            lambda request: httpx.Response(400, json={"error": "insufficient liquidity"})
        )
        with pytest.raises(GatewayError) as exc_info:
            await gateway.get_quote(NATIVE_TOKEN, USDC_ADDRESS, "1")
        await gateway.close()

        assert str(exc_info.value) == "insufficient liquidity"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_plain_text_error(self):
        gateway = make_gateway(lambda request: httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(GatewayError, match="Bad Gateway"):
            await gateway.get_quote(NATIVE_TOKEN, USDC_ADDRESS, "1")
        await gateway.close()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        gateway = make_gateway(handler)
        with pytest.raises(Timeout):
            await gateway.get_quote(NATIVE_TOKEN, USDC_ADDRESS, "1")
        await gateway.close()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway = make_gateway(handler)
        with pytest.raises(GatewayError, match="Network error"):
            await gateway.get_tokens()
        await gateway.close()

    @pytest.mark.asyncio
    async def test_malformed_quote(self):
        gateway = make_gateway(lambda request: httpx.Response(200, json={"amount": "1"}))
        with pytest.raises(GatewayError, match="Malformed quote"):
            await gateway.get_quote(NATIVE_TOKEN, USDC_ADDRESS, "1")
        await gateway.close()

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        gateway = make_gateway(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(GatewayError, match="Malformed"):
            await gateway.get_quote(NATIVE_TOKEN, USDC_ADDRESS, "1")
        await gateway.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"tokens": []}, {"tokens": None}, ["ETH"], "tokens"])
    async def test_malformed_token_list(self, body):
        gateway = make_gateway(lambda request: httpx.Response(200, json=body))
        with pytest.raises(GatewayError, match="Malformed tokens response"):
            await gateway.get_tokens()
        await gateway.close()

    @pytest.mark.asyncio
    async def test_invalid_transaction(self):
        gateway = make_gateway(
            lambda request: httpx.Response(200, json={"tx": {"to": "nope", "data": "0x"}})
        )
        with pytest.raises(GatewayError, match="Malformed swap"):
            await gateway.build_swap(NATIVE_TOKEN, USDC_ADDRESS, "1", ROUTER_1INCH, 1.0)
        await gateway.close()


class TestContracts:
    """Test wire models."""

    def test_quote_accepts_hex_and_int(self):
        assert QuoteResult.model_validate({"toAmount": "0x10"}).to_amount == "16"
        assert QuoteResult.model_validate({"toAmount": 2**256 - 1}).to_amount == str(2**256 - 1)

    @pytest.mark.parametrize("value", ["-1", "1.5", "abc", True])
    def test_quote_rejects_bad_amounts(self, value):
        with pytest.raises(ValidationError):
            QuoteResult.model_validate({"toAmount": value})

    def test_transaction_defaults(self):
        tx = TransactionDescriptor(to=ROUTER_1INCH, data="0x")
        assert tx.value == "0"
        assert tx.gas is None

    def test_transaction_hex_value(self):
        tx = TransactionDescriptor(to=ROUTER_1INCH, data="0x", value="0xde0b6b3a7640000")
        assert tx.value_wei == 10**18

    def test_transaction_rejects_bad_calldata(self):
        with pytest.raises(ValidationError):
            TransactionDescriptor(to=ROUTER_1INCH, data="07ed2379")
