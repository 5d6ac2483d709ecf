"""Client side of the aggregator gateway.

The engine never talks to 1inch directly. It calls the credential-bearing
proxy (see ``swapflow.api``), which forwards to the aggregator and injects
the API key.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import ValidationError

from swapflow.config import get_settings
from swapflow.contracts import QuoteResult, SwapBuildResult, TransactionDescriptor
from swapflow.errors import GatewayError, Timeout
from swapflow.tokens import TokenList

logger = logging.getLogger(__name__)


class AggregatorGateway(ABC):
    """Token-list, quote and swap-build endpoints of the aggregator."""

    @abstractmethod
    async def get_tokens(self) -> TokenList:
        """Fetch the token list for the configured chain."""
        pass

    @abstractmethod
    async def get_quote(self, src: str, dst: str, amount: str) -> str:
        """
        Get an estimated output amount.

        Args:
            src: Source token address
            dst: Destination token address
            amount: Source amount in base units

        Returns:
            Destination amount in base units

        Raises:
            GatewayError: On a non-success response
            Timeout: If the call does not complete in time
        """
        pass

    @abstractmethod
    async def build_swap(
        self,
        src: str,
        dst: str,
        amount: str,
        from_address: str,
        slippage: float,
    ) -> TransactionDescriptor:
        """
        Build a signable swap transaction.

        Args:
            src: Source token address
            dst: Destination token address
            amount: Source amount in base units
            from_address: Wallet that will sign and send the transaction
            slippage: Slippage tolerance in percent

        Returns:
            Transaction descriptor (to, data, value)
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None


class HttpAggregatorGateway(AggregatorGateway):
    """Gateway backed by the HTTP proxy."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the gateway client.

        Args:
            base_url: Proxy base URL (defaults to settings.gateway_url)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        settings = get_settings()
        self.base_url = (base_url or settings.gateway_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.quote_timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        client = await self._get_client()
        try:
            response = await client.get(f"/{endpoint}", params=params)
        except httpx.TimeoutException:
            raise Timeout(f"Gateway {endpoint} request", self.timeout)
        except httpx.HTTPError as e:
            logger.warning(f"Gateway {endpoint} transport error: {type(e).__name__}: {e}")
            raise GatewayError(f"Network error while requesting {endpoint}: {e}")

        if response.status_code != 200:
            message = self._error_message(response, endpoint)
            logger.warning(f"Gateway {endpoint} error: {response.status_code} - {message}")
            raise GatewayError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError:
            raise GatewayError(f"Malformed {endpoint} response", status_code=response.status_code)

    @staticmethod
    def _error_message(response: httpx.Response, endpoint: str) -> str:
        """Extract the ``{error}`` message from a failed response."""
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        if response.text:
            return response.text
        return f"Gateway {endpoint} failed with status {response.status_code}"

    async def get_tokens(self) -> TokenList:
        data = await self._get("tokens")
        try:
            tokens = TokenList.from_response(data)
        except ValueError as e:
            raise GatewayError(f"Malformed tokens response: {e}")
        logger.info(f"Loaded {len(tokens)} tokens from gateway")
        return tokens

    async def get_quote(self, src: str, dst: str, amount: str) -> str:
        data = await self._get("quote", {"src": src, "dst": dst, "amount": amount})
        try:
            return QuoteResult.model_validate(data).to_amount
        except ValidationError as e:
            raise GatewayError(f"Malformed quote response: {e.errors()[0]['msg']}")

    async def build_swap(
        self,
        src: str,
        dst: str,
        amount: str,
        from_address: str,
        slippage: float,
    ) -> TransactionDescriptor:
        data = await self._get(
            "swap",
            {
                "src": src,
                "dst": dst,
                "amount": amount,
                "from": from_address,
                "slippage": f"{slippage:g}",
                "disableEstimate": "true",
            },
        )
        try:
            return SwapBuildResult.model_validate(data).tx
        except ValidationError as e:
            raise GatewayError(f"Malformed swap response: {e.errors()[0]['msg']}")
