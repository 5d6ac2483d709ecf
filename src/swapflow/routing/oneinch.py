"""1inch swap API client used by the proxy.

Holds the API key and forwards token-list, quote and swap-build requests
for the configured chain.
API docs: https://portal.1inch.dev/documentation/apis/swap/introduction
"""

import logging
from typing import Any, Optional

import httpx

from swapflow.config import get_settings

logger = logging.getLogger(__name__)

# Endpoints the proxy is allowed to forward
ENDPOINTS = ("tokens", "quote", "swap")


class OneInchClient:
    """Forwards requests to the 1inch swap API with bearer authorization."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        chain_id: Optional[int] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize 1inch client.

        Args:
            api_key: 1inch API key (defaults to ONEINCH_API_KEY)
            chain_id: Chain to use (defaults to Base, 8453)
            base_url: Swap API base URL
            timeout: Upstream request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.oneinch_api_key
        self.chain_id = chain_id or settings.chain_id
        self.base_url = f"{(base_url or settings.oneinch_api_url).rstrip('/')}/{self.chain_id}"
        self.timeout = timeout if timeout is not None else settings.upstream_timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return f"1inch (chain {self.chain_id})"

    def _get_headers(self) -> dict:
        """Get API headers with authorization."""
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def forward(
        self, endpoint: str, params: Optional[Any] = None
    ) -> tuple[int, Any]:
        """Forward a GET request upstream.

        Args:
            endpoint: One of ``ENDPOINTS``
            params: Query parameters (mapping or pairs), passed through unchanged

        Returns:
            (status_code, body). Failures always carry ``{"error": ...}``.
        """
        if endpoint not in ENDPOINTS:
            return 404, {"error": f"Unknown endpoint: {endpoint}"}

        if not self.api_key:
            logger.error("ONEINCH_API_KEY is not configured")
            return 500, {"error": "1inch API key is not configured on the server"}

        url = f"{self.base_url}/{endpoint}"
        logger.debug(f"Forwarding {endpoint} to {self.name}: {params or {}}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers=self._get_headers(), params=params)
        except httpx.HTTPError as e:
            logger.error(f"1inch {endpoint} request error: {type(e).__name__}: {e}")
            return 500, {"error": f"Internal server error while requesting {endpoint}"}

        logger.info(f"1inch {endpoint} responded {response.status_code}")

        if response.status_code != 200:
            logger.warning(f"1inch API error: {response.status_code} - {response.text}")
            if response.is_success:
                # A 2xx other than 200 carries no quote, and 204 cannot carry a body
                message = f"Unexpected status {response.status_code} from 1inch {endpoint}"
                return 502, {"error": message}
            return response.status_code, {"error": response.text}

        try:
            return response.status_code, response.json()
        except ValueError:
            logger.error(f"1inch {endpoint} returned a non-JSON body")
            return 502, {"error": f"Malformed response from 1inch {endpoint}"}


def create_oneinch_client(api_key: Optional[str] = None) -> OneInchClient:
    """Create a 1inch client from settings."""
    return OneInchClient(api_key=api_key)
