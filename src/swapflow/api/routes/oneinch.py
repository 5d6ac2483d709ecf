"""Aggregator proxy endpoints.

Browsers and the swap engine call these instead of 1inch directly, so the
API key never leaves the server. Query strings are forwarded unchanged;
failures always come back as ``{"error": ...}`` with the upstream status.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from swapflow.routing.oneinch import OneInchClient, create_oneinch_client

router = APIRouter(prefix="/api/1inch", tags=["1inch"])


def get_oneinch_client() -> OneInchClient:
    """Dependency returning the upstream client (overridden in tests)."""
    return create_oneinch_client()


async def _forward(endpoint: str, request: Request, client: OneInchClient) -> JSONResponse:
    status_code, body = await client.forward(endpoint, list(request.query_params.multi_items()))
    return JSONResponse(content=body, status_code=status_code)


@router.get("/tokens")
async def get_tokens(request: Request, client: OneInchClient = Depends(get_oneinch_client)):
    """Token list for the configured chain: ``{"tokens": {address: token}}``."""
    return await _forward("tokens", request, client)


@router.get("/quote")
async def get_quote(request: Request, client: OneInchClient = Depends(get_oneinch_client)):
    """Quote for ``src``/``dst``/``amount`` (base units): ``{"toAmount": ...}``."""
    return await _forward("quote", request, client)


@router.get("/swap")
async def get_swap(request: Request, client: OneInchClient = Depends(get_oneinch_client)):
    """Signable swap transaction: ``{"tx": {"to", "data", "value"}}``."""
    return await _forward("swap", request, client)
