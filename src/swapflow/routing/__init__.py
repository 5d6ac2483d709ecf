"""Upstream aggregator clients."""

from swapflow.routing.oneinch import ENDPOINTS, OneInchClient, create_oneinch_client

__all__ = [
    "ENDPOINTS",
    "OneInchClient",
    "create_oneinch_client",
]
