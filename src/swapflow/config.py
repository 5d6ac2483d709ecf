"""Application configuration using pydantic-settings.

The 1inch API key is only read by the proxy process; the swap engine talks
to the proxy and never sees the credential.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API (proxy)
    # ======================
    api_host: str = Field(default="0.0.0.0", description="Proxy server host")
    api_port: int = Field(default=8000, description="Proxy server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # 1inch Aggregator
    # ======================
    oneinch_api_key: str = Field(default="", description="1inch API key (server-side only)")
    oneinch_api_url: str = Field(
        default="https://api.1inch.dev/swap/v6.0", description="1inch swap API base URL"
    )
    chain_id: int = Field(default=8453, description="EVM chain ID (Base)")
    upstream_timeout: float = Field(
        default=30.0, description="Timeout for proxy -> 1inch requests in seconds"
    )

    # ======================
    # Swap Engine
    # ======================
    gateway_url: str = Field(
        default="http://127.0.0.1:8000/api/1inch",
        description="Base URL of the aggregator proxy used by the engine",
    )
    quote_debounce_ms: int = Field(default=500, description="Quiet period before quoting")
    quote_timeout: float = Field(default=10.0, description="Quote call timeout in seconds")
    build_timeout: float = Field(default=10.0, description="Swap build timeout in seconds")
    confirmation_timeout: float = Field(
        default=120.0, description="Maximum seconds to wait for a receipt"
    )
    confirmation_poll_interval: float = Field(
        default=2.0, description="Seconds between receipt polls"
    )
    default_slippage: float = Field(default=1.0, description="Slippage tolerance in percent")
    display_precision: int = Field(default=5, description="Fractional digits shown for quotes")

    # ======================
    # Wallet
    # ======================
    rpc_url: str = Field(default="https://mainnet.base.org", description="Base RPC URL")
    wallet_private_key: Optional[str] = Field(
        default=None, description="Private key for the local web3 signer"
    )
    explorer_url: str = Field(
        default="https://base.blockscout.com", description="Block explorer base URL"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_api_key(self) -> bool:
        return bool(self.oneinch_api_key)

    @property
    def has_wallet(self) -> bool:
        """Check if a signing key is configured."""
        return bool(self.wallet_private_key)

    @property
    def quote_debounce_seconds(self) -> float:
        return self.quote_debounce_ms / 1000

    def upstream_url(self, endpoint: str) -> str:
        """Build the 1inch URL for an endpoint on the configured chain."""
        return f"{self.oneinch_api_url.rstrip('/')}/{self.chain_id}/{endpoint}"

    def explorer_tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "chain_id": self.chain_id,
            "oneinch": {
                "api_url": self.oneinch_api_url,
                "api_key": "***" if self.oneinch_api_key else "(not set)",
            },
            "engine": {
                "gateway_url": self.gateway_url,
                "quote_debounce_ms": self.quote_debounce_ms,
                "quote_timeout": self.quote_timeout,
                "build_timeout": self.build_timeout,
                "slippage": self.default_slippage,
            },
            "wallet": {
                "rpc": self.rpc_url,
                "private_key": "***" if self.wallet_private_key else "(not set)",
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
