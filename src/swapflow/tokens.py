"""Token records for the configured chain.

Tokens are loaded once per session from the aggregator's token list and
never mutated afterwards.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

# Placeholder address the aggregator uses for the chain's native asset
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

DEFAULT_SOURCE_SYMBOL = "ETH"
DEFAULT_DEST_SYMBOL = "USDC"


@dataclass(frozen=True)
class Token:
    """An ERC-20 (or native) token on the configured chain."""

    address: str
    symbol: str
    name: str
    decimals: int
    logo_uri: str = ""

    def __post_init__(self):
        if self.decimals < 0:
            raise ValueError(f"Token {self.symbol} has negative decimals: {self.decimals}")

    @property
    def key(self) -> str:
        """Case-insensitive identity used for comparisons."""
        return self.address.lower()

    @property
    def is_native(self) -> bool:
        return self.key == NATIVE_TOKEN.lower()

    def same_asset(self, other: Optional["Token"]) -> bool:
        return other is not None and other.key == self.key

    @classmethod
    def from_dict(cls, data: dict) -> "Token":
        """Build a token from an aggregator token-list record."""
        return cls(
            address=data["address"],
            symbol=data.get("symbol", ""),
            name=data.get("name", ""),
            decimals=int(data["decimals"]),
            logo_uri=data.get("logoURI") or "",
        )

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "logoURI": self.logo_uri,
        }

    def __str__(self) -> str:
        return self.symbol or self.address


class TokenList:
    """Immutable set of tokens available for the session."""

    def __init__(self, tokens: Optional[dict[str, Token]] = None):
        self._by_address: dict[str, Token] = {}
        for token in (tokens or {}).values():
            self._by_address[token.key] = token

    @classmethod
    def from_response(cls, data: dict) -> "TokenList":
        """Parse a ``{"tokens": {address: record}}`` token-list body.

        Malformed records are skipped.

        Raises:
            ValueError: If the body or its ``tokens`` field is not a mapping
        """
        records = data.get("tokens", data) if isinstance(data, dict) else None
        if not isinstance(records, dict):
            raise ValueError(f"Token list must be a mapping, got {type(records).__name__}")
        tokens: dict[str, Token] = {}
        for address, record in records.items():
            if not isinstance(record, dict):
                logger.warning(f"Skipping malformed token record {address}")
                continue
            try:
                token = Token.from_dict({"address": address, **record})
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed token record {address}: {e}")
                continue
            tokens[token.key] = token
        return cls(tokens)

    def __len__(self) -> int:
        return len(self._by_address)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._by_address.values())

    def __contains__(self, address: str) -> bool:
        return address.lower() in self._by_address

    def get(self, address: str) -> Optional[Token]:
        """Get a token by contract address (case-insensitive)."""
        return self._by_address.get(address.lower())

    def find_symbol(self, symbol: str) -> Optional[Token]:
        """Get the first token with the given symbol (case-insensitive)."""
        wanted = symbol.upper()
        for token in self._by_address.values():
            if token.symbol.upper() == wanted:
                return token
        return None

    def resolve(self, ref: str) -> Optional[Token]:
        """Look a token up by address, falling back to symbol."""
        return self.get(ref) or self.find_symbol(ref)

    def default_pair(self) -> tuple[Optional[Token], Optional[Token]]:
        """Initial (source, dest) selection for a new session."""
        return self.find_symbol(DEFAULT_SOURCE_SYMBOL), self.find_symbol(DEFAULT_DEST_SYMBOL)
