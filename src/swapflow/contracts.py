"""Wire contracts shared by the gateway client and the proxy.

All amounts are integer base-unit strings, never floats.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def _normalize_integer(v) -> str:
    """Accept ints, decimal strings and 0x-prefixed hex; return a decimal string."""
    if isinstance(v, bool):
        raise ValueError("Amount must be an integer")
    if isinstance(v, int):
        value = v
    else:
        text = str(v).strip()
        try:
            value = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            raise ValueError(f"Invalid integer amount: {v}")
    if value < 0:
        raise ValueError("Amount must not be negative")
    return str(value)


class QuoteResult(BaseModel):
    """Successful quote body: ``{"toAmount": "..."}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    to_amount: str = Field(..., alias="toAmount", description="Output amount in base units")

    @field_validator("to_amount", mode="before")
    @classmethod
    def validate_to_amount(cls, v) -> str:
        return _normalize_integer(v)


class TransactionDescriptor(BaseModel):
    """Signable transaction returned by the swap-build endpoint."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    to: str = Field(..., description="Router contract address")
    data: str = Field(..., description="Calldata (hex)")
    value: str = Field(default="0", description="Native value in wei (decimal string)")
    gas: Optional[int] = Field(None, description="Gas limit if the aggregator returned one")

    @field_validator("to")
    @classmethod
    def validate_to(cls, v: str) -> str:
        """Validate Ethereum address format."""
        if not _ADDRESS_RE.match(v):
            raise ValueError("Invalid Ethereum address format")
        return v

    @field_validator("data")
    @classmethod
    def validate_data(cls, v: str) -> str:
        if not re.match(r"^0x[a-fA-F0-9]*$", v):
            raise ValueError("Calldata must be 0x-prefixed hex")
        return v

    @field_validator("value", mode="before")
    @classmethod
    def validate_value(cls, v) -> str:
        return _normalize_integer(v if v is not None else 0)

    @property
    def value_wei(self) -> int:
        return int(self.value)


class SwapBuildResult(BaseModel):
    """Successful swap-build body: ``{"tx": {...}}``."""

    model_config = ConfigDict(extra="ignore")

    tx: TransactionDescriptor


class ErrorBody(BaseModel):
    """Error body returned by the proxy on any failure."""

    error: str
