"""Conversion between human decimal amounts and integer token base units.

On-chain amounts routinely exceed the float safe-integer range (2**53), so
everything here goes through ``Decimal`` with a context wide enough for the
operands. Floats are never involved.
"""

import re
from decimal import MAX_EMAX, MIN_EMIN, ROUND_DOWN, ROUND_HALF_UP, Decimal, localcontext

from swapflow.errors import InvalidAmount

DEFAULT_DISPLAY_PRECISION = 5

# Plain non-negative decimal literal: "1", "1.", "1.5", ".5"
_DECIMAL_RE = re.compile(r"^(?:[0-9]+\.?[0-9]*|\.[0-9]+)$")
_INTEGER_RE = re.compile(r"^[0-9]+$")


def _widen(ctx, precision: int) -> None:
    # Exact arithmetic for any literal length; exponents never overflow
    ctx.prec = precision
    ctx.Emax = MAX_EMAX
    ctx.Emin = MIN_EMIN


def _check_decimals(decimals: int, name: str = "decimals") -> None:
    if not isinstance(decimals, int) or isinstance(decimals, bool) or decimals < 0:
        raise InvalidAmount(decimals, f"{name} must be a non-negative integer")


def to_base_units(decimal_amount: str, decimals: int) -> str:
    """Scale a decimal amount to integer base units.

    Digits beyond ``decimals`` fractional places are truncated.

    Args:
        decimal_amount: Amount as typed, e.g. "1.5"
        decimals: Token decimal precision

    Returns:
        Integer amount as a string without leading zeros, e.g.
        "1500000000000000000"

    Raises:
        InvalidAmount: If the text is not a non-negative decimal number
    """
    _check_decimals(decimals)
    text = decimal_amount.strip() if isinstance(decimal_amount, str) else ""
    if not _DECIMAL_RE.match(text):
        raise InvalidAmount(decimal_amount)

    with localcontext() as ctx:
        _widen(ctx, len(text) + decimals + 2)
        try:
            scaled = Decimal(text).scaleb(decimals).quantize(Decimal(1), rounding=ROUND_DOWN)
            return f"{scaled:f}"
        except ArithmeticError as e:
            raise InvalidAmount(decimal_amount, f"out of range ({type(e).__name__})")


def from_base_units(
    integer_amount: str,
    decimals: int,
    display_precision: int = DEFAULT_DISPLAY_PRECISION,
) -> str:
    """Render integer base units as a decimal string for display.

    The result always carries exactly ``display_precision`` fractional
    digits, rounded half-up.

    Raises:
        InvalidAmount: If the amount is not a non-negative integer string
    """
    _check_decimals(decimals)
    _check_decimals(display_precision, "display_precision")
    text = str(integer_amount).strip()
    if not _INTEGER_RE.match(text):
        raise InvalidAmount(integer_amount, "base-unit amount must be a non-negative integer")

    with localcontext() as ctx:
        _widen(ctx, len(text) + decimals + display_precision + 2)
        try:
            value = Decimal(text).scaleb(-decimals)
            quantized = value.quantize(
                Decimal(1).scaleb(-display_precision), rounding=ROUND_HALF_UP
            )
        except ArithmeticError as e:
            raise InvalidAmount(integer_amount, f"out of range ({type(e).__name__})")
        return f"{quantized:f}"
