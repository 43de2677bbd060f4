"""
Fixed-point unit conversion.

Token amounts are integers in base units at an 18-decimal scale,
so 1 token == 10**18 base units (the "wad").
"""

from decimal import Decimal, InvalidOperation
from typing import Union

DEFAULT_DECIMALS = 18

WAD = 10**DEFAULT_DECIMALS


def parse_units(value: Union[str, int, Decimal], decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a human-readable amount into base units.

    parse_units("0.25") == 250000000000000000

    Raises:
        ValueError: value is malformed, negative, or finer than the scale allows
    """
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc

    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Amount must be a finite non-negative number, got {value!r}")

    scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value!r} has more than {decimals} decimal places")
    return int(scaled)


def parse_ether(value: Union[str, int, Decimal]) -> int:
    """parse_units at 18 decimals."""
    return parse_units(value, DEFAULT_DECIMALS)


def format_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Convert base units back to a human-readable decimal string.

    format_units(47500000000000000000) == "47.5"
    """
    text = format(Decimal(amount).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def to_base_units(units: int, decimals: int = DEFAULT_DECIMALS) -> int:
    """Whole token count to base units."""
    return units * 10**decimals

