"""
Input Validation - Sanitization of values crossing the contract boundary.

Provides validation for all external inputs to prevent:
- Malformed or zero addresses
- Integer overflows of the 256-bit word
- Wrongly typed arguments (floats, bools posing as ints)
"""

from typing import Any, Optional, Tuple

from curveauction.crypto import ZERO_ADDRESS, is_valid_address

# =============================================================================
# Constants
# =============================================================================

# Field bounds
MIN_AMOUNT = 0
MAX_UINT256 = 2**256 - 1
MAX_TIMESTAMP = 2**64 - 1


# =============================================================================
# Validation Functions
# =============================================================================


def validate_address(address: Any, name: str = "address", allow_zero: bool = False) -> Tuple[bool, str]:
    """
    Validate a 0x-prefixed 20-byte address.

    Args:
        address: Value to validate
        name: Field name for error messages
        allow_zero: Whether the zero address is acceptable

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(address, str):
        return False, f"{name} must be str, got {type(address).__name__}"

    if not is_valid_address(address):
        return False, f"{name} is not a valid address: {address!r}"

    if not allow_zero and address.lower() == ZERO_ADDRESS:
        return False, f"{name} must not be the zero address"

    return True, ""


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_UINT256,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass but never a meaningful amount
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a token amount (uint256)."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_UINT256)


def validate_positive(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a strictly positive uint256."""
    return validate_integer(amount, name, 1, MAX_UINT256)


def validate_timestamp(timestamp: Any, name: str = "timestamp") -> Tuple[bool, str]:
    """Validate a unix timestamp in seconds."""
    return validate_integer(timestamp, name, 0, MAX_TIMESTAMP)


def validate_window(
    start: Any,
    end: Any,
    now: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate an auction window [start, end).

    Args:
        start: Window start timestamp
        end: Window end timestamp (exclusive)
        now: Current time; start may not lie before it

    Returns:
        (is_valid, error_message)
    """
    valid, err = validate_timestamp(start, "auction_start_time")
    if not valid:
        return False, err

    valid, err = validate_timestamp(end, "auction_end_time")
    if not valid:
        return False, err

    if start >= end:
        return False, f"auction_start_time {start} must be before auction_end_time {end}"

    if now is not None and start < now:
        return False, f"auction_start_time {start} is in the past (now={now})"

    return True, ""


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_address",
    "validate_integer",
    "validate_amount",
    "validate_positive",
    "validate_timestamp",
    "validate_window",
    "MAX_UINT256",
    "MAX_TIMESTAMP",
]
