"""
Input Validation - Boundary checks for operation inputs.

Every value that reaches the lifecycle controller passes through one of
these helpers first, so the controller can assume:
- identities and asset classes are exactly 32 bytes
- amounts fit an unsigned 64-bit integer
- timestamps and durations fit a signed 64-bit integer
"""

from typing import Any, Optional, Tuple

# =============================================================================
# Constants
# =============================================================================

IDENTITY_SIZE = 32
AUCTION_ID_SIZE = 32

U8_MAX = 2**8 - 1
U64_MAX = 2**64 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    return True, ""


def validate_identity(identity: Any, name: str = "identity") -> Tuple[bool, str]:
    """Validate a 32-byte identity key (dealer, bidder, owner, asset class)."""
    return validate_bytes(identity, name, expected_length=IDENTITY_SIZE)


def validate_auction_id(auction_id: Any) -> Tuple[bool, str]:
    """Validate a caller-chosen auction identifier."""
    return validate_bytes(auction_id, "auction_id", expected_length=AUCTION_ID_SIZE)


def validate_integer(
    value: Any,
    name: str,
    min_val: int,
    max_val: int,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Booleans are rejected even though they subclass int.

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate an unsigned 64-bit token amount."""
    return validate_integer(amount, name, 0, U64_MAX)


def validate_timestamp(value: Any, name: str = "timestamp") -> Tuple[bool, str]:
    """Validate a signed 64-bit unix timestamp."""
    return validate_integer(value, name, I64_MIN, I64_MAX)


def validate_duration(value: Any, name: str = "duration") -> Tuple[bool, str]:
    """Validate a positive duration in seconds."""
    return validate_integer(value, name, 1, I64_MAX)


def validate_item_index(value: Any) -> Tuple[bool, str]:
    """Validate an item index (0-255)."""
    return validate_integer(value, "item_index", 0, U8_MAX)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_bytes",
    "validate_identity",
    "validate_auction_id",
    "validate_integer",
    "validate_amount",
    "validate_timestamp",
    "validate_duration",
    "validate_item_index",
    "IDENTITY_SIZE",
    "AUCTION_ID_SIZE",
    "U8_MAX",
    "U64_MAX",
    "I64_MIN",
    "I64_MAX",
]
