"""
Fees - Platform fee calculation.

Every payment that reaches a dealer is split in two:
- fee: floor(amount * rate_bps / 10000), kept in the per-denomination fee vault
- net: amount - fee, paid to the dealer

The split is exact integer arithmetic. Since fee <= amount, neither part
can leave the unsigned 64-bit range for a valid amount.
"""

from dataclasses import dataclass
from typing import Tuple

from multiauction.core.config import FEE_DENOMINATOR, FEE_RATE_BPS
from multiauction.core.errors import ErrorCode, error
from multiauction.utils.validation import validate_amount


@dataclass(frozen=True)
class FeeSplit:
    """Result of splitting a payment."""
    amount: int
    fee: int
    net: int


def calculate_fee(amount: int, rate_bps: int = FEE_RATE_BPS) -> Tuple[int, int]:
    """
    Split an amount into (fee, net).

    Args:
        amount: Gross payment (u64)
        rate_bps: Fee rate in basis points

    Returns:
        (fee, net) with fee + net == amount
    """
    valid, err = validate_amount(amount)
    if not valid:
        raise error(ErrorCode.MATH_OVERFLOW, err)

    fee = amount * rate_bps // FEE_DENOMINATOR
    return fee, amount - fee


def fee(amount: int, rate_bps: int = FEE_RATE_BPS) -> int:
    """Fee portion of an amount."""
    return calculate_fee(amount, rate_bps)[0]


def net(amount: int, rate_bps: int = FEE_RATE_BPS) -> int:
    """Dealer portion of an amount."""
    return calculate_fee(amount, rate_bps)[1]


def split_payment(amount: int, rate_bps: int = FEE_RATE_BPS) -> FeeSplit:
    """Split an amount into a FeeSplit."""
    fee_part, net_part = calculate_fee(amount, rate_bps)
    return FeeSplit(amount=amount, fee=fee_part, net=net_part)
