"""
Dutch auction price function.

The price starts at start_price and drops by decrease_amount once per
full interval elapsed since start_time, never going below minimum_price:

    intervals = (now - start_time) // interval
    price     = max(start_price - intervals * decrease_amount, minimum_price)

The subtraction saturates at zero. The price is non-increasing in `now`
and stays at minimum_price once it gets there.
"""

from multiauction.core.state.auction import DutchParams


def dutch_price(
    start_price: int,
    decrease_amount: int,
    interval: int,
    minimum_price: int,
    start_time: int,
    now: int,
) -> int:
    """
    Current Dutch price.

    Args:
        start_price: Price at start_time
        decrease_amount: Drop per interval
        interval: Seconds per drop (> 0)
        minimum_price: Floor price
        start_time: When the price starts decaying
        now: Current timestamp

    Returns:
        Current price
    """
    if now <= start_time:
        return start_price

    intervals = (now - start_time) // interval
    price = max(start_price - intervals * decrease_amount, 0)
    return max(price, minimum_price)


def calculate_dutch_price(params: DutchParams, now: int) -> int:
    """Current price for a Dutch auction's parameters."""
    return dutch_price(
        start_price=params.start_price,
        decrease_amount=params.decrease_amount,
        interval=params.interval,
        minimum_price=params.minimum_price,
        start_time=params.start_time,
        now=now,
    )


def next_price_drop(params: DutchParams, now: int) -> int:
    """
    Timestamp of the next price decrease after `now`.

    Returns 0 once the price has reached its floor.
    """
    if calculate_dutch_price(params, now) <= params.minimum_price:
        return 0
    if now < params.start_time:
        return params.start_time + params.interval
    intervals = (now - params.start_time) // params.interval
    return params.start_time + (intervals + 1) * params.interval
