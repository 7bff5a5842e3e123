"""
Unit tests for the fee calculator and the Dutch price function.
"""

import pytest

from multiauction.core.errors import ErrorCode, MathError
from multiauction.core.fees import FeeSplit, calculate_fee, fee, net, split_payment
from multiauction.core.pricing import calculate_dutch_price, dutch_price, next_price_drop
from multiauction.core.state import DutchParams
from multiauction.utils.validation import U64_MAX


# =============================================================================
# Fee Tests
# =============================================================================


class TestFees:
    """Tests for the platform fee split."""

    def test_known_values(self):
        """Half a percent, rounded down."""
        assert calculate_fee(1000) == (5, 995)
        assert calculate_fee(10000) == (50, 9950)
        assert calculate_fee(200) == (1, 199)

    def test_small_amounts_pay_no_fee(self):
        """Amounts under 200 round down to a zero fee."""
        assert fee(0) == 0
        assert fee(160) == 0
        assert net(160) == 160
        assert fee(199) == 0

    def test_fee_plus_net_is_amount(self):
        """The split never creates or loses value."""
        for amount in (0, 1, 7, 199, 200, 12345, 10**12, 2**63, U64_MAX - 1, U64_MAX):
            f, n = calculate_fee(amount)
            assert f + n == amount
            assert f == amount * 50 // 10000
            assert 0 <= n <= amount

    def test_max_amount_is_exact(self):
        """u64 max does not wrap."""
        f, n = calculate_fee(U64_MAX)
        assert f == U64_MAX * 50 // 10000
        assert n == U64_MAX - f

    def test_custom_rate(self):
        """Rate is configurable in basis points."""
        assert calculate_fee(1000, rate_bps=100) == (10, 990)
        assert calculate_fee(1000, rate_bps=0) == (0, 1000)

    def test_out_of_range_amount(self):
        """Negative or oversized amounts are rejected."""
        with pytest.raises(MathError) as exc_info:
            calculate_fee(-1)
        assert exc_info.value.code == ErrorCode.MATH_OVERFLOW

        with pytest.raises(MathError):
            calculate_fee(U64_MAX + 1)

    def test_split_payment(self):
        """split_payment bundles the parts."""
        assert split_payment(950) == FeeSplit(amount=950, fee=4, net=946)


# =============================================================================
# Dutch Price Tests
# =============================================================================


@pytest.fixture
def params():
    """start 1000, -10 per minute, floor 100."""
    return DutchParams(
        start_price=1000,
        decrease_amount=10,
        interval=60,
        minimum_price=100,
        deadline=1_000_000,
        start_time=0,
    )


class TestDutchPrice:
    """Tests for the decaying price."""

    def test_known_points(self, params):
        """Reference points of the decay schedule."""
        assert calculate_dutch_price(params, 0) == 1000
        assert calculate_dutch_price(params, 59) == 1000
        assert calculate_dutch_price(params, 60) == 990
        assert calculate_dutch_price(params, 300) == 950
        assert calculate_dutch_price(params, 100000) == 100

    def test_before_start(self, params):
        """Price is start_price before start_time."""
        assert calculate_dutch_price(params, -500) == 1000

    def test_non_increasing_and_floored(self, params):
        """Price never rises and never drops below the floor."""
        previous = calculate_dutch_price(params, 0)
        for now in range(0, 10000, 7):
            price = calculate_dutch_price(params, now)
            assert price <= previous
            assert price >= params.minimum_price
            previous = price

    def test_huge_decrease_saturates(self):
        """A decrease larger than the price lands on the floor, not below zero."""
        assert dutch_price(1000, U64_MAX, 60, 100, 0, 60) == 100
        assert dutch_price(1000, U64_MAX, 60, 0, 0, 60) == 0

    def test_next_price_drop(self, params):
        """Next drop is the next interval boundary."""
        assert next_price_drop(params, 0) == 60
        assert next_price_drop(params, 300) == 360
        assert next_price_drop(params, -10) == 60

    def test_next_price_drop_at_floor(self, params):
        """No further drops once the floor is reached."""
        assert next_price_drop(params, 100000) == 0
