"""
Auction - the aggregate record of one auction.

Conceptual Background:
---------------------
An auction holds the fields every format shares (dealer, payment
denomination, current bid and bidder, timestamps, item count) plus
exactly one type-specific parameter record:

- TraditionalParams: ascending bids with a reserve price and a dealer
  acceptance window when the reserve is missed
- DutchParams: a decaying price; the first buyer wins
- PennyParams: every bid pays a fixed increment and resets a timer

The type tag and the parameter record always agree. Reading the record
under the wrong type raises InvalidAuctionType instead of coercing.

Lifecycle:
---------
    ACTIVE -> EXPIRED -> FINALIZED | REFUNDED
    ACTIVE -> FINALIZED | REFUNDED

FINALIZED and REFUNDED are terminal. Dutch auctions never enter EXPIRED.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from multiauction.core.codec import BorshReader, BorshWriter
from multiauction.core.config import KEY_VERSION, SCHEMA_VERSION
from multiauction.core.errors import ErrorCode, error
from multiauction.crypto import short_hex

# "No bidder" sentinel (all-zero identity)
NO_BIDDER = bytes(32)


# =============================================================================
# Enums
# =============================================================================


class AuctionStatus(IntEnum):
    """Lifecycle status of an auction."""
    ACTIVE = 0      # Accepting bids
    EXPIRED = 1     # Deadline passed, dealer may still accept
    FINALIZED = 2   # Sale completed
    REFUNDED = 3    # No sale; bidder refunded, items back to dealer

    @property
    def is_terminal(self) -> bool:
        return self in (AuctionStatus.FINALIZED, AuctionStatus.REFUNDED)


class AuctionTypeTag(IntEnum):
    """Auction format."""
    TRADITIONAL = 0
    DUTCH = 1
    PENNY = 2


# =============================================================================
# Type Parameters
# =============================================================================


@dataclass
class TraditionalParams:
    """
    Ascending auction parameters.

    Attributes:
        start_amount: Minimum first bid
        increment: Minimum raise over the current bid
        reserve_price: Minimum bid for immediate settlement
        deadline: Last second bids are accepted
        acceptance_deadline: End of the dealer acceptance window (0 until set)
        reserve_met: Whether the current bid reaches the reserve
    """
    start_amount: int
    increment: int
    reserve_price: int
    deadline: int
    acceptance_deadline: int = 0
    reserve_met: bool = False

    TAG = AuctionTypeTag.TRADITIONAL

    def encode(self, writer: BorshWriter) -> None:
        (writer.u64(self.start_amount)
               .u64(self.increment)
               .u64(self.reserve_price)
               .i64(self.deadline)
               .i64(self.acceptance_deadline)
               .boolean(self.reserve_met))

    @classmethod
    def decode(cls, reader: BorshReader) -> "TraditionalParams":
        return cls(
            start_amount=reader.u64(),
            increment=reader.u64(),
            reserve_price=reader.u64(),
            deadline=reader.i64(),
            acceptance_deadline=reader.i64(),
            reserve_met=reader.boolean(),
        )


@dataclass
class DutchParams:
    """
    Descending auction parameters.

    Attributes:
        start_price: Price at start_time
        decrease_amount: Price drop per interval
        interval: Seconds between drops
        minimum_price: Floor price
        deadline: Last second a purchase is accepted
        start_time: When the price starts decaying
    """
    start_price: int
    decrease_amount: int
    interval: int
    minimum_price: int
    deadline: int
    start_time: int

    TAG = AuctionTypeTag.DUTCH

    def encode(self, writer: BorshWriter) -> None:
        (writer.u64(self.start_price)
               .u64(self.decrease_amount)
               .i64(self.interval)
               .u64(self.minimum_price)
               .i64(self.deadline)
               .i64(self.start_time))

    @classmethod
    def decode(cls, reader: BorshReader) -> "DutchParams":
        return cls(
            start_price=reader.u64(),
            decrease_amount=reader.u64(),
            interval=reader.i64(),
            minimum_price=reader.u64(),
            deadline=reader.i64(),
            start_time=reader.i64(),
        )


@dataclass
class PennyParams:
    """
    Escalating-timer auction parameters.

    Attributes:
        increment: Fixed payment per bid (goes to the dealer)
        timer_duration: Seconds added from each bid
        current_deadline: Timer expiry (0 until the first bid)
        total_paid: Sum of all increments paid
        last_bid_time: Timestamp of the last bid
    """
    increment: int
    timer_duration: int
    current_deadline: int = 0
    total_paid: int = 0
    last_bid_time: int = 0

    TAG = AuctionTypeTag.PENNY

    def encode(self, writer: BorshWriter) -> None:
        (writer.u64(self.increment)
               .i64(self.timer_duration)
               .i64(self.current_deadline)
               .u64(self.total_paid)
               .i64(self.last_bid_time))

    @classmethod
    def decode(cls, reader: BorshReader) -> "PennyParams":
        return cls(
            increment=reader.u64(),
            timer_duration=reader.i64(),
            current_deadline=reader.i64(),
            total_paid=reader.u64(),
            last_bid_time=reader.i64(),
        )


AuctionParams = Union[TraditionalParams, DutchParams, PennyParams]

_PARAMS_BY_TAG = {
    AuctionTypeTag.TRADITIONAL: TraditionalParams,
    AuctionTypeTag.DUTCH: DutchParams,
    AuctionTypeTag.PENNY: PennyParams,
}


# =============================================================================
# Auction Record
# =============================================================================


@dataclass
class Auction:
    """
    One auction.

    Attributes:
        auction_id: Caller-chosen 32-byte identifier
        type_tag: Auction format; always matches params
        dealer: Creator identity
        payment_denomination: Asset class bids are paid in
        params: Type-specific parameter record
        status: Lifecycle status
        current_bidder: Highest bidder / buyer / last Penny bidder, or NO_BIDDER
        current_bid: Current bid (Penny: total paid)
        item_count: Items deposited (0-255)
        created_at: Creation timestamp
        finalized_at: Terminal transition timestamp (0 before)
    """
    auction_id: bytes
    type_tag: AuctionTypeTag
    dealer: bytes
    payment_denomination: bytes
    params: AuctionParams
    status: AuctionStatus = AuctionStatus.ACTIVE
    current_bidder: bytes = NO_BIDDER
    current_bid: int = 0
    item_count: int = 0
    created_at: int = 0
    finalized_at: int = 0
    version: int = KEY_VERSION
    bump: int = 0
    escrow_bump: int = 0

    # Conservative account size, matches the deployed program's allocation
    SPACE = 8 + 259 + 50

    def __post_init__(self):
        """Reject records whose tag and parameter variant disagree."""
        self.type_tag = AuctionTypeTag(self.type_tag)
        self.status = AuctionStatus(self.status)
        if not isinstance(self.params, _PARAMS_BY_TAG[self.type_tag]):
            raise error(
                ErrorCode.INVALID_AUCTION_TYPE,
                f"tag {self.type_tag.name} with {type(self.params).__name__}",
            )
        if len(self.auction_id) != 32:
            raise error(ErrorCode.INVALID_ACCOUNT_DATA, "auction_id must be 32 bytes")

    # =========================================================================
    # Typed Access
    # =========================================================================

    def _expect(self, tag: AuctionTypeTag):
        if self.type_tag != tag or not isinstance(self.params, _PARAMS_BY_TAG[tag]):
            raise error(
                ErrorCode.INVALID_AUCTION_TYPE,
                f"expected {tag.name}, auction is {self.type_tag.name}",
            )
        return self.params

    def traditional(self) -> TraditionalParams:
        return self._expect(AuctionTypeTag.TRADITIONAL)

    def dutch(self) -> DutchParams:
        return self._expect(AuctionTypeTag.DUTCH)

    def penny(self) -> PennyParams:
        return self._expect(AuctionTypeTag.PENNY)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def has_bidder(self) -> bool:
        return self.current_bidder != NO_BIDDER

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def winner(self) -> bytes:
        """Winning identity of a finalized auction, NO_BIDDER otherwise."""
        if self.status == AuctionStatus.FINALIZED:
            return self.current_bidder
        return NO_BIDDER

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_bytes(self) -> bytes:
        writer = BorshWriter()
        writer.u8(SCHEMA_VERSION)
        writer.fixed(self.auction_id, 32)
        writer.u8(self.version).u8(self.bump).u8(self.escrow_bump)
        writer.u8(self.status).u8(self.type_tag)
        writer.fixed(self.dealer, 32)
        writer.fixed(self.current_bidder, 32)
        writer.fixed(self.payment_denomination, 32)
        writer.u64(self.current_bid)
        writer.u8(self.params.TAG)
        self.params.encode(writer)
        writer.u8(self.item_count)
        writer.i64(self.created_at).i64(self.finalized_at)
        writer.boolean(True)  # is_initialized
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Auction":
        reader = BorshReader(data)
        schema = reader.u8()
        if schema != SCHEMA_VERSION:
            reader.fail(f"unsupported auction schema version {schema}")

        auction_id = reader.fixed(32)
        version, bump, escrow_bump = reader.u8(), reader.u8(), reader.u8()
        status_raw, tag_raw = reader.u8(), reader.u8()
        dealer = reader.fixed(32)
        current_bidder = reader.fixed(32)
        payment_denomination = reader.fixed(32)
        current_bid = reader.u64()

        variant = reader.u8()
        if variant not in _PARAMS_BY_TAG.keys():
            reader.fail(f"unknown auction type variant {variant}")
        params = _PARAMS_BY_TAG[AuctionTypeTag(variant)].decode(reader)

        item_count = reader.u8()
        created_at, finalized_at = reader.i64(), reader.i64()
        initialized = reader.boolean()
        reader.finish(allow_padding=True)

        if not initialized:
            raise error(ErrorCode.AUCTION_NOT_FOUND)
        if status_raw not in AuctionStatus._value2member_map_:
            reader.fail(f"unknown status {status_raw}")
        if tag_raw not in AuctionTypeTag._value2member_map_:
            reader.fail(f"unknown type tag {tag_raw}")

        return cls(
            auction_id=auction_id,
            type_tag=AuctionTypeTag(tag_raw),
            dealer=dealer,
            payment_denomination=payment_denomination,
            params=params,
            status=AuctionStatus(status_raw),
            current_bidder=current_bidder,
            current_bid=current_bid,
            item_count=item_count,
            created_at=created_at,
            finalized_at=finalized_at,
            version=version,
            bump=bump,
            escrow_bump=escrow_bump,
        )

    def __repr__(self) -> str:
        return (
            f"Auction(id={short_hex(self.auction_id)}, type={self.type_tag.name}, "
            f"status={self.status.name}, bid={self.current_bid}, items={self.item_count})"
        )
