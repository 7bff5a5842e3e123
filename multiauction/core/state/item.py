"""
Item ledger - assets deposited into an auction.

Each deposit creates one AuctionItem record at the next sequential index
(0-254). The deposited balance itself sits in the auction's item vault
for that asset class; several deposits of the same asset class share
one vault. Item records are immutable until the auction is terminal,
when close_item_vault removes them.
"""

from dataclasses import dataclass
from typing import Optional

from multiauction.core.codec import BorshReader, BorshWriter
from multiauction.core.config import MAX_ITEMS, SCHEMA_VERSION
from multiauction.core.errors import ErrorCode, error
from multiauction.core.state.auction import Auction
from multiauction.utils.logger import get_logger

logger = get_logger("items")


@dataclass
class AuctionItem:
    """
    One deposit.

    Attributes:
        auction_id: Owning auction
        asset_class: Deposited asset (token mint / NFT mint)
        amount: Units deposited (1 for non-fungible)
        is_nonfungible: Whether the asset is a non-fungible item
        index: Position within the auction (0-254)
    """
    auction_id: bytes
    asset_class: bytes
    amount: int
    is_nonfungible: bool
    index: int
    vault_bump: int = 0

    SPACE = 8 + 76

    def to_bytes(self) -> bytes:
        writer = BorshWriter()
        writer.u8(SCHEMA_VERSION)
        writer.fixed(self.auction_id, 32)
        writer.fixed(self.asset_class, 32)
        writer.u64(self.amount)
        writer.boolean(self.is_nonfungible)
        writer.u8(self.vault_bump).u8(self.index)
        writer.boolean(True)  # is_initialized
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> Optional["AuctionItem"]:
        """Decode an item; returns None for an uninitialized record."""
        reader = BorshReader(data)
        schema = reader.u8()
        if schema != SCHEMA_VERSION:
            reader.fail(f"unsupported item schema version {schema}")
        auction_id = reader.fixed(32)
        asset_class = reader.fixed(32)
        amount = reader.u64()
        is_nonfungible = reader.boolean()
        vault_bump, index = reader.u8(), reader.u8()
        initialized = reader.boolean()
        reader.finish(allow_padding=True)
        if not initialized:
            return None
        return cls(
            auction_id=auction_id,
            asset_class=asset_class,
            amount=amount,
            is_nonfungible=is_nonfungible,
            index=index,
            vault_bump=vault_bump,
        )


class ItemLedger:
    """
    Items of a single auction.

    Reads and writes go through the account store; the auction's
    item_count is the next free index.
    """

    def __init__(self, store, auction: Auction, max_items: int = MAX_ITEMS):
        self.store = store
        self.auction = auction
        self.max_items = max_items

    def append(self, asset_class: bytes, amount: int, is_nonfungible: bool) -> AuctionItem:
        """
        Record a new deposit at the next index.

        Raises:
            LifecycleError(MAX_ITEMS_EXCEEDED) when the auction is full
        """
        if self.auction.item_count >= self.max_items:
            raise error(ErrorCode.MAX_ITEMS_EXCEEDED, f"limit is {self.max_items}")

        item = AuctionItem(
            auction_id=self.auction.auction_id,
            asset_class=asset_class,
            amount=amount,
            is_nonfungible=is_nonfungible,
            index=self.auction.item_count,
        )
        self.store.create_item(item)
        self.auction.item_count += 1

        logger.debug(f"Item {item.index} recorded: amount={amount}, nonfungible={is_nonfungible}")
        return item

    def get(self, index: int) -> AuctionItem:
        """
        Load the item at an index.

        Raises:
            LifecycleError(NO_ITEMS) if absent or stored under another index
        """
        item = self.store.load_item(self.auction.auction_id, index)
        if item is None or item.index != index:
            raise error(ErrorCode.NO_ITEMS, f"no item at index {index}")
        return item

    def remove(self, index: int) -> None:
        self.store.remove_item(self.auction.auction_id, index)
