"""Persisted records: program state, auctions, items, fee vaults"""
from multiauction.core.state.auction import (
    Auction,
    AuctionParams,
    AuctionStatus,
    AuctionTypeTag,
    DutchParams,
    PennyParams,
    TraditionalParams,
    NO_BIDDER,
)
from multiauction.core.state.item import AuctionItem, ItemLedger
from multiauction.core.state.fee_vault import FeeVault
from multiauction.core.state.program_state import ProgramState

__all__ = [
    "Auction",
    "AuctionParams",
    "AuctionStatus",
    "AuctionTypeTag",
    "DutchParams",
    "PennyParams",
    "TraditionalParams",
    "NO_BIDDER",
    "AuctionItem",
    "ItemLedger",
    "FeeVault",
    "ProgramState",
]
