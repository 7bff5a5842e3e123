"""
Close-vault authorization policies.

A policy decides whether `caller` may release an item vault of a
terminal auction to `recipient`. It is injected into the controller so
embedders can tighten or relax the rule without touching settlement.
"""

from typing import Callable

from multiauction.core.state import Auction, AuctionStatus

ClosePolicy = Callable[[Auction, bytes, bytes], bool]


def dealer_or_winner_policy(auction: Auction, caller: bytes, recipient: bytes) -> bool:
    """Dealer or current bidder may close, to any recipient."""
    if caller == auction.dealer:
        return True
    return auction.has_bidder and caller == auction.current_bidder


def entitlement_policy(auction: Auction, caller: bytes, recipient: bytes) -> bool:
    """
    Items go to whoever is entitled to them.

    Finalized: the winner receives the items.
    Refunded: the dealer gets them back.

    Either the dealer or the winner may sign the close.
    """
    if not dealer_or_winner_policy(auction, caller, recipient):
        return False

    if auction.status == AuctionStatus.FINALIZED:
        return recipient == auction.current_bidder
    if auction.status == AuctionStatus.REFUNDED:
        return recipient == auction.dealer
    return False
