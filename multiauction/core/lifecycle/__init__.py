"""Auction lifecycle: controller, per-operation context, close policies"""
from multiauction.core.lifecycle.context import OperationContext
from multiauction.core.lifecycle.controller import AuctionController
from multiauction.core.lifecycle.policy import (
    ClosePolicy,
    dealer_or_winner_policy,
    entitlement_policy,
)

__all__ = [
    "AuctionController",
    "OperationContext",
    "ClosePolicy",
    "dealer_or_winner_policy",
    "entitlement_policy",
]
