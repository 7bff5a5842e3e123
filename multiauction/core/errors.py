"""
Engine errors.

Every precondition violation raises a specific AuctionError subclass
carrying a stable numeric code. Codes 0-23 keep the numbering of the
deployed program's custom errors so that failures reported by different
executors can be compared directly.

Categories:
- AuthorizationError: wrong or missing signer
- LifecycleError: wrong status / state for the requested operation
- TemporalError: deadline or timer not reached, or already passed
- ValidationError: bad amounts, wrong auction type, malformed payloads
- MathError: checked arithmetic overflow
- NotFoundError: referenced record absent or key mismatch
"""

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Stable error numbering."""
    ONLY_OWNER = 0
    ONLY_DEALER = 1
    CONTRACT_PAUSED = 2
    AUCTION_NOT_FOUND = 3
    AUCTION_NOT_ACTIVE = 4
    AUCTION_EXPIRED = 5
    AUCTION_NOT_EXPIRED = 6
    BID_TOO_LOW = 7
    INVALID_AUCTION_TYPE = 8
    RESERVE_PRICE_NOT_MET = 9
    ACCEPTANCE_PERIOD_EXPIRED = 10
    ACCEPTANCE_PERIOD_NOT_EXPIRED = 11
    NO_ITEMS = 12
    MAX_ITEMS_EXCEEDED = 13
    INVALID_NFT_METADATA = 14
    MATH_OVERFLOW = 15
    INVALID_PDA = 16
    INVALID_PAYMENT_MINT = 17
    PENNY_TIMER_NOT_EXPIRED = 18
    NO_BIDDER = 19
    INVALID_ACCOUNT_OWNER = 20
    INVALID_INSTRUCTION_DATA = 21
    ACCOUNT_NOT_INITIALIZED = 22
    ACCOUNT_ALREADY_INITIALIZED = 23
    # Engine additions
    NO_FUNDS = 24
    MISSING_REQUIRED_SIGNATURE = 25
    INVALID_ACCOUNT_DATA = 26


MESSAGES = {
    ErrorCode.ONLY_OWNER: "Only the owner can perform this action",
    ErrorCode.ONLY_DEALER: "Only the dealer can perform this action",
    ErrorCode.CONTRACT_PAUSED: "Contract is paused",
    ErrorCode.AUCTION_NOT_FOUND: "Auction not found",
    ErrorCode.AUCTION_NOT_ACTIVE: "Auction is not active",
    ErrorCode.AUCTION_EXPIRED: "Auction deadline has passed",
    ErrorCode.AUCTION_NOT_EXPIRED: "Auction deadline has not passed",
    ErrorCode.BID_TOO_LOW: "Bid amount too low",
    ErrorCode.INVALID_AUCTION_TYPE: "Invalid auction type for this operation",
    ErrorCode.RESERVE_PRICE_NOT_MET: "Reserve price not met",
    ErrorCode.ACCEPTANCE_PERIOD_EXPIRED: "Acceptance period expired",
    ErrorCode.ACCEPTANCE_PERIOD_NOT_EXPIRED: "Acceptance period not expired",
    ErrorCode.NO_ITEMS: "No items in auction",
    ErrorCode.MAX_ITEMS_EXCEEDED: "Maximum items exceeded",
    ErrorCode.INVALID_NFT_METADATA: "Invalid NFT metadata",
    ErrorCode.MATH_OVERFLOW: "Math overflow",
    ErrorCode.INVALID_PDA: "Storage key does not match derivation",
    ErrorCode.INVALID_PAYMENT_MINT: "Invalid payment denomination",
    ErrorCode.PENNY_TIMER_NOT_EXPIRED: "Penny auction timer not expired",
    ErrorCode.NO_BIDDER: "No bidder to accept",
    ErrorCode.INVALID_ACCOUNT_OWNER: "Invalid account owner",
    ErrorCode.INVALID_INSTRUCTION_DATA: "Invalid instruction data",
    ErrorCode.ACCOUNT_NOT_INITIALIZED: "Account not initialized",
    ErrorCode.ACCOUNT_ALREADY_INITIALIZED: "Account already initialized",
    ErrorCode.NO_FUNDS: "No funds to claim",
    ErrorCode.MISSING_REQUIRED_SIGNATURE: "Missing required signature",
    ErrorCode.INVALID_ACCOUNT_DATA: "Invalid account data",
}


# =============================================================================
# Exception Hierarchy
# =============================================================================


class AuctionError(Exception):
    """Base class for all engine errors."""

    category = "auction"

    def __init__(self, code: ErrorCode, detail: Optional[str] = None):
        self.code = ErrorCode(code)
        self.detail = detail
        message = MESSAGES[self.code]
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.name}, {str(self)!r})"


class AuthorizationError(AuctionError):
    category = "authorization"


class LifecycleError(AuctionError):
    category = "lifecycle"


class TemporalError(AuctionError):
    category = "temporal"


class ValidationError(AuctionError):
    category = "validation"


class MathError(AuctionError):
    category = "arithmetic"


class NotFoundError(AuctionError):
    category = "not_found"


_CATEGORY = {
    ErrorCode.ONLY_OWNER: AuthorizationError,
    ErrorCode.ONLY_DEALER: AuthorizationError,
    ErrorCode.MISSING_REQUIRED_SIGNATURE: AuthorizationError,
    ErrorCode.INVALID_ACCOUNT_OWNER: AuthorizationError,
    ErrorCode.CONTRACT_PAUSED: LifecycleError,
    ErrorCode.AUCTION_NOT_ACTIVE: LifecycleError,
    ErrorCode.NO_BIDDER: LifecycleError,
    ErrorCode.NO_ITEMS: LifecycleError,
    ErrorCode.MAX_ITEMS_EXCEEDED: LifecycleError,
    ErrorCode.NO_FUNDS: LifecycleError,
    ErrorCode.ACCOUNT_ALREADY_INITIALIZED: LifecycleError,
    ErrorCode.RESERVE_PRICE_NOT_MET: LifecycleError,
    ErrorCode.AUCTION_EXPIRED: TemporalError,
    ErrorCode.AUCTION_NOT_EXPIRED: TemporalError,
    ErrorCode.PENNY_TIMER_NOT_EXPIRED: TemporalError,
    ErrorCode.ACCEPTANCE_PERIOD_EXPIRED: TemporalError,
    ErrorCode.ACCEPTANCE_PERIOD_NOT_EXPIRED: TemporalError,
    ErrorCode.BID_TOO_LOW: ValidationError,
    ErrorCode.INVALID_AUCTION_TYPE: ValidationError,
    ErrorCode.INVALID_INSTRUCTION_DATA: ValidationError,
    ErrorCode.INVALID_ACCOUNT_DATA: ValidationError,
    ErrorCode.INVALID_PAYMENT_MINT: ValidationError,
    ErrorCode.INVALID_NFT_METADATA: ValidationError,
    ErrorCode.MATH_OVERFLOW: MathError,
    ErrorCode.AUCTION_NOT_FOUND: NotFoundError,
    ErrorCode.ACCOUNT_NOT_INITIALIZED: NotFoundError,
    ErrorCode.INVALID_PDA: NotFoundError,
}


def error(code: ErrorCode, detail: Optional[str] = None) -> AuctionError:
    """Build the exception of the right category for an error code."""
    return _CATEGORY[code](code, detail)


class TransferError(Exception):
    """Raised by the asset transfer collaborator; nothing moved."""


__all__ = [
    "ErrorCode",
    "AuctionError",
    "AuthorizationError",
    "LifecycleError",
    "TemporalError",
    "ValidationError",
    "MathError",
    "NotFoundError",
    "TransferError",
    "error",
]
