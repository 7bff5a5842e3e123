"""
Operation requests - typed, validated inputs for every engine operation.

Each operation has one frozen pydantic model. Field types reuse the
boundary checks in multiauction.utils.validation, so a constructed
request already guarantees 32-byte identities, u64 amounts and i64
timestamps. The controller only checks state-dependent rules.

Wire format:
-----------
Requests also travel as binary instructions:

    opcode (u8) || request fields, little-endian, in declaration order

The signer is not part of the payload; it comes from whoever submitted
the instruction. Truncated payloads, trailing bytes, unknown opcodes and
field values that fail validation all raise InvalidInstructionData.
"""

from enum import IntEnum
from typing import Annotated, Any, ClassVar, Dict, Optional, Tuple, Type

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from multiauction.core.codec import BorshReader, BorshWriter
from multiauction.core.errors import ErrorCode, error
from multiauction.utils.validation import (
    validate_amount,
    validate_auction_id,
    validate_duration,
    validate_identity,
    validate_item_index,
    validate_timestamp,
)


def _checked(validator):
    """Adapt an (is_valid, error) validator to a pydantic AfterValidator."""
    def check(value):
        valid, err = validator(value)
        if not valid:
            raise ValueError(err)
        return value
    return AfterValidator(check)


Identity = Annotated[bytes, _checked(validate_identity)]
AuctionId = Annotated[bytes, _checked(validate_auction_id)]
Amount = Annotated[int, _checked(validate_amount)]
Timestamp = Annotated[int, _checked(validate_timestamp)]
PositiveDuration = Annotated[int, _checked(validate_duration)]
ItemIndex = Annotated[int, _checked(validate_item_index)]


class Opcode(IntEnum):
    """Instruction discriminators."""
    INITIALIZE = 0
    SET_PAUSED = 1
    TRANSFER_OWNERSHIP = 2
    CLAIM_FEES = 3
    CREATE_TRADITIONAL_AUCTION = 4
    CREATE_DUTCH_AUCTION = 5
    CREATE_PENNY_AUCTION = 6
    DEPOSIT_TOKENS = 7
    DEPOSIT_NFT = 8
    BID_TRADITIONAL = 9
    BUY_DUTCH = 10
    BID_PENNY = 11
    FINALIZE_AUCTION = 12
    ACCEPT_BID = 13
    CLOSE_ITEM_VAULT = 14


# =============================================================================
# Base Request
# =============================================================================


class OperationRequest(BaseModel):
    """
    Common shape of every request.

    Subclasses declare OPCODE and LAYOUT: the (field, wire type) pairs
    that follow the opcode byte in the binary form.
    """

    model_config = ConfigDict(frozen=True, strict=True, extra="forbid")

    OPCODE: ClassVar[Opcode]
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    signer: Identity

    @classmethod
    def build(cls, **fields: Any) -> "OperationRequest":
        """Construct a request, mapping validation failures to InvalidInstructionData."""
        try:
            return cls(**fields)
        except PydanticValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            raise error(ErrorCode.INVALID_INSTRUCTION_DATA, f"{cls.__name__}: {details}") from exc


# =============================================================================
# Governance
# =============================================================================


class Initialize(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.INITIALIZE


class SetPaused(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.SET_PAUSED
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (("paused", "bool"),)

    paused: bool


class TransferOwnership(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.TRANSFER_OWNERSHIP
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (("new_owner", "key"),)

    new_owner: Identity


class ClaimFees(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.CLAIM_FEES
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (("payment_denomination", "key"),)

    payment_denomination: Identity


# =============================================================================
# Auction Creation
# =============================================================================


class CreateTraditionalAuction(OperationRequest):
    """Ascending auction with reserve price."""

    OPCODE: ClassVar[Opcode] = Opcode.CREATE_TRADITIONAL_AUCTION
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("auction_id", "key"),
        ("payment_denomination", "key"),
        ("start_amount", "u64"),
        ("increment", "u64"),
        ("reserve_price", "u64"),
        ("deadline", "i64"),
    )

    auction_id: AuctionId
    payment_denomination: Identity
    start_amount: Amount
    increment: Amount
    reserve_price: Amount
    deadline: Timestamp


class CreateDutchAuction(OperationRequest):
    """Descending auction; the interval must be positive."""

    OPCODE: ClassVar[Opcode] = Opcode.CREATE_DUTCH_AUCTION
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("auction_id", "key"),
        ("payment_denomination", "key"),
        ("start_price", "u64"),
        ("decrease_amount", "u64"),
        ("interval", "i64"),
        ("minimum_price", "u64"),
        ("deadline", "i64"),
    )

    auction_id: AuctionId
    payment_denomination: Identity
    start_price: Amount
    decrease_amount: Amount
    interval: PositiveDuration
    minimum_price: Amount
    deadline: Timestamp


class CreatePennyAuction(OperationRequest):
    """
    Escalating-timer auction.

    timer_duration None (0 on the wire) selects the configured default.
    """

    OPCODE: ClassVar[Opcode] = Opcode.CREATE_PENNY_AUCTION
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("auction_id", "key"),
        ("payment_denomination", "key"),
        ("increment", "u64"),
        ("timer_duration", "opt_i64"),
    )

    auction_id: AuctionId
    payment_denomination: Identity
    increment: Amount
    timer_duration: Optional[PositiveDuration] = None


# =============================================================================
# Items
# =============================================================================


class DepositTokens(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.DEPOSIT_TOKENS
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("auction_id", "key"),
        ("asset_class", "key"),
        ("amount", "u64"),
    )

    auction_id: AuctionId
    asset_class: Identity
    amount: Amount


class DepositNft(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.DEPOSIT_NFT
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("auction_id", "key"),
        ("asset_class", "key"),
    )

    auction_id: AuctionId
    asset_class: Identity


# =============================================================================
# Bidding
# =============================================================================


class BidTraditional(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.BID_TRADITIONAL
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (("auction_id", "key"), ("amount", "u64"))

    auction_id: AuctionId
    amount: Amount


class BuyDutch(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.BUY_DUTCH
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (("auction_id", "key"), ("max_price", "u64"))

    auction_id: AuctionId
    max_price: Amount


class BidPenny(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.BID_PENNY
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (("auction_id", "key"),)

    auction_id: AuctionId


# =============================================================================
# Settlement
# =============================================================================


class FinalizeAuction(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.FINALIZE_AUCTION
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (("auction_id", "key"),)

    auction_id: AuctionId


class AcceptBid(OperationRequest):
    OPCODE: ClassVar[Opcode] = Opcode.ACCEPT_BID
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (("auction_id", "key"),)

    auction_id: AuctionId


class CloseItemVault(OperationRequest):
    """Release one item's vault once the auction is terminal."""

    OPCODE: ClassVar[Opcode] = Opcode.CLOSE_ITEM_VAULT
    LAYOUT: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("auction_id", "key"),
        ("item_index", "u8"),
        ("recipient", "key"),
        ("rent_recipient", "key"),
    )

    auction_id: AuctionId
    item_index: ItemIndex
    recipient: Identity
    rent_recipient: Identity


REQUEST_TYPES: Dict[Opcode, Type[OperationRequest]] = {
    cls.OPCODE: cls
    for cls in (
        Initialize,
        SetPaused,
        TransferOwnership,
        ClaimFees,
        CreateTraditionalAuction,
        CreateDutchAuction,
        CreatePennyAuction,
        DepositTokens,
        DepositNft,
        BidTraditional,
        BuyDutch,
        BidPenny,
        FinalizeAuction,
        AcceptBid,
        CloseItemVault,
    )
}


# =============================================================================
# Binary Instructions
# =============================================================================


def _write_field(writer: BorshWriter, kind: str, value: Any) -> None:
    if kind == "key":
        writer.fixed(value, 32)
    elif kind == "u8":
        writer.u8(value)
    elif kind == "u64":
        writer.u64(value)
    elif kind == "i64":
        writer.i64(value)
    elif kind == "opt_i64":
        writer.i64(value or 0)
    elif kind == "bool":
        writer.boolean(value)
    else:
        raise ValueError(f"unknown wire type {kind}")


def _read_field(reader: BorshReader, kind: str) -> Any:
    if kind == "key":
        return reader.fixed(32)
    if kind == "u8":
        return reader.u8()
    if kind == "u64":
        return reader.u64()
    if kind == "i64":
        return reader.i64()
    if kind == "opt_i64":
        return reader.i64() or None
    if kind == "bool":
        return reader.boolean()
    raise ValueError(f"unknown wire type {kind}")


def encode_instruction(request: OperationRequest) -> bytes:
    """Serialize a request (without its signer) to the binary form."""
    writer = BorshWriter()
    writer.u8(request.OPCODE)
    for name, kind in request.LAYOUT:
        _write_field(writer, kind, getattr(request, name))
    return writer.getvalue()


def decode_instruction(data: bytes, signer: bytes) -> OperationRequest:
    """
    Parse a binary instruction submitted by `signer`.

    Raises:
        ValidationError(INVALID_INSTRUCTION_DATA) on any malformed payload
    """
    reader = BorshReader(data, error_code=ErrorCode.INVALID_INSTRUCTION_DATA)
    opcode = reader.u8()
    if opcode not in REQUEST_TYPES:
        reader.fail(f"unknown opcode {opcode}")

    request_type = REQUEST_TYPES[Opcode(opcode)]
    fields = {name: _read_field(reader, kind) for name, kind in request_type.LAYOUT}
    reader.finish()
    return request_type.build(signer=signer, **fields)
