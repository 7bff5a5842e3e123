"""
Unit tests for operation requests and binary instructions.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from multiauction.core.errors import ErrorCode, ValidationError
from multiauction.core.requests import (
    REQUEST_TYPES,
    BidTraditional,
    CloseItemVault,
    CreateDutchAuction,
    CreatePennyAuction,
    CreateTraditionalAuction,
    Initialize,
    Opcode,
    SetPaused,
    decode_instruction,
    encode_instruction,
)
from multiauction.utils.validation import U64_MAX

SIGNER = b"\x01" * 32
AUCTION_ID = b"\xaa" * 32
USDC = b"\x10" * 32


# =============================================================================
# Model Validation Tests
# =============================================================================


class TestRequestModels:
    """Tests for request field validation."""

    def test_valid_request(self):
        """Well-formed fields construct a request."""
        request = BidTraditional(signer=SIGNER, auction_id=AUCTION_ID, amount=150)
        assert request.amount == 150
        assert request.OPCODE == Opcode.BID_TRADITIONAL

    def test_identity_length(self):
        """Identities must be exactly 32 bytes."""
        with pytest.raises(PydanticValidationError):
            BidTraditional(signer=b"\x01" * 31, auction_id=AUCTION_ID, amount=1)
        with pytest.raises(PydanticValidationError):
            BidTraditional(signer=SIGNER, auction_id=b"\xaa" * 33, amount=1)

    def test_strict_types(self):
        """No coercion from strings or bools."""
        with pytest.raises(PydanticValidationError):
            BidTraditional(signer="01" * 32, auction_id=AUCTION_ID, amount=1)
        with pytest.raises(PydanticValidationError):
            BidTraditional(signer=SIGNER, auction_id=AUCTION_ID, amount=True)
        with pytest.raises(PydanticValidationError):
            BidTraditional(signer=SIGNER, auction_id=AUCTION_ID, amount="5")

    def test_amount_range(self):
        """Amounts must fit in u64."""
        BidTraditional(signer=SIGNER, auction_id=AUCTION_ID, amount=U64_MAX)
        with pytest.raises(PydanticValidationError):
            BidTraditional(signer=SIGNER, auction_id=AUCTION_ID, amount=U64_MAX + 1)
        with pytest.raises(PydanticValidationError):
            BidTraditional(signer=SIGNER, auction_id=AUCTION_ID, amount=-1)

    def test_dutch_interval_positive(self):
        """A zero interval is rejected at the boundary."""
        with pytest.raises(PydanticValidationError):
            CreateDutchAuction(
                signer=SIGNER,
                auction_id=AUCTION_ID,
                payment_denomination=USDC,
                start_price=1000,
                decrease_amount=10,
                interval=0,
                minimum_price=100,
                deadline=5000,
            )

    def test_penny_timer_default(self):
        """Penny timer is optional."""
        request = CreatePennyAuction(
            signer=SIGNER, auction_id=AUCTION_ID, payment_denomination=USDC, increment=100
        )
        assert request.timer_duration is None

    def test_frozen_and_no_extras(self):
        """Requests are immutable and reject unknown fields."""
        request = Initialize(signer=SIGNER)
        with pytest.raises(PydanticValidationError):
            request.signer = b"\x02" * 32
        with pytest.raises(PydanticValidationError):
            Initialize(signer=SIGNER, extra=1)

    def test_build_maps_errors(self):
        """build() reports validation failures as InvalidInstructionData."""
        with pytest.raises(ValidationError) as exc_info:
            BidTraditional.build(signer=SIGNER, auction_id=AUCTION_ID, amount=-1)
        assert exc_info.value.code == ErrorCode.INVALID_INSTRUCTION_DATA
        assert "amount" in str(exc_info.value)

    def test_every_opcode_registered(self):
        """Each discriminator maps to exactly one request type."""
        assert set(REQUEST_TYPES) == set(Opcode)
        assert all(cls.OPCODE == opcode for opcode, cls in REQUEST_TYPES.items())


# =============================================================================
# Instruction Codec Tests
# =============================================================================


class TestInstructions:
    """Tests for the binary instruction form."""

    def test_initialize_is_one_byte(self):
        """Requests without fields encode to their opcode."""
        assert encode_instruction(Initialize(signer=SIGNER)) == b"\x00"

    def test_bid_layout(self):
        """Opcode, then fields little-endian in order."""
        data = encode_instruction(BidTraditional(signer=SIGNER, auction_id=AUCTION_ID, amount=258))
        assert data == b"\x09" + AUCTION_ID + b"\x02\x01" + bytes(6)

    def test_decode_restores_request(self):
        """Decoding attaches the submitting signer."""
        request = CreateTraditionalAuction(
            signer=SIGNER,
            auction_id=AUCTION_ID,
            payment_denomination=USDC,
            start_amount=100,
            increment=10,
            reserve_price=150,
            deadline=-1,
        )
        assert decode_instruction(encode_instruction(request), SIGNER) == request

    def test_close_item_vault(self):
        """u8 index and two identities follow the auction id."""
        request = CloseItemVault(
            signer=SIGNER,
            auction_id=AUCTION_ID,
            item_index=254,
            recipient=b"\x03" * 32,
            rent_recipient=b"\x04" * 32,
        )
        data = encode_instruction(request)
        assert len(data) == 1 + 32 + 1 + 32 + 32
        assert decode_instruction(data, SIGNER) == request

    def test_penny_default_timer_on_wire(self):
        """A missing timer travels as zero."""
        request = CreatePennyAuction(
            signer=SIGNER, auction_id=AUCTION_ID, payment_denomination=USDC, increment=100
        )
        data = encode_instruction(request)
        assert data[-8:] == bytes(8)
        assert decode_instruction(data, SIGNER).timer_duration is None

    def test_unknown_opcode(self):
        """Unknown discriminators are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            decode_instruction(b"\x63", SIGNER)
        assert exc_info.value.code == ErrorCode.INVALID_INSTRUCTION_DATA

    def test_truncated_and_trailing(self):
        """Payload length must match the layout exactly."""
        data = encode_instruction(BidTraditional(signer=SIGNER, auction_id=AUCTION_ID, amount=1))
        with pytest.raises(ValidationError):
            decode_instruction(data[:-1], SIGNER)
        with pytest.raises(ValidationError):
            decode_instruction(data + b"\x00", SIGNER)
        with pytest.raises(ValidationError):
            decode_instruction(b"", SIGNER)

    def test_invalid_bool(self):
        """SetPaused accepts only 0 or 1."""
        assert decode_instruction(b"\x01\x01", SIGNER) == SetPaused(signer=SIGNER, paused=True)
        with pytest.raises(ValidationError) as exc_info:
            decode_instruction(b"\x01\x02", SIGNER)
        assert exc_info.value.code == ErrorCode.INVALID_INSTRUCTION_DATA

    def test_field_validation_on_decode(self):
        """Decoded fields go through the same validation."""
        data = (
            bytes([Opcode.CREATE_DUTCH_AUCTION])
            + AUCTION_ID
            + USDC
            + (1000).to_bytes(8, "little")
            + (10).to_bytes(8, "little")
            + (0).to_bytes(8, "little")  # interval
            + (100).to_bytes(8, "little")
            + (5000).to_bytes(8, "little")
        )
        with pytest.raises(ValidationError) as exc_info:
            decode_instruction(data, SIGNER)
        assert exc_info.value.code == ErrorCode.INVALID_INSTRUCTION_DATA
