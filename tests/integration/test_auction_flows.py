"""
End-to-end auction flows over the SQLite backend.

Operations are submitted as binary instructions, the way an embedding
host would forward them.
"""

import pytest

from multiauction.core.config import ProtocolConfig
from multiauction.core.errors import AuthorizationError, ErrorCode, TransferError, ValidationError
from multiauction.core.interfaces import Holding
from multiauction.core.keys import escrow_key, fee_vault_key, item_vault_key
from multiauction.core.requests import (
    BidPenny,
    BidTraditional,
    BuyDutch,
    ClaimFees,
    CloseItemVault,
    CreateDutchAuction,
    CreatePennyAuction,
    CreateTraditionalAuction,
    DepositNft,
    DepositTokens,
    FinalizeAuction,
    Initialize,
    encode_instruction,
)
from multiauction.core.runtime import AuctionRuntime
from multiauction.core.state import AuctionStatus
from multiauction.core.storage import FixedClock, SQLiteAdapter
from multiauction.crypto import generate_auction_id

OWNER = b"\x01" * 32
DEALER = b"\x02" * 32
ALICE = b"\x03" * 32
BOB = b"\x04" * 32
USDC = b"\x10" * 32
NFT = b"\x20" * 32
GOLD = b"\x21" * 32
START = 1_000_000


@pytest.fixture
def runtime(tmp_path):
    """SQLite-backed runtime with funded participants."""
    adapter = SQLiteAdapter(tmp_path / "auctions.db")
    runtime = AuctionRuntime(adapter, adapter, FixedClock(START), ProtocolConfig(data_dir=tmp_path))
    submit(runtime, Initialize(signer=OWNER))
    adapter.credit(Holding(DEALER, NFT), 1)
    adapter.credit(Holding(DEALER, GOLD), 1000)
    adapter.credit(Holding(ALICE, USDC), 10_000)
    adapter.credit(Holding(BOB, USDC), 10_000)
    yield runtime
    adapter.disconnect()


def submit(runtime, request):
    """Send a request through its binary form."""
    return runtime.execute_instruction(encode_instruction(request), request.signer)


def usdc(runtime, owner) -> int:
    return runtime.bank.balance(Holding(owner, USDC))


# =============================================================================
# Full Flows
# =============================================================================


class TestTraditionalFlow:
    """Create, deposit, bid, settle, release, claim."""

    def test_full_flow(self, runtime):
        """The winner gets the item, the dealer the net, the owner the fee."""
        auction_id = generate_auction_id()
        submit(runtime, CreateTraditionalAuction(
            signer=DEALER,
            auction_id=auction_id,
            payment_denomination=USDC,
            start_amount=100,
            increment=10,
            reserve_price=150,
            deadline=START + 3600,
        ))
        submit(runtime, DepositNft(signer=DEALER, auction_id=auction_id, asset_class=NFT))

        submit(runtime, BidTraditional(signer=ALICE, auction_id=auction_id, amount=100))
        submit(runtime, BidTraditional(signer=BOB, auction_id=auction_id, amount=110))
        submit(runtime, BidTraditional(signer=ALICE, auction_id=auction_id, amount=200))
        assert usdc(runtime, BOB) == 10_000
        assert runtime.bank.balance(Holding(escrow_key(auction_id), USDC)) == 200

        runtime.clock.advance(3601)
        auction = submit(runtime, FinalizeAuction(signer=BOB, auction_id=auction_id))
        assert auction.status == AuctionStatus.FINALIZED
        assert usdc(runtime, DEALER) == 199

        moved = submit(runtime, CloseItemVault(
            signer=ALICE,
            auction_id=auction_id,
            item_index=0,
            recipient=ALICE,
            rent_recipient=DEALER,
        ))
        assert moved == 1
        assert runtime.bank.balance(Holding(ALICE, NFT)) == 1
        assert runtime.bank.reclaimed_count(DEALER) == 1

        assert submit(runtime, ClaimFees(signer=OWNER, payment_denomination=USDC)) == 1
        assert usdc(runtime, OWNER) == 1
        assert runtime.bank.balance(Holding(fee_vault_key(USDC), USDC)) == 0

        # Value is conserved across all participants
        total = sum(usdc(runtime, who) for who in (OWNER, DEALER, ALICE, BOB))
        assert total == 20_000


class TestDutchAndPennyFlows:
    """Immediate-payment auctions."""

    def test_dutch_purchase(self, runtime):
        """The buyer pays the current price and receives the tokens."""
        auction_id = generate_auction_id()
        submit(runtime, CreateDutchAuction(
            signer=DEALER,
            auction_id=auction_id,
            payment_denomination=USDC,
            start_price=1000,
            decrease_amount=10,
            interval=60,
            minimum_price=100,
            deadline=START + 86400,
        ))
        submit(runtime, DepositTokens(signer=DEALER, auction_id=auction_id, asset_class=GOLD, amount=400))
        runtime.clock.advance(300)

        assert runtime.quote_dutch(auction_id)["price"] == 950
        submit(runtime, BuyDutch(signer=BOB, auction_id=auction_id, max_price=950))
        assert usdc(runtime, BOB) == 9050
        assert usdc(runtime, DEALER) == 946

        submit(runtime, CloseItemVault(
            signer=BOB,
            auction_id=auction_id,
            item_index=0,
            recipient=BOB,
            rent_recipient=DEALER,
        ))
        assert runtime.bank.balance(Holding(BOB, GOLD)) == 400
        assert not runtime.bank.is_open(Holding(item_vault_key(auction_id, GOLD), GOLD))

    def test_penny_bidding_war(self, runtime):
        """Every bid pays the dealer; the last bidder wins."""
        auction_id = generate_auction_id()
        submit(runtime, CreatePennyAuction(
            signer=DEALER, auction_id=auction_id, payment_denomination=USDC, increment=1000
        ))
        submit(runtime, DepositNft(signer=DEALER, auction_id=auction_id, asset_class=NFT))

        for bidder in (ALICE, BOB, ALICE):
            submit(runtime, BidPenny(signer=bidder, auction_id=auction_id))
            runtime.clock.advance(100)

        assert usdc(runtime, DEALER) == 3 * 995
        runtime.clock.advance(300)
        auction = submit(runtime, FinalizeAuction(signer=DEALER, auction_id=auction_id))
        assert auction.winner() == ALICE
        assert auction.penny().total_paid == 3000


# =============================================================================
# Failure Handling
# =============================================================================


class TestFailures:
    """Rejected operations leave no trace."""

    def test_failed_transfer_rolls_back(self, runtime):
        """An unfunded outbid leaves the previous bid in place."""
        auction_id = generate_auction_id()
        submit(runtime, CreateTraditionalAuction(
            signer=DEALER,
            auction_id=auction_id,
            payment_denomination=USDC,
            start_amount=100,
            increment=10,
            reserve_price=150,
            deadline=START + 3600,
        ))
        submit(runtime, BidTraditional(signer=ALICE, auction_id=auction_id, amount=100))

        pauper = b"\x09" * 32
        with pytest.raises(TransferError):
            submit(runtime, BidTraditional(signer=pauper, auction_id=auction_id, amount=500))

        auction = runtime.get_auction(auction_id)
        assert auction.current_bidder == ALICE
        assert usdc(runtime, ALICE) == 9900
        assert runtime.bank.balance(Holding(escrow_key(auction_id), USDC)) == 100

    def test_malformed_instruction(self, runtime):
        """Garbage payloads never reach the controller."""
        with pytest.raises(ValidationError) as exc_info:
            runtime.execute_instruction(b"\x09\x00", ALICE)
        assert exc_info.value.code == ErrorCode.INVALID_INSTRUCTION_DATA

    def test_unsigned_instruction(self, runtime):
        """An explicit signer set without the submitter is rejected."""
        data = encode_instruction(ClaimFees(signer=OWNER, payment_denomination=USDC))
        with pytest.raises(AuthorizationError) as exc_info:
            runtime.execute_instruction(data, OWNER, signers=[ALICE])
        assert exc_info.value.code == ErrorCode.MISSING_REQUIRED_SIGNATURE
