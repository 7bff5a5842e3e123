import pytest

from multiauction.core.config import ProtocolConfig
from multiauction.core.errors import TransferError
from multiauction.core.interfaces import Holding
from multiauction.core.requests import (
    BidTraditional,
    CreateTraditionalAuction,
    DepositTokens,
    FinalizeAuction,
    Initialize,
)
from multiauction.core.runtime import AuctionRuntime, create_runtime
from multiauction.core.state import AuctionStatus
from multiauction.core.storage import FixedClock, SQLiteAdapter

OWNER = b"\x01" * 32
DEALER = b"\x02" * 32
ALICE = b"\x03" * 32
USDC = b"\x10" * 32
GOLD = b"\x21" * 32
AUCTION_ID = b"\xaa" * 32
START = 1_000_000


@pytest.fixture
def temp_node_dir(tmp_path):
    """Create a temporary directory for engine data."""
    data_dir = tmp_path / "engine_data"
    data_dir.mkdir()
    return data_dir


def open_runtime(data_dir, now):
    adapter = SQLiteAdapter(data_dir / "auctions.db")
    return AuctionRuntime(adapter, adapter, FixedClock(now))


def test_state_survives_restart(temp_node_dir):
    """Records and balances are preserved across restarts."""
    # 1. First process: set up an auction with a bid
    runtime_a = open_runtime(temp_node_dir, START)
    runtime_a.execute(Initialize(signer=OWNER))
    runtime_a.bank.credit(Holding(DEALER, GOLD), 50)
    runtime_a.bank.credit(Holding(ALICE, USDC), 1000)

    runtime_a.execute(CreateTraditionalAuction(
        signer=DEALER,
        auction_id=AUCTION_ID,
        payment_denomination=USDC,
        start_amount=100,
        increment=10,
        reserve_price=150,
        deadline=START + 3600,
    ))
    runtime_a.execute(DepositTokens(signer=DEALER, auction_id=AUCTION_ID, asset_class=GOLD, amount=50))
    runtime_a.execute(BidTraditional(signer=ALICE, auction_id=AUCTION_ID, amount=400))
    before = runtime_a.get_auction(AUCTION_ID)

    # 2. Stop
    runtime_a.storage.disconnect()
    del runtime_a

    # 3. Second process after the deadline
    runtime_b = open_runtime(temp_node_dir, START + 3601)
    assert runtime_b.get_auction(AUCTION_ID) == before
    assert runtime_b.store.require_program_state().auction_count == 1
    assert runtime_b.bank.balance(Holding(ALICE, USDC)) == 600

    # 4. Continue where the first process stopped
    auction = runtime_b.execute(FinalizeAuction(signer=ALICE, auction_id=AUCTION_ID))
    assert auction.status == AuctionStatus.FINALIZED
    assert runtime_b.bank.balance(Holding(DEALER, USDC)) == 398
    runtime_b.storage.disconnect()


def test_rejected_operation_not_persisted(temp_node_dir):
    """A rejected operation leaves nothing on disk."""
    runtime_a = open_runtime(temp_node_dir, START)
    runtime_a.execute(Initialize(signer=OWNER))
    runtime_a.execute(CreateTraditionalAuction(
        signer=DEALER,
        auction_id=AUCTION_ID,
        payment_denomination=USDC,
        start_amount=100,
        increment=10,
        reserve_price=150,
        deadline=START + 3600,
    ))

    # Dealer has no GOLD; the item record must not survive
    with pytest.raises(TransferError):
        runtime_a.execute(DepositTokens(signer=DEALER, auction_id=AUCTION_ID, asset_class=GOLD, amount=5))
    runtime_a.storage.disconnect()

    runtime_b = open_runtime(temp_node_dir, START)
    assert runtime_b.get_auction(AUCTION_ID).item_count == 0
    assert runtime_b.store.load_item(AUCTION_ID, 0) is None
    runtime_b.storage.disconnect()


def test_create_runtime(tmp_path):
    """create_runtime wires SQLite from configuration."""
    config = ProtocolConfig(data_dir=tmp_path / "data", log_dir=tmp_path / "logs")
    runtime = create_runtime(config=config, clock=FixedClock(START))

    runtime.execute(Initialize(signer=OWNER))
    assert config.db_path.exists()
    assert runtime.storage is runtime.bank
    assert runtime.store.require_program_state().owner == OWNER
    runtime.storage.disconnect()
