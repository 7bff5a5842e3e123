from typing import Optional

from multiauction.core.errors import ErrorCode, error
from multiauction.core.interfaces import KeyedStorage
from multiauction.core.keys import (
    PROGRAM_OWNER_TAG,
    auction_key,
    fee_vault_key,
    item_key,
    program_state_key,
)
from multiauction.core.state import Auction, AuctionItem, FeeVault, ProgramState
from multiauction.crypto import short_hex
from multiauction.utils.logger import get_logger

logger = get_logger("storage.accounts")


class AccountStore:
    """
    Typed access to the engine's records.

    Wraps a KeyedStorage collaborator:
    - derives the key for each record kind
    - encodes / decodes records
    - checks that a decoded record belongs at the key it was read from

    A zero-filled buffer (allocated but never written) reads as absent.
    """

    def __init__(self, storage: KeyedStorage):
        self.storage = storage

    def _read(self, key: bytes) -> Optional[bytes]:
        data = self.storage.load(key)
        if data is None or not any(data):
            return None
        return data

    def _create(self, key: bytes, size: int, data: bytes) -> None:
        self.storage.create(key, max(size, len(data)), PROGRAM_OWNER_TAG)
        self.storage.store(key, data)

    # =========================================================================
    # Program State
    # =========================================================================

    def load_program_state(self) -> Optional[ProgramState]:
        data = self._read(program_state_key())
        return ProgramState.from_bytes(data) if data else None

    def require_program_state(self) -> ProgramState:
        state = self.load_program_state()
        if state is None:
            raise error(ErrorCode.ACCOUNT_NOT_INITIALIZED, "program state")
        return state

    def create_program_state(self, state: ProgramState) -> None:
        if self._read(program_state_key()) is not None:
            raise error(ErrorCode.ACCOUNT_ALREADY_INITIALIZED, "program state")
        self._create(program_state_key(), ProgramState.LEN + 1, state.to_bytes())

    def save_program_state(self, state: ProgramState) -> None:
        self.storage.store(program_state_key(), state.to_bytes())

    # =========================================================================
    # Auctions
    # =========================================================================

    def auction_exists(self, auction_id: bytes) -> bool:
        return self._read(auction_key(auction_id)) is not None

    def load_auction(self, auction_id: bytes) -> Auction:
        data = self._read(auction_key(auction_id))
        if data is None:
            raise error(ErrorCode.AUCTION_NOT_FOUND, short_hex(auction_id))
        auction = Auction.from_bytes(data)
        if auction.auction_id != auction_id:
            raise error(ErrorCode.INVALID_PDA, f"auction record at {short_hex(auction_id)}")
        return auction

    def create_auction(self, auction: Auction) -> None:
        if self.auction_exists(auction.auction_id):
            raise error(ErrorCode.ACCOUNT_ALREADY_INITIALIZED, f"auction {short_hex(auction.auction_id)}")
        self._create(auction_key(auction.auction_id), Auction.SPACE, auction.to_bytes())

    def save_auction(self, auction: Auction) -> None:
        self.storage.store(auction_key(auction.auction_id), auction.to_bytes())

    # =========================================================================
    # Items
    # =========================================================================

    def create_item(self, item: AuctionItem) -> None:
        self._create(item_key(item.auction_id, item.index), AuctionItem.SPACE, item.to_bytes())

    def load_item(self, auction_id: bytes, index: int) -> Optional[AuctionItem]:
        data = self._read(item_key(auction_id, index))
        if data is None:
            return None
        item = AuctionItem.from_bytes(data)
        if item is not None and item.auction_id != auction_id:
            raise error(ErrorCode.INVALID_PDA, f"item {index} of {short_hex(auction_id)}")
        return item

    def remove_item(self, auction_id: bytes, index: int) -> None:
        self.storage.remove(item_key(auction_id, index))

    # =========================================================================
    # Fee Vaults
    # =========================================================================

    def load_fee_vault(self, payment_denomination: bytes) -> Optional[FeeVault]:
        data = self._read(fee_vault_key(payment_denomination))
        if data is None:
            return None
        vault = FeeVault.from_bytes(data)
        if vault.payment_denomination != payment_denomination:
            raise error(ErrorCode.INVALID_PDA, f"fee vault {short_hex(payment_denomination)}")
        return vault

    def ensure_fee_vault(self, payment_denomination: bytes) -> FeeVault:
        """Load the fee vault for a denomination, creating it if absent."""
        vault = self.load_fee_vault(payment_denomination)
        if vault is None:
            vault = FeeVault(payment_denomination=payment_denomination)
            self._create(fee_vault_key(payment_denomination), FeeVault.SPACE, vault.to_bytes())
            logger.info(f"Fee vault created for {short_hex(payment_denomination)}")
        return vault

    def save_fee_vault(self, vault: FeeVault) -> None:
        self.storage.store(fee_vault_key(vault.payment_denomination), vault.to_bytes())
