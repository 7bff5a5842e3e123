"""
Runtime - executes operations atomically against the collaborators.

For each operation the runtime:
1. reads the clock once
2. begins a unit of work on every distinct collaborator
3. runs the controller
4. commits, or rolls every collaborator back and re-raises

A collaborator that implements several protocols (the SQLite adapter is
both storage and transfer) takes part in the unit of work once.
"""

from typing import Iterable, List, Optional

from multiauction.core.config import ProtocolConfig, load_config
from multiauction.core.errors import AuctionError, TransferError
from multiauction.core.interfaces import AssetTransfer, Clock, KeyedStorage, SignerCheck, UnitOfWork
from multiauction.core.lifecycle import AuctionController, OperationContext
from multiauction.core.lifecycle.policy import ClosePolicy, entitlement_policy
from multiauction.core.pricing import calculate_dutch_price, next_price_drop
from multiauction.core.requests import OperationRequest, decode_instruction
from multiauction.core.state import Auction
from multiauction.core.storage import AccountStore, SQLiteAdapter, StaticSigners, SystemClock
from multiauction.utils.logger import get_logger, setup_logging

logger = get_logger("runtime")


class AuctionRuntime:
    """
    Entry point for embedders.

    Example:
        runtime = AuctionRuntime(MemoryStorage(), MemoryBank(), FixedClock(1000))
        runtime.execute(Initialize(signer=owner))
    """

    def __init__(
        self,
        storage: KeyedStorage,
        bank: AssetTransfer,
        clock: Clock,
        config: Optional[ProtocolConfig] = None,
        close_policy: ClosePolicy = entitlement_policy,
    ):
        self.storage = storage
        self.bank = bank
        self.clock = clock
        self.config = config or ProtocolConfig()
        self.store = AccountStore(storage)
        self.controller = AuctionController(self.store, bank, self.config, close_policy)

        self._participants: List[UnitOfWork] = []
        for collaborator in (storage, bank):
            if isinstance(collaborator, UnitOfWork) and not any(
                collaborator is seen for seen in self._participants
            ):
                self._participants.append(collaborator)

    def execute(self, request: OperationRequest, signers: Optional[SignerCheck] = None):
        """
        Run one operation all-or-nothing.

        Args:
            request: Validated operation request
            signers: Signer check for this operation; defaults to the
                request's own signer only

        Returns:
            The operation's result (updated record or moved amount)
        """
        if signers is None:
            signers = StaticSigners([request.signer])
        ctx = OperationContext(now=self.clock.now(), signers=signers)
        operation = type(request).__name__

        begun: List[UnitOfWork] = []
        try:
            for participant in self._participants:
                participant.begin()
                begun.append(participant)
            result = self.controller.dispatch(request, ctx)
        except AuctionError as exc:
            self._rollback(begun)
            logger.warning(f"{operation} rejected: {exc.code.name} ({exc})")
            raise
        except TransferError as exc:
            self._rollback(begun)
            logger.error(f"{operation} failed in transfer: {exc}")
            raise
        except Exception:
            self._rollback(begun)
            logger.exception(f"{operation} failed unexpectedly")
            raise

        for participant in begun:
            participant.commit()
        logger.debug(f"{operation} committed at {ctx.now}")
        return result

    def execute_instruction(
        self,
        data: bytes,
        signer: bytes,
        signers: Optional[Iterable[bytes]] = None,
    ):
        """Decode a binary instruction submitted by `signer` and execute it."""
        request = decode_instruction(data, signer)
        signer_check = StaticSigners(signers) if signers is not None else None
        return self.execute(request, signer_check)

    @staticmethod
    def _rollback(begun: List[UnitOfWork]) -> None:
        for participant in reversed(begun):
            participant.rollback()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_auction(self, auction_id: bytes) -> Auction:
        return self.store.load_auction(auction_id)

    def quote_dutch(self, auction_id: bytes) -> dict:
        """Current Dutch price and when it next drops (0 at the floor)."""
        auction = self.store.load_auction(auction_id)
        params = auction.dutch()
        now = self.clock.now()
        return {
            "price": calculate_dutch_price(params, now),
            "next_drop_at": next_price_drop(params, now),
            "deadline": params.deadline,
        }


def create_runtime(
    config: Optional[ProtocolConfig] = None,
    clock: Optional[Clock] = None,
    close_policy: ClosePolicy = entitlement_policy,
) -> AuctionRuntime:
    """
    Build a SQLite-backed runtime from configuration.

    Loads MULTIAUCTION_* settings when no config is given, sets up
    logging and opens the database at config.db_path.
    """
    config = config or load_config()
    setup_logging(level=config.log_level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)
    config.ensure_directories()

    adapter = SQLiteAdapter(config.db_path)
    logger.info(f"Runtime opened at {config.db_path}")
    return AuctionRuntime(adapter, adapter, clock or SystemClock(), config, close_policy)
