"""
Auction Lifecycle Controller - one entry point per operation.

Conceptual Background:
---------------------
Every operation reads the records it needs through the account store,
checks its preconditions in a fixed order and then applies its effects:

    signer -> program state (initialized, paused) -> auction exists
           -> dealer / owner -> status -> auction type -> time -> amounts

The first failing check raises; nothing has been written at that point.
Effects are record writes plus asset transfers. The runtime wraps each
call in a unit of work, so a failing transfer halfway through an
operation leaves no trace.

Money Flow:
----------
- Traditional bids sit in the auction escrow. Outbid bidders are
  refunded from escrow before the new bid is taken. On settlement the
  escrow pays the dealer (net) and the fee vault (fee).
- Dutch purchases and Penny bids pay the dealer and the fee vault
  directly from the buyer's holding.
- Items sit in per-asset item vaults until close_item_vault releases
  them after the auction is terminal.
"""

from typing import Callable, Dict, Optional, Type

from multiauction.core.config import ProtocolConfig
from multiauction.core.errors import ErrorCode, error
from multiauction.core.fees import FeeSplit, split_payment
from multiauction.core.interfaces import AssetTransfer, Holding
from multiauction.core.keys import escrow_key, fee_vault_key, item_vault_key
from multiauction.core.lifecycle.context import OperationContext
from multiauction.core.lifecycle.policy import ClosePolicy, entitlement_policy
from multiauction.core.pricing import calculate_dutch_price
from multiauction.core.requests import (
    AcceptBid,
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
    OperationRequest,
    SetPaused,
    TransferOwnership,
)
from multiauction.core.state import (
    Auction,
    AuctionItem,
    AuctionStatus,
    AuctionTypeTag,
    DutchParams,
    ItemLedger,
    PennyParams,
    ProgramState,
    TraditionalParams,
)
from multiauction.core.storage.account_store import AccountStore
from multiauction.crypto import short_hex
from multiauction.utils.logger import get_logger
from multiauction.utils.validation import I64_MAX, U64_MAX

logger = get_logger("controller")


class AuctionController:
    """
    Applies operations to auction state.

    Holds no state of its own: program state, auctions, items and fee
    vaults are loaded from the account store on every call.
    """

    def __init__(
        self,
        store: AccountStore,
        bank: AssetTransfer,
        config: Optional[ProtocolConfig] = None,
        close_policy: ClosePolicy = entitlement_policy,
    ):
        self.store = store
        self.bank = bank
        self.config = config or ProtocolConfig()
        self.close_policy = close_policy

        self._handlers: Dict[Type[OperationRequest], Callable] = {
            Initialize: self.initialize,
            SetPaused: self.set_paused,
            TransferOwnership: self.transfer_ownership,
            ClaimFees: self.claim_fees,
            CreateTraditionalAuction: self.create_traditional,
            CreateDutchAuction: self.create_dutch,
            CreatePennyAuction: self.create_penny,
            DepositTokens: self.deposit_tokens,
            DepositNft: self.deposit_nft,
            BidTraditional: self.bid_traditional,
            BuyDutch: self.buy_dutch,
            BidPenny: self.bid_penny,
            FinalizeAuction: self.finalize,
            AcceptBid: self.accept_bid,
            CloseItemVault: self.close_item_vault,
        }

    def dispatch(self, request: OperationRequest, ctx: OperationContext):
        """Route a request to its operation."""
        handler = self._handlers.get(type(request))
        if handler is None:
            raise error(ErrorCode.INVALID_INSTRUCTION_DATA, f"unsupported request {type(request).__name__}")
        return handler(request, ctx)

    # =========================================================================
    # Shared Checks & Transfers
    # =========================================================================

    def _active_program_state(self) -> ProgramState:
        state = self.store.require_program_state()
        state.require_not_paused()
        return state

    @staticmethod
    def _require_dealer(auction: Auction, identity: bytes) -> None:
        if auction.dealer != identity:
            raise error(ErrorCode.ONLY_DEALER)

    @staticmethod
    def _require_status(auction: Auction, *allowed: AuctionStatus) -> None:
        if auction.status not in allowed:
            raise error(ErrorCode.AUCTION_NOT_ACTIVE, f"status is {auction.status.name}")

    @staticmethod
    def _escrow(auction: Auction) -> Holding:
        return Holding(escrow_key(auction.auction_id), auction.payment_denomination)

    def _pay_dealer(self, auction: Auction, source: Holding, amount: int) -> FeeSplit:
        """
        Pay `amount` from `source` to the dealer, net of the platform fee.

        The fee vault for the denomination is created on first use; the fee
        transfer and accrual only happen when the fee is non-zero.
        """
        split = split_payment(amount, self.config.fee_rate_bps)
        denomination = auction.payment_denomination

        vault = self.store.ensure_fee_vault(denomination)
        fee_holding = Holding(fee_vault_key(denomination), denomination)
        self.bank.open(fee_holding)

        self.bank.transfer(source, Holding(auction.dealer, denomination), split.net)
        if split.fee > 0:
            self.bank.transfer(source, fee_holding, split.fee)
            vault.accrue(split.fee)
            self.store.save_fee_vault(vault)

        return split

    def _settle(self, auction: Auction, now: int) -> FeeSplit:
        """Pay the escrowed winning bid out and mark the auction Finalized."""
        split = self._pay_dealer(auction, self._escrow(auction), auction.current_bid)
        auction.status = AuctionStatus.FINALIZED
        auction.finalized_at = now
        return split

    def _refund(self, auction: Auction, now: int) -> None:
        """Return the escrowed bid (if any) and mark the auction Refunded."""
        if auction.has_bidder and auction.current_bid > 0:
            self.bank.transfer(
                self._escrow(auction),
                Holding(auction.current_bidder, auction.payment_denomination),
                auction.current_bid,
            )
        auction.status = AuctionStatus.REFUNDED
        auction.finalized_at = now

    # =========================================================================
    # Program State
    # =========================================================================

    def initialize(self, request: Initialize, ctx: OperationContext) -> ProgramState:
        ctx.require_signer(request.signer)

        state = ProgramState(owner=request.signer)
        self.store.create_program_state(state)

        logger.info(f"Program initialized, owner={short_hex(state.owner)}")
        return state

    def set_paused(self, request: SetPaused, ctx: OperationContext) -> ProgramState:
        ctx.require_signer(request.signer)
        state = self.store.require_program_state()

        state.set_paused(request.signer, request.paused)
        self.store.save_program_state(state)

        logger.warning(f"Program {'paused' if request.paused else 'unpaused'}")
        return state

    def transfer_ownership(self, request: TransferOwnership, ctx: OperationContext) -> ProgramState:
        ctx.require_signer(request.signer)
        state = self.store.require_program_state()

        previous = state.transfer_ownership(request.signer, request.new_owner)
        self.store.save_program_state(state)

        logger.info(f"Ownership transferred: {short_hex(previous)} -> {short_hex(request.new_owner)}")
        return state

    def claim_fees(self, request: ClaimFees, ctx: OperationContext) -> int:
        """Move the whole fee vault balance to the owner. Returns the amount."""
        ctx.require_signer(request.signer)
        state = self.store.require_program_state()
        state.require_owner(request.signer)

        denomination = request.payment_denomination
        vault = self.store.load_fee_vault(denomination)
        if vault is None:
            raise error(ErrorCode.NO_FUNDS, f"no fee vault for {short_hex(denomination)}")

        amount = vault.claim()
        self.bank.transfer(
            Holding(fee_vault_key(denomination), denomination),
            Holding(state.owner, denomination),
            amount,
        )
        self.store.save_fee_vault(vault)

        logger.info(f"Claimed {amount} fees in {short_hex(denomination)}")
        return amount

    # =========================================================================
    # Auction Creation
    # =========================================================================

    def _create(
        self,
        request: OperationRequest,
        ctx: OperationContext,
        type_tag: AuctionTypeTag,
        params,
        deadline: Optional[int],
    ) -> Auction:
        ctx.require_signer(request.signer)
        state = self._active_program_state()

        if deadline is not None and deadline <= ctx.now:
            raise error(ErrorCode.AUCTION_EXPIRED, f"deadline {deadline} <= now {ctx.now}")

        auction = Auction(
            auction_id=request.auction_id,
            type_tag=type_tag,
            dealer=request.signer,
            payment_denomination=request.payment_denomination,
            params=params,
            created_at=ctx.now,
        )
        self.store.create_auction(auction)
        self.bank.open(self._escrow(auction))

        state.record_auction_created()
        self.store.save_program_state(state)

        logger.info(
            f"Created {type_tag.name} auction {short_hex(auction.auction_id)} "
            f"by dealer {short_hex(auction.dealer)}"
        )
        return auction

    def create_traditional(self, request: CreateTraditionalAuction, ctx: OperationContext) -> Auction:
        params = TraditionalParams(
            start_amount=request.start_amount,
            increment=request.increment,
            reserve_price=request.reserve_price,
            deadline=request.deadline,
        )
        return self._create(request, ctx, AuctionTypeTag.TRADITIONAL, params, request.deadline)

    def create_dutch(self, request: CreateDutchAuction, ctx: OperationContext) -> Auction:
        params = DutchParams(
            start_price=request.start_price,
            decrease_amount=request.decrease_amount,
            interval=request.interval,
            minimum_price=request.minimum_price,
            deadline=request.deadline,
            start_time=ctx.now,
        )
        return self._create(request, ctx, AuctionTypeTag.DUTCH, params, request.deadline)

    def create_penny(self, request: CreatePennyAuction, ctx: OperationContext) -> Auction:
        timer_duration = request.timer_duration or self.config.penny_timer_duration
        params = PennyParams(increment=request.increment, timer_duration=timer_duration)
        # No deadline until the first bid
        return self._create(request, ctx, AuctionTypeTag.PENNY, params, None)

    # =========================================================================
    # Items
    # =========================================================================

    def _deposit(
        self,
        request: OperationRequest,
        ctx: OperationContext,
        amount: int,
        is_nonfungible: bool,
    ) -> AuctionItem:
        ctx.require_signer(request.signer)
        auction = self.store.load_auction(request.auction_id)
        self._require_dealer(auction, request.signer)
        self._require_status(auction, AuctionStatus.ACTIVE)

        ledger = ItemLedger(self.store, auction, self.config.max_items)
        item = ledger.append(request.asset_class, amount, is_nonfungible)

        vault = Holding(item_vault_key(auction.auction_id, request.asset_class), request.asset_class)
        self.bank.open(vault)
        self.bank.transfer(Holding(request.signer, request.asset_class), vault, amount)
        self.store.save_auction(auction)

        logger.info(
            f"Deposited item {item.index} into {short_hex(auction.auction_id)}: "
            f"{amount} x {short_hex(request.asset_class)}"
        )
        return item

    def deposit_tokens(self, request: DepositTokens, ctx: OperationContext) -> AuctionItem:
        return self._deposit(request, ctx, request.amount, is_nonfungible=False)

    def deposit_nft(self, request: DepositNft, ctx: OperationContext) -> AuctionItem:
        return self._deposit(request, ctx, 1, is_nonfungible=True)

    # =========================================================================
    # Bidding
    # =========================================================================

    def bid_traditional(self, request: BidTraditional, ctx: OperationContext) -> Auction:
        """
        Place an ascending bid.

        The first bid must reach start_amount, later bids must beat the
        current bid by at least the increment. The outbid bidder gets the
        exact escrowed amount back before the new bid is taken.
        """
        ctx.require_signer(request.signer)
        self._active_program_state()
        auction = self.store.load_auction(request.auction_id)
        self._require_status(auction, AuctionStatus.ACTIVE)
        params = auction.traditional()

        if ctx.now > params.deadline:
            raise error(ErrorCode.AUCTION_EXPIRED)

        if auction.current_bid == 0:
            min_bid = params.start_amount
        else:
            min_bid = auction.current_bid + params.increment
            if min_bid > U64_MAX:
                raise error(ErrorCode.MATH_OVERFLOW, "minimum bid exceeds u64")
        if request.amount < min_bid:
            raise error(ErrorCode.BID_TOO_LOW, f"{request.amount} < {min_bid}")

        escrow = self._escrow(auction)
        denomination = auction.payment_denomination
        if auction.has_bidder and auction.current_bid > 0:
            self.bank.transfer(escrow, Holding(auction.current_bidder, denomination), auction.current_bid)
        self.bank.transfer(Holding(request.signer, denomination), escrow, request.amount)

        auction.current_bidder = request.signer
        auction.current_bid = request.amount
        params.reserve_met = request.amount >= params.reserve_price
        self.store.save_auction(auction)

        logger.info(
            f"Bid {request.amount} on {short_hex(auction.auction_id)} "
            f"by {short_hex(request.signer)} (reserve met: {params.reserve_met})"
        )
        return auction

    def buy_dutch(self, request: BuyDutch, ctx: OperationContext) -> Auction:
        """Buy at the current price if it does not exceed max_price."""
        ctx.require_signer(request.signer)
        self._active_program_state()
        auction = self.store.load_auction(request.auction_id)
        self._require_status(auction, AuctionStatus.ACTIVE)
        if auction.item_count == 0:
            raise error(ErrorCode.NO_ITEMS)
        params = auction.dutch()

        if ctx.now > params.deadline:
            raise error(ErrorCode.AUCTION_EXPIRED)

        price = calculate_dutch_price(params, ctx.now)
        if price > request.max_price:
            raise error(ErrorCode.BID_TOO_LOW, f"price {price} > max {request.max_price}")

        buyer = Holding(request.signer, auction.payment_denomination)
        split = self._pay_dealer(auction, buyer, price)

        auction.current_bidder = request.signer
        auction.current_bid = price
        auction.status = AuctionStatus.FINALIZED
        auction.finalized_at = ctx.now
        self.store.save_auction(auction)

        logger.info(
            f"Dutch auction {short_hex(auction.auction_id)} sold at {price} "
            f"to {short_hex(request.signer)} (fee {split.fee})"
        )
        return auction

    def bid_penny(self, request: BidPenny, ctx: OperationContext) -> Auction:
        """
        Pay the fixed increment and restart the timer.

        The increment goes to the dealer (net of fee) immediately; the
        auction stays Active until the timer runs out.
        """
        ctx.require_signer(request.signer)
        self._active_program_state()
        auction = self.store.load_auction(request.auction_id)
        self._require_status(auction, AuctionStatus.ACTIVE)
        params = auction.penny()

        if params.current_deadline > 0 and ctx.now > params.current_deadline:
            raise error(ErrorCode.AUCTION_EXPIRED, "penny timer ran out")

        bidder = Holding(request.signer, auction.payment_denomination)
        self._pay_dealer(auction, bidder, params.increment)

        params.total_paid = min(params.total_paid + params.increment, U64_MAX)
        params.last_bid_time = ctx.now
        params.current_deadline = min(ctx.now + params.timer_duration, I64_MAX)
        auction.current_bidder = request.signer
        auction.current_bid = params.total_paid
        self.store.save_auction(auction)

        logger.info(
            f"Penny bid on {short_hex(auction.auction_id)} by {short_hex(request.signer)}, "
            f"timer until {params.current_deadline}"
        )
        return auction

    # =========================================================================
    # Settlement
    # =========================================================================

    def finalize(self, request: FinalizeAuction, ctx: OperationContext) -> Auction:
        """
        Settle an auction whose bidding phase is over. Anyone may call.

        Traditional:
            no bidder -> Refunded
            reserve met -> escrow paid out, Finalized
            reserve missed, within acceptance window -> Expired
            reserve missed, window over -> bidder refunded, Refunded
        Dutch (unsold past deadline) -> Refunded
        Penny (timer expired) -> Finalized
        """
        self._active_program_state()
        auction = self.store.load_auction(request.auction_id)
        self._require_status(auction, AuctionStatus.ACTIVE, AuctionStatus.EXPIRED)
        now = ctx.now

        if auction.type_tag == AuctionTypeTag.TRADITIONAL:
            params = auction.traditional()
            if now <= params.deadline:
                raise error(ErrorCode.AUCTION_NOT_EXPIRED)

            if not auction.has_bidder:
                self._refund(auction, now)
            elif params.reserve_met:
                self._settle(auction, now)
            else:
                acceptance_deadline = min(params.deadline + self.config.acceptance_period, I64_MAX)
                if now <= acceptance_deadline:
                    params.acceptance_deadline = acceptance_deadline
                    auction.status = AuctionStatus.EXPIRED
                else:
                    self._refund(auction, now)

        elif auction.type_tag == AuctionTypeTag.DUTCH:
            params = auction.dutch()
            if now <= params.deadline:
                raise error(ErrorCode.AUCTION_NOT_EXPIRED)
            auction.status = AuctionStatus.REFUNDED
            auction.finalized_at = now

        else:
            params = auction.penny()
            if params.current_deadline == 0:
                raise error(ErrorCode.NO_BIDDER)
            if now <= params.current_deadline:
                raise error(ErrorCode.PENNY_TIMER_NOT_EXPIRED)
            auction.status = AuctionStatus.FINALIZED
            auction.finalized_at = now

        self.store.save_auction(auction)
        logger.info(f"Auction {short_hex(auction.auction_id)} -> {auction.status.name}")
        return auction

    def accept_bid(self, request: AcceptBid, ctx: OperationContext) -> Auction:
        """Dealer accepts a below-reserve bid during the acceptance window."""
        ctx.require_signer(request.signer)
        self._active_program_state()
        auction = self.store.load_auction(request.auction_id)
        self._require_dealer(auction, request.signer)
        self._require_status(auction, AuctionStatus.EXPIRED)
        if not auction.has_bidder:
            raise error(ErrorCode.NO_BIDDER)
        params = auction.traditional()

        if params.acceptance_deadline > 0 and ctx.now > params.acceptance_deadline:
            raise error(ErrorCode.ACCEPTANCE_PERIOD_EXPIRED)

        split = self._settle(auction, ctx.now)
        self.store.save_auction(auction)

        logger.info(
            f"Dealer accepted bid {auction.current_bid} on {short_hex(auction.auction_id)} "
            f"(net {split.net}, fee {split.fee})"
        )
        return auction

    def close_item_vault(self, request: CloseItemVault, ctx: OperationContext) -> int:
        """
        Release one item's vault after the auction is terminal.

        Moves whatever the vault still holds to the recipient, closes the
        vault and removes the item record. Deposits of the same asset
        class share a vault, so later closes for that asset move nothing.

        Returns:
            Amount moved to the recipient
        """
        ctx.require_signer(request.signer)
        auction = self.store.load_auction(request.auction_id)
        if not auction.is_terminal:
            raise error(ErrorCode.AUCTION_NOT_ACTIVE, f"status is {auction.status.name}")

        if not self.close_policy(auction, request.signer, request.recipient):
            raise error(ErrorCode.ONLY_DEALER, "caller may not release this item")

        ledger = ItemLedger(self.store, auction, self.config.max_items)
        item = ledger.get(request.item_index)

        vault = Holding(item_vault_key(auction.auction_id, item.asset_class), item.asset_class)
        remaining = self.bank.balance(vault)
        if remaining > 0:
            self.bank.transfer(vault, Holding(request.recipient, item.asset_class), remaining)
        self.bank.close(vault, request.rent_recipient)
        ledger.remove(item.index)

        logger.info(
            f"Closed item {item.index} of {short_hex(auction.auction_id)}: "
            f"{remaining} x {short_hex(item.asset_class)} to {short_hex(request.recipient)}"
        )
        return remaining
