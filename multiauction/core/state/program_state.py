"""
Program state - the process-wide singleton.

Holds the owner identity, the global pause flag and the number of
auctions ever created. Created once by initialize(), changed only by
governance operations signed by the current owner, never destroyed.
"""

from dataclasses import dataclass

from multiauction.core.codec import BorshReader, BorshWriter
from multiauction.core.config import SCHEMA_VERSION
from multiauction.core.errors import ErrorCode, error
from multiauction.crypto import short_hex
from multiauction.utils.validation import U64_MAX


@dataclass
class ProgramState:
    """
    Global program state.

    Attributes:
        owner: Identity allowed to pause, hand over ownership and claim fees
        paused: When set, creation, bidding and settlement are refused
        auction_count: Auctions created so far (saturating)
    """
    owner: bytes
    paused: bool = False
    auction_count: int = 0
    bump: int = 0

    LEN = 32 + 1 + 8 + 1 + 1

    # =========================================================================
    # Guards
    # =========================================================================

    def require_owner(self, identity: bytes) -> None:
        if identity != self.owner:
            raise error(ErrorCode.ONLY_OWNER)

    def require_not_paused(self) -> None:
        if self.paused:
            raise error(ErrorCode.CONTRACT_PAUSED)

    # =========================================================================
    # Governance
    # =========================================================================

    def set_paused(self, caller: bytes, paused: bool) -> None:
        self.require_owner(caller)
        self.paused = paused

    def transfer_ownership(self, caller: bytes, new_owner: bytes) -> bytes:
        """Hand ownership over. Returns the previous owner."""
        self.require_owner(caller)
        previous, self.owner = self.owner, new_owner
        return previous

    def record_auction_created(self) -> int:
        self.auction_count = min(self.auction_count + 1, U64_MAX)
        return self.auction_count

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_bytes(self) -> bytes:
        writer = BorshWriter()
        writer.u8(SCHEMA_VERSION)
        writer.fixed(self.owner, 32)
        writer.boolean(self.paused)
        writer.u64(self.auction_count)
        writer.u8(self.bump)
        writer.boolean(True)  # is_initialized
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "ProgramState":
        reader = BorshReader(data)
        schema = reader.u8()
        if schema != SCHEMA_VERSION:
            reader.fail(f"unsupported program state schema version {schema}")
        owner = reader.fixed(32)
        paused = reader.boolean()
        auction_count = reader.u64()
        bump = reader.u8()
        initialized = reader.boolean()
        reader.finish(allow_padding=True)
        if not initialized:
            raise error(ErrorCode.ACCOUNT_NOT_INITIALIZED, "program state")
        return cls(owner=owner, paused=paused, auction_count=auction_count, bump=bump)

    def __repr__(self) -> str:
        return (
            f"ProgramState(owner={short_hex(self.owner)}, paused={self.paused}, "
            f"auctions={self.auction_count})"
        )
