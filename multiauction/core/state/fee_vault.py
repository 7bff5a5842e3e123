"""
Fee vault - collected platform fees for one payment denomination.

Created lazily by the first fee-generating operation in that
denomination. Only the program owner can claim it; a claim moves the
whole balance out and resets the counter.
"""

from dataclasses import dataclass

from multiauction.core.codec import BorshReader, BorshWriter
from multiauction.core.config import SCHEMA_VERSION
from multiauction.core.errors import ErrorCode, error
from multiauction.utils.validation import U64_MAX


@dataclass
class FeeVault:
    """Accumulated fees for a payment denomination."""
    payment_denomination: bytes
    amount: int = 0
    bump: int = 0

    SPACE = 8 + 42

    def accrue(self, fee: int) -> int:
        """Add a fee (saturating at u64 max). Returns the new total."""
        self.amount = min(self.amount + fee, U64_MAX)
        return self.amount

    def claim(self) -> int:
        """
        Take the whole balance.

        Raises:
            LifecycleError(NO_FUNDS) if nothing has accumulated
        """
        if self.amount == 0:
            raise error(ErrorCode.NO_FUNDS)
        amount = self.amount
        self.amount = 0
        return amount

    def to_bytes(self) -> bytes:
        writer = BorshWriter()
        writer.u8(SCHEMA_VERSION)
        writer.fixed(self.payment_denomination, 32)
        writer.u64(self.amount)
        writer.u8(self.bump)
        writer.boolean(True)  # is_initialized
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "FeeVault":
        reader = BorshReader(data)
        schema = reader.u8()
        if schema != SCHEMA_VERSION:
            reader.fail(f"unsupported fee vault schema version {schema}")
        denomination = reader.fixed(32)
        amount = reader.u64()
        bump = reader.u8()
        initialized = reader.boolean()
        reader.finish(allow_padding=True)
        if not initialized:
            raise error(ErrorCode.ACCOUNT_NOT_INITIALIZED, "fee vault")
        return cls(payment_denomination=denomination, amount=amount, bump=bump)
