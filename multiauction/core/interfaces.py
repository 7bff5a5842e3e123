"""
Collaborator interfaces.

The engine never touches persistence, balances, time or signatures
directly. It talks to four collaborators through these protocols:

- KeyedStorage: opaque records addressed by 32-byte derived keys
- AssetTransfer: balances held as (owner, asset) pairs
- Clock: the current timestamp, read once per operation
- SignerCheck: whether an identity authorized the current operation

Storage and transfer implementations also take part in the runtime's
unit of work (begin / commit / rollback), so an operation either lands
completely or not at all.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from multiauction.crypto import short_hex


@dataclass(frozen=True)
class Holding:
    """Balance of one asset class held by one owner (identity or derived key)."""
    owner: bytes
    asset: bytes

    def __repr__(self) -> str:
        return f"Holding({short_hex(self.owner)}, {short_hex(self.asset)})"


@runtime_checkable
class UnitOfWork(Protocol):
    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@runtime_checkable
class KeyedStorage(Protocol):
    def load(self, key: bytes) -> Optional[bytes]:
        """Record at key, or None if no record exists."""
        ...

    def store(self, key: bytes, data: bytes) -> None:
        """Overwrite an existing record."""
        ...

    def create(self, key: bytes, size: int, owner_tag: str) -> None:
        """Allocate a zeroed record; fails if the key is taken."""
        ...

    def remove(self, key: bytes) -> None: ...


@runtime_checkable
class AssetTransfer(Protocol):
    def transfer(self, source: Holding, destination: Holding, amount: int) -> None:
        """Move amount between holdings of the same asset; raises TransferError."""
        ...

    def close(self, account: Holding, rent_recipient: bytes) -> None:
        """Close an empty holding and release its storage deposit."""
        ...

    def balance(self, holding: Holding) -> int: ...

    def open(self, holding: Holding) -> None: ...


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int: ...


@runtime_checkable
class SignerCheck(Protocol):
    def is_signer(self, identity: bytes) -> bool: ...
