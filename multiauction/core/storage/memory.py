"""
In-memory collaborators.

Used by tests and by embedders that keep state in process. Storage and
balances take part in the runtime's unit of work by snapshotting their
contents on begin() and restoring them on rollback(). A re-entrant lock
is held from begin() to commit()/rollback(), so concurrent operations
on one instance are serialized.
"""

import threading
import time
from typing import Dict, Iterable, Optional, Set

from multiauction.core.errors import ErrorCode, TransferError, error
from multiauction.core.interfaces import Holding
from multiauction.utils.logger import get_logger
from multiauction.utils.validation import U64_MAX

logger = get_logger("storage.memory")


class _Transactional:
    """Snapshot-based begin/commit/rollback shared by the memory collaborators."""

    def __init__(self):
        self._lock = threading.RLock()
        self._depth = 0
        self._saved = None

    def _snapshot(self):
        raise NotImplementedError

    def _restore(self, saved) -> None:
        raise NotImplementedError

    def begin(self) -> None:
        self._lock.acquire()
        if self._depth == 0:
            self._saved = self._snapshot()
        self._depth += 1

    def commit(self) -> None:
        self._depth -= 1
        if self._depth == 0:
            self._saved = None
        self._lock.release()

    def rollback(self) -> None:
        self._depth -= 1
        if self._depth == 0 and self._saved is not None:
            self._restore(self._saved)
            self._saved = None
        self._lock.release()


# =============================================================================
# Keyed Storage
# =============================================================================


class MemoryStorage(_Transactional):
    """
    Dict-backed keyed storage.

    Records are fixed-size: create() allocates a zeroed buffer and
    store() writes into it, zero-padding shorter payloads.
    """

    def __init__(self):
        super().__init__()
        self._records: Dict[bytes, bytes] = {}
        self._owners: Dict[bytes, str] = {}

    def _snapshot(self):
        return dict(self._records), dict(self._owners)

    def _restore(self, saved) -> None:
        self._records, self._owners = saved

    def load(self, key: bytes) -> Optional[bytes]:
        return self._records.get(key)

    def store(self, key: bytes, data: bytes) -> None:
        with self._lock:
            current = self._records.get(key)
            if current is None:
                raise error(ErrorCode.ACCOUNT_NOT_INITIALIZED, f"no record at {key.hex()[:16]}")
            if len(data) > len(current):
                raise error(
                    ErrorCode.INVALID_ACCOUNT_DATA,
                    f"{len(data)} bytes exceed allocated {len(current)}",
                )
            self._records[key] = data + bytes(len(current) - len(data))

    def create(self, key: bytes, size: int, owner_tag: str) -> None:
        with self._lock:
            if key in self._records:
                raise error(ErrorCode.ACCOUNT_ALREADY_INITIALIZED, f"key {key.hex()[:16]}")
            self._records[key] = bytes(size)
            self._owners[key] = owner_tag

    def remove(self, key: bytes) -> None:
        with self._lock:
            self._records.pop(key, None)
            self._owners.pop(key, None)

    def owner_of(self, key: bytes) -> Optional[str]:
        return self._owners.get(key)


# =============================================================================
# Asset Transfer
# =============================================================================


class MemoryBank(_Transactional):
    """
    Balances keyed by Holding.

    Transfers are all-or-nothing: a transfer that would overdraw the
    source, overflow the destination or mix asset classes raises
    TransferError and moves nothing.
    """

    def __init__(self):
        super().__init__()
        self._balances: Dict[Holding, int] = {}
        self._opened: Set[Holding] = set()
        self.reclaimed: Dict[bytes, int] = {}

    def _snapshot(self):
        return dict(self._balances), set(self._opened), dict(self.reclaimed)

    def _restore(self, saved) -> None:
        self._balances, self._opened, self.reclaimed = saved

    def credit(self, holding: Holding, amount: int) -> None:
        """Mint funds into a holding (funding accounts outside the engine)."""
        with self._lock:
            new_balance = self.balance(holding) + amount
            if amount < 0 or new_balance > U64_MAX:
                raise TransferError(f"cannot credit {amount} to {holding!r}")
            self._balances[holding] = new_balance

    def balance(self, holding: Holding) -> int:
        return self._balances.get(holding, 0)

    def is_open(self, holding: Holding) -> bool:
        return holding in self._opened

    def open(self, holding: Holding) -> None:
        with self._lock:
            self._opened.add(holding)
            self._balances.setdefault(holding, 0)

    def transfer(self, source: Holding, destination: Holding, amount: int) -> None:
        with self._lock:
            if source.asset != destination.asset:
                raise TransferError(f"asset mismatch: {source!r} -> {destination!r}")
            if amount < 0:
                raise TransferError(f"negative amount {amount}")
            available = self.balance(source)
            if available < amount:
                raise TransferError(
                    f"insufficient funds in {source!r}: have {available}, need {amount}"
                )
            if source == destination:
                return
            received = self.balance(destination) + amount
            if received > U64_MAX:
                raise TransferError(f"balance overflow in {destination!r}")
            self._balances[source] = available - amount
            self._balances[destination] = received
            logger.debug(f"Transfer {amount}: {source!r} -> {destination!r}")

    def close(self, account: Holding, rent_recipient: bytes) -> None:
        with self._lock:
            if self.balance(account) != 0:
                raise TransferError(f"cannot close non-empty {account!r}")
            self._balances.pop(account, None)
            self._opened.discard(account)
            self.reclaimed[rent_recipient] = self.reclaimed.get(rent_recipient, 0) + 1


# =============================================================================
# Clock & Signers
# =============================================================================


class SystemClock:
    """Wall-clock seconds, never going backwards."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


class FixedClock:
    """Manually driven clock for tests and replays."""

    def __init__(self, now: int = 0):
        self._now = now

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"clock cannot go backwards: {timestamp} < {self._now}")
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        self.set(self._now + seconds)
        return self._now


class StaticSigners:
    """A fixed set of identities that signed the current operation."""

    def __init__(self, identities: Iterable[bytes] = ()):
        self.identities = set(identities)

    def is_signer(self, identity: bytes) -> bool:
        return identity in self.identities
