import sqlite3
import threading
from pathlib import Path
from typing import Optional

from multiauction.core.errors import ErrorCode, TransferError, error
from multiauction.core.interfaces import Holding
from multiauction.utils.logger import get_logger
from multiauction.utils.validation import U64_MAX

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent settlement state.

    Provides, on one connection per thread:
    1. Keyed storage for encoded records (program state, auctions,
       items, fee vaults).
    2. Asset holdings: (owner, asset) -> balance, with all-or-nothing
       transfers.

    Implementing both collaborator protocols on the same connection means
    one BEGIN IMMEDIATE / COMMIT covers every record and balance an
    operation touches.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._conn_local = threading.local()

        # Ensure directory exists
        if not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            # Autocommit mode; units of work issue BEGIN/COMMIT explicitly
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False,
                isolation_level=None,
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn_local.depth = 0
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS accounts (
                key BLOB PRIMARY KEY,
                data BLOB NOT NULL,
                owner_tag TEXT NOT NULL
            )
        """)

        # Amounts are u64 and can exceed SQLite's signed INTEGER range
        conn.execute("""
            CREATE TABLE IF NOT EXISTS holdings (
                owner BLOB NOT NULL,
                asset BLOB NOT NULL,
                amount TEXT NOT NULL,
                PRIMARY KEY (owner, asset)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS reclaimed (
                recipient BLOB PRIMARY KEY,
                accounts INTEGER NOT NULL
            )
        """)

    def disconnect(self):
        """Close this thread's connection."""
        if hasattr(self._conn_local, "conn"):
            self._conn_local.conn.close()
            del self._conn_local.conn

    # =========================================================================
    # Unit of Work
    # =========================================================================

    def begin(self) -> None:
        conn = self._get_conn()
        if self._conn_local.depth == 0:
            conn.execute("BEGIN IMMEDIATE")
        self._conn_local.depth += 1

    def commit(self) -> None:
        conn = self._get_conn()
        self._conn_local.depth -= 1
        if self._conn_local.depth == 0:
            conn.execute("COMMIT")

    def rollback(self) -> None:
        conn = self._get_conn()
        self._conn_local.depth -= 1
        if self._conn_local.depth == 0 and conn.in_transaction:
            conn.execute("ROLLBACK")

    # =========================================================================
    # Keyed Storage
    # =========================================================================

    def load(self, key: bytes) -> Optional[bytes]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT data FROM accounts WHERE key = ?", (key,))
        row = cursor.fetchone()
        return bytes(row["data"]) if row else None

    def store(self, key: bytes, data: bytes) -> None:
        current = self.load(key)
        if current is None:
            raise error(ErrorCode.ACCOUNT_NOT_INITIALIZED, f"no record at {key.hex()[:16]}")
        if len(data) > len(current):
            raise error(
                ErrorCode.INVALID_ACCOUNT_DATA,
                f"{len(data)} bytes exceed allocated {len(current)}",
            )
        conn = self._get_conn()
        conn.execute(
            "UPDATE accounts SET data = ? WHERE key = ?",
            (data + bytes(len(current) - len(data)), key),
        )

    def create(self, key: bytes, size: int, owner_tag: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO accounts (key, data, owner_tag) VALUES (?, ?, ?)",
                (key, bytes(size), owner_tag),
            )
        except sqlite3.IntegrityError as exc:
            raise error(ErrorCode.ACCOUNT_ALREADY_INITIALIZED, f"key {key.hex()[:16]}") from exc

    def remove(self, key: bytes) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM accounts WHERE key = ?", (key,))

    def owner_of(self, key: bytes) -> Optional[str]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT owner_tag FROM accounts WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row["owner_tag"] if row else None

    # =========================================================================
    # Holdings
    # =========================================================================

    def _set_balance(self, holding: Holding, amount: int) -> None:
        conn = self._get_conn()
        conn.execute(
            "INSERT OR REPLACE INTO holdings (owner, asset, amount) VALUES (?, ?, ?)",
            (holding.owner, holding.asset, str(amount)),
        )

    def balance(self, holding: Holding) -> int:
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT amount FROM holdings WHERE owner = ? AND asset = ?",
            (holding.owner, holding.asset),
        )
        row = cursor.fetchone()
        return int(row["amount"]) if row else 0

    def is_open(self, holding: Holding) -> bool:
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT 1 FROM holdings WHERE owner = ? AND asset = ?",
            (holding.owner, holding.asset),
        )
        return cursor.fetchone() is not None

    def open(self, holding: Holding) -> None:
        conn = self._get_conn()
        conn.execute(
            "INSERT OR IGNORE INTO holdings (owner, asset, amount) VALUES (?, ?, '0')",
            (holding.owner, holding.asset),
        )

    def credit(self, holding: Holding, amount: int) -> None:
        """Mint funds into a holding (funding accounts outside the engine)."""
        new_balance = self.balance(holding) + amount
        if amount < 0 or new_balance > U64_MAX:
            raise TransferError(f"cannot credit {amount} to {holding!r}")
        self._set_balance(holding, new_balance)

    def transfer(self, source: Holding, destination: Holding, amount: int) -> None:
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
        self._set_balance(source, available - amount)
        self._set_balance(destination, received)

    def close(self, account: Holding, rent_recipient: bytes) -> None:
        if self.balance(account) != 0:
            raise TransferError(f"cannot close non-empty {account!r}")
        conn = self._get_conn()
        conn.execute(
            "DELETE FROM holdings WHERE owner = ? AND asset = ?",
            (account.owner, account.asset),
        )
        conn.execute(
            """
            INSERT INTO reclaimed (recipient, accounts) VALUES (?, 1)
            ON CONFLICT(recipient) DO UPDATE SET accounts = accounts + 1
            """,
            (rent_recipient,),
        )

    def reclaimed_count(self, recipient: bytes) -> int:
        conn = self._get_conn()
        cursor = conn.execute("SELECT accounts FROM reclaimed WHERE recipient = ?", (recipient,))
        row = cursor.fetchone()
        return row["accounts"] if row else 0
