"""
Storage and transfer collaborators.

Provides:
- AccountStore: typed record access over any KeyedStorage
- MemoryStorage / MemoryBank: in-process collaborators with rollback
- SQLiteAdapter: persistent records and holdings in one database
- SystemClock / FixedClock / StaticSigners
"""

from multiauction.core.storage.account_store import AccountStore
from multiauction.core.storage.memory import (
    FixedClock,
    MemoryBank,
    MemoryStorage,
    StaticSigners,
    SystemClock,
)
from multiauction.core.storage.sqlite_adapter import SQLiteAdapter

__all__ = [
    "AccountStore",
    "FixedClock",
    "MemoryBank",
    "MemoryStorage",
    "StaticSigners",
    "SystemClock",
    "SQLiteAdapter",
]
