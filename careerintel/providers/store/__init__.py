"""Record store adapters.

Two implementations of IRecordStore (careerintel/interfaces/record_store.py):
    - SQLiteRecordStore    -- JSON documents in SQLite via aiosqlite (default)
    - InMemoryRecordStore  -- dict-backed, for tests and throwaway runs

main.py picks one from ``STORE_BACKEND``.
"""

from careerintel.providers.store.memory_store import InMemoryRecordStore
from careerintel.providers.store.sqlite_store import SQLiteRecordStore

__all__ = ["InMemoryRecordStore", "SQLiteRecordStore"]
