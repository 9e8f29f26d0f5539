"""Database package: durable key-value table, engine and storage tiers."""
from crypto_tracker.db.models import StoredValue
from crypto_tracker.db.sessions import create_db_engine, get_session, init_db
from crypto_tracker.db.store import (KeyValueStore, MemoryStore,
                                     PersistenceCorruptError,
                                     SqlKeyValueStore, StorageError)

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "PersistenceCorruptError",
    "SqlKeyValueStore",
    "StorageError",
    "StoredValue",
    "create_db_engine",
    "get_session",
    "init_db",
]
