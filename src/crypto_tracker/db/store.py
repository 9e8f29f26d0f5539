"""Key-value storage tiers for watchlist, users and sessions.

Values are JSON text. `MemoryStore` is the process-scoped (ephemeral) tier,
`SqlKeyValueStore` the durable one. Readers fail open: missing or corrupt data
yields the caller's default, and write failures are logged, never raised.
"""
import json
import logging
from typing import Any, Protocol

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from crypto_tracker.db.models import StoredValue
from crypto_tracker.db.sessions import get_session
from crypto_tracker.utils import utcnow

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The storage backend failed to read or write a value."""


class PersistenceCorruptError(Exception):
    """A stored value is not valid JSON."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Stored value for '{key}' is not valid JSON")
        self.key = key


class KeyValueStore(Protocol):
    """Synchronous textual key-value store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store; lives as long as the process."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()


class SqlKeyValueStore:
    """Durable store backed by the `storedvalue` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, key: str) -> str | None:
        try:
            with get_session(self._engine) as session:
                row = session.get(StoredValue, key)
                return row.value if row is not None else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read '{key}'") from exc

    def set(self, key: str, value: str) -> None:
        try:
            with get_session(self._engine) as session:
                row = session.get(StoredValue, key)
                if row is None:
                    row = StoredValue(key=key, value=value)
                else:
                    row.value = value
                    row.updated_at = utcnow()
                session.add(row)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write '{key}'") from exc

    def remove(self, key: str) -> None:
        try:
            with get_session(self._engine) as session:
                row = session.get(StoredValue, key)
                if row is not None:
                    session.delete(row)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to remove '{key}'") from exc


def load_json(store: KeyValueStore, key: str) -> Any | None:
    """Read and decode a JSON value; None when absent.

    Raises:
        PersistenceCorruptError: the stored text is not valid JSON.
        StorageError: the backend failed.
    """
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise PersistenceCorruptError(key) from exc


def read_json(store: KeyValueStore, key: str, default: Any) -> Any:
    """Fail-open read: corrupt or unreadable values yield `default`."""
    try:
        value = load_json(store, key)
    except PersistenceCorruptError as exc:
        logger.warning("%s; using default", exc)
        return default
    except StorageError as exc:
        logger.warning("Storage read failed for '%s': %s", key, exc)
        return default
    return default if value is None else value


def write_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Best-effort write. Returns False (and logs) when the backend fails."""
    try:
        store.set(key, json.dumps(value))
    except StorageError as exc:
        logger.warning("Storage write failed for '%s': %s", key, exc)
        return False
    return True


def remove_key(store: KeyValueStore, key: str) -> None:
    """Best-effort removal; failures are logged."""
    try:
        store.remove(key)
    except StorageError as exc:
        logger.warning("Storage remove failed for '%s': %s", key, exc)
