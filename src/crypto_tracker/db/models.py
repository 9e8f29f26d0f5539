"""Database models for the crypto tracker.

Only the durable key-value tier is persisted. Market data is fetched on demand
and never stored.
"""
from datetime import datetime

from sqlmodel import Field, SQLModel

from crypto_tracker.utils import utcnow


class StoredValue(SQLModel, table=True):
    """One JSON-serialized value of the durable key-value store."""

    key: str = Field(primary_key=True, max_length=255)
    value: str
    updated_at: datetime = Field(default_factory=utcnow)
