"""Pydantic schemas shared by the client, services and HTTP layer.

Market records mirror the CoinGecko payloads; account records are what the
key-value store persists as JSON.
"""
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from crypto_tracker.utils import parse_ms_timestamp, to_ms_timestamp, utcnow

# A day count (fractional allowed) or "max" for the entire history.
RangeSpec = float | Literal["max"]


class DisplayRange(str, Enum):
    """Time ranges offered by the chart's range selector."""

    ONE_DAY = "1"
    ONE_WEEK = "7"
    ONE_MONTH = "30"
    THREE_MONTHS = "90"
    SIX_MONTHS = "180"
    ONE_YEAR = "365"
    MAX = "max"

    @property
    def days(self) -> RangeSpec:
        return "max" if self is DisplayRange.MAX else int(self.value)

    @property
    def label(self) -> str:
        return _RANGE_LABELS[self]


_RANGE_LABELS = {
    DisplayRange.ONE_DAY: "1D",
    DisplayRange.ONE_WEEK: "7D",
    DisplayRange.ONE_MONTH: "30D",
    DisplayRange.THREE_MONTHS: "90D",
    DisplayRange.SIX_MONTHS: "180D",
    DisplayRange.ONE_YEAR: "1Y",
    DisplayRange.MAX: "MAX",
}


class MarketSnapshot(BaseModel):
    """One row of the /coins/markets listing. Replaced wholesale on every fetch."""

    id: str
    name: str
    symbol: str
    current_price: float | None = None
    price_change_percentage_24h: float | None = None
    image: str | None = None
    market_cap: float | None = None
    total_volume: float | None = None


class CoinSearchHit(BaseModel):
    """A coin returned by the free-text search endpoint."""

    id: str
    name: str
    symbol: str


class PricePoint(BaseModel):
    """A single (timestamp, price) sample from the remote series."""

    timestamp: datetime
    price: float

    @classmethod
    def from_pair(cls, pair: tuple[float, float] | list[float]) -> "PricePoint":
        """Build from the wire format `[epoch_ms, price]`."""
        ts_ms, price = pair[0], pair[1]
        return cls(timestamp=parse_ms_timestamp(ts_ms), price=float(price))

    def to_pair(self) -> list[float]:
        """Return the wire format `[epoch_ms, price]`."""
        return [to_ms_timestamp(self.timestamp), self.price]


class PollerState(str, Enum):
    """Lifecycle state of a price-series poller."""

    IDLE = "idle"
    LOADING = "loading"
    LIVE = "live"
    LOAD_FAILED = "load_failed"


class ChartView(BaseModel):
    """What the chart panel renders for the current poller state."""

    state: PollerState
    coin_id: str | None = None
    range: DisplayRange = DisplayRange.ONE_DAY
    points: list[PricePoint] = Field(default_factory=list)
    message: str | None = None
    last_price_display: str | None = None


class CoinRow(MarketSnapshot):
    """A rendered coin-list row: snapshot fields plus display strings."""

    watched: bool = False
    price_display: str
    change_display: str
    market_cap_display: str
    volume_display: str


class UserRecord(BaseModel):
    """A registered user, keyed by e-mail."""

    email: str
    display_name: str
    password_hash: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    last_login: datetime | None = None
    imported_at: datetime | None = None

    def public(self) -> "UserPublic":
        return UserPublic.model_validate(self.model_dump(exclude={"password_hash"}))


class UserPublic(BaseModel):
    """User fields safe to return over HTTP."""

    email: str
    display_name: str
    created_at: datetime
    last_login: datetime | None = None
    imported_at: datetime | None = None


class SessionUser(BaseModel):
    """Minimal user projection embedded in a session."""

    email: str
    display_name: str
    created_at: datetime


class SessionRecord(BaseModel):
    """A login session. `expires_at=None` means a remembered session."""

    token: str
    user: SessionUser
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


class GuestSession(BaseModel):
    """A credential-less session that lives only in the ephemeral tier."""

    is_guest: bool = True
    display_name: str = "Guest"
    token: str
    created_at: datetime = Field(default_factory=utcnow)


class ExportedUser(BaseModel):
    email: str
    display_name: str
    created_at: datetime
    password_hash: str | None = None


class UserExport(BaseModel):
    """Portable export document for a single user."""

    version: str = "1.0"
    exported_at: datetime = Field(default_factory=utcnow)
    user: ExportedUser


class PasswordCheck(BaseModel):
    """Result of validating a password against the password policy."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)


__all__ = [
    "ChartView",
    "CoinRow",
    "CoinSearchHit",
    "DisplayRange",
    "ExportedUser",
    "GuestSession",
    "MarketSnapshot",
    "PasswordCheck",
    "PollerState",
    "PricePoint",
    "RangeSpec",
    "SessionRecord",
    "SessionUser",
    "UserExport",
    "UserPublic",
    "UserRecord",
]
