"""Local user accounts, login sessions, guest sessions and account export/import.

Users and remembered sessions live in the durable store; non-remembered
sessions and guests live in the ephemeral store and expire or vanish with the
process. Passwords are bcrypt hashes and are never compared in plain text.
"""
import json
import logging
import re
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

import bcrypt
from pydantic import ValidationError

from crypto_tracker.db.store import (KeyValueStore, PersistenceCorruptError,
                                     StorageError, load_json, read_json,
                                     remove_key, write_json)
from crypto_tracker.schemas import (ExportedUser, GuestSession, PasswordCheck,
                                    SessionRecord, SessionUser, UserExport,
                                    UserRecord)
from crypto_tracker.services.exceptions import (AuthenticationError,
                                                DuplicateUserError,
                                                InvalidCredentialsError,
                                                InvalidFormatError,
                                                UserNotFoundError)
from crypto_tracker.utils import utcnow

logger = logging.getLogger(__name__)

USERS_KEY = "crypto_tracker_users"
SESSION_KEY = "crypto_tracker_session"
GUEST_KEY = "crypto_tracker_guest"

MIN_PASSWORD_LENGTH = 8
BCRYPT_ROUNDS = 10
SESSION_TTL = timedelta(hours=24)
EXPORT_VERSION = "1.0"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# bcrypt only reads the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72

Clock = Callable[[], datetime]


def validate_password(password: str | None) -> PasswordCheck:
    """Check a password against the policy. Pure; collects every failure.

    >>> validate_password("abcd1234").is_valid
    True
    """
    errors: list[str] = []
    pw = password or ""
    if len(pw) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"\d", pw):
        errors.append("Password must contain at least one number")
    if not re.search(r"[a-zA-Z]", pw):
        errors.append("Password must contain at least one letter")
    return PasswordCheck(is_valid=not errors, errors=errors)


def validate_email(email: str | None) -> bool:
    return bool(email) and _EMAIL_RE.match(email) is not None


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Salted bcrypt hash of `password`."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check `password` against a stored bcrypt hash. Malformed hashes never match."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("ascii"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def generate_session_token() -> str:
    return f"session_{secrets.token_urlsafe(24)}"


class UserStore:
    """Registered users, stored as one JSON object keyed by e-mail."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        hash_rounds: int = BCRYPT_ROUNDS,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._hash_rounds = hash_rounds
        self._clock = clock

    def get_users(self) -> dict[str, UserRecord]:
        """All users; empty when nothing is stored or the stored data is corrupt."""
        raw = read_json(self._store, USERS_KEY, {})
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed user table under '%s'", USERS_KEY)
            return {}
        users: dict[str, UserRecord] = {}
        for email, record in raw.items():
            try:
                users[email] = UserRecord.model_validate(record)
            except ValidationError:
                logger.warning("Skipping malformed user record for %s", email)
        return users

    def get_user(self, email: str) -> UserRecord | None:
        return self.get_users().get(email)

    def save_users(self, users: dict[str, UserRecord]) -> bool:
        payload = {email: user.model_dump(mode="json") for email, user in users.items()}
        return write_json(self._store, USERS_KEY, payload)

    def register(self, email: str, display_name: str | None, password: str) -> UserRecord:
        """Create a user.

        Raises:
            InvalidCredentialsError: invalid e-mail or password policy violation.
            DuplicateUserError: the e-mail is already registered.
        """
        email = (email or "").strip()
        errors: list[str] = []
        if not validate_email(email):
            errors.append("Please enter a valid email address")
        errors.extend(validate_password(password).errors)
        if errors:
            raise InvalidCredentialsError(errors)

        users = self.get_users()
        if email in users:
            raise DuplicateUserError(email)

        user = UserRecord(
            email=email,
            display_name=(display_name or "").strip() or email.split("@")[0],
            password_hash=hash_password(password, rounds=self._hash_rounds),
            created_at=self._clock(),
        )
        users[email] = user
        self.save_users(users)
        logger.info("Registered user %s", email)
        return user

    def update_user(self, email: str, **changes) -> UserRecord | None:
        """Apply field changes to a user; None when the user does not exist."""
        users = self.get_users()
        user = users.get(email)
        if user is None:
            return None
        updated = UserRecord.model_validate(user.model_dump() | changes)
        users[email] = updated
        self.save_users(users)
        return updated

    def authenticate(self, email: str, password: str) -> UserRecord | None:
        user = self.get_user((email or "").strip())
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user


class SessionStore:
    """Login sessions split over a durable (remembered) and an ephemeral tier."""

    def __init__(
        self,
        durable: KeyValueStore,
        ephemeral: KeyValueStore,
        users: UserStore,
        *,
        clock: Clock = utcnow,
        ttl: timedelta = SESSION_TTL,
    ) -> None:
        self._durable = durable
        self._ephemeral = ephemeral
        self._users = users
        self._clock = clock
        self._ttl = ttl

    def create_session(self, user: UserRecord, remember_me: bool = False) -> SessionRecord:
        """Issue a session for `user` and record the login time.

        Remembered sessions never expire and go to the durable tier; the rest
        expire after 24 hours and go to the ephemeral tier.
        """
        now = self._clock()
        session = SessionRecord(
            token=generate_session_token(),
            user=SessionUser(
                email=user.email,
                display_name=user.display_name,
                created_at=user.created_at,
            ),
            created_at=now,
            expires_at=None if remember_me else now + self._ttl,
        )
        tier, other = (
            (self._durable, self._ephemeral) if remember_me else (self._ephemeral, self._durable)
        )
        # At most one tier holds a session.
        remove_key(other, SESSION_KEY)
        write_json(tier, SESSION_KEY, session.model_dump(mode="json"))
        self._users.update_user(user.email, last_login=now)
        return session

    def login(self, email: str, password: str, remember_me: bool = False) -> SessionRecord:
        """Authenticate and create a session.

        Raises:
            AuthenticationError: unknown e-mail or wrong password.
        """
        user = self._users.authenticate(email, password)
        if user is None:
            raise AuthenticationError()
        return self.create_session(user, remember_me=remember_me)

    def get_session(self) -> SessionRecord | None:
        """Current session, checking the durable tier first.

        An expired session is removed and reported as absent.
        """
        session = self._read(self._durable) or self._read(self._ephemeral)
        if session is None:
            return None
        if session.is_expired(self._clock()):
            logger.info("Session for %s expired", session.user.email)
            self.clear_session()
            return None
        return session

    def clear_session(self) -> None:
        remove_key(self._durable, SESSION_KEY)
        remove_key(self._ephemeral, SESSION_KEY)

    def is_session_valid(self) -> bool:
        return self.get_session() is not None

    @staticmethod
    def _read(tier: KeyValueStore) -> SessionRecord | None:
        try:
            raw = load_json(tier, SESSION_KEY)
        except (PersistenceCorruptError, StorageError) as exc:
            logger.warning("Ignoring unreadable session: %s", exc)
            return None
        if raw is None:
            return None
        try:
            return SessionRecord.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed session record")
            return None


class GuestStore:
    """Credential-less guest sessions, kept only in the ephemeral tier."""

    def __init__(self, ephemeral: KeyValueStore, *, clock: Clock = utcnow) -> None:
        self._ephemeral = ephemeral
        self._clock = clock

    def create_guest(self, display_name: str = "Guest") -> GuestSession:
        guest = GuestSession(
            display_name=display_name or "Guest",
            token=generate_session_token(),
            created_at=self._clock(),
        )
        write_json(self._ephemeral, GUEST_KEY, guest.model_dump(mode="json"))
        return guest

    def get_guest(self) -> GuestSession | None:
        raw = read_json(self._ephemeral, GUEST_KEY, None)
        if raw is None:
            return None
        try:
            return GuestSession.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed guest session")
            return None

    def clear_guest(self) -> None:
        remove_key(self._ephemeral, GUEST_KEY)


class AccountDataManager:
    """Exports a user to a versioned JSON document and imports it back."""

    def __init__(self, users: UserStore, *, clock: Clock = utcnow) -> None:
        self._users = users
        self._clock = clock

    def export_user(self, email: str, include_password: bool = False) -> str:
        """Serialize a user for backup or transfer.

        Raises:
            UserNotFoundError: no user with this e-mail.
        """
        user = self._users.get_user(email)
        if user is None:
            raise UserNotFoundError(email)
        document = UserExport(
            version=EXPORT_VERSION,
            exported_at=self._clock(),
            user=ExportedUser(
                email=user.email,
                display_name=user.display_name,
                created_at=user.created_at,
                password_hash=user.password_hash if include_password else None,
            ),
        )
        exclude = None if include_password else {"user": {"password_hash"}}
        return document.model_dump_json(indent=2, exclude=exclude)

    def import_user(self, text: str, merge: bool = False) -> UserRecord:
        """Import a user exported by `export_user`.

        Nothing is written unless the document is valid.

        Args:
            text: The exported JSON document.
            merge: Overlay onto an existing user instead of refusing.

        Raises:
            InvalidFormatError: not JSON, or `user.email` is missing.
            DuplicateUserError: the user exists and `merge` is False.
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise InvalidFormatError("Invalid data format: not valid JSON") from exc
        incoming = data.get("user") if isinstance(data, dict) else None
        if not isinstance(incoming, dict) or not incoming.get("email"):
            raise InvalidFormatError("Invalid data format: missing user email")

        email = str(incoming["email"]).strip()
        users = self._users.get_users()
        existing = users.get(email)
        if existing is not None and not merge:
            raise DuplicateUserError(email)

        base = existing.model_dump() if existing is not None else {
            "display_name": email.split("@")[0],
        }
        fields = {k: v for k, v in incoming.items() if k in UserRecord.model_fields}
        try:
            record = UserRecord.model_validate(
                base | fields | {"email": email, "imported_at": self._clock()}
            )
        except ValidationError as exc:
            raise InvalidFormatError(f"Invalid data format: {exc.error_count()} invalid field(s)") from exc

        users[email] = record
        self._users.save_users(users)
        logger.info("Imported user %s (merge=%s)", email, merge)
        return record
