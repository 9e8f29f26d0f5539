"""Local account routes: registration, login sessions, guests, export/import."""
import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from crypto_tracker.dependencies import DataManager, Guests, Sessions, Users
from crypto_tracker.schemas import (GuestSession, PasswordCheck, SessionRecord,
                                    UserPublic)
from crypto_tracker.services.accounts import validate_password
from crypto_tracker.services.exceptions import (AccountError,
                                                AuthenticationError,
                                                DuplicateUserError,
                                                InvalidCredentialsError,
                                                InvalidFormatError,
                                                UserNotFoundError)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str
    password: str
    display_name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str
    remember_me: bool = False


class GuestRequest(BaseModel):
    display_name: str = "Guest"


class PasswordCheckRequest(BaseModel):
    password: str


def account_error_to_http(exc: AccountError) -> HTTPException:
    """Map an account exception to the HTTPException to raise."""
    if isinstance(exc, DuplicateUserError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, UserNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, InvalidCredentialsError):
        return HTTPException(status_code=422, detail=exc.errors)
    if isinstance(exc, InvalidFormatError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


@router.post("/password/check", response_model=PasswordCheck)
def check_password(body: PasswordCheckRequest) -> PasswordCheck:
    """Validate a password against the password policy (no side effects)."""
    return validate_password(body.password)


@router.post("/register", response_model=UserPublic, status_code=201)
def register(body: RegisterRequest, users: Users) -> UserPublic:
    """Register a new local user."""
    try:
        user = users.register(body.email, body.display_name, body.password)
    except AccountError as exc:
        raise account_error_to_http(exc) from exc
    return user.public()


@router.post("/login", response_model=SessionRecord)
def login(body: LoginRequest, sessions: Sessions) -> SessionRecord:
    """Log in and open a session (remembered sessions never expire)."""
    try:
        return sessions.login(body.email, body.password, remember_me=body.remember_me)
    except AccountError as exc:
        raise account_error_to_http(exc) from exc


@router.post("/logout")
def logout(sessions: Sessions) -> dict[str, str]:
    sessions.clear_session()
    return {"status": "logged_out"}


@router.get("/session", response_model=SessionRecord | None)
def current_session(sessions: Sessions) -> SessionRecord | None:
    """Get the current session, or null when there is none or it expired."""
    return sessions.get_session()


@router.post("/guest", response_model=GuestSession)
def create_guest(guests: Guests, body: GuestRequest | None = None) -> GuestSession:
    """Start a guest session (not persisted across restarts)."""
    return guests.create_guest((body or GuestRequest()).display_name)


@router.get("/guest", response_model=GuestSession | None)
def current_guest(guests: Guests) -> GuestSession | None:
    return guests.get_guest()


@router.delete("/guest")
def clear_guest(guests: Guests) -> dict[str, str]:
    guests.clear_guest()
    return {"status": "cleared"}


@router.get("/export/{email}", response_class=PlainTextResponse)
def export_user(
    email: str,
    manager: DataManager,
    include_password: bool = Query(default=False),
) -> str:
    """Export a user as a versioned JSON document."""
    try:
        return manager.export_user(email, include_password=include_password)
    except AccountError as exc:
        raise account_error_to_http(exc) from exc


@router.post("/import", response_model=UserPublic)
async def import_user(
    request: Request,
    manager: DataManager,
    merge: bool = Query(default=False),
) -> UserPublic:
    """Import a user document produced by /auth/export."""
    text = (await request.body()).decode("utf-8", errors="replace")
    try:
        user = manager.import_user(text, merge=merge)
    except AccountError as exc:
        raise account_error_to_http(exc) from exc
    return user.public()
