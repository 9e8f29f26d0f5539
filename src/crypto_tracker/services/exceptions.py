"""Domain exceptions for accounts and sessions."""


class AccountError(Exception):
    """Base class for account and session errors."""


class DuplicateUserError(AccountError):
    """A user with this e-mail is already registered."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email already registered: {email}")
        self.email = email


class UserNotFoundError(AccountError):
    def __init__(self, email: str) -> None:
        super().__init__(f"User not found: {email}")
        self.email = email


class InvalidFormatError(AccountError):
    """Imported account data is malformed or misses required fields."""


class InvalidCredentialsError(AccountError):
    """Registration input failed validation; `errors` lists every reason."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class AuthenticationError(AccountError):
    """Login failed: unknown e-mail or wrong password."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password")
