"""Exceptions raised by the service layer."""


class Unavailable(RuntimeError):
    """The datastore could not be reached."""


class NoSuchAccount(RuntimeError):
    """The requested account does not exist."""


class DuplicateAccount(RuntimeError):
    """An account with the same username or e-mail already exists."""


class AuthenticationFailed(RuntimeError):
    """Failed to authenticate user with provided credentials."""


class PasswordAuthenticationFailed(RuntimeError):
    """Password is not correct."""


class AlreadyVerified(RuntimeError):
    """The account's e-mail address has already been verified."""


class InvalidCode(RuntimeError):
    """The submitted verification code does not match."""


class CodeExpired(RuntimeError):
    """The verification code was correct, but is past its expiry."""


class RateLimited(RuntimeError):
    """A new verification code was requested too soon."""

    def __init__(self, message: str, retry_after: int = 0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class InvalidToken(RuntimeError):
    """Token is malformed or its signature does not verify."""


class ExpiredToken(RuntimeError):
    """Token signature is valid, but the token is past its expiry."""


class InvalidPassword(RuntimeError):
    """The password cannot be hashed, e.g. it is longer than 72 bytes."""
