"""Salted, adaptive password hashing with bcrypt."""

import bcrypt

from .exceptions import PasswordAuthenticationFailed, InvalidPassword

MIN_ROUNDS = 10
MAX_BYTES = 72
"""bcrypt only considers the first 72 bytes of a password."""


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Generate a bcrypt hash of ``password``.

    Raises
    ------
    :class:`InvalidPassword`
        Raised if the UTF-8 encoded password is longer than 72 bytes.

    """
    if rounds < MIN_ROUNDS:
        raise ValueError(f'Cost factor must be at least {MIN_ROUNDS}')
    encoded = password.encode('utf-8')
    if len(encoded) > MAX_BYTES:
        raise InvalidPassword(f'Password is longer than {MAX_BYTES} bytes')
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(encoded, salt).decode('ascii')


def check_password(password: str, encrypted: str) -> None:
    """
    Check a password against a bcrypt hash.

    Raises
    ------
    :class:`PasswordAuthenticationFailed`
        Raised if the password does not match, or the hash is not a bcrypt
        hash.

    """
    try:
        valid = bcrypt.checkpw(password.encode('utf-8'),
                               encrypted.encode('ascii'))
    except (ValueError, UnicodeEncodeError) as e:
        raise PasswordAuthenticationFailed('Invalid password hash') from e
    if not valid:
        raise PasswordAuthenticationFailed('Incorrect password')
