"""Functions for issuing and reading session tokens."""

from datetime import datetime, timedelta
from typing import Optional

import jwt
from pytz import UTC

from . import exceptions
from .. import domain

ALGORITHM = 'HS256'
DEFAULT_LIFETIME = 7 * 24 * 60 * 60


def encode(account: domain.Account, secret: str,
           issued_at: Optional[datetime] = None,
           lifetime: int = DEFAULT_LIFETIME) -> str:
    """Issue a signed JWT for ``account``."""
    if issued_at is None:
        issued_at = datetime.now(tz=UTC)
    expires_at = issued_at + timedelta(seconds=lifetime)
    payload = {
        'sub': str(account.account_id),
        'username': account.username,
        'role': account.role,
        'iat': int(issued_at.timestamp()),
        'exp': int(expires_at.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode(token: str, secret: str) -> domain.Claims:
    """Decode a session token, verifying its signature and expiry."""
    try:
        data: dict = jwt.decode(token, secret, algorithms=[ALGORITHM],
                                options={'require': ['sub', 'exp', 'iat']})
    except jwt.exceptions.ExpiredSignatureError as e:
        raise exceptions.ExpiredToken('Token has expired') from e
    except jwt.exceptions.InvalidTokenError as e:
        raise exceptions.InvalidToken('Not a valid token') from e

    try:
        return domain.Claims(
            account_id=int(data['sub']),
            username=data.get('username', ''),
            role=data.get('role', domain.STUDENT),
            issued_at=datetime.fromtimestamp(data['iat'], tz=UTC),
            expires_at=datetime.fromtimestamp(data['exp'], tz=UTC)
        )
    except (TypeError, ValueError) as e:
        raise exceptions.InvalidToken('Malformed token claims') from e
