"""
One-time codes that prove ownership of an e-mail address.

Each account has at most one outstanding
:class:`domain.VerificationChallenge`. Issuing a new code replaces the prior
one. A code may be redeemed while the current time is not past its expiry;
redeeming it deletes the challenge and marks the account's e-mail as verified
in the same transaction.
"""

from typing import Optional
import logging
import secrets

from sqlalchemy.orm.session import Session

from . import accounts
from .accounts import util
from .accounts.models import DBAccount, DBVerificationChallenge
from .exceptions import NoSuchAccount, AlreadyVerified, InvalidCode, \
    CodeExpired, RateLimited
from .. import domain

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
CODE_LIFETIME = 600
RESEND_COOLDOWN = 60


def generate_code(length: int = CODE_LENGTH) -> str:
    """Generate a numeric code of ``length`` digits with no leading zero."""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def issue_code(account_id: int, length: int = CODE_LENGTH,
               lifetime: int = CODE_LIFETIME) -> domain.VerificationChallenge:
    """
    Issue a new verification code for an account.

    Any outstanding challenge for the account is replaced.

    Raises
    ------
    :class:`NoSuchAccount`
    :class:`AlreadyVerified`

    """
    with util.transaction() as dbsession:
        _load_unverified(dbsession, account_id)
        issued_at = util.now()
        db_challenge = _get_dbchallenge(dbsession, account_id)
        if db_challenge is None:
            db_challenge = DBVerificationChallenge(account_id=account_id)
        db_challenge.code = generate_code(length)
        db_challenge.created_at = issued_at
        db_challenge.expires_at = issued_at + lifetime
        dbsession.add(db_challenge)
    logger.debug('Issued verification code for account %s', account_id)
    return _to_domain(db_challenge)


def resend(account_id: int, length: int = CODE_LENGTH,
           lifetime: int = CODE_LIFETIME,
           cooldown: int = RESEND_COOLDOWN) -> domain.VerificationChallenge:
    """
    Issue a replacement code, if the previous one is old enough.

    Raises
    ------
    :class:`RateLimited`
        Raised if fewer than ``cooldown`` seconds have passed since the
        previous code was issued.

    """
    with util.transaction() as dbsession:
        _load_unverified(dbsession, account_id)
        db_challenge = _get_dbchallenge(dbsession, account_id)
        if db_challenge is not None:
            elapsed = util.now() - db_challenge.created_at
            if elapsed < cooldown:
                logger.debug('Resend for %s refused after %i seconds',
                             account_id, elapsed)
                raise RateLimited('Please wait before requesting a new code',
                                  retry_after=cooldown - elapsed)
    return issue_code(account_id, length=length, lifetime=lifetime)


def verify(account_id: int, submitted_code: str) -> domain.Account:
    """
    Redeem a verification code.

    Raises
    ------
    :class:`NoSuchAccount`
    :class:`AlreadyVerified`
    :class:`InvalidCode`
        Raised if there is no outstanding code, or the code does not match.
    :class:`CodeExpired`
        Raised if the code matches but is past its expiry.

    """
    submitted_code = str(submitted_code).strip()
    with util.transaction() as dbsession:
        db_account = _load_unverified(dbsession, account_id)
        db_challenge = _get_dbchallenge(dbsession, account_id)
        if db_challenge is None \
                or not secrets.compare_digest(db_challenge.code.encode(),
                                              submitted_code.encode()):
            raise InvalidCode('Invalid verification code')
        current = util.now()
        if current > db_challenge.expires_at:
            raise CodeExpired('Verification code has expired')

        # Only one of several concurrent redemptions can delete the row.
        deleted = dbsession.query(DBVerificationChallenge) \
            .filter(DBVerificationChallenge.account_id == account_id) \
            .filter(DBVerificationChallenge.code == submitted_code) \
            .filter(DBVerificationChallenge.expires_at >= current) \
            .delete(synchronize_session=False)
        if deleted != 1:
            raise InvalidCode('Invalid verification code')
        db_account.is_email_verified = True
        dbsession.add(db_account)
        dbsession.commit()
    logger.debug('Verified e-mail for account %s', account_id)
    return accounts.get_account(account_id)


def get_challenge(account_id: int) -> Optional[domain.VerificationChallenge]:
    """Get the outstanding challenge for an account, if there is one."""
    with util.transaction() as dbsession:
        db_challenge = _get_dbchallenge(dbsession, account_id)
        if db_challenge is None:
            return None
        return _to_domain(db_challenge)


def _load_unverified(dbsession: Session, account_id: int) -> DBAccount:
    db_account = dbsession.get(DBAccount, account_id)
    if db_account is None:
        raise NoSuchAccount(f'No account with id {account_id}')
    if db_account.is_email_verified:
        raise AlreadyVerified('Email already verified')
    return db_account


def _get_dbchallenge(dbsession: Session,
                     account_id: int) -> Optional[DBVerificationChallenge]:
    db_challenge: Optional[DBVerificationChallenge] = \
        dbsession.query(DBVerificationChallenge) \
        .filter(DBVerificationChallenge.account_id == account_id) \
        .first()
    return db_challenge


def _to_domain(db_challenge: DBVerificationChallenge) \
        -> domain.VerificationChallenge:
    return domain.VerificationChallenge(
        account_id=db_challenge.account_id,
        code=db_challenge.code,
        created_at=util.from_epoch(db_challenge.created_at),
        expires_at=util.from_epoch(db_challenge.expires_at)
    )
