"""
Credential store: persistence for accounts and course grants.

Usernames and e-mail addresses are unique in the database. Passwords are only
ever stored as bcrypt hashes, and are never returned from this module.
"""

from typing import List, Optional, Iterable
import logging

from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.session import Session

from . import util
from .models import DBAccount, DBCourseGrant
from .. import passwords
from ..exceptions import NoSuchAccount, DuplicateAccount, \
    AuthenticationFailed, PasswordAuthenticationFailed
from ... import domain

logger = logging.getLogger(__name__)

init_app = util.init_app
create_all = util.create_all
drop_all = util.drop_all


def create_account(registration: domain.Registration,
                   rounds: int = 12) -> domain.Account:
    """
    Persist a new :class:`domain.Account`.

    Parameters
    ----------
    registration : :class:`domain.Registration`
    rounds : int
        bcrypt cost factor for hashing the password.

    Returns
    -------
    :class:`domain.Account`

    Raises
    ------
    :class:`DuplicateAccount`
        Raised if the username or e-mail address is already in use. Nothing
        is persisted in that case.

    """
    email = registration.email.strip().lower()
    username = registration.username.strip()
    try:
        with util.transaction() as dbsession:
            _check_unique(dbsession, username, email)
            db_account = DBAccount(
                username=username,
                email=email,
                password_hash=passwords.hash_password(registration.password,
                                                      rounds),
                first_name=registration.name.first_name,
                last_name=registration.name.last_name,
                role=registration.role,
                is_email_verified=registration.is_email_verified,
                is_approved=False,
                external_id=registration.external_id,
                profile_image_url=registration.profile_image_url,
                created_at=util.now()
            )
            dbsession.add(db_account)
            dbsession.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration.
        raise DuplicateAccount('Username or email already registered') from e
    logger.debug('Created account %s for %s', db_account.account_id, username)
    return _to_domain(db_account)


def get_account(account_id: int) -> domain.Account:
    """Load an account by its ID."""
    with util.transaction() as dbsession:
        return _to_domain(_load_dbaccount(dbsession, account_id))


def find_by_username_or_email(identifier: str) -> Optional[domain.Account]:
    """Load an account by username or e-mail address, if one exists."""
    with util.transaction() as dbsession:
        db_account = _find_dbaccount(dbsession, identifier)
        if db_account is None:
            return None
        return _to_domain(db_account)


def find_by_email(email: str) -> Optional[domain.Account]:
    """Load the account registered for an e-mail address, if any."""
    with util.transaction() as dbsession:
        db_account = dbsession.query(DBAccount) \
            .filter(DBAccount.email == email.strip().lower()) \
            .first()
        if db_account is None:
            return None
        return _to_domain(db_account)


def has_account_for_email(email: str) -> bool:
    """Determine whether an account is registered for ``email``."""
    with util.transaction() as dbsession:
        count = dbsession.query(func.count(DBAccount.account_id)) \
            .filter(DBAccount.email == email.strip().lower()) \
            .scalar()
    return bool(count)


def check_credentials(identifier: str, password: str) -> domain.Account:
    """
    Authenticate with a username or e-mail address and a password.

    Raises
    ------
    :class:`AuthenticationFailed`
        Raised if there is no such account, if the account has no password
        (created through the identity provider only), or if the password is
        incorrect. The message does not reveal which.

    """
    with util.transaction() as dbsession:
        db_account = _find_dbaccount(dbsession, identifier)
        if db_account is None or not db_account.password_hash:
            logger.debug('No password account for %s', identifier)
            raise AuthenticationFailed('Invalid credentials')
        try:
            passwords.check_password(password, db_account.password_hash)
        except PasswordAuthenticationFailed as e:
            logger.debug('Password check failed for %s', identifier)
            raise AuthenticationFailed('Invalid credentials') from e
        return _to_domain(db_account)


def mark_email_verified(account_id: int) -> domain.Account:
    """Flag the account's e-mail address as verified."""
    with util.transaction() as dbsession:
        db_account = _load_dbaccount(dbsession, account_id)
        db_account.is_email_verified = True
        dbsession.add(db_account)
    return _to_domain(db_account)


def set_approval(account_id: int, approved: bool,
                 course_ids: Optional[Iterable[str]] = None,
                 approved_by: Optional[int] = None) -> domain.Account:
    """
    Approve or unapprove an account.

    When approving, the account's course grants are replaced by
    ``course_ids``; grants that are not listed are removed. When
    unapproving, all grants are removed.
    """
    with util.transaction() as dbsession:
        db_account = _load_dbaccount(dbsession, account_id)
        db_account.is_approved = approved
        if approved:
            db_account.approved_at = util.now()
            db_account.approved_by = approved_by
            _replace_grants(db_account, course_ids or [])
        else:
            db_account.approved_at = None
            db_account.approved_by = None
            _replace_grants(db_account, [])
        dbsession.add(db_account)
    logger.debug('Set approval of %s to %s', account_id, approved)
    return _to_domain(db_account)


def revoke_courses(account_id: int,
                   course_ids: Iterable[str]) -> domain.Account:
    """Remove specific course grants from an account."""
    to_remove = set(course_ids)
    with util.transaction() as dbsession:
        db_account = _load_dbaccount(dbsession, account_id)
        for grant in list(db_account.grants):
            if grant.course_id in to_remove:
                db_account.grants.remove(grant)
        dbsession.add(db_account)
    return _to_domain(db_account)


def update_profile(account_id: int, first_name: Optional[str] = None,
                   last_name: Optional[str] = None,
                   profile_image_url: Optional[str] = None) -> domain.Account:
    """Update the editable profile fields that are provided."""
    with util.transaction() as dbsession:
        db_account = _load_dbaccount(dbsession, account_id)
        if first_name is not None:
            db_account.first_name = first_name
        if last_name is not None:
            db_account.last_name = last_name
        if profile_image_url is not None:
            db_account.profile_image_url = profile_image_url
        dbsession.add(db_account)
    return _to_domain(db_account)


def list_pending() -> List[domain.Account]:
    """Get student accounts that are awaiting approval, oldest first."""
    with util.transaction() as dbsession:
        db_accounts = dbsession.query(DBAccount) \
            .filter(DBAccount.role == domain.STUDENT) \
            .filter(DBAccount.is_approved.is_(False)) \
            .order_by(DBAccount.created_at, DBAccount.account_id) \
            .all()
        return [_to_domain(db_account) for db_account in db_accounts]


def list_accounts() -> List[domain.Account]:
    """Get all accounts, in the order they were created."""
    with util.transaction() as dbsession:
        db_accounts = dbsession.query(DBAccount) \
            .order_by(DBAccount.account_id).all()
        return [_to_domain(db_account) for db_account in db_accounts]


def _check_unique(dbsession: Session, username: str, email: str) -> None:
    if dbsession.query(DBAccount).filter(DBAccount.email == email).first():
        raise DuplicateAccount('Email already registered')
    if dbsession.query(DBAccount) \
            .filter(DBAccount.username == username).first():
        raise DuplicateAccount('Username already taken')


def _replace_grants(db_account: DBAccount, course_ids: Iterable[str]) -> None:
    wanted = set(course_ids)
    for grant in list(db_account.grants):
        if grant.course_id not in wanted:
            db_account.grants.remove(grant)
    existing = {grant.course_id for grant in db_account.grants}
    for course_id in sorted(wanted - existing):
        db_account.grants.append(DBCourseGrant(course_id=course_id))


def _find_dbaccount(dbsession: Session,
                    identifier: str) -> Optional[DBAccount]:
    identifier = identifier.strip()
    db_account: Optional[DBAccount] = dbsession.query(DBAccount) \
        .filter(or_(DBAccount.username == identifier,
                    DBAccount.email == identifier.lower())) \
        .first()
    return db_account


def _load_dbaccount(dbsession: Session, account_id: int) -> DBAccount:
    db_account: Optional[DBAccount] = dbsession.get(DBAccount, account_id)
    if db_account is None:
        raise NoSuchAccount(f'No account with id {account_id}')
    return db_account


def _to_domain(db_account: DBAccount) -> domain.Account:
    return domain.Account(
        account_id=db_account.account_id,
        username=db_account.username,
        email=db_account.email,
        name=domain.UserFullName(
            first_name=db_account.first_name,
            last_name=db_account.last_name
        ),
        role=db_account.role,
        is_email_verified=bool(db_account.is_email_verified),
        is_approved=bool(db_account.is_approved),
        approved_course_ids=frozenset(
            grant.course_id for grant in db_account.grants
        ),
        external_id=db_account.external_id,
        profile_image_url=db_account.profile_image_url,
        created_at=util.from_epoch(db_account.created_at),
        approved_at=util.from_epoch(db_account.approved_at),
        approved_by=db_account.approved_by
    )
