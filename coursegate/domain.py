"""Core domain classes for the accounts service."""

from datetime import datetime
from typing import NamedTuple, Optional, FrozenSet, Dict, Any

STUDENT = 'student'
ADMIN = 'admin'
ROLES = (STUDENT, ADMIN)


class UserFullName(NamedTuple):
    """Represents a user's full name."""

    first_name: str
    """First name or given name."""

    last_name: str
    """Last name or family name."""


class Account(NamedTuple):
    """A person's durable identity on the platform."""

    username: str
    email: str
    name: UserFullName

    account_id: Optional[int] = None
    """Assigned by the datastore when the account is created."""

    role: str = STUDENT
    """One of :const:`STUDENT` or :const:`ADMIN`."""

    is_email_verified: bool = False
    is_approved: bool = False

    approved_course_ids: FrozenSet[str] = frozenset()
    """Courses to which an administrator has granted access."""

    external_id: Optional[str] = None
    """Subject identifier at the upstream identity provider, if any."""

    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    approved_by: Optional[int] = None
    """Account ID of the administrator who last approved this account."""

    @property
    def is_admin(self) -> bool:
        """Whether the account has the admin role."""
        return self.role == ADMIN


class Registration(NamedTuple):
    """Data submitted to create a new :class:`Account`."""

    username: str
    email: str
    password: str
    name: UserFullName
    role: str = STUDENT
    is_email_verified: bool = False
    external_id: Optional[str] = None
    profile_image_url: Optional[str] = None


class VerificationChallenge(NamedTuple):
    """An outstanding one-time code that proves ownership of an e-mail."""

    account_id: int
    code: str
    created_at: datetime
    expires_at: datetime


class Claims(NamedTuple):
    """Identity and role claims carried by a session token."""

    account_id: int
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        """Whether the token was issued to an administrator."""
        return self.role == ADMIN


class ExternalIdentity(NamedTuple):
    """Identity asserted by the upstream OAuth provider."""

    email: str
    first_name: str = ''
    last_name: str = ''
    external_id: Optional[str] = None
    profile_image_url: Optional[str] = None


def account_to_dict(account: Account) -> Dict[str, Any]:
    """Public representation of an :class:`Account` for API responses."""
    return {
        'id': account.account_id,
        'username': account.username,
        'email': account.email,
        'firstName': account.name.first_name,
        'lastName': account.name.last_name,
        'role': account.role,
        'emailVerified': account.is_email_verified,
        'isApproved': account.is_approved,
        'enrolledCourses': sorted(account.approved_course_ids),
        'profileImageUrl': account.profile_image_url,
        'approvedAt': account.approved_at.isoformat()
        if account.approved_at else None,
        'approvedBy': account.approved_by,
    }


def identity_to_dict(identity: ExternalIdentity) -> Dict[str, Any]:
    """Representation of an :class:`ExternalIdentity` for API responses."""
    return {
        'email': identity.email,
        'firstName': identity.first_name,
        'lastName': identity.last_name,
        'externalId': identity.external_id,
        'profileImageUrl': identity.profile_image_url,
    }
