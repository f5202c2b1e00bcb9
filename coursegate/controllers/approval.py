"""Controllers for the admin approval gate."""

from http import HTTPStatus
from typing import Any, List
import logging

from werkzeug.exceptions import BadRequest, NotFound

from . import ResponseData
from .. import domain
from ..services import accounts
from ..services.exceptions import NoSuchAccount

logger = logging.getLogger(__name__)


def _is_course_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def _course_ids(payload: dict, *keys: str) -> List[str]:
    for key in keys:
        if key in payload:
            value = payload[key]
            if value is None:
                return []
            if not isinstance(value, list) \
                    or not all(_is_course_id(v) for v in value):
                raise BadRequest(f'{key} must be a list of course ids')
            return [str(v) for v in value]
    return []


def set_approval(account_id: int, payload: Any,
                 admin: domain.Claims) -> ResponseData:
    """
    Approve or reject an account.

    Approving replaces the account's course grants with ``courseIds`` (or
    ``enrolledCourses``). Rejecting clears them; the account is kept.
    """
    if not isinstance(payload, dict) \
            or not isinstance(payload.get('isApproved'), bool):
        raise BadRequest('isApproved must be true or false')
    approved = payload['isApproved']
    course_ids = _course_ids(payload, 'courseIds', 'enrolledCourses')
    try:
        account = accounts.set_approval(account_id, approved,
                                        course_ids=course_ids,
                                        approved_by=admin.account_id)
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    logger.info('Account %s %s by admin %s', account_id,
                'approved' if approved else 'rejected', admin.account_id)
    message = 'User approved successfully' if approved \
        else 'User approval revoked'
    data = {'message': message, 'user': domain.account_to_dict(account)}
    return data, HTTPStatus.OK, {}


def revoke_courses(account_id: int, payload: Any) -> ResponseData:
    """Remove specific course grants from an account."""
    if not isinstance(payload, dict) or not payload.get('courseIds'):
        raise BadRequest('courseIds is required')
    course_ids = _course_ids(payload, 'courseIds')
    try:
        account = accounts.revoke_courses(account_id, course_ids)
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    data = {'message': 'Course access revoked',
            'user': domain.account_to_dict(account)}
    return data, HTTPStatus.OK, {}


def pending_approvals() -> ResponseData:
    """List student accounts that are waiting for approval."""
    pending = [domain.account_to_dict(account)
               for account in accounts.list_pending()]
    return {'users': pending}, HTTPStatus.OK, {}


def list_accounts() -> ResponseData:
    """Every account, for the admin user list."""
    users = [domain.account_to_dict(a) for a in accounts.list_accounts()]
    return {'users': users}, HTTPStatus.OK, {}
