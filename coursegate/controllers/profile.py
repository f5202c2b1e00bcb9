"""Controllers for an account holder's own profile and course access."""

from http import HTTPStatus
from typing import Any

from werkzeug.exceptions import Forbidden, NotFound
from wtforms import Form, StringField
from wtforms.validators import Length, Optional, URL

from . import ResponseData, to_formdata
from .. import domain
from ..services import accounts
from ..services.exceptions import NoSuchAccount

PENDING_APPROVAL = 'Access denied. Your account is pending approval.'


class ProfileForm(Form):
    """Editable profile fields. Missing fields are left unchanged."""

    firstName = StringField('First name', validators=[Optional(),
                                                      Length(max=255)])
    lastName = StringField('Last name', validators=[Optional(),
                                                    Length(max=255)])
    profileImageUrl = StringField('Profile image', validators=[
        Optional(), URL(), Length(max=1024)
    ])


def get_profile(account_id: int) -> ResponseData:
    """Get the profile of an account."""
    try:
        account = accounts.get_account(account_id)
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    return {'user': domain.account_to_dict(account)}, HTTPStatus.OK, {}


def update_profile(account_id: int, payload: Any) -> ResponseData:
    """Update the profile of an account."""
    formdata = to_formdata(payload)
    form = ProfileForm(formdata)
    if not form.validate():
        data = {'message': 'Invalid profile', 'errors': form.errors}
        return data, HTTPStatus.BAD_REQUEST, {}
    try:
        account = accounts.update_profile(
            account_id,
            first_name=form.firstName.data if 'firstName' in formdata
            else None,
            last_name=form.lastName.data if 'lastName' in formdata else None,
            profile_image_url=form.profileImageUrl.data
            if 'profileImageUrl' in formdata else None
        )
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    return {'user': domain.account_to_dict(account)}, HTTPStatus.OK, {}


def approved_courses(claims: domain.Claims) -> ResponseData:
    """
    Get the courses that the authenticated user may access.

    Admins are always allowed; students must have been approved.
    """
    try:
        account = accounts.get_account(claims.account_id)
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    if not account.is_admin and not account.is_approved:
        raise Forbidden(PENDING_APPROVAL)
    data = {'courseIds': sorted(account.approved_course_ids)}
    return data, HTTPStatus.OK, {}
