"""
Controllers for creating accounts.

There are two ways in. Direct registration creates an account whose e-mail
is unverified, and sends a verification code. The external-identity bridge
is used after the upstream provider has vouched for the e-mail address: the
user picks a username and password, and the account is created with its
e-mail already verified. Either way the account waits for admin approval.
"""

from http import HTTPStatus
from typing import Any, Mapping, Optional
import logging

from flask import current_app
from werkzeug.exceptions import BadRequest, Conflict, Forbidden
from wtforms import Field, Form, StringField, PasswordField, ValidationError
from wtforms.validators import DataRequired, Email, Length, Regexp, \
    Optional as OptionalField, URL

from . import ResponseData, to_formdata
from .verification import dispatch_code
from .. import domain
from ..services import accounts, passwords, tokens, verification
from ..services.exceptions import DuplicateAccount, InvalidPassword

logger = logging.getLogger(__name__)

USERNAME_PATTERN = r'^[A-Za-z0-9_.-]+$'


def max_bytes(form: Form, field: Field) -> None:
    """The password must fit within bcrypt's 72-byte limit."""
    if field.data and len(field.data.encode('utf-8')) > passwords.MAX_BYTES:
        raise ValidationError(
            f'Field cannot be longer than {passwords.MAX_BYTES} bytes.'
        )


class RegistrationForm(Form):
    """Direct registration."""

    username = StringField('Username', validators=[
        DataRequired(), Length(min=3, max=64),
        Regexp(USERNAME_PATTERN,
               message='Letters, numbers, dots, dashes and underscores only')
    ])
    email = StringField('Email', validators=[DataRequired(), Email(),
                                             Length(max=255)])
    password = PasswordField('Password', validators=[DataRequired(),
                                                     Length(min=8),
                                                     max_bytes])
    firstName = StringField('First name', validators=[DataRequired(),
                                                      Length(max=255)])
    lastName = StringField('Last name', validators=[DataRequired(),
                                                    Length(max=255)])


class SetupForm(RegistrationForm):
    """Account setup after the identity provider has vouched for the user."""

    profileImageUrl = StringField('Profile image', validators=[
        OptionalField(), URL(), Length(max=1024)
    ])


class CheckSetupForm(Form):
    """Ask whether an account already exists for an e-mail address."""

    email = StringField('Email', validators=[DataRequired(), Email()])


def _issue_token(account: domain.Account) -> str:
    return tokens.encode(account, current_app.config['JWT_SECRET'],
                         lifetime=current_app.config['TOKEN_LIFETIME'])


def _create(form: RegistrationForm, **extra: Any) -> domain.Account:
    registration = domain.Registration(
        username=form.username.data,
        email=form.email.data,
        password=form.password.data,
        name=domain.UserFullName(first_name=form.firstName.data,
                                 last_name=form.lastName.data),
        **extra
    )
    try:
        return accounts.create_account(
            registration, rounds=current_app.config['BCRYPT_ROUNDS']
        )
    except DuplicateAccount as e:
        raise Conflict(str(e)) from e
    except InvalidPassword as e:
        raise BadRequest(str(e)) from e


def register(payload: Any) -> ResponseData:
    """
    Create a pending student account and send a verification code.

    Parameters
    ----------
    payload : dict
        Should include ``username``, ``email``, ``password``, ``firstName``
        and ``lastName``.

    Returns
    -------
    dict
        Includes the new ``userId`` and a session ``token``.
    int
        201 (Created) if all goes well.
    dict
        Headers to add to the response.

    """
    form = RegistrationForm(to_formdata(payload))
    if not form.validate():
        logger.debug('Registration form is invalid: %s', form.errors)
        data = {'message': 'Invalid registration', 'errors': form.errors}
        return data, HTTPStatus.BAD_REQUEST, {}

    account = _create(form)
    config = current_app.config
    challenge = verification.issue_code(
        account.account_id,
        length=config['VERIFICATION_CODE_LENGTH'],
        lifetime=config['VERIFICATION_CODE_LIFETIME']
    )
    # Registration stands even if the code cannot be sent; the user can
    # request another one.
    dispatch_code(account, challenge)

    data = {
        'message': 'Registration successful. Please check your email for'
                   ' the verification code.',
        'userId': account.account_id,
        'token': _issue_token(account),
        'requiresEmailVerification': True,
        'user': domain.account_to_dict(account)
    }
    return data, HTTPStatus.CREATED, {}


def check_setup(payload: Any) -> ResponseData:
    """Report whether an account exists for an e-mail address."""
    form = CheckSetupForm(to_formdata(payload))
    if not form.validate():
        data = {'message': 'Invalid request', 'errors': form.errors}
        return data, HTTPStatus.BAD_REQUEST, {}
    has_setup = accounts.has_account_for_email(form.email.data)
    return {'hasSetup': has_setup}, HTTPStatus.OK, {}


def complete_setup(payload: Any,
                   pending: Optional[Mapping[str, Any]]) -> ResponseData:
    """
    Create an account for a user who signed in with the provider.

    Parameters
    ----------
    payload : dict
        The registration fields chosen by the user. ``email`` must match the
        address asserted by the provider.
    pending : mapping or None
        The :class:`domain.ExternalIdentity` fields stored in the browser
        session by the OAuth callback. Without it the e-mail address has not
        been vouched for, and setup is refused.

    """
    if not pending:
        logger.debug('Setup attempted without a provider sign-in')
        raise Forbidden('Sign in with the identity provider first')
    external = domain.ExternalIdentity(**pending)

    form = SetupForm(to_formdata(payload))
    if not form.validate():
        logger.debug('Setup form is invalid: %s', form.errors)
        data = {'message': 'Invalid account setup', 'errors': form.errors}
        return data, HTTPStatus.BAD_REQUEST, {}
    if form.email.data.strip().lower() != external.email:
        logger.debug('Setup e-mail does not match provider identity')
        raise Forbidden('Email does not match the identity provider')

    account = _create(form, is_email_verified=True,
                      external_id=external.external_id,
                      profile_image_url=form.profileImageUrl.data
                      or external.profile_image_url)
    data = {
        'message': 'Account setup completed. Your account is pending admin'
                   ' approval.',
        'token': _issue_token(account),
        'user': domain.account_to_dict(account)
    }
    return data, HTTPStatus.CREATED, {}
