"""
Controllers for logging in.

A successful login yields a signed session token regardless of whether the
account has been approved; routes that expose course material check approval
themselves. Logging out is a client-side matter of discarding the token.
"""

from http import HTTPStatus
from typing import Any
import logging

from flask import current_app
from werkzeug.exceptions import Unauthorized, NotFound
from wtforms import Form, StringField, PasswordField
from wtforms.validators import DataRequired

from . import ResponseData, to_formdata
from .. import domain
from ..services import accounts, tokens
from ..services.exceptions import AuthenticationFailed, NoSuchAccount

logger = logging.getLogger(__name__)


class LoginForm(Form):
    """Log in with a username or e-mail address, and a password."""

    username = StringField('Username or email', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])


def _login_response(account: domain.Account) -> dict:
    token = tokens.encode(account, current_app.config['JWT_SECRET'],
                          lifetime=current_app.config['TOKEN_LIFETIME'])
    return {
        'message': 'Login successful',
        'token': token,
        'user': domain.account_to_dict(account)
    }


def login(payload: Any) -> ResponseData:
    """
    Authenticate a user and issue a session token.

    Parameters
    ----------
    payload : dict
        Should include ``username`` (which may also be an e-mail address)
        and ``password``.

    Returns
    -------
    dict
        Includes ``token`` and the public ``user`` record.
    int
        Status code.
    dict
        Headers to add to the response.

    """
    form = LoginForm(to_formdata(payload))
    if not form.validate():
        data = {'message': 'Username and password are required',
                'errors': form.errors}
        return data, HTTPStatus.BAD_REQUEST, {}

    try:
        account = accounts.check_credentials(form.username.data,
                                             form.password.data)
    except AuthenticationFailed as e:
        logger.debug('Authentication failed for %s', form.username.data)
        raise Unauthorized('Invalid credentials') from e

    logger.debug('Login succeeded for account %s', account.account_id)
    return _login_response(account), HTTPStatus.OK, {}


def login_with_identity(identity: domain.ExternalIdentity) -> ResponseData:
    """
    Finish the identity provider handshake.

    If an account exists for the asserted e-mail address, the user is logged
    in. Otherwise the identity is handed back so that the client can collect
    a username and password and complete setup.
    """
    account = accounts.find_by_email(identity.email)
    if account is None:
        logger.debug('No account for %s; setup required', identity.email)
        data = {'hasSetup': False,
                'identity': domain.identity_to_dict(identity)}
        return data, HTTPStatus.OK, {}
    data = _login_response(account)
    data['hasSetup'] = True
    return data, HTTPStatus.OK, {}


def current_user(claims: domain.Claims) -> ResponseData:
    """Get the account for the authenticated user."""
    try:
        account = accounts.get_account(claims.account_id)
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    return {'user': domain.account_to_dict(account)}, HTTPStatus.OK, {}
