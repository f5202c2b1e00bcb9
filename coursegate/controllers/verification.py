"""Controllers for e-mail verification codes."""

from http import HTTPStatus
from smtplib import SMTPException
from typing import Any
import logging

from flask import current_app
from werkzeug.exceptions import BadRequest, NotFound, TooManyRequests, \
    InternalServerError
from wtforms import Form, IntegerField, StringField
from wtforms.validators import DataRequired, Regexp

from . import ResponseData, to_formdata
from .. import domain
from ..services import accounts, verification, mail
from ..services.exceptions import NoSuchAccount, AlreadyVerified, \
    InvalidCode, CodeExpired, RateLimited

logger = logging.getLogger(__name__)


class VerificationForm(Form):
    """Submit an e-mail verification code."""

    userId = IntegerField('User ID', validators=[DataRequired()])
    otp = StringField('Code', validators=[
        DataRequired(),
        Regexp(r'^\d+$', message='Code must be numeric')
    ])


class ResendForm(Form):
    """Request a fresh verification code."""

    userId = IntegerField('User ID', validators=[DataRequired()])


def dispatch_code(account: domain.Account,
                  challenge: domain.VerificationChallenge) -> bool:
    """
    E-mail a verification code to the account holder.

    Returns ``False`` if the mail service failed; the failure is logged, and
    the caller decides whether it matters.
    """
    lifetime = current_app.config['VERIFICATION_CODE_LIFETIME']
    try:
        mail.send_verification_code(account.email, account.name.first_name,
                                    challenge.code, lifetime)
    except (SMTPException, OSError) as e:
        logger.warning('Could not send verification code to account %s: %s',
                       account.account_id, e)
        return False
    return True


def verify_email(payload: Any) -> ResponseData:
    """Redeem the verification code sent to a new account."""
    form = VerificationForm(to_formdata(payload))
    if not form.validate():
        data = {'message': 'Invalid request', 'errors': form.errors}
        return data, HTTPStatus.BAD_REQUEST, {}

    try:
        account = verification.verify(form.userId.data, form.otp.data)
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    except (AlreadyVerified, InvalidCode, CodeExpired) as e:
        raise BadRequest(str(e)) from e

    try:
        mail.send_welcome(account.email, account.name.first_name)
    except (SMTPException, OSError) as e:
        logger.warning('Could not send welcome e-mail to account %s: %s',
                       account.account_id, e)

    data = {
        'message': 'Email verified successfully. Your account is pending'
                   ' admin approval.',
        'emailVerified': True,
        'user': domain.account_to_dict(account)
    }
    return data, HTTPStatus.OK, {}


def resend_code(payload: Any) -> ResponseData:
    """Issue and send a new code, subject to the resend cooldown."""
    form = ResendForm(to_formdata(payload))
    if not form.validate():
        data = {'message': 'Invalid request', 'errors': form.errors}
        return data, HTTPStatus.BAD_REQUEST, {}

    config = current_app.config
    try:
        challenge = verification.resend(
            form.userId.data,
            length=config['VERIFICATION_CODE_LENGTH'],
            lifetime=config['VERIFICATION_CODE_LIFETIME'],
            cooldown=config['VERIFICATION_RESEND_COOLDOWN']
        )
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    except AlreadyVerified as e:
        raise BadRequest(str(e)) from e
    except RateLimited as e:
        raise TooManyRequests(str(e), retry_after=e.retry_after) from e

    account = accounts.get_account(challenge.account_id)
    if not dispatch_code(account, challenge):
        raise InternalServerError('Failed to send verification email')
    return {'message': 'Verification code sent'}, HTTPStatus.OK, {}
