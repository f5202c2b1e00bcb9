"""Provides the JSON API for registration, verification and approval."""

from http import HTTPStatus
from typing import Any
import logging

from flask import Blueprint, Response, jsonify, make_response, request, \
    session, url_for
from werkzeug.exceptions import BadRequest, NotFound

from .. import domain
from ..auth.decorators import scoped, user_is_owner
from ..controllers import approval, authentication, profile, registration, \
    verification
from ..services import identity

logger = logging.getLogger(__name__)

PENDING_IDENTITY = 'pending_identity'

blueprint = Blueprint('api', __name__, url_prefix='')


def _payload() -> Any:
    return request.get_json(silent=True) or {}


def _respond(data: dict, code: int, headers: dict) -> Response:
    response: Response = make_response(jsonify(data), code, headers)
    return response


@blueprint.route('/auth_status', methods=['GET'])
def auth_status() -> Response:
    """Liveness check."""
    return _respond({'status': 'OK'}, 200, {})


@blueprint.route('/auth/register', methods=['POST'])
def register() -> Response:
    """Create a new student account."""
    return _respond(*registration.register(_payload()))


@blueprint.route('/auth/check-setup', methods=['POST'])
def check_setup() -> Response:
    """Does an account exist for this e-mail?"""
    return _respond(*registration.check_setup(_payload()))


@blueprint.route('/auth/complete-setup', methods=['POST'])
def complete_setup() -> Response:
    """Create an account for a user vouched for by the identity provider."""
    data, code, headers = registration.complete_setup(
        _payload(), session.get(PENDING_IDENTITY)
    )
    if code == HTTPStatus.CREATED:
        session.pop(PENDING_IDENTITY, None)
    return _respond(data, code, headers)


@blueprint.route('/auth/verify-email', methods=['POST'])
def verify_email() -> Response:
    """Redeem an e-mail verification code."""
    return _respond(*verification.verify_email(_payload()))


@blueprint.route('/auth/resend-otp', methods=['POST'])
def resend_otp() -> Response:
    """Send a fresh verification code."""
    return _respond(*verification.resend_code(_payload()))


@blueprint.route('/auth/login', methods=['POST'])
def login() -> Response:
    """Log in with a username or e-mail, and a password."""
    return _respond(*authentication.login(_payload()))


@blueprint.route('/auth/user', methods=['GET'])
@scoped()
def current_user() -> Response:
    """Get the authenticated user's account."""
    return _respond(*authentication.current_user(request.auth))


@blueprint.route('/auth/oauth/login', methods=['GET'])
def oauth_login() -> Response:
    """Send the user to the identity provider."""
    provider = identity.get_provider()
    if provider is None:
        raise NotFound('Identity provider is not configured')
    redirect_uri = url_for('api.oauth_callback', _external=True)
    response: Response = provider.authorize_redirect(redirect_uri)
    return response


@blueprint.route('/auth/oauth/callback', methods=['GET'])
def oauth_callback() -> Response:
    """The identity provider sends the user back here."""
    provider = identity.get_provider()
    if provider is None:
        raise NotFound('Identity provider is not configured')
    try:
        external = provider.fetch_identity()
    except identity.IdentityProviderError as e:
        logger.warning('Identity provider handshake failed: %s', e)
        raise BadRequest('Could not sign in with the identity provider') \
            from e
    data, code, headers = authentication.login_with_identity(external)
    if not data.get('hasSetup'):
        session[PENDING_IDENTITY] = external._asdict()
    return _respond(data, code, headers)


@blueprint.route('/users/<int:account_id>', methods=['GET'])
@scoped(authorizer=user_is_owner)
def get_profile(account_id: int) -> Response:
    """Get the profile of an account."""
    return _respond(*profile.get_profile(account_id))


@blueprint.route('/users/<int:account_id>', methods=['PATCH'])
@scoped(authorizer=user_is_owner)
def update_profile(account_id: int) -> Response:
    """Update the profile of an account."""
    return _respond(*profile.update_profile(account_id, _payload()))


@blueprint.route('/users/me/courses', methods=['GET'])
@scoped()
def my_courses() -> Response:
    """Courses the authenticated user may access, once approved."""
    return _respond(*profile.approved_courses(request.auth))


@blueprint.route('/users/<int:account_id>/approval', methods=['PUT'])
@scoped(domain.ADMIN)
def set_approval(account_id: int) -> Response:
    """Approve or reject an account."""
    return _respond(*approval.set_approval(account_id, _payload(),
                                           request.auth))


@blueprint.route('/users/<int:account_id>/courses/revoke', methods=['PUT'])
@scoped(domain.ADMIN)
def revoke_courses(account_id: int) -> Response:
    """Remove specific course grants."""
    return _respond(*approval.revoke_courses(account_id, _payload()))


@blueprint.route('/admin/pending-approvals', methods=['GET'])
@scoped(domain.ADMIN)
def pending_approvals() -> Response:
    """Accounts waiting for approval."""
    return _respond(*approval.pending_approvals())


@blueprint.route('/admin/users', methods=['GET'])
@scoped(domain.ADMIN)
def list_users() -> Response:
    """All accounts."""
    return _respond(*approval.list_accounts())
