"""
Integration with an upstream OpenID Connect identity provider.

The provider vouches for the user's e-mail address, which lets the user skip
the verification code step. The client is registered with :mod:`authlib`'s
Flask integration, and is stored in ``app.extensions['identity_provider']``
so that it can be replaced in tests by any object with the same two methods.
"""

from typing import Any, Optional
import logging

from authlib.integrations.flask_client import OAuth, OAuthError
from flask import Flask, Response, current_app

from .. import domain

logger = logging.getLogger(__name__)


class IdentityProviderError(RuntimeError):
    """The identity provider did not complete the handshake."""


class OIDCIdentityProvider(object):
    """Redirect-based OpenID Connect login against a configured provider."""

    def __init__(self, app: Flask) -> None:
        self._oauth = OAuth(app)
        self._client = self._oauth.register(
            name='upstream',
            client_id=app.config['OAUTH_CLIENT_ID'],
            client_secret=app.config.get('OAUTH_CLIENT_SECRET'),
            server_metadata_url=app.config['OAUTH_SERVER_METADATA_URL'],
            client_kwargs={
                'scope': app.config.get('OAUTH_SCOPE', 'openid email profile')
            }
        )

    def authorize_redirect(self, redirect_uri: str) -> Response:
        """Send the user agent to the provider's authorization endpoint."""
        return self._client.authorize_redirect(redirect_uri)

    def fetch_identity(self) -> domain.ExternalIdentity:
        """Exchange the authorization code on this request for an identity."""
        try:
            token = self._client.authorize_access_token()
        except OAuthError as e:
            raise IdentityProviderError(str(e)) from e
        userinfo = token.get('userinfo') or self._client.userinfo()
        return identity_from_claims(userinfo)


def identity_from_claims(claims: Any) -> domain.ExternalIdentity:
    """Build a :class:`domain.ExternalIdentity` from OIDC userinfo claims."""
    email = claims.get('email')
    if not email:
        raise IdentityProviderError('Provider did not release an email')
    if claims.get('email_verified') is False:
        raise IdentityProviderError('Provider has not verified the email')
    return domain.ExternalIdentity(
        email=email.strip().lower(),
        first_name=claims.get('given_name') or '',
        last_name=claims.get('family_name') or '',
        external_id=claims.get('sub'),
        profile_image_url=claims.get('picture')
    )


def init_app(app: Flask) -> None:
    """Register the identity provider, if one is configured."""
    if 'identity_provider' in app.extensions:
        return
    if not app.config.get('OAUTH_CLIENT_ID'):
        logger.debug('No OAUTH_CLIENT_ID; identity provider disabled')
        app.extensions['identity_provider'] = None
        return
    app.extensions['identity_provider'] = OIDCIdentityProvider(app)


def get_provider() -> Optional[Any]:
    """Get the identity provider for the current application, if any."""
    return current_app.extensions.get('identity_provider')
