"""Flask configuration."""

import os

SECRET_KEY = os.environ.get('SECRET_KEY', 'asdf1234')
"""Used by Flask to sign the browser session during the OAuth handshake."""

SERVER_NAME = os.environ.get('COURSEGATE_SERVER_NAME')

LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO')
LOG_JSON = bool(int(os.environ.get('LOG_JSON', '1')))
"""If 1, log records are emitted as JSON objects."""

JWT_SECRET = os.environ.get('JWT_SECRET', 'foosecret')
"""Signing secret for session tokens. Rotating it invalidates all tokens."""

TOKEN_LIFETIME = int(os.environ.get('TOKEN_LIFETIME', 7 * 24 * 60 * 60))
"""Session token lifetime, in seconds."""

BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', 12))
"""Cost factor for password hashing. Must be at least 10."""

VERIFICATION_CODE_LENGTH = int(os.environ.get('VERIFICATION_CODE_LENGTH', 6))
VERIFICATION_CODE_LIFETIME = \
    int(os.environ.get('VERIFICATION_CODE_LIFETIME', 600))
"""Seconds for which an e-mail verification code may be redeemed."""

VERIFICATION_RESEND_COOLDOWN = \
    int(os.environ.get('VERIFICATION_RESEND_COOLDOWN', 60))
"""Seconds that must pass after issuing a code before another is sent."""

SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///coursegate.sqlite')
SQLALCHEMY_TRACK_MODIFICATIONS = False
CREATE_DB = bool(int(os.environ.get('CREATE_DB', 1)))

PLATFORM_NAME = os.environ.get('PLATFORM_NAME', 'Coursegate')
"""Used in the subject and body of outgoing e-mail."""

MAIL_BACKEND = os.environ.get('MAIL_BACKEND', 'smtp')
"""Either ``smtp`` or ``memory``. The latter keeps messages in an outbox."""

MAIL_SERVER = os.environ.get('MAIL_SERVER', 'localhost')
MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
MAIL_USE_TLS = bool(int(os.environ.get('MAIL_USE_TLS', '1')))
MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER',
                                     'no-reply@coursegate.local')

OAUTH_CLIENT_ID = os.environ.get('OAUTH_CLIENT_ID')
OAUTH_CLIENT_SECRET = os.environ.get('OAUTH_CLIENT_SECRET')
OAUTH_SERVER_METADATA_URL = os.environ.get(
    'OAUTH_SERVER_METADATA_URL',
    'https://accounts.google.com/.well-known/openid-configuration'
)
"""OpenID Connect discovery document for the upstream identity provider.

The provider is only registered when ``OAUTH_CLIENT_ID`` is set."""

OAUTH_SCOPE = os.environ.get('OAUTH_SCOPE', 'openid email profile')
