"""Provides tools for working with authenticated requests."""

from typing import Optional, Union
import logging

from flask import Flask, request

from . import decorators
from .. import domain
from ..services import tokens
from ..services.exceptions import InvalidToken, ExpiredToken

logger = logging.getLogger(__name__)


class Auth(object):
    """
    Attaches verified token claims to the request.

    Intended for use in a Flask application factory, for example:

    .. code-block:: python

       from flask import Flask
       from coursegate.auth import Auth


       def create_web_app() -> Flask:
           app = Flask('coursegate')
           app.config.from_pyfile('config.py')
           Auth(app)
           return app

    Routes can then read ``request.auth``, which is either a
    :class:`domain.Claims`, ``None`` if no token was presented, or the
    exception raised while reading a bad token.
    """

    def __init__(self, app: Optional[Flask] = None) -> None:
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Attach :meth:`.load_claims` to the Flask app."""
        self.app = app
        self.app.before_request(self.load_claims)

    def load_claims(self) -> None:
        """Read the bearer token, if any, and attach its claims."""
        request.auth = self.get_claims()

    def get_claims(self) -> Union[domain.Claims, Exception, None]:
        """Decode the bearer token on the current request."""
        header = request.headers.get('Authorization', '')
        scheme, _, token = header.partition(' ')
        if scheme.lower() != 'bearer' or not token.strip():
            return None
        try:
            return tokens.decode(token.strip(), self.app.config['JWT_SECRET'])
        except ExpiredToken as e:
            logger.debug('Expired token: %s', e)
            return e
        except InvalidToken as e:
            logger.debug('Invalid token: %s', e)
            return e
