"""Application factory for the accounts service."""

from typing import Any, Mapping, Optional

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException, Forbidden, Unauthorized, \
    BadRequest, MethodNotAllowed, InternalServerError, NotFound, Conflict, \
    TooManyRequests

from . import auth
from .app_logging import setup_logging
from .routes import blueprint
from .services import accounts, identity, mail
from .services.exceptions import Unavailable


def create_web_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Initialize and configure the accounts application.

    Parameters
    ----------
    config : mapping
        Settings that override those in :mod:`coursegate.config`.

    """
    app = Flask('coursegate')
    app.config.from_pyfile('config.py')
    if config:
        app.config.update(config)

    setup_logging(app.config['LOGLEVEL'], json=app.config['LOG_JSON'])

    accounts.init_app(app)
    mail.init_app(app)
    identity.init_app(app)
    auth.Auth(app)
    app.register_blueprint(blueprint)

    if app.config['CREATE_DB']:
        with app.app_context():
            accounts.create_all()

    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(Forbidden)(jsonify_exception)
    app.errorhandler(Unauthorized)(jsonify_exception)
    app.errorhandler(BadRequest)(jsonify_exception)
    app.errorhandler(Conflict)(jsonify_exception)
    app.errorhandler(TooManyRequests)(jsonify_exception)
    app.errorhandler(InternalServerError)(jsonify_exception)
    app.errorhandler(NotFound)(jsonify_exception)
    app.errorhandler(MethodNotAllowed)(jsonify_exception)
    app.errorhandler(Unavailable)(handle_unavailable)


def jsonify_exception(error: HTTPException) -> Response:
    """Render exceptions as JSON."""
    exc_resp = error.get_response()
    response: Response = jsonify(message=error.description)
    response.status_code = exc_resp.status_code
    retry_after = exc_resp.headers.get('Retry-After')
    if retry_after:
        response.headers['Retry-After'] = retry_after
    return response


def handle_unavailable(error: Unavailable) -> Response:
    """The datastore could not be reached."""
    return jsonify_exception(InternalServerError(str(error)))
