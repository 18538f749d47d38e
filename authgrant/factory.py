"""Application factory for the authorization server."""

import logging
from http import HTTPStatus
from typing import Callable, Optional

from flask import Flask, Request, Response, jsonify
from werkzeug.exceptions import HTTPException

from . import app_logging
from .exceptions import GrantError
from .handler import GrantHandler
from .routes import blueprint, remote_user
from .services.memory import InMemoryStore
from .services.store import GrantStore

logger = logging.getLogger(__name__)


def create_web_app(store: Optional[GrantStore] = None,
                   identify_user: Optional[Callable[[Request],
                                                    Optional[int]]] = None) \
        -> Flask:
    """
    Initialize and configure the authorization server application.

    Parameters
    ----------
    store : :class:`.GrantStore`
        Backend for clients, codes, tokens and users. Defaults to an empty
        :class:`.InMemoryStore`, which is only useful for development.
    identify_user : callable
        Gets the id of the logged-in user from a request, or ``None``.
        Defaults to :func:`authgrant.routes.remote_user`.

    """
    app = Flask('authgrant')
    app.config.from_pyfile('config.py')

    level = app.config['LOGLEVEL']
    app_logging.setup_logger(int(level) if str(level).isdigit() else level)

    if store is None:
        store = InMemoryStore()
    configure = getattr(store, 'configure_policy', None)
    if configure is not None:
        configure(app.config)

    app.extensions['authgrant'] = GrantHandler(
        store,
        restrict_to_client_owner=app.config['RESTRICT_TO_CLIENT_OWNER'],
        single_use_codes=app.config['SINGLE_USE_CODES']
    )
    app.extensions['authgrant.identify_user'] = identify_user or remote_user
    app.register_blueprint(blueprint)

    register_error_handlers(app)
    logger.debug('Created app with store %s', type(store).__name__)
    return app


def register_error_handlers(app: Flask) -> None:
    """Render grant failures and HTTP errors as JSON."""
    app.register_error_handler(GrantError, jsonify_grant_error)
    app.register_error_handler(HTTPException, jsonify_http_error)


def jsonify_grant_error(error: GrantError) -> Response:
    """Render a grant failure as an OAuth2 error response."""
    response: Response = jsonify(error=error.error, reason=str(error))
    response.status_code = error.status_code
    return response


def jsonify_http_error(error: HTTPException) -> Response:
    """Render a werkzeug HTTP error as ``{"reason": ...}``."""
    if error.code is not None and error.code < 400:
        return error.get_response()  # Routing redirects.
    response: Response = jsonify(reason=error.description)
    response.status_code = error.code or HTTPStatus.INTERNAL_SERVER_ERROR
    return response
