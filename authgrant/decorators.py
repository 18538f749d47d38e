"""
Bearer-token protection for Flask routes.

:func:`authorized` is a decorator factory for resource endpoints that require
an access token issued by :meth:`.GrantHandler.token`. The token is taken from
the ``Authorization: Bearer <token>`` header and checked with the
:class:`.GrantHandler` attached to the application (see
:func:`authgrant.factory.create_web_app`).

.. code-block:: python

   from authgrant.decorators import authorized

   @blueprint.route('/profile', methods=['GET'])
   @authorized('profile:read')
   async def profile():
       return jsonify(user_id=g.access_token.user_id)


When the decorated route is called...

- If no bearer token is present, :class:`Unauthorized` is raised.
- If the token is unknown or has expired, :class:`Forbidden` is raised.
- If a scope is required and the token does not carry it,
  :class:`Forbidden` is raised.
- Otherwise the :class:`.AccessToken` is placed on ``flask.g.access_token``
  and the route is called with the original parameters.

"""

import inspect
import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import current_app, g, request
from werkzeug.exceptions import Forbidden, Unauthorized

from .exceptions import AccessTokenNotFound
from .handler import GrantHandler

logger = logging.getLogger(__name__)


def get_handler() -> GrantHandler:
    """Get the grant handler attached to the current application."""
    handler: GrantHandler = current_app.extensions['authgrant']
    return handler


def bearer_token() -> Optional[str]:
    """Extract the bearer token from the request, if there is one."""
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def authorized(required: Optional[str] = None) -> Callable:
    """
    Generate a decorator that requires a valid access token.

    Parameters
    ----------
    required : str
        A scope that must be among :attr:`.AccessToken.scopes`. If not
        provided, any valid token is accepted.

    Returns
    -------
    function

    """
    def protector(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            token = bearer_token()
            if token is None:
                logger.debug('No bearer token; aborting')
                raise Unauthorized('A bearer token is required')

            try:
                access = await get_handler().resolve_access_token(token)
            except AccessTokenNotFound as e:
                raise Forbidden('Invalid access token') from e
            if not access.is_active():
                logger.debug('Access token %s has expired', access.id)
                raise Forbidden('Invalid access token')

            if required and required not in access.scopes:
                logger.debug('Token is not authorized for %s', required)
                raise Forbidden('Access denied')

            g.access_token = access
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        return wrapper
    return protector
