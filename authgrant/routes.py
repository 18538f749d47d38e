"""Provides Flask integration for the authorization and token endpoints."""

import logging
from http import HTTPStatus
from typing import Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from flask import Blueprint, Request, Response, current_app, jsonify, \
    redirect, request
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest, Unauthorized

from . import exceptions
from .decorators import get_handler
from .handler import GRANT_TYPE, RESPONSE_TYPE

logger = logging.getLogger(__name__)

blueprint = Blueprint('oauth2', __name__, url_prefix='/oauth2')


def remote_user(req: Request) -> Optional[int]:
    """
    Identify the resource owner from ``REMOTE_USER``.

    This is the default ``identify_user`` hook: it trusts a front-end server
    that has already authenticated the user. Deployments with their own
    login should pass a different hook to
    :func:`authgrant.factory.create_web_app`.
    """
    if req.remote_user and req.remote_user.isdigit():
        return int(req.remote_user)
    return None


def _require(params: MultiDict, names: Iterable[str]) -> None:
    missing = [name for name in names if not params.get(name)]
    if missing:
        raise BadRequest(f'Missing parameters: {", ".join(missing)}')


def _with_query(uri: str, **params: Optional[str]) -> str:
    """Add parameters to the query part of ``uri``."""
    parts = urlsplit(uri)
    query = parse_qsl(parts.query)
    query.extend((k, v) for k, v in params.items() if v is not None)
    return urlunsplit(parts._replace(query=urlencode(query)))


@blueprint.route('/authorize', methods=['GET'])
async def authorize() -> Response:
    """
    User-facing endpoint for the authorization code workflow.

    The user must already be authenticated; on success they are redirected
    back to the client with ``code`` (and ``state``, if given).
    """
    params = request.args
    _require(params, ('response_type', 'client_id', 'scope'))
    if params['response_type'].lower() != RESPONSE_TYPE:
        raise exceptions.UnsupportedResponseType('Unsupported response type')

    user_id = current_app.extensions['authgrant.identify_user'](request)
    if user_id is None:
        logger.debug('No authenticated user for authorization request')
        raise Unauthorized('You must be logged in to authorize a client')

    handler = get_handler()
    client = await handler.store.fetch_client(params['client_id'])
    if client is None:
        raise exceptions.ClientNotFound('Client could not be found')

    # The redirect URI is resolved once here and carried with the code.
    redirect_uri = params.get('redirect_uri') or client.redirect_uri or ''
    if not redirect_uri:
        raise BadRequest('A redirect URI is required for this client')

    code = await handler.authorize(params['response_type'],
                                   params['client_id'], params['scope'],
                                   user_id, redirect_uri)
    location = _with_query(redirect_uri, code=code.code,
                           state=params.get('state'))
    return redirect(location, code=HTTPStatus.FOUND)


@blueprint.route('/token', methods=['POST'])
async def issue_token() -> Response:
    """Client endpoint for exchanging an authorization code for tokens."""
    form = request.form
    _require(form, ('grant_type', 'client_id', 'client_secret', 'code'))

    handler = get_handler()
    scope = form.get('scope')
    if not scope and form['grant_type'].lower() == GRANT_TYPE:
        # Without a requested scope, the tokens get what the user approved.
        auth_code = await handler.store.fetch_authorization_code(form['code'])
        scope = None if auth_code is None else auth_code.raw_scopes

    pair = await handler.token(
        form['grant_type'],
        form['client_id'],
        form['client_secret'],
        form['code'],
        scope,
        form.get('redirect_uri')
    )
    response: Response = jsonify(
        token_type='Bearer',
        expires_in=pair.access.expires_in(),
        access_token=pair.access.code,
        refresh_token=pair.refresh.code
    )
    response.headers['Cache-Control'] = 'no-store'
    response.headers['Pragma'] = 'no-cache'
    return response
