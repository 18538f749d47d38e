"""End-to-end tests for the authorization and token endpoints."""

import asyncio
import json
from http import HTTPStatus
from typing import NamedTuple
from unittest import TestCase, mock
from urllib.parse import parse_qs, urlparse

from authgrant.domain import Client
from authgrant.factory import create_web_app
from authgrant.services.memory import InMemoryStore


class User(NamedTuple):
    id: int
    username: str


class TestAuthorizationCodeFlow(TestCase):
    """A user authorizes a client, which exchanges the code for tokens."""

    def setUp(self):
        self.store = InMemoryStore()
        self.store.add_user(7, User(7, 'clientowner'))
        self.store.add_user(42, User(42, 'foouser'))
        self.client = asyncio.run(self.store.save_client(Client(
            id=None,
            name='fooclient',
            client_id='abc',
            client_secret='s3cr3t',
            redirect_uri='https://foo.com/bar?from=authgrant',
            raw_scopes='profile:read profile:update',
            scopes=['profile:read', 'profile:update'],
            user_id=7
        )))
        asyncio.run(self.store.save_client(Client(
            id=None,
            name='nowhereclient',
            client_id='nowhere',
            client_secret='n0wh3r3',
            redirect_uri=None,
            raw_scopes='profile:read',
            scopes=['profile:read'],
            user_id=7
        )))
        self.app = create_web_app(self.store)
        self.user_agent = self.app.test_client()

    def _authorize(self, **params):
        query = {'response_type': 'code', 'client_id': 'abc',
                 'scope': 'profile:read', 'state': 'xyz'}
        query.update(params)
        query = {k: v for k, v in query.items() if v is not None}
        return self.user_agent.get('/oauth2/authorize', query_string=query,
                                   environ_base={'REMOTE_USER': '42'})

    def _code(self):
        response = self._authorize()
        location = urlparse(response.headers['Location'])
        return parse_qs(location.query)['code'][0]

    def _token(self, code, **fields):
        form = {'grant_type': 'authorization_code', 'client_id': 'abc',
                'client_secret': 's3cr3t', 'code': code}
        form.update(fields)
        return self.user_agent.post('/oauth2/token', data=form)

    def test_authorize(self):
        """The user is sent back to the client with a code and the state."""
        response = self._authorize()
        self.assertEqual(response.status_code, HTTPStatus.FOUND)

        location = urlparse(response.headers['Location'])
        self.assertEqual(location.netloc, 'foo.com')
        self.assertEqual(location.path, '/bar')
        query = parse_qs(location.query)
        self.assertEqual(query['state'], ['xyz'])
        self.assertEqual(query['from'], ['authgrant'])

        code = self.store.codes[query['code'][0]]
        self.assertEqual(code.user_id, 42)
        self.assertEqual(code.client_id, self.client.id)
        self.assertEqual(code.redirect_uri,
                         'https://foo.com/bar?from=authgrant')

    def test_authorize_with_redirect_uri(self):
        """A redirect URI on the request takes precedence."""
        response = self._authorize(redirect_uri='https://foo.com/baz',
                                   state=None)
        location = urlparse(response.headers['Location'])
        self.assertEqual(location.path, '/baz')
        self.assertNotIn('state', parse_qs(location.query))

    def test_authorize_without_any_redirect_uri(self):
        """A client with no redirect URI must supply one."""
        response = self._authorize(client_id='nowhere')
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertEqual(self.store.codes, {})

    def test_authorize_anonymous(self):
        """The user must be logged in."""
        response = self.user_agent.get('/oauth2/authorize', query_string={
            'response_type': 'code', 'client_id': 'abc', 'scope': 'x'
        })
        self.assertEqual(response.status_code, HTTPStatus.UNAUTHORIZED)
        self.assertIn('reason', json.loads(response.data))

    def test_authorize_missing_parameters(self):
        response = self._authorize(scope=None)
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertIn('scope', json.loads(response.data)['reason'])

    def test_authorize_unknown_client(self):
        response = self._authorize(client_id='nope')
        self.assertEqual(response.status_code, HTTPStatus.UNAUTHORIZED)
        self.assertEqual(json.loads(response.data)['error'], 'invalid_client')

    def test_authorize_unsupported_response_type(self):
        response = self._authorize(response_type='token')
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertEqual(json.loads(response.data)['error'],
                         'unsupported_response_type')
        self.assertEqual(self.store.codes, {})

    def test_authorize_unsupported_response_type_for_any_client(self):
        """The response type is checked before the client is looked up."""
        for client_id in ('nope', 'nowhere'):
            response = self._authorize(response_type='token',
                                       client_id=client_id)
            self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
            self.assertEqual(json.loads(response.data)['error'],
                             'unsupported_response_type')

    def test_custom_user_hook(self):
        """Deployments can identify the user their own way."""
        app = create_web_app(self.store, identify_user=lambda req: 7)
        response = app.test_client().get('/oauth2/authorize', query_string={
            'response_type': 'code', 'client_id': 'abc', 'scope': 'x'
        })
        self.assertEqual(response.status_code, HTTPStatus.FOUND)
        code, = self.store.codes.values()
        self.assertEqual(code.user_id, 7)

    def test_token(self):
        """The client gets a bearer token pair for the code."""
        response = self._token(self._code())
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.headers['Cache-Control'], 'no-store')
        self.assertEqual(response.headers['Pragma'], 'no-cache')

        data = json.loads(response.data)
        self.assertEqual(data['token_type'], 'Bearer')
        self.assertAlmostEqual(data['expires_in'], 10 * 24 * 3600, delta=5)
        access = self.store.access_tokens[data['access_token']]
        self.assertEqual(access.user_id, 42)
        # Only what the user approved, not everything the client may ask for.
        self.assertEqual(access.scopes, ['profile:read'])
        refresh = self.store.refresh_tokens[data['refresh_token']]
        self.assertEqual(refresh.scopes, ['profile:read'])

    def test_token_with_scope(self):
        """A scope on the token request is used as given."""
        data = json.loads(
            self._token(self._code(), scope='profile:update').data
        )
        access = self.store.access_tokens[data['access_token']]
        self.assertEqual(access.scopes, ['profile:update'])

    def test_token_wrong_secret(self):
        response = self._token(self._code(), client_secret='nope')
        self.assertEqual(response.status_code, HTTPStatus.UNAUTHORIZED)
        data = json.loads(response.data)
        self.assertEqual(data['error'], 'invalid_client')
        self.assertNotIn('nope', data['reason'])
        self.assertEqual(self.store.access_tokens, {})

    def test_token_unknown_code(self):
        response = self._token('not-a-code')
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertEqual(json.loads(response.data)['error'], 'invalid_grant')

    def test_token_unsupported_grant_type(self):
        response = self._token(self._code(), grant_type='client_credentials')
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertEqual(json.loads(response.data)['error'],
                         'unsupported_grant_type')

    def test_token_unsupported_grant_type_skips_store(self):
        """Other grants are rejected without looking up the code."""
        code = self._code()
        with mock.patch.object(self.store, 'fetch_authorization_code',
                               new=mock.AsyncMock()) as fetch:
            response = self._token(code, grant_type='password')
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        fetch.assert_not_awaited()

    def test_token_missing_fields(self):
        response = self.user_agent.post('/oauth2/token',
                                        data={'grant_type': 'x'})
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        reason = json.loads(response.data)['reason']
        self.assertIn('client_id', reason)
        self.assertIn('code', reason)

    def test_token_method_not_allowed(self):
        response = self.user_agent.get('/oauth2/token')
        self.assertEqual(response.status_code, HTTPStatus.METHOD_NOT_ALLOWED)

    def test_not_found(self):
        """Unknown paths get a JSON error."""
        response = self.user_agent.get('/oauth2/nope')
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)
        self.assertIn('reason', json.loads(response.data))


class TestConfiguration(TestCase):
    """Application configuration reaches the store and the handler."""

    def test_defaults(self):
        app = create_web_app()
        handler = app.extensions['authgrant']
        self.assertIsInstance(handler.store, InMemoryStore)
        self.assertFalse(handler.restrict_to_client_owner)
        self.assertFalse(handler.single_use_codes)
        self.assertEqual(handler.store.SCOPE_DELIMITER, ' ')
