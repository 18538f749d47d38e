"""
The authorization code grant (RFC6749 section 4.1).

:class:`GrantHandler` implements the three protocol operations:

- :meth:`GrantHandler.authorize` turns a resource owner's consent into an
  :class:`.AuthorizationCode`;
- :meth:`GrantHandler.token` exchanges that code, plus the client's
  credentials, for an :class:`.AccessToken` and a :class:`.RefreshToken`;
- :meth:`GrantHandler.authenticate` decides whether a bearer token is still
  valid.

The handler holds no state of its own. Everything is read from and written
to the :class:`.GrantStore` passed to the constructor, one call at a time,
and the first failed check aborts the operation with a
:class:`.GrantError`. Transport concerns (parsing requests, choosing the
effective redirect URI, rendering responses) belong to the caller; see
:mod:`authgrant.routes`.
"""

import logging
from typing import Generic, Optional

from . import exceptions
from .domain import AccessToken, AuthorizationCode, Client, RefreshToken, \
    TokenPair, to_dict
from .services.store import GrantStore, U

logger = logging.getLogger(__name__)

RESPONSE_TYPE = 'code'
GRANT_TYPE = 'authorization_code'


class GrantHandler(Generic[U]):
    """
    Grant engine for the authorization code flow.

    Parameters
    ----------
    store : :class:`.GrantStore`
        Storage, identity and policy backend.
    restrict_to_client_owner : bool
        If ``True``, a code can only be exchanged when the user who granted
        it is the user who registered the client.
    single_use_codes : bool
        If ``True``, the authorization code is revoked in the store once the
        tokens issued for it have been saved.

    """

    def __init__(self, store: GrantStore[U],
                 restrict_to_client_owner: bool = False,
                 single_use_codes: bool = False) -> None:
        self.store = store
        self.restrict_to_client_owner = restrict_to_client_owner
        self.single_use_codes = single_use_codes

    async def authorize(self, response_type: str, client_id: str, scope: str,
                        user_id: int, redirect_uri: Optional[str] = None) \
            -> AuthorizationCode:
        """
        Issue an authorization code on behalf of a user.

        Parameters
        ----------
        response_type : str
            Must be ``code`` (case-insensitive).
        client_id : str
            Public identifier of the requesting client.
        scope : str
            Raw scope string consented to by the user.
        user_id : int
            Storage id of the consenting user.
        redirect_uri : str or None
            Stored with the code as given. Falling back to the client's own
            redirect URI is up to the caller.

        Returns
        -------
        :class:`.AuthorizationCode`
            The persisted code.

        Raises
        ------
        :class:`.UnsupportedResponseType`
        :class:`.ClientNotFound`
        :class:`.UserNotFound`
        :class:`.SaveFailed`

        """
        if not response_type or response_type.lower() != RESPONSE_TYPE:
            logger.info('Rejected authorization: unsupported response type')
            raise exceptions.UnsupportedResponseType(
                'Unsupported response type'
            )

        client = await self._fetch_client(client_id)
        user = await self.store.fetch_user(user_id)
        if user is None:
            logger.info('Rejected authorization: no such user %s', user_id)
            raise exceptions.UserNotFound('User could not be found')

        code = AuthorizationCode(
            id=None,
            code=self.store.generate_raw_authorization_code(),
            client_id=_storage_id(client),
            client=client,
            redirect_uri=redirect_uri,
            raw_scopes=scope,
            scopes=self.store.format_scope(scope),
            user_id=user_id,
            user=user
        )
        saved = await self.store.save_authorization_code(code)
        if saved is None:
            logger.error('Could not save authorization code for client %s',
                         client.id)
            raise exceptions.SaveFailed('Authorization code was not saved')
        logger.debug('Issued authorization code %s to client %s for user %s',
                     saved.id, client.id, user_id)
        return saved

    async def token(self, grant_type: str, client_id: str, client_secret: str,
                    code: str, scopes: Optional[str] = None,
                    redirect_uri: Optional[str] = None) -> TokenPair:
        """
        Exchange an authorization code for an access and refresh token.

        Parameters
        ----------
        grant_type : str
            Must be ``authorization_code`` (case-insensitive).
        client_id : str
            Public identifier of the client redeeming the code.
        client_secret : str
            That client's secret.
        code : str
            The authorization code.
        scopes : str or None
            Raw scopes for the new tokens. If not given, the client's
            registered scopes are used, not the scopes granted on the code.
        redirect_uri : str or None
            Accepted for parity with the token request; not compared.

        Returns
        -------
        :class:`.TokenPair`

        Raises
        ------
        :class:`.UnsupportedGrantType`
        :class:`.ClientNotFound`
        :class:`.AuthorizationCodeNotFound`
        :class:`.ClientSecretMismatch`
        :class:`.ClientMismatch`
        :class:`.UserMismatch`
        :class:`.SaveFailed`

        """
        if not grant_type or grant_type.lower() != GRANT_TYPE:
            logger.info('Rejected token request: unsupported grant type')
            raise exceptions.UnsupportedGrantType('Unsupported grant type')

        client = await self._fetch_client(client_id)
        auth_code = await self.store.fetch_authorization_code(code)
        if auth_code is None:
            logger.info('Rejected token request: no such authorization code')
            raise exceptions.AuthorizationCodeNotFound(
                'Authorization code could not be found'
            )

        # Nothing on the code may be trusted before the secret is checked.
        if client_secret != client.client_secret:
            logger.info('Rejected token request: bad secret for client %s',
                        client.id)
            raise exceptions.ClientSecretMismatch(
                'Client secret does not match'
            )
        if auth_code.client.client_id != client.client_id:
            logger.info('Rejected token request: code %s was not issued to'
                        ' client %s', auth_code.id, client.id)
            raise exceptions.ClientMismatch(
                'Authorization code does not match the client'
            )
        if self.restrict_to_client_owner \
                and auth_code.user_id != client.user_id:
            logger.info('Rejected token request: user on code %s does not'
                        ' own client %s', auth_code.id, client.id)
            raise exceptions.UserMismatch(
                "Authorization code user does not match the client's user"
            )

        if scopes is None:
            scopes = client.raw_scopes
        formatted = self.store.format_scope(scopes)

        access = AccessToken(
            id=None,
            code=self.store.generate_raw_access_token(),
            expires=self.store.calculate_access_expiry(),
            raw_scopes=scopes,
            scopes=formatted,
            client_id=_storage_id(client),
            client=client,
            user_id=auth_code.user_id,
            user=auth_code.user
        )
        refresh = RefreshToken(
            id=None,
            code=self.store.generate_raw_refresh_token(),
            expires=self.store.calculate_refresh_expiry(),
            raw_scopes=scopes,
            scopes=list(formatted),
            client_id=_storage_id(client),
            client=client,
            user_id=auth_code.user_id,
            user=auth_code.user
        )

        saved_access = await self.store.save_access_token(access)
        if saved_access is None:
            logger.error('Could not save access token for client %s',
                         client.id)
            raise exceptions.SaveFailed('Access token was not saved')
        saved_refresh = await self.store.save_refresh_token(refresh)
        if saved_refresh is None:
            logger.error('Could not save refresh token for client %s',
                         client.id)
            raise exceptions.SaveFailed('Refresh token was not saved')

        if self.single_use_codes:
            revoked = await self.store.revoke_authorization_code(auth_code)
            logger.debug('Revoked authorization code %s: %s',
                         auth_code.id, revoked)

        logger.debug('Issued access token %s and refresh token %s to client'
                     ' %s for user %s', saved_access.id, saved_refresh.id,
                     client.id, auth_code.user_id)
        return TokenPair(access=saved_access, refresh=saved_refresh)

    async def resolve_access_token(self, token: str) -> AccessToken:
        """
        Load the access token for a bearer credential.

        Raises
        ------
        :class:`.AccessTokenNotFound`

        """
        access = await self.store.fetch_access_token(token)
        if access is None:
            logger.info('Rejected bearer token: no such access token')
            raise exceptions.AccessTokenNotFound(
                'Access token could not be found'
            )
        return access

    async def authenticate(self, token: str) -> bool:
        """
        Determine whether a bearer token grants access.

        A token is valid up to and including the second at which it expires.
        Scopes are not checked; compare the required scope against
        :attr:`.AccessToken.scopes` (see :func:`authgrant.decorators.authorized`).

        Raises
        ------
        :class:`.AccessTokenNotFound`
            If the token does not exist. Callers should treat this the same
            as a ``False`` result.

        """
        access = await self.resolve_access_token(token)
        active = access.is_active()
        if not active:
            logger.info('Access token %s has expired', access.id)
        return active

    async def _fetch_client(self, client_id: str) -> Client:
        client = await self.store.fetch_client(client_id)
        if client is None:
            logger.info('Rejected request: no such client')
            raise exceptions.ClientNotFound('Client could not be found')
        logger.debug('Resolved client %s', to_dict(client))
        return client


def _storage_id(client: Client) -> int:
    """Storage id of a client, or -1 if it has never been persisted."""
    return -1 if client.id is None else client.id
