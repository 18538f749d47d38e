"""
A :class:`.GrantStore` that keeps everything in process memory.

Suitable for tests and local development. Nothing survives a restart, and
there is no locking beyond what the event loop provides.
"""

import logging
from itertools import count
from typing import Any, Dict, Iterator, Optional

from ..domain import AccessToken, AuthorizationCode, Client, RefreshToken
from .policy import TokenPolicy
from .store import GrantStore

logger = logging.getLogger(__name__)


class InMemoryStore(TokenPolicy, GrantStore[Any]):
    """Dict-backed storage, keyed by the public value of each entity."""

    def __init__(self) -> None:
        self.users: Dict[int, Any] = {}
        self.clients: Dict[str, Client] = {}
        self.codes: Dict[str, AuthorizationCode] = {}
        self.access_tokens: Dict[str, AccessToken] = {}
        self.refresh_tokens: Dict[str, RefreshToken] = {}
        self._ids: Dict[str, Iterator[int]] = {}

    def _next_id(self, kind: str) -> int:
        return next(self._ids.setdefault(kind, count(1)))

    def add_user(self, user_id: int, user: Any) -> None:
        """Register a user so that :meth:`fetch_user` can find it."""
        self.users[user_id] = user

    async def fetch_client(self, client_id: str) -> Optional[Client]:
        return self.clients.get(client_id)

    async def fetch_user(self, user_id: int) -> Optional[Any]:
        return self.users.get(user_id)

    async def fetch_authorization_code(self, code: str) \
            -> Optional[AuthorizationCode]:
        return self.codes.get(code)

    async def fetch_access_token(self, token: str) -> Optional[AccessToken]:
        return self.access_tokens.get(token)

    async def fetch_refresh_token(self, token: str) -> Optional[RefreshToken]:
        return self.refresh_tokens.get(token)

    async def save_client(self, client: Client) -> Optional[Client]:
        if client.id is None:
            client = client._replace(id=self._next_id('client'))
        self.clients[client.client_id] = client
        logger.debug('Saved client %s', client.id)
        return client

    async def save_authorization_code(self, code: AuthorizationCode) \
            -> Optional[AuthorizationCode]:
        if code.id is None:
            code = code._replace(id=self._next_id('code'))
        self.codes[code.code] = code
        logger.debug('Saved authorization code %s', code.id)
        return code

    async def save_access_token(self, token: AccessToken) \
            -> Optional[AccessToken]:
        if token.id is None:
            token = token._replace(id=self._next_id('access'))
        self.access_tokens[token.code] = token
        logger.debug('Saved access token %s', token.id)
        return token

    async def save_refresh_token(self, token: RefreshToken) \
            -> Optional[RefreshToken]:
        if token.id is None:
            token = token._replace(id=self._next_id('refresh'))
        self.refresh_tokens[token.code] = token
        logger.debug('Saved refresh token %s', token.id)
        return token

    async def revoke_authorization_code(self, code: AuthorizationCode) -> bool:
        return self.codes.pop(code.code, None) is not None

    async def revoke_access_token(self, token: AccessToken) -> bool:
        return self.access_tokens.pop(token.code, None) is not None

    async def revoke_refresh_token(self, token: RefreshToken) -> bool:
        return self.refresh_tokens.pop(token.code, None) is not None
