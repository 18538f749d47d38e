"""
The storage contract used by :class:`authgrant.handler.GrantHandler`.

:class:`GrantStore` is the facade between the grant engine and whatever
persists clients, codes and tokens, and knows about users. It also supplies
deployment policy: how long tokens live, how scopes are split, and how the
opaque codes are generated.

Lookups return ``None`` when nothing matches and raise
:class:`authgrant.exceptions.StorageError` when the backend itself fails, so
that callers can tell a bad credential from an outage. Representations are
immutable, so ``save_*`` methods return the persisted copy (with its storage
``id``) or ``None`` if it could not be saved.

Implementations must guarantee that:

- :meth:`GrantStore.calculate_access_expiry` and
  :meth:`GrantStore.calculate_refresh_expiry` return UNIX times strictly in
  the future;
- the ``generate_raw_*`` methods return values with negligible collision
  probability that can be placed in a URL query string without escaping.

"""

from abc import ABC, abstractmethod
from typing import Generic, List, Optional, TypeVar

from ..domain import AccessToken, AuthorizationCode, Client, RefreshToken

U = TypeVar('U')
"""The deployment's user representation. Opaque to the grant engine."""


class GrantStore(ABC, Generic[U]):
    """Persistence, identity and policy collaborator for the grant engine."""

    @abstractmethod
    def calculate_access_expiry(self) -> int:
        """UNIX time at which a newly issued access token expires."""

    @abstractmethod
    def calculate_refresh_expiry(self) -> int:
        """UNIX time at which a newly issued refresh token expires."""

    @abstractmethod
    def format_scope(self, raw_scopes: Optional[str]) -> List[str]:
        """Split a stored scope string into individual scopes."""

    @abstractmethod
    def generate_raw_authorization_code(self) -> str:
        """Generate the value of a new authorization code."""

    @abstractmethod
    def generate_raw_access_token(self) -> str:
        """Generate the value of a new access token."""

    @abstractmethod
    def generate_raw_refresh_token(self) -> str:
        """Generate the value of a new refresh token."""

    @abstractmethod
    def generate_raw_client_id(self) -> str:
        """Generate the public identifier for a new client."""

    @abstractmethod
    def generate_raw_client_secret(self) -> str:
        """Generate the secret for a new client."""

    @abstractmethod
    async def fetch_client(self, client_id: str) -> Optional[Client]:
        """
        Load a client by its public identifier.

        Parameters
        ----------
        client_id : str
            The value of :attr:`.Client.client_id`, *not* the storage id.

        Returns
        -------
        :class:`.Client` or None

        """

    @abstractmethod
    async def fetch_user(self, user_id: int) -> Optional[U]:
        """Load the deployment's representation of a user."""

    @abstractmethod
    async def fetch_authorization_code(self, code: str) \
            -> Optional[AuthorizationCode]:
        """Load an authorization code by its value."""

    @abstractmethod
    async def fetch_access_token(self, token: str) -> Optional[AccessToken]:
        """Load an access token by its value."""

    @abstractmethod
    async def fetch_refresh_token(self, token: str) -> Optional[RefreshToken]:
        """Load a refresh token by its value."""

    @abstractmethod
    async def save_client(self, client: Client) -> Optional[Client]:
        """Persist a client."""

    @abstractmethod
    async def save_authorization_code(self, code: AuthorizationCode) \
            -> Optional[AuthorizationCode]:
        """Persist an authorization code."""

    @abstractmethod
    async def save_access_token(self, token: AccessToken) \
            -> Optional[AccessToken]:
        """Persist an access token."""

    @abstractmethod
    async def save_refresh_token(self, token: RefreshToken) \
            -> Optional[RefreshToken]:
        """Persist a refresh token."""

    @abstractmethod
    async def revoke_authorization_code(self, code: AuthorizationCode) -> bool:
        """Deactivate or delete an authorization code."""

    @abstractmethod
    async def revoke_access_token(self, token: AccessToken) -> bool:
        """Deactivate or delete an access token."""

    @abstractmethod
    async def revoke_refresh_token(self, token: RefreshToken) -> bool:
        """Deactivate or delete a refresh token."""
