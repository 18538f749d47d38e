"""
Core domain classes for the authorization code grant.

These are the representations exchanged between the grant engine
(:mod:`authgrant.handler`) and a storage backend
(:mod:`authgrant.services.store`). They are immutable; a backend that assigns
a storage identifier returns a copy, e.g. ``code._replace(id=12)``.

Relationships are carried twice: by reference (``client``, ``user``) for
in-memory consumers and by numeric storage id (``client_id``, ``user_id``)
for persistence. The user is opaque to this package; only ``user_id`` is
ever inspected.
"""

from datetime import datetime
from typing import Any, NamedTuple, Optional, List

from pytz import UTC


def now() -> int:
    """Get the current epoch/unix time."""
    return epoch(datetime.now(tz=UTC))


def epoch(t: datetime) -> int:
    """Convert a timezone-aware :class:`.datetime` to UNIX time."""
    return int(t.timestamp())


class Client(NamedTuple):
    """A registered third-party application."""

    id: Optional[int]
    """Storage identifier. This is *not* the public ``client_id``."""

    name: str
    """Display name supplied at registration."""

    client_id: str
    """Public identifier for the client. Unique across the deployment."""

    client_secret: str
    """Secret shared between the client and the authorization server."""

    redirect_uri: Optional[str]
    """
    Default redirect URI.

    If this is not set, every authorization request must supply one.
    """

    raw_scopes: str
    """Scopes the client may request, as stored."""

    scopes: List[str]
    """:attr:`raw_scopes` split into individual scopes."""

    user_id: int
    """Storage id of the user who registered the client."""

    user: Any = None
    """Backend-specific representation of that user."""


class AuthorizationCode(NamedTuple):
    """A pending grant from one user to one client."""

    id: Optional[int]
    """Storage identifier."""

    code: str
    """The opaque, single-use code handed to the client."""

    client_id: int
    """Storage id of :attr:`client` (not the public identifier)."""

    client: Client
    """The client to which the code was issued."""

    redirect_uri: Optional[str]
    """Redirect URI supplied with the authorization request, if any."""

    raw_scopes: str
    """Scopes granted by the user, as requested."""

    scopes: List[str]
    """:attr:`raw_scopes` split into individual scopes."""

    user_id: int
    """Storage id of the user who granted the authorization."""

    user: Any = None
    """Backend-specific representation of that user."""


class AccessToken(NamedTuple):
    """A bearer credential for protected resource requests."""

    id: Optional[int]
    """Storage identifier."""

    code: str
    """The opaque bearer token."""

    expires: int
    """UNIX time after which the token is no longer valid."""

    raw_scopes: str
    """Scopes granted to the token, as stored."""

    scopes: List[str]
    """:attr:`raw_scopes` split into individual scopes."""

    client_id: int
    """Storage id of :attr:`client`."""

    client: Client
    """The client to which the token was issued."""

    user_id: int
    """Storage id of the user on whose behalf the client acts."""

    user: Any = None
    """Backend-specific representation of that user."""

    def expires_in(self, at: Optional[int] = None) -> int:
        """Seconds until the token expires; zero if it already has."""
        return _expires_in(self.expires, at)

    def is_active(self, at: Optional[int] = None) -> bool:
        """Whether the token is still valid; the expiry second is included."""
        return _is_active(self.expires, at)


class RefreshToken(NamedTuple):
    """
    A longer-lived credential issued alongside an :class:`AccessToken`.

    Nothing in this package consumes refresh tokens; they are issued and
    stored so that a deployment can build a refresh flow on top.
    """

    id: Optional[int]
    code: str
    expires: int
    raw_scopes: str
    scopes: List[str]
    client_id: int
    client: Client
    user_id: int
    user: Any = None

    def expires_in(self, at: Optional[int] = None) -> int:
        """Seconds until the token expires; zero if it already has."""
        return _expires_in(self.expires, at)

    def is_active(self, at: Optional[int] = None) -> bool:
        """Whether the token is still valid; the expiry second is included."""
        return _is_active(self.expires, at)


class TokenPair(NamedTuple):
    """The result of a successful code exchange."""

    access: AccessToken
    refresh: RefreshToken


def _expires_in(expires: int, at: Optional[int]) -> int:
    at = now() if at is None else at
    return max(0, expires - at)


def _is_active(expires: int, at: Optional[int]) -> bool:
    at = now() if at is None else at
    return expires >= at


_HIDDEN = {'client_secret', 'user'}


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a representation instance.

    Nested representations (e.g. the :class:`Client` on a token) are cast
    recursively. Client secrets and the opaque user reference are omitted,
    so the result is safe to log or serialize.

    Parameters
    ----------
    obj : tuple
        A NamedTuple instance.

    Returns
    -------
    dict

    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}
    data = {}
    for key, value in obj._asdict().items():  # type: ignore
        if key in _HIDDEN:
            continue
        if hasattr(value, '_asdict'):
            value = to_dict(value)
        data[key] = value
    return data
