"""
Exceptions raised by the grant engine and its storage backends.

Every protocol failure is a :class:`GrantError`. Each subclass carries the
OAuth2 ``error`` code (RFC6749 section 4.1.2.1 and 5.2) and an HTTP status
so that a transport can render it without inspecting the message. Messages
must never include client secrets, authorization codes or token values.
"""


class GrantError(RuntimeError):
    """Base class for failures in the authorization code grant."""

    error = 'invalid_request'
    status_code = 400


class UnsupportedResponseType(GrantError):
    """The authorization request asked for something other than a code."""

    error = 'unsupported_response_type'


class UnsupportedGrantType(GrantError):
    """The token request used a grant other than ``authorization_code``."""

    error = 'unsupported_grant_type'


class ClientNotFound(GrantError):
    """No client is registered with the supplied public identifier."""

    error = 'invalid_client'
    status_code = 401


class UserNotFound(GrantError):
    """The resource owner could not be resolved."""

    error = 'access_denied'


class AuthorizationCodeNotFound(GrantError):
    """The authorization code does not exist (or is no longer available)."""

    error = 'invalid_grant'


class ClientSecretMismatch(GrantError):
    """The supplied client secret is not the registered secret."""

    error = 'invalid_client'
    status_code = 401


class ClientMismatch(GrantError):
    """The authorization code was issued to a different client."""

    error = 'invalid_grant'


class UserMismatch(GrantError):
    """The authorization code's user is not the client's owning user."""

    error = 'invalid_grant'


class AccessTokenNotFound(GrantError):
    """The bearer token does not exist."""

    error = 'invalid_token'
    status_code = 401


class StorageError(RuntimeError):
    """The storage backend failed, as opposed to not finding something."""


class SaveFailed(StorageError):
    """A storage backend reported that an entity could not be persisted."""


class SchemaError(StorageError):
    """The database schema does not have the expected tables or columns."""
