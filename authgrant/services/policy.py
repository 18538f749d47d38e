"""Reference token policy: lifetimes, scope splitting and code generation."""

from datetime import datetime, timedelta
from typing import Any, List, Mapping, Optional

from authlib.common.security import generate_token
from pytz import UTC

from ..domain import epoch


class TokenPolicy:
    """
    Mixin implementing the policy hooks of :class:`.GrantStore`.

    Access tokens live for ten days and refresh tokens for twenty-five. Codes
    are 40 URL-safe alphanumeric characters. Scopes are space-delimited,
    which is what most OAuth2 client libraries send.

    Any of the class attributes may be overridden per instance, typically
    with :meth:`configure_policy`.
    """

    ACCESS_LIFETIME = timedelta(days=10)
    REFRESH_LIFETIME = timedelta(days=25)
    SCOPE_DELIMITER = ' '
    TOKEN_LENGTH = 40

    def configure_policy(self, config: Mapping[str, Any]) -> None:
        """Override the policy from application configuration."""
        if config.get('ACCESS_TOKEN_LIFETIME'):
            self.ACCESS_LIFETIME = \
                timedelta(seconds=int(config['ACCESS_TOKEN_LIFETIME']))
        if config.get('REFRESH_TOKEN_LIFETIME'):
            self.REFRESH_LIFETIME = \
                timedelta(seconds=int(config['REFRESH_TOKEN_LIFETIME']))
        if config.get('SCOPE_DELIMITER'):
            self.SCOPE_DELIMITER = config['SCOPE_DELIMITER']
        if config.get('TOKEN_LENGTH'):
            self.TOKEN_LENGTH = int(config['TOKEN_LENGTH'])

    def calculate_access_expiry(self) -> int:
        return epoch(datetime.now(tz=UTC) + self.ACCESS_LIFETIME)

    def calculate_refresh_expiry(self) -> int:
        return epoch(datetime.now(tz=UTC) + self.REFRESH_LIFETIME)

    def format_scope(self, raw_scopes: Optional[str]) -> List[str]:
        """
        Divide a scope string on :attr:`SCOPE_DELIMITER`.

        ``"public:read submission:create"`` becomes
        ``["public:read", "submission:create"]``. Empty segments are dropped.
        """
        if not raw_scopes:
            return []
        return [scope for scope in raw_scopes.split(self.SCOPE_DELIMITER)
                if scope]

    def generate_raw_authorization_code(self) -> str:
        return generate_token(self.TOKEN_LENGTH)

    def generate_raw_access_token(self) -> str:
        return generate_token(self.TOKEN_LENGTH)

    def generate_raw_refresh_token(self) -> str:
        return generate_token(self.TOKEN_LENGTH)

    def generate_raw_client_id(self) -> str:
        return generate_token(self.TOKEN_LENGTH)

    def generate_raw_client_secret(self) -> str:
        return generate_token(self.TOKEN_LENGTH)
