"""Flask configuration."""

import os

SECRET_KEY = os.environ.get('SECRET_KEY', 'asdf1234')
SERVER_NAME = os.environ.get('AUTHGRANT_SERVER_NAME')

LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO')

SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///authgrant.db')

ACCESS_TOKEN_LIFETIME = int(os.environ.get('ACCESS_TOKEN_LIFETIME',
                                           10 * 24 * 60 * 60))
"""Seconds for which a newly issued access token is valid."""

REFRESH_TOKEN_LIFETIME = int(os.environ.get('REFRESH_TOKEN_LIFETIME',
                                            25 * 24 * 60 * 60))
"""Seconds for which a newly issued refresh token is valid."""

SCOPE_DELIMITER = os.environ.get('SCOPE_DELIMITER', ' ')
TOKEN_LENGTH = int(os.environ.get('TOKEN_LENGTH', 40))

RESTRICT_TO_CLIENT_OWNER = \
    bool(int(os.environ.get('RESTRICT_TO_CLIENT_OWNER', '0')))
"""If 1, only the user who registered a client may grant it a code."""

SINGLE_USE_CODES = bool(int(os.environ.get('SINGLE_USE_CODES', '0')))
"""If 1, authorization codes are revoked once exchanged for tokens."""
