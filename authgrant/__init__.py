"""
OAuth2 authorization code grant.

This package turns a resource owner's consent into a short-lived
authorization code, exchanges that code for an access token and a refresh
token, and checks bearer tokens on protected resource requests
(RFC6749 section 4.1 and RFC6750).

The grant engine, :class:`authgrant.handler.GrantHandler`, knows nothing
about persistence or users. It talks to a :class:`.GrantStore`
(:mod:`authgrant.services.store`), which a deployment implements or picks
from :mod:`authgrant.services`: an in-memory store for tests and
development, and a SQLAlchemy store for relational databases.

A Flask application exposing ``/oauth2/authorize`` and ``/oauth2/token`` is
available from :func:`authgrant.factory.create_web_app`, and
:func:`authgrant.decorators.authorized` protects resource routes.
"""
