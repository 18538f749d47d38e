"""
Relational persistence for clients, authorization codes and tokens.

:class:`SQLAlchemyStore` implements :class:`.GrantStore` on top of the four
``oauth_*`` tables defined in :mod:`.models`. It does not manage users: the
deployment supplies a ``user_loader`` that maps a numeric user id onto its
own user representation (or ``None``).

Database work is blocking, so each operation runs in a worker thread inside
its own transaction. A lookup whose client or user cannot be resolved is
treated as not found.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar, \
    Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.session import Session

from ...domain import AccessToken, AuthorizationCode, Client, RefreshToken
from ...exceptions import SchemaError, StorageError
from ..policy import TokenPolicy
from ..store import GrantStore, U
from . import models, util

logger = logging.getLogger(__name__)

create_all = util.create_all
drop_all = util.drop_all
verify_tables = util.verify_tables
new_engine = util.new_engine

UserLoader = Callable[[int], Union[Optional[Any], Awaitable[Optional[Any]]]]
Row = Dict[str, Any]
T = TypeVar('T', AccessToken, RefreshToken)

__all__ = ('SQLAlchemyStore', 'SchemaError', 'create_all', 'drop_all',
           'verify_tables', 'new_engine')


def _as_dict(obj: Any) -> Row:
    return {col.name: getattr(obj, col.name)
            for col in obj.__table__.columns}


class SQLAlchemyStore(TokenPolicy, GrantStore[U]):
    """
    :class:`.GrantStore` backed by a SQLAlchemy engine.

    Parameters
    ----------
    engine : :class:`sqlalchemy.engine.Engine`
    user_loader : callable
        Takes a user id and returns the user, or ``None`` if there is no
        such user. May be a coroutine function.

    """

    def __init__(self, engine: Engine, user_loader: UserLoader) -> None:
        self.engine = engine
        self._sessions = util.new_session_factory(engine)
        self._user_loader = user_loader

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run ``func(session, *args)`` in a transaction, off the loop."""
        def _in_transaction() -> Any:
            with util.transaction(self._sessions) as session:
                return func(session, *args)
        try:
            return await asyncio.to_thread(_in_transaction)
        except SQLAlchemyError as e:
            raise StorageError('Database operation failed') from e

    async def fetch_user(self, user_id: int) -> Optional[U]:
        user = self._user_loader(user_id)
        if inspect.isawaitable(user):
            user = await user
        return user

    async def fetch_client(self, client_id: str) -> Optional[Client]:
        row = await self._run(_load_client, 'identifier', client_id)
        if row is None:
            logger.debug('No such client')
            return None
        return await self._to_client(row)

    async def fetch_authorization_code(self, code: str) \
            -> Optional[AuthorizationCode]:
        row = await self._run(_load_with_client, models.DBAuthorizationCode,
                              code)
        if row is None:
            logger.debug('No such authorization code')
            return None
        client, user = await asyncio.gather(
            self._to_client(row['client']),
            self.fetch_user(row['user_id'])
        )
        if client is None or user is None:
            logger.debug('Client or user for authorization code %s is gone',
                         row['id_authorization_code'])
            return None
        return AuthorizationCode(
            id=row['id_authorization_code'],
            code=row['code'],
            client_id=row['client_id'],
            client=client,
            redirect_uri=row['redirect_uri'],
            raw_scopes=row['scopes'],
            scopes=self.format_scope(row['scopes']),
            user_id=row['user_id'],
            user=user
        )

    async def fetch_access_token(self, token: str) -> Optional[AccessToken]:
        return await self._fetch_token(AccessToken, models.DBAccessToken,
                                       token)

    async def fetch_refresh_token(self, token: str) -> Optional[RefreshToken]:
        return await self._fetch_token(RefreshToken, models.DBRefreshToken,
                                       token)

    async def _fetch_token(self, cls: Type[T], model: Type[Any],
                           token: str) -> Optional[T]:
        row = await self._run(_load_with_client, model, token)
        if row is None:
            logger.debug('No such %s', cls.__name__)
            return None
        client, user = await asyncio.gather(
            self._to_client(row['client']),
            self.fetch_user(row['user_id'])
        )
        if client is None or user is None:
            logger.debug('Client or user for %s is gone', cls.__name__)
            return None
        pk = model.__mapper__.primary_key[0].name
        return cls(
            id=row[pk],
            code=row['code'],
            expires=row['expires'],
            raw_scopes=row['scopes'],
            scopes=self.format_scope(row['scopes']),
            client_id=row['client_id'],
            client=client,
            user_id=row['user_id'],
            user=user
        )

    async def _to_client(self, row: Row) -> Optional[Client]:
        user = await self.fetch_user(row['user_id'])
        if user is None:
            logger.debug('Owner of client %s is gone', row['id_client'])
            return None
        return Client(
            id=row['id_client'],
            name=row['name'],
            client_id=row['identifier'],
            client_secret=row['secret'],
            redirect_uri=row['redirect_uri'],
            raw_scopes=row['scopes'],
            scopes=self.format_scope(row['scopes']),
            user_id=row['user_id'],
            user=user
        )

    async def save_client(self, client: Client) -> Optional[Client]:
        try:
            pk = await self._run(_save_client, client)
        except StorageError as e:
            logger.error('Failed to save client: %s', e.__cause__)
            return None
        return client._replace(id=pk)

    async def save_authorization_code(self, code: AuthorizationCode) \
            -> Optional[AuthorizationCode]:
        db_code = models.DBAuthorizationCode(
            code=code.code,
            client_id=code.client_id,
            redirect_uri=code.redirect_uri,
            scopes=code.raw_scopes,
            user_id=code.user_id
        )
        return await self._insert(code, db_code)

    async def save_access_token(self, token: AccessToken) \
            -> Optional[AccessToken]:
        return await self._insert(token, models.DBAccessToken(
            code=token.code,
            expires=token.expires,
            scopes=token.raw_scopes,
            client_id=token.client_id,
            user_id=token.user_id
        ))

    async def save_refresh_token(self, token: RefreshToken) \
            -> Optional[RefreshToken]:
        return await self._insert(token, models.DBRefreshToken(
            code=token.code,
            expires=token.expires,
            scopes=token.raw_scopes,
            client_id=token.client_id,
            user_id=token.user_id
        ))

    async def _insert(self, entity: Any, db_obj: Any) -> Optional[Any]:
        try:
            pk = await self._run(_add, db_obj)
        except StorageError as e:
            logger.error('Failed to save %s: %s', type(entity).__name__,
                         e.__cause__)
            return None
        return entity._replace(id=pk)

    async def revoke_authorization_code(self, code: AuthorizationCode) -> bool:
        return await self._run(_delete, models.DBAuthorizationCode, code.code)

    async def revoke_access_token(self, token: AccessToken) -> bool:
        return await self._run(_delete, models.DBAccessToken, token.code)

    async def revoke_refresh_token(self, token: RefreshToken) -> bool:
        return await self._run(_delete, models.DBRefreshToken, token.code)


def _load_client(session: Session, column: str, value: Any) -> Optional[Row]:
    db_client = session.query(models.DBClient) \
        .filter(getattr(models.DBClient, column) == value) \
        .first()
    return None if db_client is None else _as_dict(db_client)


def _load_with_client(session: Session, model: Type[Any], code: str) \
        -> Optional[Row]:
    db_obj = session.query(model).filter(model.code == code).first()
    if db_obj is None:
        return None
    client = _load_client(session, 'id_client', db_obj.client_id)
    if client is None:
        return None
    return dict(_as_dict(db_obj), client=client)


def _add(session: Session, db_obj: Any) -> int:
    session.add(db_obj)
    session.flush()
    pk: int = db_obj.__mapper__.primary_key_from_instance(db_obj)[0]
    return pk


def _save_client(session: Session, client: Client) -> int:
    db_client = None
    if client.id is not None:
        db_client = session.get(models.DBClient, client.id)
    if db_client is None:
        db_client = models.DBClient()
        session.add(db_client)
    db_client.name = client.name
    db_client.identifier = client.client_id
    db_client.secret = client.client_secret
    db_client.redirect_uri = client.redirect_uri
    db_client.scopes = client.raw_scopes
    db_client.user_id = client.user_id
    session.flush()
    return int(db_client.id_client)


def _delete(session: Session, model: Type[Any], code: str) -> bool:
    deleted: int = session.query(model).filter(model.code == code).delete()
    return deleted > 0
