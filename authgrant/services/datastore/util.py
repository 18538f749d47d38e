"""Helpers for engines, sessions and schema management."""

import logging
from contextlib import contextmanager
from typing import Dict, Generator, Tuple, Type

from sqlalchemy import BigInteger, Integer, String, create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from ...exceptions import SchemaError
from .models import Base

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: Dict[str, Dict[str, Tuple[Type, ...]]] = {
    'oauth_client': {
        'id_client': (Integer,),
        'name': (String,),
        'identifier': (String,),
        'secret': (String,),
        'redirect_uri': (String,),
        'scopes': (String,),
        'user_id': (Integer,),
    },
    'oauth_authorization_code': {
        'id_authorization_code': (Integer,),
        'code': (String,),
        'client_id': (Integer,),
        'redirect_uri': (String,),
        'scopes': (String,),
        'user_id': (Integer,),
    },
    'oauth_access_token': {
        'id_access_token': (Integer,),
        'code': (String,),
        'expires': (BigInteger, Integer),
        'scopes': (String,),
        'client_id': (Integer,),
        'user_id': (Integer,),
    },
    'oauth_refresh_token': {
        'id_refresh_token': (Integer,),
        'code': (String,),
        'expires': (BigInteger, Integer),
        'scopes': (String,),
        'client_id': (Integer,),
        'user_id': (Integer,),
    },
}
"""Column types accepted for each table. ``Text`` and ``VARCHAR`` are both
:class:`String`; ``BIGINT`` is an :class:`Integer`."""


def new_engine(uri: str) -> Engine:
    """Create an engine; SQLite connections may be used across threads."""
    connect_args = {'check_same_thread': False} if 'sqlite' in uri else {}
    return create_engine(uri, connect_args=connect_args)


def new_session_factory(engine: Engine) -> sessionmaker:
    """Get a session factory bound to ``engine``."""
    return sessionmaker(bind=engine, autoflush=False)


@contextmanager
def transaction(session_factory: sessionmaker) -> Generator[Session, None,
                                                             None]:
    """Context manager for database transaction."""
    session: Session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error('Commit failed, rolling back: %s', str(e))
        session.rollback()
        raise
    finally:
        session.close()


def create_all(engine: Engine) -> None:
    """Create all tables in the database."""
    Base.metadata.create_all(engine)


def drop_all(engine: Engine) -> None:
    """Drop all tables in the database."""
    Base.metadata.drop_all(engine)


def verify_tables(engine: Engine) -> None:
    """
    Check that the database has the tables and columns that we need.

    Raises
    ------
    :class:`.SchemaError`
        Naming the first missing table or column, or the first column with
        an unexpected type.

    """
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    for table, required in REQUIRED_COLUMNS.items():
        if table not in tables:
            raise SchemaError(f"Missing table '{table}'")
        columns = {col['name']: col['type']
                   for col in inspector.get_columns(table)}
        for column, types in required.items():
            if column not in columns:
                raise SchemaError(
                    f"Table '{table}' is missing column '{column}'"
                )
            if not isinstance(columns[column], types):
                raise SchemaError(
                    f"Table '{table}' has the wrong type on column"
                    f" '{column}': {columns[column]}"
                )
    logger.debug('Verified tables %s', ', '.join(REQUIRED_COLUMNS))
