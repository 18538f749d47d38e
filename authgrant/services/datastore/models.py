"""SQLAlchemy models for database integration."""

from sqlalchemy import BigInteger, Column, ForeignKey, Integer, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class DBClient(Base):
    """Persistence for :class:`domain.Client`."""

    __tablename__ = 'oauth_client'

    id_client = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    identifier = Column(Text, nullable=False, index=True)
    """The public client ID."""

    secret = Column(Text, nullable=False)
    redirect_uri = Column(Text, nullable=True)
    scopes = Column(Text)
    user_id = Column(Integer, nullable=False)
    """The user who registered the client."""

    authorization_codes = relationship('DBAuthorizationCode',
                                       back_populates='client')


class DBAuthorizationCode(Base):
    """Persistence for :class:`domain.AuthorizationCode`."""

    __tablename__ = 'oauth_authorization_code'

    id_authorization_code = Column(Integer, primary_key=True,
                                   autoincrement=True)
    code = Column(Text, nullable=False, index=True)
    client_id = Column(ForeignKey('oauth_client.id_client'), nullable=False)
    redirect_uri = Column(Text)
    scopes = Column(Text)
    user_id = Column(Integer, nullable=False)

    client = relationship('DBClient', back_populates='authorization_codes')


class DBAccessToken(Base):
    """Persistence for :class:`domain.AccessToken`."""

    __tablename__ = 'oauth_access_token'

    id_access_token = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(Text, nullable=False, unique=True)
    expires = Column(BigInteger, nullable=False)
    """UNIX time."""

    scopes = Column(Text)
    client_id = Column(ForeignKey('oauth_client.id_client'), nullable=False)
    user_id = Column(Integer, nullable=False)


class DBRefreshToken(Base):
    """Persistence for :class:`domain.RefreshToken`."""

    __tablename__ = 'oauth_refresh_token'

    id_refresh_token = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(Text, nullable=False, unique=True)
    expires = Column(BigInteger, nullable=False)
    scopes = Column(Text)
    client_id = Column(ForeignKey('oauth_client.id_client'), nullable=False)
    user_id = Column(Integer, nullable=False)
