"""
Commands for managing the authorization server database.

.. warning: ``create-client`` prints the client secret. The secret is stored
   in plain text in ``oauth_client.secret``, so access to that table must
   be restricted.

"""

import asyncio

import click
from sqlalchemy.engine import Engine

from . import config
from .domain import Client
from .exceptions import SchemaError
from .services import datastore

DEFAULT_SCOPES = " ".join([
    "profile:read",
    "profile:update",
])


@click.group()
@click.option('--database', envvar='SQLALCHEMY_DATABASE_URI',
              default=config.SQLALCHEMY_DATABASE_URI, show_default=True,
              help='SQLAlchemy database URI.')
@click.pass_context
def cli(ctx: click.Context, database: str) -> None:
    """Manage OAuth2 clients and tables."""
    ctx.obj = datastore.new_engine(database)


@cli.command('create-db')
@click.pass_obj
def create_db(engine: Engine) -> None:
    """Create the OAuth2 tables."""
    datastore.create_all(engine)
    click.echo('Created tables')


@cli.command('verify-db')
@click.pass_obj
def verify_db(engine: Engine) -> None:
    """Check that the OAuth2 tables look the way we expect."""
    try:
        datastore.verify_tables(engine)
    except SchemaError as e:
        raise click.ClickException(str(e)) from e
    click.echo('Tables verified successfully')


@cli.command('create-client')
@click.option('--name', prompt='Brief client name')
@click.option('--user-id', prompt='ID of the user who owns the client',
              type=int)
@click.option('--scopes', prompt='Authorized scopes', default=DEFAULT_SCOPES)
@click.option('--redirect-uri', prompt='Redirect URI', default='')
@click.pass_obj
def create_client(engine: Engine, name: str, user_id: int, scopes: str,
                  redirect_uri: str) -> None:
    """Register a new client."""
    store = datastore.SQLAlchemyStore(engine, user_loader=lambda _: None)
    client = Client(
        id=None,
        name=name,
        client_id=store.generate_raw_client_id(),
        client_secret=store.generate_raw_client_secret(),
        redirect_uri=redirect_uri or None,
        raw_scopes=scopes,
        scopes=store.format_scope(scopes),
        user_id=user_id
    )
    saved = asyncio.run(store.save_client(client))
    if saved is None:
        raise click.ClickException(f'Could not save client {name}')
    click.echo(f'Created client {name} with ID {saved.client_id}'
               f' and secret {saved.client_secret}')


if __name__ == '__main__':
    cli()
