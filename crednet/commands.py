import click
from flask.cli import AppGroup
from crednet.oauth2.ext import oauth2


oauth_cli = AppGroup('oauth', help='Authorization server maintenance.')


@oauth_cli.command('purge')
def purge():
    """Delete expired authorization codes."""
    count = oauth2.server.purge_expired()
    click.echo(f'Purged {count} expired authorization code(s).')
