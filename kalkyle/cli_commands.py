"""
Flask CLI commands for database and account management.

Commands:
- flask init-db: Create all tables (--drop recreates them)
- flask seed-catalog: Create the default cost categories
- flask create-admin: Create a catalog administrator
"""

import click
from kalkyle.database import db_session, create_all, drop_all
from kalkyle.exceptions import KalkyleError
from kalkyle.models import UserRole
from kalkyle.services.auth_service import register_user
from kalkyle.services.catalog_service import seed_default_categories
from kalkyle.utils.validation import is_valid_email


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables first')
    def init_db_command(drop):
        """Create all database tables."""
        if drop:
            click.confirm('Dette sletter alle data. Fortsette?', abort=True)
            drop_all()
            click.echo('Tabeller slettet.')
        create_all()
        click.echo(click.style('Database initialisert.', fg='green'))

    @app.cli.command('seed-catalog')
    def seed_catalog():
        """Create the five default cost categories if they are missing."""
        created = seed_default_categories(db_session)
        click.echo(click.style(f'{created} kategorier opprettet.', fg='green'))

    @app.cli.command('create-admin')
    @click.option('--email', prompt=True, help='Admin email address')
    @click.option('--name', prompt=True, help='Full name')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
    def create_admin(email, name, password):
        """Create a user with the admin role (may maintain the catalog)."""
        if not is_valid_email(email):
            click.echo(click.style('Ugyldig e-postadresse.', fg='red'))
            return

        try:
            user = register_user(db_session, email, password, name, role=UserRole.ADMIN.value)
        except KalkyleError as e:
            click.echo(click.style(f'Kunne ikke opprette administrator: {e.message}', fg='red'))
            return

        click.echo(click.style('Administrator opprettet.', fg='green', bold=True))
        click.echo(f'   E-post: {user.email}')
        click.echo(f'   ID: {user.id}')
