# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/menuhub/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` where migrations are managed).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create-superuser --email admin@menuhub.local --password "secret123"
#   Create a global SUPERUSER (no commerce).
# - python -m flask users list [--commerce-id 1]
#   List users with role and commerce.
#
# Commerces (tenants):
# - python -m flask commerces list
# - python -m flask commerces create --name "Pizza Nova" --subdomain pizzanova --category Pizzeria \
#       --owner-email owner@pizzanova.com --owner-password "secret123"
#   Create a commerce together with its OWNER user.

import click
from flask.cli import with_appcontext

from .errors import CatalogError
from .extensions import db
from .models import Commerce, Role
from .services import auth_service, commerce_service
from .services.catalog_store import transaction
from .services.token_service import Identity

# Identity used for commands run by an operator on the server
CLI_IDENTITY = Identity(user_id=0, role=Role.SUPERUSER, commerce_id=None)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask users create-superuser' next.")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('create-superuser')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_superuser_cli(email, password):
    """Create a global SUPERUSER account."""
    try:
        with transaction():
            user = auth_service.build_user(
                email=email,
                password=password,
                role=Role.SUPERUSER,
                commerce_id=None,
            )
            db.session.add(user)
    except CatalogError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created superuser: {user.email} (ID: {user.id})")


@users_group.command('list')
@click.option('--commerce-id', type=int, help='Filter by commerce ID')
@with_appcontext
def list_users(commerce_id):
    """List all users with their role and commerce."""
    users = auth_service.list_users(commerce_id)

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Role':<10} {'Commerce':<10} {'Email'}")
    click.echo("="*80)

    for user in users:
        commerce_str = str(user.commerce_id) if user.commerce_id is not None else "-"
        click.echo(f"{user.id:<5} {user.role.value:<10} {commerce_str:<10} {user.email}")

    click.echo("="*80 + "\n")


@click.group('commerces')
def commerces_group():
    """Commerce (tenant) management."""


@commerces_group.command('list')
@with_appcontext
def list_commerces():
    commerces = db.session.query(Commerce).order_by(Commerce.id.asc()).all()

    if not commerces:
        click.echo("No commerces found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Subdomain':<25} {'Name'}")
    click.echo("="*80)
    for commerce in commerces:
        click.echo(f"{commerce.id:<5} {commerce.subdomain:<25} {commerce.business_name}")
    click.echo("="*80 + "\n")


@commerces_group.command('create')
@click.option('--name', required=True, help='Business name')
@click.option('--subdomain', required=True, help='Public menu slug (unique)')
@click.option('--category', required=True, help='Business category')
@click.option('--owner-email', required=True, help='Owner login email')
@click.option('--owner-password', prompt=True, hide_input=True, confirmation_prompt=True, help='Owner password')
@with_appcontext
def create_commerce_cli(name, subdomain, category, owner_email, owner_password):
    """Create a commerce and its OWNER user in one transaction."""
    payload = {
        "business_name": name,
        "subdomain": subdomain,
        "business_category": category,
        "owner": {"email": owner_email, "password": owner_password},
    }
    try:
        commerce, owner = commerce_service.create_commerce(CLI_IDENTITY, payload)
    except CatalogError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created commerce: {commerce.business_name} (ID: {commerce.id}, subdomain: {commerce.subdomain})")
    click.echo(f"     Owner: {owner.email} (ID: {owner.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(commerces_group)
