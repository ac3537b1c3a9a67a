# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/homebake/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--owner-email owner@homebake.app --owner-name "Owner"]
#   Create tables, seed default bread types and optionally the first owner.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create-owner --name "Ada" --email ada@homebake.app
#   Create an owner (prompts for the password). Staff join through QR invites.
# - python -m flask users list [--role sales_rep]
#
# Catalog:
# - python -m flask bread-types seed
#
# Push:
# - python -m flask push generate-vapid
#   Print a fresh VAPID key pair for VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --days 30
# - python -m flask maintenance cleanup-notifications --older-than-hours 24

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_owner, AccountError, PasswordValidationError
from .services import bread_type_service, invite_service, push_service, session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--owner-email', default=None, help='Create this owner if no owner exists')
@click.option('--owner-name', default='Owner', show_default=True)
@click.option('--owner-password', default=None, help='Prompted when --owner-email is given without it')
@with_appcontext
def init_system(owner_email, owner_name, owner_password):
    """
    Initialize HomeBake: tables, default bread types and (optionally) the first owner.

    Safe to run repeatedly.
    """
    click.echo("START Initializing HomeBake...")

    db.create_all()
    click.echo("PASS Tables created")

    owner = db.session.query(User).filter_by(role="owner").first()
    if owner is None and owner_email:
        if not owner_password:
            owner_password = click.prompt("Owner password", hide_input=True, confirmation_prompt=True)
        try:
            owner = create_owner(owner_name, owner_email, owner_password)
            click.echo(f"PASS Created owner: {owner.email} (ID: {owner.id})")
        except (AccountError, PasswordValidationError) as e:
            click.echo(f"FAIL Could not create owner: {e}")
    elif owner is not None:
        click.echo(f"PASS Using existing owner: {owner.email}")
    else:
        click.echo("WARN No owner yet. Run 'python -m flask users create-owner'.")

    created = bread_type_service.seed_default_bread_types(owner.id if owner else None)
    click.echo(f"PASS Seeded {created} bread types")

    click.echo("DONE HomeBake initialized")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create-owner')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_owner_cli(name, email, password):
    """Create an owner account."""
    try:
        user = create_owner(name, email, password)
    except (AccountError, PasswordValidationError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created owner {user.email} (ID: {user.id})")


@users_group.command('list')
@click.option('--role', type=click.Choice(["owner", "manager", "sales_rep"]), default=None)
@with_appcontext
def list_users(role):
    """List all users with their roles."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Role':<11} {'Active'}")
    click.echo("="*90)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name[:24]:<25} {user.email[:34]:<35} {user.role:<11} {active_str}")
    click.echo("")


@click.group('bread-types')
def bread_types_group():
    """Bread type catalog commands."""


@bread_types_group.command('seed')
@with_appcontext
def seed_bread_types():
    """Create the default bread types that do not exist yet."""
    owner = db.session.query(User).filter_by(role="owner").first()
    created = bread_type_service.seed_default_bread_types(owner.id if owner else None)
    click.echo(f"PASS Seeded {created} bread types")


@click.group('push')
def push_group():
    """Web push commands."""


@push_group.command('generate-vapid')
def generate_vapid():
    """Generate a VAPID key pair (raw base64url, as browsers and pywebpush expect)."""
    from py_vapid import Vapid
    from py_vapid.utils import b64urlencode

    vapid = Vapid()
    vapid.generate_keys()
    numbers = vapid.public_key.public_numbers()
    public_raw = b"\x04" + numbers.x.to_bytes(32, "big") + numbers.y.to_bytes(32, "big")
    private_raw = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")

    click.echo(f"VAPID_PUBLIC_KEY={b64urlencode(public_raw)}")
    click.echo(f"VAPID_PRIVATE_KEY={b64urlencode(private_raw)}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(days):
    """Delete expired or revoked sessions and expired unused invites."""
    deleted = session_service.cleanup_expired_sessions(days=days)
    invites = invite_service.cleanup_expired_invites()
    click.echo(f"Deleted {deleted} sessions older than {days} days and {invites} expired invites.")


@maintenance_group.command('cleanup-notifications')
@click.option('--older-than-hours', type=int, default=24, show_default=True)
@with_appcontext
def cleanup_notifications_cli(older_than_hours):
    """Delete notification attempt records older than the window."""
    deleted = push_service.cleanup_attempts(older_than_hours=older_than_hours)
    click.echo(f"Deleted {deleted} notification attempts older than {older_than_hours}h.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(bread_types_group)
    app.cli.add_command(push_group)
    app.cli.add_command(maintenance_group)
