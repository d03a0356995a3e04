# Overview: Flask CLI command groups for bootstrap, user management and ledger integrity checks.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email admin@example.com --name "Admin" --password "Password123" --role admin
#   Create a user (prompts if options are omitted).
# - python -m flask users list [--role sales_rep]
#   List users with role and active status.
#
# Ledger integrity:
# - python -m flask ledger verify
#   Replay every product and customer ledger and compare against stored values.
#   Exits with status 1 if any entity disagrees.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .money import format_cents
from .permissions import ROLES
from .services.auth_service import create_user
from .services.ledger_service import verify_all
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (idempotent)."""
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

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, name, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    """
    try:
        user = create_user(email=email, name=name, password=password, role=role)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(ROLES)), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their roles."""
    query = db.session.query(User).order_by(User.id)

    if role:
        query = query.filter_by(role=role)

    users = query.all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Role':<12} {'Active'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<35} {user.role:<12} {active_str}")

    click.echo("="*90 + "\n")


@click.group('ledger')
def ledger_group():
    """Ledger integrity commands."""


@ledger_group.command('verify')
@with_appcontext
def verify_ledgers():
    """Replay all stock and balance histories and report mismatches."""
    results = verify_all()
    failures = 0

    for check in results["products"]:
        if not check.ok:
            failures += 1
            click.echo(
                f"FAIL product {check.entity_id}: stored stock {check.persisted}, replayed {check.replayed}"
            )

    for check in results["customers"]:
        if not check.ok:
            failures += 1
            click.echo(
                f"FAIL customer {check.entity_id}: stored balance {format_cents(check.persisted)}, "
                f"replayed {format_cents(check.replayed)}"
            )

    checked = len(results["products"]) + len(results["customers"])
    if failures:
        click.echo(f"FAIL {failures} of {checked} ledgers disagree with their history")
        raise SystemExit(1)
    click.echo(f"PASS {checked} ledgers verified ({len(results['products'])} products, {len(results['customers'])} customers)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(ledger_group)
