# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/wholesale/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wholesale (PowerShell: $env:FLASK_APP="wholesale").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, an operator, a distributor, a sample
#   ACTIVE outlet with its login, and a few sample products.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User bootstrap:
# - python -m flask users create --email ops@wholesale.local --password "Password123" --role OPERATOR
#   Create a login identity (prompts if options are omitted).
# - python -m flask users list
#
# Outlet inspection:
# - python -m flask outlets list [--status PENDING]
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired/revoked sessions older than 30 days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Outlet, Product, User, ROLES, ROLE_OPERATOR, ROLE_DISTRIBUTOR, ROLE_OUTLET, OUTLET_ACTIVE, OUTLET_STATUSES
from .services.auth_service import create_user, PasswordValidationError
from .services import session_service
from .validation import ConflictError, ValidationError


DEFAULT_PASSWORD = "Password123"

SAMPLE_PRODUCTS = [
    ("Sparkling Water 24x330ml", 1299, 120),
    ("Orange Juice 12x1L", 2450, 60),
    ("Coffee Beans 1kg", 1875, 40),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default=DEFAULT_PASSWORD, show_default=True, help='Password for seeded users')
@with_appcontext
def init_system(password):
    """
    Initialize a demo wholesale system.

    Creates (if missing):
    - Operator: operator@wholesale.local
    - Distributor: distributor@wholesale.local, with sample products
    - Outlet "Corner Shop" (ACTIVE) with login outlet@wholesale.local

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing wholesale system...")
    db.create_all()

    def ensure_user(email, role, outlet_id=None, display_name=None):
        user = db.session.query(User).filter_by(email=email).first()
        if user:
            click.echo(f"PASS Using existing {role}: {email}")
            return user
        user = create_user(email, password, role, outlet_id=outlet_id, display_name=display_name)
        click.echo(f"PASS Created {role}: {email}")
        return user

    try:
        ensure_user("operator@wholesale.local", ROLE_OPERATOR, display_name="Operator")
        distributor = ensure_user("distributor@wholesale.local", ROLE_DISTRIBUTOR, display_name="Default Distributor")

        outlet = db.session.query(Outlet).filter_by(name="Corner Shop").first()
        if not outlet:
            outlet = Outlet(name="Corner Shop", status=OUTLET_ACTIVE, contact_email="outlet@wholesale.local")
            db.session.add(outlet)
            db.session.commit()
            click.echo(f"PASS Created outlet: {outlet.name} (ID: {outlet.id})")
        ensure_user("outlet@wholesale.local", ROLE_OUTLET, outlet_id=outlet.id, display_name=outlet.name)

        if not db.session.query(Product).filter_by(distributor_id=distributor.id).first():
            for name, price_cents, stock in SAMPLE_PRODUCTS:
                db.session.add(Product(
                    distributor_id=distributor.id,
                    name=name,
                    price_cents=price_cents,
                    stock_quantity=stock,
                ))
            db.session.commit()
            click.echo(f"PASS Created {len(SAMPLE_PRODUCTS)} sample products")

    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return

    click.echo("DONE System initialized.")


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


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@click.option('--outlet-id', type=int, help='Outlet ID (required for OUTLET)')
@click.option('--display-name', help='Display name')
@with_appcontext
def create_user_cli(email, password, role, outlet_id, display_name):
    """
    Create a login identity.

    Password must be 8+ characters with at least one letter and one digit.
    """
    try:
        if outlet_id is not None and db.session.get(Outlet, outlet_id) is None:
            click.echo(f"FAIL Outlet ID {outlet_id} not found")
            return

        user = create_user(email, password, role, outlet_id=outlet_id, display_name=display_name)
        click.echo(f"PASS Created user: {user.email} with role '{user.role}' (ID: {user.id})")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, a letter, a digit")
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all login identities."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Role':<12} {'Email':<40} {'Outlet':<8} {'Active'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        outlet_str = str(user.outlet_id) if user.outlet_id else "-"
        click.echo(f"{user.id:<5} {user.role:<12} {user.email:<40} {outlet_str:<8} {active_str}")

    click.echo("="*90 + "\n")


@click.group('outlets')
def outlets_group():
    """Outlet inspection commands."""


@outlets_group.command('list')
@click.option('--status', type=click.Choice(list(OUTLET_STATUSES)), help='Filter by status')
@with_appcontext
def list_outlets_cli(status):
    """List outlets with their account status."""
    query = db.session.query(Outlet)
    if status:
        query = query.filter_by(status=status)
    outlets = query.order_by(Outlet.id).all()

    if not outlets:
        click.echo("No outlets found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<35} {'Status':<10} {'Contact'}")
    click.echo("="*80)

    for outlet in outlets:
        click.echo(f"{outlet.id:<5} {outlet.name:<35} {outlet.status:<10} {outlet.contact_email or '-'}")

    click.echo("="*80 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked sessions older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired/revoked sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(outlets_group)
    app.cli.add_command(maintenance_group)
