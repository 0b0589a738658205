# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--email admin@retailops.local] [--password "Password123!"]
#   Idempotent bootstrap: creates the SUPER_ADMIN account and a default store.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List users with role, stores and active status.
# - python -m flask users create-super-admin --email root@example.com --name "Root"
#   Create a SUPER_ADMIN (every other role is created through the API).
# - python -m flask users backfill-permissions
#   Add capability keys missing from stored permission records.
#
# Stores:
# - python -m flask stores list
# - python -m flask stores create --name "MG Road" --brand "Acme" --city "Pune"
#
# Rokar:
# - python -m flask rokar import ledger.xlsx --store-id 1 [--overwrite] [--as admin@retailops.local]
#   Parse and upsert a Rokar sheet without going through the upload preview.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Store, User
from .permissions import Role, default_permissions_for
from .services import rokar_import_service, store_service, user_service
from .services.auth_service import hash_password, PasswordValidationError
from .services.rokar_import_service import LedgerImportError
from .services.store_service import StoreError
from .time_utils import utcnow


def _create_super_admin(email: str, name: str, password: str) -> User:
    now = utcnow()
    user = User(
        email=email.strip().lower(),
        name=name,
        role=Role.SUPER_ADMIN.value,
        permissions=default_permissions_for(Role.SUPER_ADMIN),
        password_hash=hash_password(password),
        is_active=True,
        activated_at=now,
        activated_by="cli",
        created_by="cli",
        created_at=now,
    )
    db.session.add(user)
    db.session.commit()
    return user


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default='admin@retailops.local', help='SUPER_ADMIN email')
@click.option('--password', default='Password123!', help='SUPER_ADMIN password')
@click.option('--store', 'store_name', default='Main Store', help='Default store name')
@with_appcontext
def init_system(email, password, store_name):
    """
    Initialize RetailOps: the SUPER_ADMIN account and a default store.

    SECURITY: Change the password immediately in production!
    """
    click.echo("START Initializing RetailOps...")

    store = db.session.query(Store).first()
    if not store:
        store = store_service.create_store(name=store_name)
        click.echo(f"PASS Created default store: {store.name} (ID: {store.id})")
    else:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    existing = db.session.query(User).filter_by(role=Role.SUPER_ADMIN.value).first()
    if existing:
        click.echo(f"WARN  SUPER_ADMIN already exists ({existing.email}), skipping...")
    else:
        try:
            user = _create_super_admin(email, "Super Admin", password)
            click.echo(f"PASS Created SUPER_ADMIN: {user.email}")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed: {str(e)}")
            return

    updated = user_service.backfill_default_permissions()
    click.echo(f"PASS Permission records back-filled for {updated} user(s)")
    click.echo("DONE RetailOps initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users_cli():
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Role':<12} {'Active':<8} {'Stores'}")
    click.echo("="*90)
    for user in users:
        stores = ",".join(str(a.store_id) for a in user.store_access if a.is_member) or "-"
        active_str = "yes" if user.is_active else "no"
        click.echo(f"{user.id:<5} {user.email:<35} {user.role:<12} {active_str:<8} {stores}")
    click.echo("="*90 + "\n")


@users_group.command('create-super-admin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_super_admin_cli(email, name, password):
    """
    Create a SUPER_ADMIN account.

    Password must have 8+ chars with uppercase, lowercase, digit and special char.
    """
    if db.session.query(User).filter_by(email=email.strip().lower()).first():
        click.echo(f"FAIL User '{email}' already exists")
        return
    try:
        user = _create_super_admin(email, name, password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    click.echo(f"PASS Created SUPER_ADMIN: {user.email} (ID: {user.id})")


@users_group.command('backfill-permissions')
@with_appcontext
def backfill_permissions_cli():
    updated = user_service.backfill_default_permissions()
    click.echo(f"PASS Back-filled permissions for {updated} user(s)")


@click.group('stores')
def stores_group():
    """Store inspection and creation commands."""


@stores_group.command('list')
@with_appcontext
def list_stores_cli():
    stores = store_service.list_stores()
    if not stores:
        click.echo("No stores found.")
        return
    for store in stores:
        click.echo(f"{store.id:<5} {store.brand or '-':<20} {store.name:<30} {store.city or '-'}")


@stores_group.command('create')
@click.option('--name', required=True, help='Store name')
@click.option('--brand', default='', help='Brand')
@click.option('--city', default='', help='City')
@click.option('--owner-id', type=int, default=None, help='Owning OWNER user id')
@with_appcontext
def create_store_cli(name, brand, city, owner_id):
    try:
        store = store_service.create_store(name=name, brand=brand, city=city, owner_id=owner_id)
    except StoreError as e:
        click.echo(f"FAIL {str(e)}")
        return
    click.echo(f"PASS Created store: {store.name} (ID: {store.id})")


@click.group('rokar')
def rokar_group():
    """Rokar ledger commands."""


@rokar_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--store-id', type=int, required=True, help='Target store')
@click.option('--overwrite', is_flag=True, help='Replace rows that already exist')
@click.option('--as', 'imported_by', default='cli', help='Recorded as imported_by')
@with_appcontext
def import_rokar_cli(path, store_id, overwrite, imported_by):
    """Parse a .xlsx/.xls/.csv Rokar sheet and upsert it into a store."""
    try:
        with open(path, "rb") as fh:
            parsed = rokar_import_service.parse_ledger_file(fh.read(), path)
        if parsed.missing_headers:
            click.echo(f"WARN  Missing headers: {', '.join(h.replace(chr(10), ' ') for h in parsed.missing_headers)}")
        summary = rokar_import_service.upsert_rows(
            store_id=store_id,
            rows=[row for _, row in parsed.rows],
            overwrite=overwrite,
            imported_by=imported_by,
        )
    except LedgerImportError as e:
        click.echo(f"FAIL {str(e)}")
        return
    click.echo(
        f"DONE inserted={summary['inserted']} overwritten={summary['overwritten']} "
        f"skipped={summary['skipped']} errors={summary['errors']}"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(rokar_group)
