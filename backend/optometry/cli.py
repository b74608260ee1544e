# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts:
# - python -m flask users seed-admin [--email admin@optometrypro.com] [--password ...]
#   Create the platform admin if it does not exist yet.
# - python -m flask users create --shop-id 1 --name "Jane Doe" --email jane@example.com --role optometrist
#   Create a staff account in a shop (prompts for the password).
# - python -m flask users list [--shop-id 1]
#   List accounts with role, shop and active status.
#
# Shops:
# - python -m flask shops list
# - python -m flask shops create --name "Vision Plus" --owner-email owner@example.com [--owner-name ...]
#   Create a shop, its owner account and its permission registry.
#
# Permission registry:
# - python -m flask perms init 1            (or: perms init --all)
#   Re-seed the five role records of a shop with the static defaults.
# - python -m flask perms reset 1 receptionist
#   Restore one role record to its defaults and clear member overrides.
# - python -m flask perms show jane@example.com
#   Print the effective permission view of an account.
# - python -m flask perms check jane@example.com records delete
#   Check one module/action for an account.

import click
from flask.cli import with_appcontext

from .errors import ApiError
from .extensions import db
from .models import Shop, User
from .permissions import ROLES, Role
from .services import access_control, auth_service, permission_service, shop_service


DEFAULT_ADMIN_EMAIL = "admin@optometrypro.com"


def _registry_actor_id(shop: Shop) -> int | None:
    """Account recorded as creator of CLI registry writes."""
    if shop.owner_id:
        return shop.owner_id
    admin = db.session.query(User).filter_by(role=Role.ADMIN).order_by(User.id.asc()).first()
    return admin.id if admin else None


# =============================================================================
# System
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


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

    click.echo("PASS Database reset complete. Run 'python -m flask users seed-admin' next.")


# =============================================================================
# Accounts
# =============================================================================

@click.group('users')
def users_group():
    """Account inspection and bootstrap commands."""


@users_group.command('seed-admin')
@click.option('--email', default=DEFAULT_ADMIN_EMAIL, show_default=True, help='Admin email')
@click.option('--name', default='System Administrator', show_default=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def seed_admin(email, name, password):
    """Create the platform admin account (idempotent)."""
    existing = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if existing:
        click.echo(f"SKIP Account {existing.email} already exists (role: {existing.role})")
        return

    try:
        admin = auth_service.create_user(name=name, email=email, password=password, role=Role.ADMIN)
    except ApiError as e:
        click.echo(f"FAIL Failed to create admin: {e.message}")
        for error in e.errors or []:
            click.echo(f"     {error['field']}: {error['message']}")
        return

    click.echo(f"PASS Created admin {admin.email} (ID: {admin.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('create')
@click.option('--shop-id', type=int, required=True, help='Shop ID')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([r for r in ROLES if r != Role.ADMIN]), prompt=True, help='Role')
@with_appcontext
def create_user_cli(shop_id, name, email, password, role):
    """Create a staff account inside a shop."""
    try:
        user = auth_service.create_user(name=name, email=email, password=password, role=role, shop_id=shop_id)
    except ApiError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        for error in e.errors or []:
            click.echo(f"     {error['field']}: {error['message']}")
        return

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{role}'")
    click.echo(f"     Shop: {user.shop.name} (ID: {shop_id})")


@users_group.command('list')
@click.option('--shop-id', type=int, help='Filter by shop ID')
@with_appcontext
def list_users(shop_id):
    """List all accounts with their roles."""
    query = db.session.query(User)
    if shop_id:
        query = query.filter_by(shop_id=shop_id)

    users = query.order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Shop':<6} {'Name':<24} {'Email':<34} {'Active':<8} {'Role'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        shop_str = str(user.shop_id) if user.shop_id else "-"
        click.echo(f"{user.id:<5} {shop_str:<6} {user.name:<24} {user.email:<34} {active_str:<8} {user.role}")

    click.echo("="*100 + "\n")


# =============================================================================
# Shops
# =============================================================================

@click.group('shops')
def shops_group():
    """Shop (tenant) management commands."""


@shops_group.command('list')
@with_appcontext
def list_shops_cli():
    """List all shops."""
    shops = shop_service.list_shops().all()
    if not shops:
        click.echo("No shops found.")
        return

    click.echo("\nShops:")
    click.echo("-" * 80)
    for shop in shops:
        owner = shop.owner.email if shop.owner else "-"
        click.echo(f"  [{shop.id}] {shop.name} - {shop.status} (owner: {owner})")
    click.echo("-" * 80)
    click.echo(f"Total: {len(shops)} shops\n")


@shops_group.command('create')
@click.option('--name', required=True, help='Shop name (unique)')
@click.option('--owner-email', required=True, help='Owner email (reused when the account exists)')
@click.option('--owner-name', help='Owner display name for a new account')
@click.option('--owner-phone', help='Owner phone')
@with_appcontext
def create_shop_cli(name, owner_email, owner_name, owner_phone):
    """Create a shop with its owner account and permission registry."""
    try:
        shop, owner, temporary_password = shop_service.create_shop(
            name=name,
            owner_email=owner_email,
            owner_name=owner_name,
            owner_phone=owner_phone,
        )
    except ApiError as e:
        click.echo(f"FAIL Failed to create shop: {e.message}")
        return

    click.echo(f"PASS Created shop '{shop.name}' (ID: {shop.id})")
    click.echo(f"     Owner: {owner.email} (ID: {owner.id})")
    if temporary_password:
        click.echo(f"     Temporary password: {temporary_password}")


# =============================================================================
# Permission registry
# =============================================================================

@click.group('perms')
def perms_group():
    """Permission registry inspection and repair commands."""


@perms_group.command('init')
@click.argument('shop_id', type=int, required=False)
@click.option('--all', 'all_shops', is_flag=True, help='Initialize every shop')
@with_appcontext
def init_permissions_cli(shop_id, all_shops):
    """Seed the registry of one shop (or all shops) with the static defaults."""
    if all_shops:
        shops = db.session.query(Shop).order_by(Shop.id.asc()).all()
    elif shop_id:
        shop = db.session.get(Shop, shop_id)
        if not shop:
            click.echo(f"FAIL Shop ID {shop_id} not found")
            return
        shops = [shop]
    else:
        click.echo("FAIL Pass a SHOP_ID or --all")
        return

    for shop in shops:
        actor_id = _registry_actor_id(shop)
        if actor_id is None:
            click.echo(f"FAIL Shop '{shop.name}' has no owner and no admin exists")
            continue
        records = permission_service.initialize_shop_permissions(shop.id, actor_id)
        click.echo(f"PASS Initialized {len(records)} role records for '{shop.name}' (ID: {shop.id})")


@perms_group.command('reset')
@click.argument('shop_id', type=int)
@click.argument('role')
@with_appcontext
def reset_permissions_cli(shop_id, role):
    """Restore one role's record to its defaults and clear member overrides."""
    shop = db.session.get(Shop, shop_id)
    if not shop:
        click.echo(f"FAIL Shop ID {shop_id} not found")
        return
    actor_id = _registry_actor_id(shop)
    if actor_id is None:
        click.echo(f"FAIL Shop '{shop.name}' has no owner and no admin exists")
        return

    try:
        permission_service.reset_role_permissions(shop_id, role, actor_id=actor_id)
    except ApiError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Reset '{role}' permissions for shop '{shop.name}'")


@perms_group.command('show')
@click.argument('email')
@with_appcontext
def show_permissions_cli(email):
    """Print the effective permission view of an account."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    view = permission_service.get_effective_permissions(user)
    click.echo(f"\n{user.email} (role: {user.role}, shop: {user.shop_id or '-'})")
    click.echo("-" * 80)
    for module, capabilities in sorted(view.permissions.items()):
        granted = [action for action, allowed in capabilities.items() if allowed is True]
        click.echo(f"  {module:<16} {', '.join(granted) or 'none'}")
    click.echo("-" * 80)
    click.echo(f"Pages: {', '.join(view.accessible_pages) or 'none'}\n")


@perms_group.command('check')
@click.argument('email')
@click.argument('module')
@click.argument('action')
@with_appcontext
def check_permission_cli(email, module, action):
    """Check if an account may perform `action` on `module`."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    if access_control.authorize(user, module, action):
        click.echo(f"PASS User '{email}' HAS permission '{module}:{action}'")
    else:
        click.echo(f"FAIL User '{email}' DOES NOT HAVE permission '{module}:{action}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(shops_group)
    app.cli.add_command(perms_group)
