# Overview: Flask CLI command groups for bootstrap, tenant setup, and maintenance.

# backend/toko/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Demo tenant with an owner, a kasir, a supplier and sample products.
#
# Tenant management:
# - python -m flask tenants list
# - python -m flask tenants create --name "Toko Maju" [--subdomain maju]
#
# Users:
# - python -m flask users create-superadmin --email admin@toko.local --password "rahasia" --full-name "Admin"
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired/revoked sessions older than the retention window.

import click
from flask.cli import with_appcontext

from .errors import TokoError
from .extensions import db
from .models import Product, Supplier, Tenant, User
from .services import auth_service, inventory_service, session_service, tenant_service


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for sample data.")


DEMO_PRODUCTS = [
    {"name": "Beras 5kg", "barcode": "8990001000011", "purchase_price": "62000", "sell_price": "68000", "stock": 20, "min_stock": 5},
    {"name": "Minyak Goreng 1L", "barcode": "8990001000028", "purchase_price": "15000", "sell_price": "17500", "stock": 30, "min_stock": 10},
    {"name": "Gula Pasir 1kg", "barcode": "8990001000035", "purchase_price": "13500", "sell_price": "15000", "stock": 25, "min_stock": 10},
    {"name": "Telur Ayam 1kg", "barcode": "8990001000042", "purchase_price": "26000", "sell_price": "29000", "stock": 8, "min_stock": 10},
    {"name": "Mie Instan", "barcode": "8990001000059", "purchase_price": "2800", "sell_price": "3500", "stock": 120, "min_stock": 24},
]


@system_group.command('seed-demo')
@click.option('--password', default='rahasia123', show_default=True, help='Password for demo users')
@with_appcontext
def seed_demo(password):
    """Create a demo tenant with an owner, a kasir and sample stock (idempotent)."""
    tenant = db.session.query(Tenant).filter_by(subdomain='demo').first()
    if tenant is None:
        tenant = tenant_service.create_tenant("Toko Demo", subdomain="demo")
        click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id})")
    else:
        click.echo(f"SKIP Tenant exists: {tenant.name} (ID: {tenant.id})")

    for email, full_name, role in (
        ("owner@demo.local", "Pemilik Demo", "owner"),
        ("kasir@demo.local", "Kasir Demo", "kasir"),
    ):
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"SKIP User exists: {email}")
            continue
        auth_service.sign_up(email, password, full_name, tenant_id=tenant.id, role=role)
        click.echo(f"PASS Created {role}: {email}")

    if not db.session.query(Supplier).filter_by(tenant_id=tenant.id).first():
        inventory_service.create_supplier(tenant.id, {"name": "CV Sumber Rejeki", "phone": "0812000000"})
        click.echo("PASS Created supplier")

    for data in DEMO_PRODUCTS:
        exists = db.session.query(Product).filter_by(tenant_id=tenant.id, barcode=data["barcode"]).first()
        if exists:
            continue
        inventory_service.create_product(tenant.id, data)
        click.echo(f"PASS Created product: {data['name']}")

    click.echo(f"PASS Demo data ready. Log in as owner@demo.local / {password}")


@click.group('tenants')
def tenants_group():
    """Tenant management commands."""


@tenants_group.command('list')
@with_appcontext
def list_tenants():
    """List all tenants with their owner."""
    tenants = tenant_service.list_tenants_with_owners()

    if not tenants:
        click.echo("No tenants found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<30} {'Subdomain':<15} {'Status':<10} {'Owner'}")
    click.echo("="*90)

    for tenant in tenants:
        owner = tenant["owner"]["email"] if tenant["owner"] else "-"
        click.echo(
            f"{tenant['id']:<5} {tenant['name']:<30} {tenant['subdomain'] or '-':<15} {tenant['status']:<10} {owner}"
        )

    click.echo("="*90 + "\n")


@tenants_group.command('create')
@click.option('--name', required=True, help='Tenant (store) name')
@click.option('--subdomain', default=None, help='Optional unique subdomain')
@with_appcontext
def create_tenant_cli(name, subdomain):
    """Create a new tenant."""
    try:
        tenant = tenant_service.create_tenant(name, subdomain=subdomain)
    except TokoError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id})")


@click.group('users')
def users_group():
    """User bootstrap commands."""


@users_group.command('create-superadmin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--full-name', prompt=True, help='Full name')
@with_appcontext
def create_superadmin_cli(email, password, full_name):
    """Create a super admin account (no tenant)."""
    try:
        user = auth_service.sign_up(email, password, full_name, role="super_admin")
    except TokoError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Created super admin: {user.email}")
    click.echo(f"     User ID: {user.id}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """
    Cleanup expired and revoked sessions.

    Default retention: 30 days.
    """
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
