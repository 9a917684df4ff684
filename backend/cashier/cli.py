# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/cashier/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: tables, default admin, categories, products and settings.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --name "Budi" --email budi@kasir.com --password secret1 --role cashier
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .container import get_services
from .errors import CashierError
from .extensions import db
from .models import Category, Product, ROLES, ROLE_ADMIN

DEFAULT_ADMIN = {"name": "Admin", "email": "admin@kasir.com", "password": "admin123"}

DEFAULT_CATEGORIES = ("Makanan", "Minuman", "Snack")

# (name, price_cents, image); all seeded into "Minuman" with stock 100
DEFAULT_PRODUCTS = (
    ("Avo Coffee", 2_500_000, "/uploads/products/avocoffe.png"),
    ("Cappucino", 2_200_000, "/uploads/products/cappucino.png"),
    ("Chococa", 2_000_000, "/uploads/products/chococa.png"),
    ("Green Tea", 1_800_000, "/uploads/products/greentea.png"),
    ("Macachino", 2_400_000, "/uploads/products/macachino.png"),
    ("Machiato", 2_600_000, "/uploads/products/machiato.png"),
    ("Vallate Coffee Milk", 2_300_000, "/uploads/products/vallate_coffemilk.png"),
)
DEFAULT_STOCK = 100


def seed_defaults() -> dict:
    """
    Insert default admin, categories, products and settings where missing.

    Safe to run repeatedly. Returns counts of created rows per kind.
    """
    services = get_services()
    created = {"users": 0, "categories": 0, "products": 0, "settings": 0}

    if services.auth.users.find_by_email(DEFAULT_ADMIN["email"]) is None:
        services.auth.register(
            DEFAULT_ADMIN["name"], DEFAULT_ADMIN["email"], DEFAULT_ADMIN["password"], ROLE_ADMIN
        )
        created["users"] += 1

    categories = services.categories.categories
    for name in DEFAULT_CATEGORIES:
        if categories.find_by_name(name) is None:
            categories.add(Category(name=name))
            created["categories"] += 1
    db.session.commit()

    drinks = categories.find_by_name("Minuman")
    if db.session.query(Product).count() == 0:
        for name, price_cents, image in DEFAULT_PRODUCTS:
            db.session.add(
                Product(
                    name=name,
                    price_cents=price_cents,
                    stock=DEFAULT_STOCK,
                    category_id=drinks.id,
                    image=image,
                )
            )
            created["products"] += 1
        db.session.commit()

    created["settings"] = services.settings.seed_defaults()
    return created


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and seed default data.

    Creates (when missing):
    - Admin user admin@kasir.com / admin123
    - Categories: Makanan, Minuman, Snack
    - Seven default drinks (only into an empty catalog)
    - Default store settings

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing cashier system...")
    db.create_all()
    created = seed_defaults()
    for kind, count in created.items():
        click.echo(f"PASS Created {count} {kind}")
    click.echo("PASS System initialization complete.")


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
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a new user."""
    try:
        user = get_services().auth.register(name, email, password, role)
    except CashierError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = get_services().auth.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<35} {'Role':<10} {'Active'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user["is_active"] else "No"
        click.echo(f"{user['id']:<5} {user['name']:<20} {user['email']:<35} {user['role']:<10} {active_str}")

    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
